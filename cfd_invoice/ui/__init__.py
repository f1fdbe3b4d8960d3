"""Terminal presentation surfaces."""
