"""Local persistence: key-value storage and scan history."""
