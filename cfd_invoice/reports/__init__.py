"""Printable exports."""
