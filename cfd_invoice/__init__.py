"""Scan billing documents into structured records with Gemini."""

__version__ = "1.0.0"
