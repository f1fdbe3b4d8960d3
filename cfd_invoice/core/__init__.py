"""Workflow, extraction contract, intake and data models."""
