"""Benefit extraction worker: background LLM extraction of benefit guides with human review."""

__version__ = "1.0.0"
