"""Biomedical research assistant: literature-enriched chat relay."""

__version__ = "0.1.0"
