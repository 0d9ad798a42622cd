"""Archgate - rule-based architecture constraint validator."""

__version__ = "0.3.0"
