"""Continuous merge integration of topic branches onto a baseline."""

__version__ = "0.1.0"
