"""Handball live ticker bot."""

__version__ = "1.0.0"
