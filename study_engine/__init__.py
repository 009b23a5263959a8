"""Spaced-repetition scheduling engine for concept study sessions."""

__version__ = "0.1.0"
