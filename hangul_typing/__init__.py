"""Hangul typing-practice core: composition, validation and typing metrics."""

__version__ = "0.1.0"
