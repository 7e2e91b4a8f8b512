"""Valence: key-value storage service over MongoDB or Redis."""

__version__ = "0.1.0"
