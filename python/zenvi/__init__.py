"""Zenvi - social network API: posts, follows, likes and direct messages."""

__version__ = "0.1.0"
