"""Ambient Voice - background music that ducks while you speak."""

__version__ = "0.1.0"
