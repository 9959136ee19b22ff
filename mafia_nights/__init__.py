"""Mafia Nights: party game client and its reference backend."""

__version__ = "0.1.0"
