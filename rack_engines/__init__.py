"""Rack layout editor engines: layout mutation surface, undo/redo history and editor API."""

__version__ = "0.1.0"
