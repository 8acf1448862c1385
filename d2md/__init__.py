"""Render D2 fenced code blocks in markdown documents to SVG images."""

__version__ = "0.1.0"
