"""Metadata syntax engine for extended Markdown documents."""

__version__ = "0.1.0"
