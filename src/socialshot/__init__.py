"""Render social media and article URLs into shareable card images."""

__version__ = "0.1.0"
