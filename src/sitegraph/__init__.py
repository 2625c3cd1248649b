"""Build a navigable category/document graph from a personal site's HTML tree."""

__version__ = "0.1.0"
