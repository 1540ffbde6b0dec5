"""Hospital website crawler and content extractor."""

__version__ = "0.1.0"
