"""Replace bare URLs in note blocks with links titled from the linked page."""

__version__ = "0.1.0"
