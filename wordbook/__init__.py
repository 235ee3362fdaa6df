"""Word-book storage and synchronization."""

__version__ = "0.1.0"
