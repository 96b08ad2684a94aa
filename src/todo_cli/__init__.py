"""Local JSON-file TODO task manager."""

__version__ = "0.1.0"
