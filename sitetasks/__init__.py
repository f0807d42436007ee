"""Construction task tracking on top of a shared spreadsheet."""

__version__ = "1.0.0"
