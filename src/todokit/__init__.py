"""todokit - local-first to-do list with reminder notifications."""

__version__ = "0.1.0"
