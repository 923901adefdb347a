"""slotbook - availability and booking conflict-resolution service."""

__version__ = "1.0.0"
