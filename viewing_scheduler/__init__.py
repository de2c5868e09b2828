"""Property-viewing appointment scheduler: slot generation and visit booking lifecycle."""

__version__ = "0.1.0"
