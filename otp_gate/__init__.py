"""Email one-time passcode issuing and verification."""

__version__ = "0.1.0"
