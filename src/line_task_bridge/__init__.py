"""Bridge between LINE chat commands and Focalboard task cards."""

__version__ = "0.1.0"
