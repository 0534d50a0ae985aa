"""API route modules."""

from . import commands, health, webhook

__all__ = ["health", "webhook", "commands"]
