"""Business logic services."""

from .command_parser import parse_command
from .focalboard import FocalboardClient, FocalboardConfig
from .line_handler import handle_events
from .line_messaging import LineMessagingClient, verify_signature
from .message_processor import MessageProcessor
from .reply_formatter import format_reply

__all__ = [
    "parse_command",
    "format_reply",
    "FocalboardClient",
    "FocalboardConfig",
    "MessageProcessor",
    "LineMessagingClient",
    "verify_signature",
    "handle_events",
]
