"""Pydantic models for commands, tasks and LINE webhook payloads."""

from .command import (
    Command,
    Intent,
    ListPayload,
    ParseCommandRequest,
    SearchPayload,
    TaskRef,
    TaskUpdate,
)
from .line import LineEvent, LineReplyRequest, LineTextMessage, LineWebhookBody, WebhookResponse
from .task import Task, TaskDraft, TaskPriority, TaskStatus

__all__ = [
    "Command",
    "Intent",
    "ListPayload",
    "SearchPayload",
    "TaskRef",
    "TaskUpdate",
    "ParseCommandRequest",
    "Task",
    "TaskDraft",
    "TaskStatus",
    "TaskPriority",
    "LineEvent",
    "LineWebhookBody",
    "LineReplyRequest",
    "LineTextMessage",
    "WebhookResponse",
]
