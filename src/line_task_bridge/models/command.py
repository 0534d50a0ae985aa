"""Parsed chat command models."""

from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .task import TaskDraft, TaskPriority, TaskStatus


class Intent(str, Enum):
    """Action requested by a chat message."""

    CREATE = "create"
    LIST = "list"
    SEARCH = "search"
    UPDATE = "update"
    DELETE = "delete"
    COMPLETE = "complete"
    HELP = "help"
    UNKNOWN = "unknown"


class ListPayload(BaseModel):
    """Filters for listing tasks (status, priority, assignee, tag)."""

    model_config = ConfigDict(extra="forbid")

    filters: dict[str, str] = Field(default_factory=dict)


class SearchPayload(BaseModel):
    """Free-text search query."""

    model_config = ConfigDict(extra="forbid")

    query: str = Field(..., min_length=1)


class TaskRef(BaseModel):
    """Reference to a single stored task."""

    model_config = ConfigDict(extra="forbid")

    task_id: str = Field(..., min_length=1)


class TaskUpdate(BaseModel):
    """Partial update of a stored task. Unset fields are left unchanged."""

    model_config = ConfigDict(extra="forbid")

    task_id: str = Field(..., min_length=1)
    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assignee: str | None = None
    tags: list[str] | None = None
    estimated_hours: float | None = None
    due_date: date | None = None

    def changes(self) -> dict[str, Any]:
        """Return only the fields that were set."""
        return self.model_dump(exclude={"task_id"}, exclude_none=True)


# Tried in order when a serialized command is read back
Payload = TaskDraft | TaskRef | TaskUpdate | ListPayload | SearchPayload


class Command(BaseModel):
    """Result of parsing one chat message."""

    intent: Intent
    is_valid: bool = True
    error: str | None = None
    error_code: str | None = None
    payload: Payload | None = None
    original_text: str = ""

    @classmethod
    def invalid(
        cls,
        intent: Intent,
        original_text: str,
        error: str | None = None,
        error_code: str | None = None,
    ) -> "Command":
        """Build an invalid command; invalid commands never carry a payload."""
        return cls(
            intent=intent,
            is_valid=False,
            error=error,
            error_code=error_code,
            payload=None,
            original_text=original_text,
        )

    @classmethod
    def unknown(cls, original_text: str) -> "Command":
        return cls.invalid(Intent.UNKNOWN, original_text)


class ParseCommandRequest(BaseModel):
    """Request to parse a chat message without executing it."""

    text: str = Field(..., max_length=5000)
