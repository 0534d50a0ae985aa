"""Task-related Pydantic models."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field

TITLE_MAX_LENGTH = 200


class TaskStatus(str, Enum):
    """Task workflow status."""

    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"
    BLOCKED = "blocked"


class TaskPriority(str, Enum):
    """Task priority levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskDraft(BaseModel):
    """A task parsed from chat text, not yet handed to storage."""

    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    assignee: str = ""
    tags: list[str] = Field(default_factory=list, description="Tags in insertion order")
    estimated_hours: float | None = Field(None, gt=0)
    due_date: date | None = None


class Task(TaskDraft):
    """A task as stored on the board."""

    # Cards edited in the board UI are not bound by the chat title rules
    title: str
    id: str
    board_id: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def short_id(self) -> str:
        return f"{self.id[:8]}..."
