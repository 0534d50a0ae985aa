"""Fixed lookup tables shared by the command parser and reply formatter."""

from types import MappingProxyType

from ..models.command import Intent
from ..models.task import TaskPriority, TaskStatus

# Slash command aliases (lower-case) -> intent
COMMAND_ALIASES = MappingProxyType({
    "add": Intent.CREATE,
    "create": Intent.CREATE,
    "new": Intent.CREATE,
    "list": Intent.LIST,
    "ls": Intent.LIST,
    "show": Intent.LIST,
    "search": Intent.SEARCH,
    "find": Intent.SEARCH,
    "update": Intent.UPDATE,
    "edit": Intent.UPDATE,
    "modify": Intent.UPDATE,
    "delete": Intent.DELETE,
    "remove": Intent.DELETE,
    "del": Intent.DELETE,
    "complete": Intent.COMPLETE,
    "done": Intent.COMPLETE,
    "finish": Intent.COMPLETE,
    "help": Intent.HELP,
})

# Words users type for a priority, in either language
PRIORITY_WORDS = MappingProxyType({
    "低": TaskPriority.LOW,
    "low": TaskPriority.LOW,
    "中": TaskPriority.MEDIUM,
    "普通": TaskPriority.MEDIUM,
    "一般": TaskPriority.MEDIUM,
    "medium": TaskPriority.MEDIUM,
    "normal": TaskPriority.MEDIUM,
    "高": TaskPriority.HIGH,
    "high": TaskPriority.HIGH,
    "緊急": TaskPriority.URGENT,
    "urgent": TaskPriority.URGENT,
})

STATUS_WORDS = MappingProxyType({
    "待辦": TaskStatus.TODO,
    "todo": TaskStatus.TODO,
    "to do": TaskStatus.TODO,
    "open": TaskStatus.TODO,
    "進行中": TaskStatus.IN_PROGRESS,
    "in-progress": TaskStatus.IN_PROGRESS,
    "in progress": TaskStatus.IN_PROGRESS,
    "doing": TaskStatus.IN_PROGRESS,
    "已完成": TaskStatus.DONE,
    "完成": TaskStatus.DONE,
    "done": TaskStatus.DONE,
    "completed": TaskStatus.DONE,
    "阻塞": TaskStatus.BLOCKED,
    "暫停": TaskStatus.BLOCKED,
    "blocked": TaskStatus.BLOCKED,
    "paused": TaskStatus.BLOCKED,
})

STATUS_LABELS = MappingProxyType({
    "zh-TW": MappingProxyType({
        TaskStatus.TODO: "待辦",
        TaskStatus.IN_PROGRESS: "進行中",
        TaskStatus.DONE: "已完成",
        TaskStatus.BLOCKED: "阻塞",
    }),
    "en": MappingProxyType({
        TaskStatus.TODO: "To do",
        TaskStatus.IN_PROGRESS: "In progress",
        TaskStatus.DONE: "Done",
        TaskStatus.BLOCKED: "Blocked",
    }),
})

PRIORITY_LABELS = MappingProxyType({
    "zh-TW": MappingProxyType({
        TaskPriority.LOW: "低",
        TaskPriority.MEDIUM: "中",
        TaskPriority.HIGH: "高",
        TaskPriority.URGENT: "緊急",
    }),
    "en": MappingProxyType({
        TaskPriority.LOW: "Low",
        TaskPriority.MEDIUM: "Medium",
        TaskPriority.HIGH: "High",
        TaskPriority.URGENT: "Urgent",
    }),
})

STATUS_GLYPHS = MappingProxyType({
    TaskStatus.TODO: "⏳",
    TaskStatus.IN_PROGRESS: "🔄",
    TaskStatus.DONE: "✅",
    TaskStatus.BLOCKED: "🚫",
})
UNKNOWN_STATUS_GLYPH = "❓"

PRIORITY_GLYPHS = MappingProxyType({
    TaskPriority.LOW: "🟢",
    TaskPriority.MEDIUM: "🟡",
    TaskPriority.HIGH: "🟠",
    TaskPriority.URGENT: "🔴",
})
UNKNOWN_PRIORITY_GLYPH = "⚪"


def lookup_priority(word: str) -> TaskPriority | None:
    """Map a user-typed priority word to a priority, or None if unknown."""
    return PRIORITY_WORDS.get(word.strip().lower())


def lookup_status(word: str) -> TaskStatus | None:
    """Map a user-typed status word to a status, or None if unknown."""
    return STATUS_WORDS.get(word.strip().lower())
