"""Rule-based parsing of chat text into task commands.

Two syntaxes are understood:

- natural language in Traditional Chinese or English, e.g.
  ``創建任務：修復登入問題 | 優先級：高 | 負責人：小明`` or ``search: login``
- slash commands, e.g. ``/add Fix bug #mobile @high :john due:2025-01-31``

Parsing is pure: no I/O, no configuration, and it never raises. Text that
cannot be understood becomes an invalid ``Command``.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable

from pydantic import ValidationError as PydanticValidationError

from ..errors import ParseError, ValidationError
from ..models.command import (
    Command,
    Intent,
    ListPayload,
    SearchPayload,
    TaskRef,
    TaskUpdate,
)
from ..models.task import TITLE_MAX_LENGTH, TaskDraft, TaskPriority, TaskStatus
from .date_parser import parse_date, parse_duration
from .vocabulary import COMMAND_ALIASES, lookup_priority, lookup_status

logger = logging.getLogger(__name__)

COMMAND_MARKER = "/"
FIELD_SEPARATOR = "|"


def _phrases(*phrases: str) -> str:
    return "|".join(re.escape(phrase) for phrase in phrases)


# Longer phrases first so "創建任務" is preferred over "創建"
_CREATE_PHRASES = _phrases(
    "創建任務", "新增任務", "添加任務", "建立任務", "創建", "新增", "添加",
    "create task", "add task", "new task", "create", "add",
)
_CREATE_PATTERN = re.compile(rf"^(?:{_CREATE_PHRASES})\s*[：:]\s*(.*)$", re.IGNORECASE | re.DOTALL)
_CREATE_FIRST_LINE_PATTERN = re.compile(rf"^(?:{_CREATE_PHRASES})\s*[：:]\s*(.*)$", re.IGNORECASE)

_LIST_PHRASES = _phrases(
    "查看任務", "顯示任務", "列出任務", "列表任務", "任務列表", "任務清單",
    "查看", "顯示", "列出", "列表", "list tasks", "show tasks", "list",
)
_LIST_PATTERN = re.compile(rf"^(?:{_LIST_PHRASES})(?:\s+(.+))?$", re.IGNORECASE)

_SEARCH_PATTERN = re.compile(
    rf"^(?:{_phrases('搜尋', '搜索', '查找', '尋找', 'search', 'find')})(?:\s*[：:]\s*|\s+)(.+)$",
    re.IGNORECASE,
)

_HELP_PATTERN = re.compile(
    rf"^(?:{_phrases('幫助', '說明', '指令', '命令', '如何使用', '怎麼用', 'how to use', 'usage', 'help')})[?？!！]?$",
    re.IGNORECASE,
)

_FILTER_TOKEN = re.compile(r"^(status|priority|assignee|tag)[：:](.+)$", re.IGNORECASE)
_BULLET = re.compile(r"^[-*•・]\s*")
_TAG_SPLIT = re.compile(r"[,，\s]+")


# ---------------------------------------------------------------------------
# Field values
# ---------------------------------------------------------------------------


def _split_tags(text: str) -> list[str]:
    tags: list[str] = []
    for tag in _TAG_SPLIT.split(text):
        tag = tag.strip().lstrip("#")
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def _priority_or_default(value: str) -> TaskPriority:
    return lookup_priority(value) or TaskPriority.MEDIUM


def _status_or_default(value: str) -> TaskStatus:
    return lookup_status(value) or TaskStatus.TODO


@dataclass(frozen=True)
class FieldLabel:
    """One ``label: value`` rule of the create-field grammar."""

    field: str
    pattern: re.Pattern
    convert: Callable[[str, date], Any]


def _label(field: str, labels: tuple[str, ...], convert: Callable[[str, date], Any]) -> FieldLabel:
    pattern = re.compile(rf"^(?:{_phrases(*labels)})\s*[：:]\s*(.+)$", re.IGNORECASE)
    return FieldLabel(field, pattern, convert)


FIELD_LABELS = (
    _label("priority", ("優先級", "優先", "priority"), lambda v, today: _priority_or_default(v)),
    _label("assignee", ("負責人", "指派", "負責", "assignee", "owner"), lambda v, today: v),
    _label("estimated_hours", ("預估時間", "預估", "時間", "estimate", "hours", "hour"),
           lambda v, today: parse_duration(v)),
    _label("due_date", ("截止日期", "截止", "deadline", "due"), parse_date),
    _label("status", ("狀態", "status"), lambda v, today: _status_or_default(v)),
    _label("description", ("描述", "說明", "description", "desc"), lambda v, today: v),
    _label("tags", ("標籤", "tags", "tag"), lambda v, today: _split_tags(v) or None),
)


def _apply_field(fragment: str, fields: dict[str, Any], today: date) -> None:
    """Parse one ``label: value`` fragment into ``fields``.

    Unknown labels and values that cannot be understood are dropped.
    """
    for rule in FIELD_LABELS:
        match = rule.pattern.match(fragment.strip())
        if match:
            value = rule.convert(match.group(1).strip(), today)
            if value is not None:
                fields[rule.field] = value
            else:
                logger.debug(f"Dropped unparseable {rule.field}: {match.group(1)!r}")
            return
    logger.debug(f"Dropped unrecognised field: {fragment!r}")


# ---------------------------------------------------------------------------
# Slash-command token grammar
# ---------------------------------------------------------------------------


def _convert_status(value: str, today: date) -> TaskStatus:
    status = lookup_status(value)
    if status is None:
        raise ParseError(f"無法辨識的狀態: {value}", "invalid_status")
    return status


def _convert_hours(value: str, today: date) -> float:
    hours = parse_duration(value)
    if hours is None:
        raise ParseError(f"無法辨識的預估時數: {value}", "invalid_hours")
    return hours


def _convert_due(value: str, today: date) -> date:
    due = parse_date(value, today)
    if due is None:
        raise ParseError(f"無法辨識的截止日期: {value}", "invalid_date")
    return due


@dataclass(frozen=True)
class TokenExtractor:
    """Recognises one marker token and removes it from the text."""

    field: str
    pattern: re.Pattern
    convert: Callable[[str, date], Any]
    repeat: bool = False

    def extract(self, text: str, fields: dict[str, Any], today: date) -> str:
        values: list[Any] = []

        def _collect(match: re.Match) -> str:
            values.append(self.convert(match.group(1), today))
            return " "

        text = self.pattern.sub(_collect, text, count=0 if self.repeat else 1)
        if values:
            fields[self.field] = values if self.repeat else values[0]
        return text


# Every marker must start a whitespace-delimited token, so markers never
# match inside each other (e.g. "due:2025-01-31" is not an assignee ":2025").
TOKEN_EXTRACTORS = (
    TokenExtractor("status", re.compile(r"(?<!\S)status[:：](\S+)", re.IGNORECASE), _convert_status),
    TokenExtractor("estimated_hours", re.compile(r"(?<!\S)hours?[:：](\S+)", re.IGNORECASE), _convert_hours),
    TokenExtractor("due_date", re.compile(r"(?<!\S)due[:：](\S+)", re.IGNORECASE), _convert_due),
    TokenExtractor("tags", re.compile(r"(?<!\S)#(\w[\w-]*)"), lambda v, today: v, repeat=True),
    TokenExtractor(
        "priority",
        re.compile(r"(?<!\S)@(low|medium|high|urgent|低|中|高|緊急)(?!\S)", re.IGNORECASE),
        lambda v, today: lookup_priority(v),
    ),
    TokenExtractor("assignee", re.compile(r"(?<!\S):(\w[\w.-]*)"), lambda v, today: v),
)


def _extract_tokens(text: str, today: date) -> dict[str, Any]:
    """Run the slash grammar; leftover text becomes title and description."""
    fields: dict[str, Any] = {}
    for extractor in TOKEN_EXTRACTORS:
        text = extractor.extract(text, fields, today)

    if "tags" in fields:
        fields["tags"] = _split_tags(" ".join(fields["tags"]))

    title, _, description = text.partition(FIELD_SEPARATOR)
    title = " ".join(title.split())
    description = description.strip()
    if title:
        fields["title"] = title
    if description:
        fields["description"] = description
    return fields


def _parse_filters(tokens: list[str], strict: bool) -> dict[str, str] | None:
    """Collect ``key:value`` filter tokens.

    With ``strict`` any other token makes the whole list unparseable (None);
    otherwise such tokens are ignored.
    """
    filters: dict[str, str] = {}
    for token in tokens:
        match = _FILTER_TOKEN.match(token)
        if not match:
            if strict:
                return None
            continue
        key, value = match.group(1).lower(), match.group(2).strip()
        if key == "status":
            status = lookup_status(value)
            filters[key] = status.value if status else value.lower()
        elif key == "priority":
            priority = lookup_priority(value)
            filters[key] = priority.value if priority else value.lower()
        elif key == "tag":
            filters[key] = value.lstrip("#")
        else:
            filters[key] = value
    return filters


# ---------------------------------------------------------------------------
# Payload builders
# ---------------------------------------------------------------------------


def _validate_title(title: str) -> None:
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(f"任務標題不能超過{TITLE_MAX_LENGTH}個字符", "title_too_long")


def _validate_due_date(due: date | None, today: date) -> None:
    if due is not None and due < today:
        raise ValidationError("截止日期不能早於今天", "due_date_past")


def build_draft(fields: dict[str, Any], today: date) -> TaskDraft:
    """Validate extracted fields and build a task draft."""
    title = " ".join(str(fields.get("title", "")).split())
    if not title:
        raise ValidationError("請提供任務標題", "missing_title")
    _validate_title(title)
    _validate_due_date(fields.get("due_date"), today)
    return TaskDraft(**{**fields, "title": title})


def build_update(task_id: str, fields: dict[str, Any], today: date) -> TaskUpdate:
    """Validate extracted fields and build a partial task update."""
    if not fields:
        raise ValidationError("請提供要更新的欄位", "missing_changes")
    if "title" in fields:
        _validate_title(fields["title"])
    _validate_due_date(fields.get("due_date"), today)
    return TaskUpdate(task_id=task_id, **fields)


def _guarded(intent: Intent, text: str, build: Callable[[], Any]) -> Command:
    """Run a payload builder, turning parse/validation failures into an invalid command."""
    try:
        payload = build()
    except (ParseError, ValidationError) as e:
        logger.info(f"Invalid {intent.value} command: {e.message}")
        return Command.invalid(intent, text, e.message, e.code)
    except PydanticValidationError as e:
        logger.info(f"Invalid {intent.value} command: {e}")
        return Command.invalid(intent, text, "欄位格式錯誤", "validation_error")
    return Command(intent=intent, payload=payload, original_text=text)


def _require_task_id(args: list[str]) -> str:
    if not args:
        raise ValidationError("請提供任務 ID", "missing_task_id")
    return args[0]


# ---------------------------------------------------------------------------
# Matchers
# ---------------------------------------------------------------------------


def _create_fields(remainder: str, text: str, today: date) -> dict[str, Any]:
    if FIELD_SEPARATOR in remainder:
        # Inline: title | label: value | label: value
        title, *parts = [part.strip() for part in remainder.split(FIELD_SEPARATOR)]
        fields: dict[str, Any] = {"title": title}
        for part in parts:
            _apply_field(part, fields, today)
        return fields

    if "\n" in text:
        # Multiline: first line is the title, one field per following line
        first, *lines = text.splitlines()
        match = _CREATE_FIRST_LINE_PATTERN.match(first.strip())
        fields = {"title": match.group(1).strip() if match else ""}
        for line in lines:
            line = _BULLET.sub("", line.strip())
            if line:
                _apply_field(line, fields, today)
        return fields

    return {"title": remainder}


def _match_create(text: str, today: date) -> Command | None:
    match = _CREATE_PATTERN.match(text)
    if not match:
        return None
    remainder = match.group(1).strip()
    return _guarded(Intent.CREATE, text, lambda: build_draft(_create_fields(remainder, text, today), today))


def _match_list(text: str, today: date) -> Command | None:
    match = _LIST_PATTERN.match(text)
    if not match:
        return None
    filters = _parse_filters((match.group(1) or "").split(), strict=True)
    if filters is None:
        return None
    return Command(intent=Intent.LIST, payload=ListPayload(filters=filters), original_text=text)


def _match_search(text: str, today: date) -> Command | None:
    match = _SEARCH_PATTERN.match(text)
    if not match:
        return None
    query = match.group(1).strip()
    if not query:
        return Command.invalid(Intent.SEARCH, text, "請提供搜尋關鍵字", "missing_query")
    return Command(intent=Intent.SEARCH, payload=SearchPayload(query=query), original_text=text)


def _match_help(text: str, today: date) -> Command | None:
    if not _HELP_PATTERN.match(text):
        return None
    return Command(intent=Intent.HELP, original_text=text)


def _parse_slash(intent: Intent, rest: str, text: str, today: date) -> Command:
    args = rest.split()

    if intent == Intent.CREATE:
        return _guarded(intent, text, lambda: build_draft(_extract_tokens(rest, today), today))

    if intent == Intent.LIST:
        return Command(intent=intent, payload=ListPayload(filters=_parse_filters(args, strict=False)),
                       original_text=text)

    if intent == Intent.SEARCH:
        if not args:
            return Command.invalid(intent, text, "請提供搜尋關鍵字", "missing_query")
        return Command(intent=intent, payload=SearchPayload(query=" ".join(args)), original_text=text)

    if intent == Intent.UPDATE:
        def _build() -> TaskUpdate:
            task_id = _require_task_id(args)
            changes = rest.split(None, 1)[1] if len(args) > 1 else ""
            return build_update(task_id, _extract_tokens(changes, today), today)

        return _guarded(intent, text, _build)

    if intent in (Intent.DELETE, Intent.COMPLETE):
        return _guarded(intent, text, lambda: TaskRef(task_id=_require_task_id(args)))

    return Command(intent=intent, original_text=text)


def _match_slash(text: str, today: date) -> Command | None:
    if not text.startswith(COMMAND_MARKER):
        return None
    parts = text[len(COMMAND_MARKER):].split(None, 1)
    alias = parts[0] if parts else ""
    rest = parts[1] if len(parts) > 1 else ""
    intent = COMMAND_ALIASES.get(alias.lower())
    if intent is None:
        return Command.invalid(
            Intent.UNKNOWN,
            text,
            f"不支援的命令: {alias}。輸入 /help 查看可用命令。",
            "unsupported_command",
        )
    return _parse_slash(intent, rest.strip(), text, today)


@dataclass(frozen=True)
class CommandMatcher:
    """A parsing strategy: returns a command, or None to let the next one try."""

    name: str
    attempt: Callable[[str, date], Command | None]


MATCHERS = (
    CommandMatcher("natural-create", _match_create),
    CommandMatcher("natural-list", _match_list),
    CommandMatcher("natural-search", _match_search),
    CommandMatcher("natural-help", _match_help),
    CommandMatcher("slash", _match_slash),
)


def parse_command(text: str, today: date | None = None) -> Command:
    """
    Parse one chat message into a command.

    Args:
        text: Raw message text, possibly multi-line
        today: Reference date for relative due dates (defaults to today)

    Returns:
        Command with intent and payload; invalid commands carry an error
        instead of a payload
    """
    text = text or ""
    cleaned = text.strip()
    if not cleaned:
        return Command.unknown(cleaned)

    today = today or date.today()
    for matcher in MATCHERS:
        command = matcher.attempt(cleaned, today)
        if command is not None:
            logger.debug(f"Parsed via {matcher.name}: intent={command.intent.value} valid={command.is_valid}")
            return command

    return Command.unknown(cleaned)
