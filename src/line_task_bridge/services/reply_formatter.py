"""Render command results as chat reply text."""

from types import MappingProxyType
from typing import Any

from ..errors import TaskBridgeError
from ..models.command import Command, Intent, SearchPayload, TaskRef
from ..models.task import Task
from .vocabulary import (
    PRIORITY_GLYPHS,
    PRIORITY_LABELS,
    STATUS_GLYPHS,
    STATUS_LABELS,
    UNKNOWN_PRIORITY_GLYPH,
    UNKNOWN_STATUS_GLYPH,
)

DEFAULT_LOCALE = "zh-TW"
MAX_LISTED_TASKS = 10

_HELP_ZH = """🤖 LINE 任務管理機器人 - 指令說明

📝 創建任務:
/add 任務標題 #標籤 @優先級 :負責人 due:2025-12-31
範例: /add 修正登入 bug #mobile @high :john
或: 創建任務：修復登入問題 | 優先級：高 | 負責人：小明 | 預估時間：8小時 | 截止日期：7月11日

📋 查看任務:
/list - 顯示所有任務
/list status:todo - 顯示待辦任務

🔍 搜尋任務:
/search 關鍵字
範例: 搜尋：登入

✏️ 更新任務:
/update 任務ID status:in-progress @urgent
範例: /update 3f2a9c1e status:done

✅ 完成任務:
/done 任務ID

🗑️ 刪除任務:
/delete 任務ID

💡 其他:
/help - 顯示此幫助訊息"""

_HELP_EN = """🤖 LINE Task Bot - Commands

📝 Create a task:
/add Title #tag @priority :assignee due:2025-12-31
Example: /add Fix login bug #mobile @high :john
Or: create task: Fix login | priority: high | assignee: Amy | hours: 8 | due: tomorrow

📋 List tasks:
/list - show all tasks
/list status:todo - show tasks to do

🔍 Search tasks:
/search keyword
Example: search: login

✏️ Update a task:
/update TASK_ID status:in-progress @urgent
Example: /update 3f2a9c1e status:done

✅ Complete a task:
/done TASK_ID

🗑️ Delete a task:
/delete TASK_ID

💡 Other:
/help - show this message"""

MESSAGES = MappingProxyType({
    "zh-TW": MappingProxyType({
        "created": "✅ 任務創建成功",
        "updated": "✏️ 任務更新成功",
        "completed": "🎉 任務已完成",
        "deleted": "🗑️ 任務已刪除 (ID: {task_id})",
        "delete_missing": "❓ 找不到任務 (ID: {task_id})",
        "field_id": "📋 ID: {value}",
        "field_title": "📝 標題: {value}",
        "field_status": "📊 狀態: {value}",
        "field_priority": "⭐ 優先級: {value}",
        "field_assignee": "👤 負責人: {value}",
        "field_hours": "⏱️ 預估時數: {value} 小時",
        "field_due": "📅 截止日期: {value}",
        "field_tags": "🏷️ 標籤: {value}",
        "field_description": "📄 描述: {value}",
        "date_format": "%Y/%m/%d",
        "list_empty": "📝 目前沒有任務",
        "list_header": "📝 任務列表 (共 {count} 個):",
        "list_more": "... 還有 {count} 個任務",
        "search_empty": '🔍 搜尋 "{query}" 沒有找到相關任務',
        "search_header": '🔍 搜尋 "{query}" 找到 {count} 個任務:',
        "unsupported": "❓ 不支援的指令\n\n輸入 /help 查看可用指令。",
        "help_hint": "輸入 /help 查看可用指令。",
        "error": "❌ 處理請求時發生錯誤\n\n錯誤訊息: {error}\n\n請檢查您的指令格式是否正確，或輸入 /help 查看使用說明。",
        "done": "命令執行完成",
        "unknown_action": "未知的操作",
        "welcome_follow": (
            "🎉 歡迎使用 LINE 任務管理機器人！\n\n"
            "我可以幫您管理任務，支援以下功能：\n"
            "• 創建任務\n• 查看任務列表\n• 搜尋任務\n• 更新和刪除任務\n\n"
            "輸入 /help 查看詳細指令說明\n"
            "輸入 /add 開始創建您的第一個任務吧！"
        ),
        "welcome_join": (
            "👋 大家好！我是任務管理機器人\n\n"
            "我可以幫助團隊管理任務：\n"
            "• 任何人都可以創建和查看任務\n• 支援任務指派和標籤分類\n• 可以搜尋和篩選任務\n\n"
            "輸入 /help 查看使用說明"
        ),
        "help": _HELP_ZH,
        # Parser errors are already written in Traditional Chinese
        "errors": MappingProxyType({}),
    }),
    "en": MappingProxyType({
        "created": "✅ Task created",
        "updated": "✏️ Task updated",
        "completed": "🎉 Task completed",
        "deleted": "🗑️ Task deleted (ID: {task_id})",
        "delete_missing": "❓ Task not found (ID: {task_id})",
        "field_id": "📋 ID: {value}",
        "field_title": "📝 Title: {value}",
        "field_status": "📊 Status: {value}",
        "field_priority": "⭐ Priority: {value}",
        "field_assignee": "👤 Assignee: {value}",
        "field_hours": "⏱️ Estimate: {value} h",
        "field_due": "📅 Due: {value}",
        "field_tags": "🏷️ Tags: {value}",
        "field_description": "📄 Description: {value}",
        "date_format": "%Y-%m-%d",
        "list_empty": "📝 No tasks yet",
        "list_header": "📝 Tasks ({count} total):",
        "list_more": "... {count} more tasks",
        "search_empty": '🔍 No tasks found for "{query}"',
        "search_header": '🔍 Found {count} tasks for "{query}":',
        "unsupported": "❓ Unsupported command\n\nType /help to see available commands.",
        "help_hint": "Type /help to see available commands.",
        "error": "❌ Something went wrong\n\nError: {error}\n\nCheck the command format or type /help for usage.",
        "done": "Command completed",
        "unknown_action": "Unknown action",
        "welcome_follow": (
            "🎉 Welcome to the LINE task bot!\n\n"
            "I can help you manage tasks:\n"
            "• Create tasks\n• List tasks\n• Search tasks\n• Update and delete tasks\n\n"
            "Type /help for the command list\n"
            "Type /add to create your first task!"
        ),
        "welcome_join": (
            "👋 Hi everyone! I'm the task bot\n\n"
            "I help teams manage tasks:\n"
            "• Anyone can create and view tasks\n• Tasks can be assigned and tagged\n• Tasks can be searched and filtered\n\n"
            "Type /help for usage"
        ),
        "help": _HELP_EN,
        "errors": MappingProxyType({
            "unsupported_command": "Unsupported command. Type /help to see available commands.",
            "missing_title": "Please provide a task title",
            "title_too_long": "Task title must be at most 200 characters",
            "due_date_past": "Due date cannot be in the past",
            "missing_query": "Please provide a search keyword",
            "missing_task_id": "Please provide a task ID",
            "missing_changes": "Please provide the fields to update",
            "invalid_status": "Unrecognised status",
            "invalid_hours": "Unrecognised time estimate",
            "invalid_date": "Unrecognised due date",
            "validation_error": "Invalid field format",
            "task_not_found": "Task not found",
        }),
    }),
})


def _messages(locale: str) -> MappingProxyType:
    return MESSAGES.get(locale, MESSAGES[DEFAULT_LOCALE])


def _localized_error(code: str | None, fallback: str, messages: MappingProxyType) -> str:
    if code:
        return messages["errors"].get(code, fallback)
    return fallback


def _format_hours(hours: float) -> str:
    return f"{hours:g}"


def format_task(headline: str, task: Task, locale: str = DEFAULT_LOCALE) -> str:
    """Multi-field summary of a single task."""
    messages = _messages(locale)
    status_labels = STATUS_LABELS.get(locale, STATUS_LABELS[DEFAULT_LOCALE])
    priority_labels = PRIORITY_LABELS.get(locale, PRIORITY_LABELS[DEFAULT_LOCALE])
    lines = [
        headline,
        messages["field_id"].format(value=task.id),
        messages["field_title"].format(value=task.title),
        messages["field_status"].format(value=status_labels[task.status]),
        messages["field_priority"].format(value=priority_labels[task.priority]),
    ]
    if task.assignee:
        lines.append(messages["field_assignee"].format(value=task.assignee))
    if task.estimated_hours:
        lines.append(messages["field_hours"].format(value=_format_hours(task.estimated_hours)))
    if task.due_date:
        lines.append(messages["field_due"].format(value=task.due_date.strftime(messages["date_format"])))
    if task.tags:
        lines.append(messages["field_tags"].format(value=" ".join(f"#{tag}" for tag in task.tags)))
    if task.description:
        lines.append(messages["field_description"].format(value=task.description))
    return "\n".join(lines)


def _format_entry(task: Task, locale: str) -> str:
    priority_labels = PRIORITY_LABELS.get(locale, PRIORITY_LABELS[DEFAULT_LOCALE])
    status_icon = STATUS_GLYPHS.get(task.status, UNKNOWN_STATUS_GLYPH)
    priority_icon = PRIORITY_GLYPHS.get(task.priority, UNKNOWN_PRIORITY_GLYPH)

    detail = f"   {priority_icon} {priority_labels[task.priority]}"
    if task.tags:
        detail += " | " + " ".join(f"#{tag}" for tag in task.tags)

    return f"{status_icon} {task.title}\n   ID: {task.short_id}\n{detail}"


def _format_entries(tasks: list[Task], locale: str) -> list[str]:
    blocks = [_format_entry(task, locale) for task in tasks[:MAX_LISTED_TASKS]]
    if len(tasks) > MAX_LISTED_TASKS:
        blocks.append(_messages(locale)["list_more"].format(count=len(tasks) - MAX_LISTED_TASKS))
    return blocks


def format_task_list(tasks: list[Task], locale: str = DEFAULT_LOCALE) -> str:
    """Numbered-style listing capped at ten entries."""
    messages = _messages(locale)
    if not tasks:
        return messages["list_empty"]
    header = messages["list_header"].format(count=len(tasks))
    return "\n\n".join([header, *_format_entries(tasks, locale)])


def format_search_results(tasks: list[Task], query: str, locale: str = DEFAULT_LOCALE) -> str:
    messages = _messages(locale)
    if not tasks:
        return messages["search_empty"].format(query=query)
    header = messages["search_header"].format(query=query, count=len(tasks))
    return "\n\n".join([header, *_format_entries(tasks, locale)])


def format_error(error: BaseException, locale: str = DEFAULT_LOCALE) -> str:
    """Render a failure raised while executing a command."""
    messages = _messages(locale)
    if isinstance(error, TaskBridgeError):
        text = _localized_error(error.code, error.message, messages)
    else:
        text = str(error)
    return messages["error"].format(error=text)


def _format_invalid(command: Command, messages: MappingProxyType) -> str:
    if command.intent == Intent.UNKNOWN:
        if not command.error:
            return messages["unsupported"]
        return f"❓ {_localized_error(command.error_code, command.error, messages)}"

    error = _localized_error(command.error_code, command.error or "", messages)
    return f"❌ {error}\n\n{messages['help_hint']}"


def format_reply(result: Any, command: Command, locale: str = DEFAULT_LOCALE) -> str:
    """
    Render the result of executing a command.

    Args:
        result: Task, list of tasks, bool (delete), an exception, or None
        command: The parsed command that produced the result
        locale: Reply language ("zh-TW" or "en")

    Returns:
        Reply text; the same inputs always give the same text
    """
    messages = _messages(locale)

    if not command.is_valid:
        return _format_invalid(command, messages)

    if isinstance(result, BaseException):
        return format_error(result, locale)

    if command.intent == Intent.CREATE:
        return format_task(messages["created"], result, locale)

    if command.intent == Intent.UPDATE:
        return format_task(messages["updated"], result, locale)

    if command.intent == Intent.COMPLETE:
        return format_task(messages["completed"], result, locale)

    if command.intent == Intent.DELETE:
        task_id = command.payload.task_id if isinstance(command.payload, TaskRef) else ""
        key = "deleted" if result else "delete_missing"
        return messages[key].format(task_id=task_id)

    if command.intent == Intent.LIST:
        return format_task_list(result or [], locale)

    if command.intent == Intent.SEARCH:
        query = command.payload.query if isinstance(command.payload, SearchPayload) else ""
        return format_search_results(result or [], query, locale)

    if command.intent == Intent.HELP:
        return format_help(locale)

    return messages["done"]


def format_help(locale: str = DEFAULT_LOCALE) -> str:
    return _messages(locale)["help"]


def format_welcome(kind: str, locale: str = DEFAULT_LOCALE) -> str:
    """Greeting for a new follower ("follow") or a joined group ("join")."""
    messages = _messages(locale)
    return messages["welcome_join"] if kind == "join" else messages["welcome_follow"]


def format_unknown_action(locale: str = DEFAULT_LOCALE) -> str:
    return _messages(locale)["unknown_action"]
