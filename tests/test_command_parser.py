"""Tests for chat command parsing."""

from datetime import date

import pytest

from line_task_bridge.models.command import Intent, ListPayload, SearchPayload, TaskRef, TaskUpdate
from line_task_bridge.models.task import TaskDraft, TaskPriority, TaskStatus
from line_task_bridge.services.command_parser import parse_command

TODAY = date(2025, 3, 10)

CREATE_VERBS = ["創建任務", "新增任務", "添加任務", "建立任務", "創建", "新增", "添加"]


def parse(text: str):
    return parse_command(text, today=TODAY)


# Natural-language create


@pytest.mark.parametrize("separator", ["：", ":"])
@pytest.mark.parametrize("verb", CREATE_VERBS)
def test_natural_create_verbs(verb: str, separator: str) -> None:
    """Every create phrase with either colon gives a plain title."""
    command = parse(f"{verb}{separator}  修復登入問題 ")

    assert command.intent == Intent.CREATE
    assert command.is_valid
    assert command.payload.title == "修復登入問題"


def test_natural_create_defaults() -> None:
    command = parse("創建任務：修復登入問題")

    assert isinstance(command.payload, TaskDraft)
    assert command.payload.title == "修復登入問題"
    assert command.payload.status == TaskStatus.TODO
    assert command.payload.priority == TaskPriority.MEDIUM
    assert command.payload.tags == []
    assert command.payload.due_date is None


def test_english_create_phrase() -> None:
    command = parse("Create task: Write quarterly report")

    assert command.intent == Intent.CREATE
    assert command.payload.title == "Write quarterly report"


def test_inline_format_fields() -> None:
    command = parse("創建任務：修復登入問題 | 優先級：高 | 負責人：張三 | 預估時間：8小時 | 截止日期：7月11日")

    draft = command.payload
    assert draft.title == "修復登入問題"
    assert draft.priority == TaskPriority.HIGH
    assert draft.assignee == "張三"
    assert draft.estimated_hours == 8.0
    assert draft.due_date == date(2025, 7, 11)


def test_inline_fields_are_order_independent() -> None:
    first = parse("add task: t | priority: high | assignee: Amy")
    second = parse("add task: t | assignee: Amy | priority: high")

    assert first.payload.model_dump() == second.payload.model_dump()
    assert first.payload.priority == TaskPriority.HIGH
    assert first.payload.assignee == "Amy"


def test_inline_unknown_label_is_dropped() -> None:
    command = parse("創建任務：整理文件 | 顏色：紅色 | 狀態：進行中")

    assert command.is_valid
    assert command.payload.title == "整理文件"
    assert command.payload.status == TaskStatus.IN_PROGRESS


def test_inline_unknown_priority_and_status_fall_back() -> None:
    command = parse("創建任務：整理文件 | 優先級：超級 | 狀態：隨便")

    assert command.is_valid
    assert command.payload.priority == TaskPriority.MEDIUM
    assert command.payload.status == TaskStatus.TODO


def test_inline_unparseable_value_is_dropped() -> None:
    command = parse("創建任務：整理文件 | 預估時間：很久 | 截止日期：有空再說")

    assert command.is_valid
    assert command.payload.estimated_hours is None
    assert command.payload.due_date is None


def test_multiline_format() -> None:
    text = "\n".join([
        "創建任務：準備季度報告",
        "- 優先級：緊急",
        "- 負責人：Amy",
        "",
        "• 預估時間：2天",
        "- 截止日期：明天",
        "- 標籤：報告, Q1，#finance",
        "- 描述：整理銷售數據",
        "- 顏色：紅色",
    ])

    command = parse(text)

    assert command.intent == Intent.CREATE
    draft = command.payload
    assert draft.title == "準備季度報告"
    assert draft.priority == TaskPriority.URGENT
    assert draft.assignee == "Amy"
    assert draft.estimated_hours == 16.0
    assert draft.due_date == date(2025, 3, 11)
    assert draft.tags == ["報告", "Q1", "finance"]
    assert draft.description == "整理銷售數據"


def test_month_day_already_past_rolls_to_next_year() -> None:
    command = parse("創建任務：年度盤點 | 截止日期：1月5日")

    assert command.payload.due_date == date(2026, 1, 5)


def test_natural_create_without_title_is_invalid() -> None:
    command = parse("創建任務：   ")

    assert command.intent == Intent.CREATE
    assert not command.is_valid
    assert command.error_code == "missing_title"
    assert command.payload is None


def test_title_too_long_is_invalid() -> None:
    command = parse("創建任務：" + "x" * 201)

    assert not command.is_valid
    assert command.error_code == "title_too_long"


# Slash create


def test_slash_create_with_markers() -> None:
    command = parse("/add Fix bug #mobile @high :john")

    assert command.intent == Intent.CREATE
    draft = command.payload
    assert draft.title == "Fix bug"
    assert draft.tags == ["mobile"]
    assert draft.priority == TaskPriority.HIGH
    assert draft.assignee == "john"


def test_slash_create_all_fields() -> None:
    command = parse("/new Deploy app | after QA sign-off due:2025-04-01 hours:3 status:in-progress")

    draft = command.payload
    assert draft.title == "Deploy app"
    assert draft.description == "after QA sign-off"
    assert draft.due_date == date(2025, 4, 1)
    assert draft.estimated_hours == 3.0
    assert draft.status == TaskStatus.IN_PROGRESS


def test_tag_is_not_read_as_status_or_priority() -> None:
    command = parse("/add Ship release #done @low")

    draft = command.payload
    assert draft.tags == ["done"]
    assert draft.status == TaskStatus.TODO
    assert draft.priority == TaskPriority.LOW
    assert draft.assignee == ""


def test_due_date_is_not_read_as_assignee() -> None:
    command = parse("/add Pay rent due:2025-04-01")

    assert command.payload.assignee == ""
    assert command.payload.due_date == date(2025, 4, 1)
    assert command.payload.title == "Pay rent"


def test_duplicate_tags_keep_first_position() -> None:
    command = parse("/add Tidy up #b #a #b")

    assert command.payload.tags == ["b", "a"]


def test_slash_due_date_in_past_is_invalid() -> None:
    command = parse("/add Pay rent due:2025-03-01")

    assert not command.is_valid
    assert command.error_code == "due_date_past"


def test_slash_due_date_today_is_accepted() -> None:
    command = parse("/add Pay rent due:2025-03-10")

    assert command.is_valid
    assert command.payload.due_date == TODAY


def test_slash_unreadable_due_date_is_invalid() -> None:
    command = parse("/add Pay rent due:someday")

    assert not command.is_valid
    assert command.error_code == "invalid_date"


def test_slash_create_without_title_is_invalid() -> None:
    command = parse("/add")

    assert command.intent == Intent.CREATE
    assert not command.is_valid
    assert command.error_code == "missing_title"


@pytest.mark.parametrize("text", ["/ADD x", "/Add x", "/add x"])
def test_aliases_are_case_insensitive(text: str) -> None:
    assert parse(text).intent == Intent.CREATE


@pytest.mark.parametrize(
    "alias,intent",
    [
        ("add", Intent.CREATE),
        ("create", Intent.CREATE),
        ("new", Intent.CREATE),
        ("list", Intent.LIST),
        ("ls", Intent.LIST),
        ("show", Intent.LIST),
        ("search", Intent.SEARCH),
        ("find", Intent.SEARCH),
        ("update", Intent.UPDATE),
        ("edit", Intent.UPDATE),
        ("modify", Intent.UPDATE),
        ("delete", Intent.DELETE),
        ("remove", Intent.DELETE),
        ("del", Intent.DELETE),
        ("complete", Intent.COMPLETE),
        ("done", Intent.COMPLETE),
        ("finish", Intent.COMPLETE),
        ("help", Intent.HELP),
    ],
)
def test_alias_table(alias: str, intent: Intent) -> None:
    assert parse(f"/{alias} abc123 status:done").intent == intent


def test_unknown_alias() -> None:
    command = parse("/frobnicate now")

    assert command.intent == Intent.UNKNOWN
    assert not command.is_valid
    assert command.error_code == "unsupported_command"
    assert "frobnicate" in command.error


# List


def test_natural_list_with_filter() -> None:
    command = parse("list status:todo")

    assert command.intent == Intent.LIST
    assert isinstance(command.payload, ListPayload)
    assert command.payload.filters == {"status": "todo"}


@pytest.mark.parametrize("text", ["查看任務", "顯示", "任務列表", "任務清單", "list tasks", "show tasks"])
def test_natural_list_phrases(text: str) -> None:
    command = parse(text)

    assert command.intent == Intent.LIST
    assert command.payload.filters == {}


def test_slash_list_normalizes_filter_values() -> None:
    command = parse("/list status:進行中 priority:HIGH assignee:amy tag:#web junk")

    assert command.payload.filters == {
        "status": "in-progress",
        "priority": "high",
        "assignee": "amy",
        "tag": "web",
    }


def test_list_phrase_with_free_text_is_not_a_list() -> None:
    command = parse("list of groceries")

    assert command.intent == Intent.UNKNOWN


# Search


@pytest.mark.parametrize(
    "text,query",
    [
        ("搜尋：login", "login"),
        ("搜索 登入 問題", "登入 問題"),
        ("search: login page", "login page"),
        ("find invoice", "invoice"),
        ("/search fix  bug", "fix bug"),
        ("/find login", "login"),
    ],
)
def test_search(text: str, query: str) -> None:
    command = parse(text)

    assert command.intent == Intent.SEARCH
    assert isinstance(command.payload, SearchPayload)
    assert command.payload.query == query


def test_slash_search_without_query_is_invalid() -> None:
    command = parse("/search")

    assert command.intent == Intent.SEARCH
    assert not command.is_valid
    assert command.error_code == "missing_query"


# Help


@pytest.mark.parametrize("text", ["幫助", "說明", "help", "HELP", "怎麼用", "how to use?", "/help"])
def test_help(text: str) -> None:
    command = parse(text)

    assert command.intent == Intent.HELP
    assert command.is_valid
    assert command.payload is None


# Update / delete / complete


def test_update_with_markers() -> None:
    command = parse("/update abc123 status:done @urgent")

    assert command.intent == Intent.UPDATE
    assert isinstance(command.payload, TaskUpdate)
    assert command.payload.task_id == "abc123"
    assert command.payload.changes() == {"status": TaskStatus.DONE, "priority": TaskPriority.URGENT}


def test_update_title() -> None:
    command = parse("/edit abc123 Fix login on Safari")

    assert command.payload.changes() == {"title": "Fix login on Safari"}


@pytest.mark.parametrize("text,code", [("/update", "missing_task_id"), ("/update abc123", "missing_changes")])
def test_update_errors(text: str, code: str) -> None:
    command = parse(text)

    assert command.intent == Intent.UPDATE
    assert not command.is_valid
    assert command.error_code == code


@pytest.mark.parametrize("text,intent", [("/delete abc123", Intent.DELETE), ("/done abc123", Intent.COMPLETE)])
def test_task_reference_commands(text: str, intent: Intent) -> None:
    command = parse(text)

    assert command.intent == intent
    assert isinstance(command.payload, TaskRef)
    assert command.payload.task_id == "abc123"


def test_complete_without_id_is_invalid() -> None:
    command = parse("/complete")

    assert not command.is_valid
    assert command.error_code == "missing_task_id"


# Unknown input


@pytest.mark.parametrize("text", ["", "   ", "\n\t", "asdkjfh", "/"])
def test_unrecognised_input(text: str) -> None:
    command = parse(text)

    assert command.intent == Intent.UNKNOWN
    assert not command.is_valid
    assert command.payload is None


@pytest.mark.parametrize(
    "text,original",
    [("", ""), ("   ", ""), ("\n\t", ""), ("  asdkjfh ", "asdkjfh"), ("/add\n", "/add")],
)
def test_original_text_is_stripped(text: str, original: str) -> None:
    assert parse(text).original_text == original


@pytest.mark.parametrize("text", ["/add", "/search", "/update x", "創建任務：", "/add x due:yesterday-ish"])
def test_invalid_commands_carry_no_payload(text: str) -> None:
    command = parse(text)

    assert not command.is_valid
    assert command.payload is None
    assert command.error


def test_parse_defaults_to_today() -> None:
    command = parse_command("/add Call mom due:tomorrow")

    assert command.is_valid
    assert command.payload.due_date is not None
