"""Focalboard REST API (v2) client used as task storage."""

import logging
import time
from dataclasses import dataclass
from datetime import date, datetime, timezone
from types import MappingProxyType
from typing import Any
from uuid import uuid4

import httpx
from pydantic import ValidationError as PydanticValidationError

from ..errors import StorageError, TaskNotFoundError, ValidationError
from ..models.task import TITLE_MAX_LENGTH, Task, TaskDraft, TaskPriority, TaskStatus

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
DEFAULT_BOARD_TITLE = "LINE 任務管理"
DEFAULT_BOARD_DESCRIPTION = "通過 LINE Bot 管理的任務看板"

CARD_STATUS = MappingProxyType({
    TaskStatus.TODO: "open",
    TaskStatus.IN_PROGRESS: "in progress",
    TaskStatus.DONE: "completed",
    TaskStatus.BLOCKED: "blocked",
})
STATUS_FROM_CARD = MappingProxyType({value: key for key, value in CARD_STATUS.items()})

CARD_PRIORITY = MappingProxyType({
    TaskPriority.LOW: "1",
    TaskPriority.MEDIUM: "2",
    TaskPriority.HIGH: "3",
    TaskPriority.URGENT: "4",
})
PRIORITY_FROM_CARD = MappingProxyType({value: key for key, value in CARD_PRIORITY.items()})


@dataclass(frozen=True)
class FocalboardConfig:
    """Connection settings for one Focalboard team."""

    api_url: str
    team_id: str = "0"
    token: str | None = None
    default_board_id: str | None = None
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_settings(cls, settings: Any) -> "FocalboardConfig":
        """Build from the application settings object."""
        return cls(
            api_url=settings.focalboard_api_url,
            team_id=settings.focalboard_team_id,
            token=settings.focalboard_token or None,
            default_board_id=settings.focalboard_default_board_id or None,
            timeout=settings.focalboard_timeout,
        )


def _new_block_id() -> str:
    return uuid4().hex


def _from_millis(value: Any) -> datetime | None:
    if not value:
        return None
    return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)


def _parse_card_date(value: Any) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        logger.warning(f"Ignoring unparseable card due date: {value!r}")
        return None


def _parse_card_hours(value: Any) -> float | None:
    try:
        hours = float(value)
    except (TypeError, ValueError):
        return None
    return hours if hours > 0 else None


def card_properties(task: TaskDraft) -> dict[str, Any]:
    """Card property values for a task."""
    return {
        "status": CARD_STATUS[task.status],
        "priority": CARD_PRIORITY[task.priority],
        "assignee": task.assignee,
        "tags": list(task.tags),
        "estimatedHours": task.estimated_hours,
        "dueDate": task.due_date.isoformat() if task.due_date else None,
    }


def task_from_card(card: dict[str, Any], description: str = "") -> Task:
    """Convert a Focalboard card block into a task."""
    properties = (card.get("fields") or {}).get("properties") or {}

    tags = properties.get("tags") or []
    if isinstance(tags, str):
        tags = [tags]

    return Task(
        id=card["id"],
        board_id=card.get("boardId", ""),
        title=card.get("title") or "",
        description=description,
        status=STATUS_FROM_CARD.get(properties.get("status"), TaskStatus.TODO),
        priority=PRIORITY_FROM_CARD.get(str(properties.get("priority")), TaskPriority.MEDIUM),
        assignee=properties.get("assignee") or "",
        tags=[str(tag) for tag in tags],
        estimated_hours=_parse_card_hours(properties.get("estimatedHours")),
        due_date=_parse_card_date(properties.get("dueDate")),
        created_at=_from_millis(card.get("createAt")),
        updated_at=_from_millis(card.get("updateAt")),
    )


def description_blocks(blocks: list[dict[str, Any]]) -> dict[str, dict[str, Any]]:
    """Map card ID to its description text block.

    A card normally has one. When older data left several, the one listed
    first in the card's ``contentOrder`` wins, else the most recently
    updated (later on the board on a tie).
    """
    texts: dict[str, list[dict[str, Any]]] = {}
    for block in blocks:
        if block.get("type") == "text" and block.get("parentId"):
            texts.setdefault(block["parentId"], []).append(block)

    result: dict[str, dict[str, Any]] = {}
    for block in blocks:
        candidates = texts.get(block["id"]) if block.get("type") == "card" else None
        if not candidates:
            continue
        order = (block.get("fields") or {}).get("contentOrder") or []
        listed = [text for text in candidates if text["id"] in order]
        if listed:
            result[block["id"]] = min(listed, key=lambda text: order.index(text["id"]))
        else:
            _, _, latest = max(
                (text.get("updateAt") or text.get("createAt") or 0, index, text)
                for index, text in enumerate(candidates)
            )
            result[block["id"]] = latest
    return result


def _block_text(block: dict[str, Any] | None) -> str:
    return (block or {}).get("title") or ""


def apply_filters(tasks: list[Task], filters: dict[str, str]) -> list[Task]:
    """Keep tasks matching every given filter (status, priority, assignee, tag)."""
    result = list(tasks)
    if filters.get("status"):
        result = [task for task in result if task.status.value == filters["status"]]
    if filters.get("priority"):
        result = [task for task in result if task.priority.value == filters["priority"]]
    if filters.get("assignee"):
        result = [task for task in result if task.assignee == filters["assignee"]]
    if filters.get("tag"):
        result = [task for task in result if filters["tag"] in task.tags]
    return result


def matches_query(task: Task, query: str) -> bool:
    """Case-insensitive match over title, description, tags and assignee."""
    needle = query.lower()
    return (
        needle in task.title.lower()
        or needle in task.description.lower()
        or any(needle in tag.lower() for tag in task.tags)
        or needle in task.assignee.lower()
    )


async def _log_request(request: httpx.Request) -> None:
    logger.debug(f"Focalboard request: {request.method} {request.url}")


async def _log_response(response: httpx.Response) -> None:
    logger.debug(f"Focalboard response: {response.status_code} {response.request.url}")


class FocalboardClient:
    """Task storage backed by cards on a Focalboard board."""

    def __init__(
        self,
        config: FocalboardConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize Focalboard client.

        Args:
            config: API URL, team, token and optional default board
            transport: Optional httpx transport (used by tests)
        """
        self.config = config
        self.board_id: str | None = config.default_board_id

        headers = {
            "Content-Type": "application/json",
            "X-Requested-With": "XMLHttpRequest",
        }
        if config.token:
            headers["Authorization"] = f"Bearer {config.token}"

        self._client = httpx.AsyncClient(
            base_url=config.api_url,
            headers=headers,
            timeout=config.timeout,
            transport=transport,
            event_hooks={"request": [_log_request], "response": [_log_response]},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, allow_missing: bool = False, **kwargs: Any) -> httpx.Response | None:
        try:
            response = await self._client.request(method, path, **kwargs)
            if allow_missing and response.status_code == 404:
                return None
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Focalboard API error ({e.response.status_code}) {method} {path}: {e.response.text}")
            raise StorageError(f"Focalboard API 錯誤 ({e.response.status_code})") from e
        except httpx.HTTPError as e:
            logger.error(f"Focalboard request failed {method} {path}: {e}")
            raise StorageError(f"無法連線到 Focalboard: {e}") from e
        return response

    async def _request_json(self, method: str, path: str, expected: type | None = None, **kwargs: Any) -> Any:
        """Send a request and decode its JSON body.

        Raises:
            StorageError: Transport failure, HTTP error, or a body that is not
                JSON of the expected type (e.g. a proxy login page)
        """
        response = await self._request(method, path, **kwargs)
        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Focalboard returned a non-JSON body for {method} {path}: {response.text[:200]!r}")
            raise StorageError("Focalboard 回應格式錯誤", "invalid_response") from e

        if expected is not None and data is not None and not isinstance(data, expected):
            logger.error(f"Focalboard returned {type(data).__name__} for {method} {path}, expected {expected.__name__}")
            raise StorageError("Focalboard 回應格式錯誤", "invalid_response")
        return data

    def _require_board(self) -> str:
        if not self.board_id:
            raise StorageError("未指定看板 ID 且無預設看板", "no_board")
        return self.board_id

    async def initialize(self) -> None:
        """Resolve the board tasks are stored on, creating one if the team has none."""
        if self.board_id:
            logger.info(f"Using configured board {self.board_id}")
            return

        boards = await self.list_boards()
        if boards:
            self.board_id = boards[0]["id"]
            logger.info(f"Using default board: {boards[0].get('title')} ({self.board_id})")
            return

        board = await self._create_default_board()
        self.board_id = board["id"]
        logger.info(f"Created default board: {board.get('title')} ({self.board_id})")

    async def list_boards(self) -> list[dict[str, Any]]:
        return await self._request_json("GET", f"/teams/{self.config.team_id}/boards", expected=list) or []

    async def _create_default_board(self) -> dict[str, Any]:
        board = await self._request_json(
            "POST",
            "/boards",
            expected=dict,
            json={
                "teamId": self.config.team_id,
                "title": DEFAULT_BOARD_TITLE,
                "description": DEFAULT_BOARD_DESCRIPTION,
                "type": "P",
            },
        )
        if not board or "id" not in board:
            raise StorageError("Focalboard 回應格式錯誤", "invalid_response")
        return board

    async def test_connection(self) -> bool:
        """Check the API is reachable with the configured credentials."""
        try:
            await self._request("GET", "/teams")
        except StorageError:
            return False
        return True

    async def _fetch_blocks(self, board_id: str) -> list[dict[str, Any]]:
        blocks = await self._request_json("GET", f"/boards/{board_id}/blocks", expected=list) or []
        return [block for block in blocks if isinstance(block, dict) and block.get("id")]

    async def _fetch_tasks(self, board_id: str) -> list[Task]:
        blocks = await self._fetch_blocks(board_id)
        descriptions = description_blocks(blocks)
        return [
            task_from_card(block, _block_text(descriptions.get(block["id"])))
            for block in blocks
            if block.get("type") == "card"
        ]

    async def _find_card(self, board_id: str, task_id: str) -> tuple[dict[str, Any], dict[str, Any] | None]:
        """Return a card block and its description block (if any)."""
        blocks = await self._fetch_blocks(board_id)
        for block in blocks:
            if block.get("type") == "card" and block["id"] == task_id:
                return block, description_blocks(blocks).get(task_id)
        raise TaskNotFoundError(task_id)

    async def _create_description_block(
        self,
        board_id: str,
        card_id: str,
        description: str,
        block_id: str | None = None,
    ) -> str | None:
        """Add a text block under a card. Returns its ID, or None if the API refused it."""
        block = {
            "id": block_id or _new_block_id(),
            "boardId": board_id,
            "parentId": card_id,
            "type": "text",
            "title": description,
            "schema": 1,
            "fields": {},
        }
        try:
            await self._request("POST", f"/boards/{board_id}/blocks", json=[block])
        except StorageError as e:
            # The card itself exists; a missing description is not fatal
            logger.warning(f"Failed to create description for card {card_id}: {e}")
            return None
        return block["id"]

    async def create_task(self, draft: TaskDraft) -> Task:
        """
        Create a card for a task draft.

        Args:
            draft: Parsed task

        Returns:
            The stored task with its card ID
        """
        board_id = self._require_board()
        now = int(time.time() * 1000)
        description_id = _new_block_id() if draft.description else None
        card = {
            "id": _new_block_id(),
            "boardId": board_id,
            "parentId": board_id,
            "type": "card",
            "title": draft.title,
            "schema": 1,
            "fields": {
                "properties": card_properties(draft),
                "contentOrder": [description_id] if description_id else [],
            },
            "createAt": now,
            "updateAt": now,
        }

        data = await self._request_json("POST", f"/boards/{board_id}/blocks", json=[card])
        created = data[0] if isinstance(data, list) and data else data
        if not isinstance(created, dict) or not created.get("id"):
            created = card

        if description_id:
            await self._create_description_block(board_id, created["id"], draft.description, description_id)

        logger.info(f"Task created on board {board_id}: {draft.title}")
        return task_from_card(created, draft.description)

    async def list_tasks(self, filters: dict[str, str] | None = None) -> list[Task]:
        tasks = await self._fetch_tasks(self._require_board())
        return apply_filters(tasks, filters or {})

    async def get_task(self, task_id: str) -> Task:
        card, description = await self._find_card(self._require_board(), task_id)
        return task_from_card(card, _block_text(description))

    async def search_tasks(self, query: str, filters: dict[str, str] | None = None) -> list[Task]:
        tasks = await self.list_tasks(filters)
        if not query.strip():
            return tasks
        return [task for task in tasks if matches_query(task, query.strip())]

    async def update_task(self, task_id: str, changes: dict[str, Any]) -> Task:
        """
        Merge changes into an existing task and save the card.

        Raises:
            TaskNotFoundError: No card with this ID on the board
            ValidationError: The merged task is not valid
        """
        board_id = self._require_board()
        card, description_block = await self._find_card(board_id, task_id)
        existing = task_from_card(card, _block_text(description_block))

        due = changes.get("due_date")
        if due is not None and due < date.today():
            raise ValidationError("截止日期不能早於今天", "due_date_past")

        title = changes.get("title")
        if title is not None and not 0 < len(title.strip()) <= TITLE_MAX_LENGTH:
            raise ValidationError(f"任務標題需為 1 到 {TITLE_MAX_LENGTH} 個字符", "title_too_long")

        try:
            merged = Task.model_validate({**existing.model_dump(), **changes})
        except PydanticValidationError as e:
            raise ValidationError(f"任務驗證失敗: {e.error_count()} 個欄位錯誤", "validation_error") from e

        updated_fields: dict[str, Any] = {"properties": card_properties(merged)}

        # One text block per card holds the description; edit it in place
        if merged.description != existing.description:
            if description_block is not None:
                await self._request(
                    "PATCH",
                    f"/boards/{board_id}/blocks/{description_block['id']}",
                    json={"title": merged.description},
                )
            else:
                block_id = await self._create_description_block(board_id, task_id, merged.description)
                if block_id:
                    content_order = list((card.get("fields") or {}).get("contentOrder") or [])
                    updated_fields["contentOrder"] = [*content_order, block_id]

        await self._request(
            "PATCH",
            f"/boards/{board_id}/blocks/{task_id}",
            json={"title": merged.title, "updatedFields": updated_fields},
        )

        logger.info(f"Task updated: {task_id} fields={sorted(changes)}")
        return merged.model_copy(update={"updated_at": datetime.now(timezone.utc)})

    async def complete_task(self, task_id: str) -> Task:
        return await self.update_task(task_id, {"status": TaskStatus.DONE})

    async def delete_task(self, task_id: str) -> bool:
        """Delete a card. Returns False if it did not exist."""
        board_id = self._require_board()
        response = await self._request("DELETE", f"/boards/{board_id}/blocks/{task_id}", allow_missing=True)
        if response is None:
            logger.info(f"Task not found for delete: {task_id}")
            return False
        logger.info(f"Task deleted: {task_id}")
        return True
