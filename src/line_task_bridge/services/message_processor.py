"""Turn one chat message into a reply: parse, execute against storage, format."""

import logging
from typing import Any, Protocol

from pydantic import BaseModel

from ..errors import TaskBridgeError
from ..models.command import Command, Intent
from ..models.task import Task, TaskDraft
from .command_parser import parse_command
from .reply_formatter import DEFAULT_LOCALE, format_reply

logger = logging.getLogger(__name__)


class TaskStorage(Protocol):
    """Operations the processor needs from a task backend."""

    async def create_task(self, draft: TaskDraft) -> Task: ...

    async def list_tasks(self, filters: dict[str, str] | None = None) -> list[Task]: ...

    async def search_tasks(self, query: str, filters: dict[str, str] | None = None) -> list[Task]: ...

    async def update_task(self, task_id: str, changes: dict[str, Any]) -> Task: ...

    async def complete_task(self, task_id: str) -> Task: ...

    async def delete_task(self, task_id: str) -> bool: ...


class ProcessResult(BaseModel):
    """Outcome of processing one message."""

    success: bool
    message: str
    command: Command
    data: Any = None


class MessageProcessor:
    """Executes parsed chat commands against a task storage backend."""

    def __init__(self, storage: TaskStorage, locale: str = DEFAULT_LOCALE):
        self.storage = storage
        self.locale = locale

    async def execute(self, command: Command) -> Any:
        """Run a valid command against storage and return the raw result."""
        payload = command.payload

        if command.intent == Intent.CREATE:
            return await self.storage.create_task(payload)
        if command.intent == Intent.LIST:
            return await self.storage.list_tasks(payload.filters)
        if command.intent == Intent.SEARCH:
            return await self.storage.search_tasks(payload.query)
        if command.intent == Intent.UPDATE:
            return await self.storage.update_task(payload.task_id, payload.changes())
        if command.intent == Intent.COMPLETE:
            return await self.storage.complete_task(payload.task_id)
        if command.intent == Intent.DELETE:
            return await self.storage.delete_task(payload.task_id)
        return None

    async def process_text_message(self, text: str, user_id: str | None = None) -> ProcessResult:
        """
        Process a chat message and build the reply.

        Args:
            text: Message text as typed by the user
            user_id: Sender ID, used for logging only

        Returns:
            ProcessResult with reply text and the raw storage result
        """
        logger.info(f"Processing message from {user_id}: {text!r}")

        command = parse_command(text)
        logger.info(f"Parsed command: intent={command.intent.value} valid={command.is_valid}")

        if not command.is_valid:
            return ProcessResult(
                success=False,
                message=format_reply(None, command, self.locale),
                command=command,
            )

        try:
            result = await self.execute(command)
        except TaskBridgeError as e:
            logger.error(f"Command {command.intent.value} failed: {e.message}")
            return ProcessResult(
                success=False,
                message=format_reply(e, command, self.locale),
                command=command,
            )

        return ProcessResult(
            success=True,
            message=format_reply(result, command, self.locale),
            command=command,
            data=result,
        )
