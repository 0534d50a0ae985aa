"""LINE webhook event handling."""

import asyncio
import json
import logging
from typing import Protocol

import httpx

from ..errors import TaskBridgeError
from ..models.line import LineEvent
from .message_processor import MessageProcessor
from .reply_formatter import format_error, format_unknown_action, format_welcome

logger = logging.getLogger(__name__)


class ReplySender(Protocol):
    async def reply_message(self, reply_token: str, text: str) -> None: ...


async def handle_events(
    events: list[LineEvent],
    processor: MessageProcessor,
    sender: ReplySender,
) -> int:
    """
    Process all events of one webhook delivery concurrently.

    A failure in one event is reported to that chat and does not stop the
    others.

    Returns:
        Number of events handled
    """
    if not events:
        return 0

    logger.info(f"Handling {len(events)} LINE events")
    await asyncio.gather(*(handle_event(event, processor, sender) for event in events))
    return len(events)


async def handle_event(event: LineEvent, processor: MessageProcessor, sender: ReplySender) -> None:
    """Dispatch one event by type."""
    logger.info(f"LINE event type: {event.type}")

    try:
        if event.type == "message":
            await _handle_message(event, processor, sender)
        elif event.type in ("follow", "join"):
            await _reply(event, format_welcome(event.type, processor.locale), sender)
        elif event.type in ("unfollow", "leave"):
            source_id = event.source.userId or event.source.groupId or event.source.roomId
            logger.info(f"{event.type} from {source_id}")
        elif event.type == "postback":
            await _handle_postback(event, processor, sender)
        else:
            logger.info(f"Unhandled event type: {event.type}")
    except (TaskBridgeError, httpx.HTTPError) as e:
        logger.error(f"Failed to handle {event.type} event: {e}")
        await _send_error(event, e, processor.locale, sender)


async def _reply(event: LineEvent, text: str, sender: ReplySender) -> None:
    if not event.replyToken:
        logger.warning(f"No reply token on {event.type} event, reply dropped")
        return
    await sender.reply_message(event.replyToken, text)


async def _send_error(event: LineEvent, error: Exception, locale: str, sender: ReplySender) -> None:
    try:
        await _reply(event, format_error(error, locale), sender)
    except httpx.HTTPError as e:
        logger.error(f"Failed to send error reply: {e}")


async def _handle_message(event: LineEvent, processor: MessageProcessor, sender: ReplySender) -> None:
    message = event.message
    if message is None or message.type != "text" or message.text is None:
        logger.info(f"Skipping non-text message: {message.type if message else None}")
        return

    result = await processor.process_text_message(message.text, event.source.userId)
    await _reply(event, result.message, sender)


async def _handle_postback(event: LineEvent, processor: MessageProcessor, sender: ReplySender) -> None:
    """Handle button actions; data is JSON like {"action": "complete_task", "taskId": "..."}."""
    data = event.postback.data if event.postback else ""
    logger.info(f"Postback from {event.source.userId}: {data}")

    try:
        action = json.loads(data)
    except json.JSONDecodeError:
        action = None

    if isinstance(action, dict) and action.get("action") == "complete_task" and action.get("taskId"):
        result = await processor.process_text_message(f"/complete {action['taskId']}", event.source.userId)
        await _reply(event, result.message, sender)
        return

    await _reply(event, format_unknown_action(processor.locale), sender)
