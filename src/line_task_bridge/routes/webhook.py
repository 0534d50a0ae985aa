"""LINE webhook endpoints."""

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import ValidationError as PydanticValidationError

from ..config import settings
from ..errors import SignatureError
from ..models.line import LineWebhookBody, WebhookResponse
from ..services.line_handler import ReplySender, handle_events
from ..services.line_messaging import verify_signature
from ..services.message_processor import MessageProcessor

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhook"])


def get_processor(request: Request) -> MessageProcessor | None:
    """Message processor built at startup, if the bridge is configured."""
    return getattr(request.app.state, "processor", None)


def get_reply_sender(request: Request) -> ReplySender | None:
    """LINE reply client built at startup, if a channel token is configured."""
    return getattr(request.app.state, "line_client", None)


async def _handle_body(
    body: bytes,
    processor: MessageProcessor | None,
    sender: ReplySender | None,
) -> WebhookResponse:
    try:
        payload = LineWebhookBody.model_validate_json(body)
    except PydanticValidationError as e:
        logger.warning(f"Invalid webhook body: {e.error_count()} errors")
        raise HTTPException(status_code=400, detail="Invalid webhook body") from e

    # LINE's "Verify" button sends a delivery without events
    if not payload.events:
        logger.info("No events to process")
        return WebhookResponse(message="No events to process")

    if processor is None or sender is None:
        logger.error("Webhook received but Focalboard or LINE client is not configured")
        raise HTTPException(status_code=503, detail="Task bridge not configured")

    processed = await handle_events(payload.events, processor, sender)
    return WebhookResponse(message="Events processed successfully", processed=processed)


@router.post("/webhook", response_model=WebhookResponse)
async def line_webhook(
    request: Request,
    x_line_signature: str | None = Header(default=None),
    processor: MessageProcessor | None = Depends(get_processor),
    sender: ReplySender | None = Depends(get_reply_sender),
) -> WebhookResponse:
    """
    Receive LINE Messaging API events.

    The raw body is checked against the X-Line-Signature header before it
    is parsed. Text messages are parsed as task commands, executed against
    Focalboard and answered with a reply message.
    """
    body = await request.body()

    try:
        verify_signature(body, x_line_signature, settings.line_channel_secret)
    except SignatureError as e:
        logger.warning(f"Rejected webhook: {e.message}")
        raise HTTPException(status_code=400, detail=e.message) from e

    return await _handle_body(body, processor, sender)


@router.post("/webhook/test", response_model=WebhookResponse)
async def line_webhook_test(
    request: Request,
    processor: MessageProcessor | None = Depends(get_processor),
    sender: ReplySender | None = Depends(get_reply_sender),
) -> WebhookResponse:
    """Same as /webhook without signature validation, for local debugging."""
    if not settings.enable_test_webhook:
        raise HTTPException(status_code=404, detail="Not Found")

    logger.info("Test webhook called (signature check skipped)")
    return await _handle_body(await request.body(), processor, sender)
