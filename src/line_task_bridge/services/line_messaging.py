"""LINE Messaging API: webhook signature check and reply client."""

import base64
import hashlib
import hmac
import logging

import httpx

from ..errors import SignatureError
from ..models.line import LineReplyRequest, LineTextMessage

logger = logging.getLogger(__name__)

# LINE rejects text messages longer than this
MAX_TEXT_LENGTH = 5000
DEFAULT_TIMEOUT = 10.0


def compute_signature(body: bytes, channel_secret: str) -> str:
    """Base64 HMAC-SHA256 of the raw request body."""
    digest = hmac.new(channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


def verify_signature(body: bytes, signature: str | None, channel_secret: str) -> None:
    """
    Check the X-Line-Signature header against the raw body.

    Raises:
        SignatureError: Header missing, secret not configured, or mismatch
    """
    if not channel_secret:
        raise SignatureError("LINE channel secret not configured")
    if not signature:
        raise SignatureError("Missing X-Line-Signature header")
    if not hmac.compare_digest(compute_signature(body, channel_secret), signature):
        raise SignatureError("Signature validation failed")


def _truncate(text: str) -> str:
    if len(text) <= MAX_TEXT_LENGTH:
        return text
    return text[: MAX_TEXT_LENGTH - 1] + "…"


class LineMessagingClient:
    """Sends replies through the LINE Messaging API."""

    def __init__(
        self,
        channel_access_token: str,
        base_url: str = "https://api.line.me",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bearer {channel_access_token}"},
            timeout=DEFAULT_TIMEOUT,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def reply_message(self, reply_token: str, text: str) -> None:
        """
        Reply to an event with a single text message.

        Raises:
            httpx.HTTPError: The LINE API rejected or did not answer the call
        """
        request = LineReplyRequest(
            replyToken=reply_token,
            messages=[LineTextMessage(text=_truncate(text))],
        )
        response = await self._client.post("/v2/bot/message/reply", json=request.model_dump())
        if response.is_error:
            logger.error(f"LINE reply failed ({response.status_code}): {response.text}")
        response.raise_for_status()
        logger.info("Reply sent")
