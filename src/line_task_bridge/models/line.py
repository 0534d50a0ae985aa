"""LINE Messaging API webhook models."""

from typing import Any

from pydantic import BaseModel, ConfigDict


class LineSource(BaseModel):
    """Where an event came from (user, group or room)."""

    type: str = "user"
    userId: str | None = None
    groupId: str | None = None
    roomId: str | None = None


class LineMessage(BaseModel):
    """Message content of a message event."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    type: str
    text: str | None = None


class LinePostback(BaseModel):
    """Postback data from a button action."""

    data: str


class LineEvent(BaseModel):
    """A single webhook event."""

    model_config = ConfigDict(extra="allow")

    type: str
    replyToken: str | None = None
    source: LineSource = LineSource()
    timestamp: int | None = None
    message: LineMessage | None = None
    postback: LinePostback | None = None


class LineWebhookBody(BaseModel):
    """Full webhook request body."""

    destination: str | None = None
    events: list[LineEvent] = []


class LineTextMessage(BaseModel):
    """Outgoing text message."""

    type: str = "text"
    text: str


class LineReplyRequest(BaseModel):
    """Reply API request body."""

    replyToken: str
    messages: list[LineTextMessage]


class WebhookResponse(BaseModel):
    """Acknowledgement returned to the LINE platform."""

    message: str
    processed: int = 0
    details: dict[str, Any] = {}
