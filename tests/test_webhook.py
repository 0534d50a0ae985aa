"""Tests for the LINE webhook endpoints."""

import json
from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi.testclient import TestClient

from line_task_bridge.config import settings
from line_task_bridge.models.task import TaskStatus
from line_task_bridge.services.line_messaging import compute_signature


def text_event(text: str, reply_token: str = "reply-token-1") -> dict[str, Any]:
    return {
        "type": "message",
        "replyToken": reply_token,
        "source": {"type": "user", "userId": "U123"},
        "timestamp": 1700000000000,
        "message": {"id": "m1", "type": "text", "text": text},
    }


def post_signed(client: TestClient, events: list[dict[str, Any]], path: str = "/webhook"):
    body = json.dumps({"destination": "Ubot", "events": events}).encode("utf-8")
    return client.post(
        path,
        content=body,
        headers={
            "Content-Type": "application/json",
            "X-Line-Signature": compute_signature(body, settings.line_channel_secret),
        },
    )


def test_text_message_gets_reply(bridge_client: TestClient, sender: AsyncMock, storage: AsyncMock) -> None:
    response = post_signed(bridge_client, [text_event("/help")])

    assert response.status_code == 200
    assert response.json()["processed"] == 1
    sender.reply_message.assert_awaited_once()
    token, text = sender.reply_message.await_args.args
    assert token == "reply-token-1"
    assert "/add" in text
    assert storage.method_calls == []


def test_create_command_reaches_storage(
    bridge_client: TestClient, sender: AsyncMock, storage: AsyncMock, make_task
) -> None:
    storage.create_task.return_value = make_task()

    response = post_signed(bridge_client, [text_event("創建任務：Fix login bug")])

    assert response.status_code == 200
    storage.create_task.assert_awaited_once()
    assert sender.reply_message.await_args.args[1].startswith("✅ 任務創建成功")


def test_multiple_events_are_all_answered(bridge_client: TestClient, sender: AsyncMock) -> None:
    events = [text_event("help", "t1"), text_event("asdkjfh", "t2")]

    response = post_signed(bridge_client, events)

    assert response.json()["processed"] == 2
    tokens = sorted(call.args[0] for call in sender.reply_message.await_args_list)
    assert tokens == ["t1", "t2"]


def test_missing_signature_is_rejected(bridge_client: TestClient, sender: AsyncMock) -> None:
    response = bridge_client.post("/webhook", json={"events": [text_event("help")]})

    assert response.status_code == 400
    sender.reply_message.assert_not_awaited()


def test_wrong_signature_is_rejected(bridge_client: TestClient, sender: AsyncMock) -> None:
    body = json.dumps({"events": [text_event("help")]}).encode("utf-8")

    response = bridge_client.post(
        "/webhook",
        content=body,
        headers={"X-Line-Signature": compute_signature(body, "some-other-secret")},
    )

    assert response.status_code == 400
    sender.reply_message.assert_not_awaited()


def test_unconfigured_secret_rejects_everything(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "line_channel_secret", "")

    response = post_signed(client, [])

    assert response.status_code == 400


def test_verify_delivery_without_events(bridge_client: TestClient) -> None:
    response = post_signed(bridge_client, [])

    assert response.status_code == 200
    assert response.json()["message"] == "No events to process"


def test_events_without_configured_bridge(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "line_channel_secret", "another-secret")

    response = post_signed(client, [text_event("help")])

    assert response.status_code == 503


def test_malformed_body_is_rejected(bridge_client: TestClient) -> None:
    body = b"{not json"

    response = bridge_client.post(
        "/webhook",
        content=body,
        headers={"X-Line-Signature": compute_signature(body, settings.line_channel_secret)},
    )

    assert response.status_code == 400


@pytest.mark.parametrize("event_type,prefix", [("follow", "🎉"), ("join", "👋")])
def test_welcome_events(bridge_client: TestClient, sender: AsyncMock, event_type: str, prefix: str) -> None:
    event = {"type": event_type, "replyToken": "t1", "source": {"type": "group", "groupId": "G1"}}

    post_signed(bridge_client, [event])

    assert sender.reply_message.await_args.args[1].startswith(prefix)


def test_unfollow_is_not_answered(bridge_client: TestClient, sender: AsyncMock) -> None:
    response = post_signed(bridge_client, [{"type": "unfollow", "source": {"type": "user", "userId": "U1"}}])

    assert response.status_code == 200
    sender.reply_message.assert_not_awaited()


def test_non_text_message_is_skipped(bridge_client: TestClient, sender: AsyncMock) -> None:
    event = text_event("")
    event["message"] = {"id": "m2", "type": "sticker", "packageId": "1", "stickerId": "2"}

    response = post_signed(bridge_client, [event])

    assert response.status_code == 200
    sender.reply_message.assert_not_awaited()


def test_postback_completes_task(
    bridge_client: TestClient, sender: AsyncMock, storage: AsyncMock, make_task
) -> None:
    storage.complete_task.return_value = make_task(status=TaskStatus.DONE)
    event = {
        "type": "postback",
        "replyToken": "t1",
        "source": {"type": "user", "userId": "U1"},
        "postback": {"data": json.dumps({"action": "complete_task", "taskId": "abc123"})},
    }

    post_signed(bridge_client, [event])

    storage.complete_task.assert_awaited_once_with("abc123")
    assert sender.reply_message.await_args.args[1].startswith("🎉 任務已完成")


def test_unknown_postback_action(bridge_client: TestClient, sender: AsyncMock, storage: AsyncMock) -> None:
    event = {
        "type": "postback",
        "replyToken": "t1",
        "source": {"type": "user", "userId": "U1"},
        "postback": {"data": "action=buy&itemid=1"},
    }

    post_signed(bridge_client, [event])

    assert sender.reply_message.await_args.args[1] == "未知的操作"
    assert storage.method_calls == []


def test_reply_failure_does_not_fail_delivery(bridge_client: TestClient, sender: AsyncMock) -> None:
    sender.reply_message.side_effect = httpx.ConnectError("LINE unreachable")

    response = post_signed(bridge_client, [text_event("help")])

    assert response.status_code == 200
    # The help reply and the error reply were both attempted
    assert sender.reply_message.await_count == 2


def test_test_webhook_disabled_by_default(bridge_client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "enable_test_webhook", False)

    response = bridge_client.post("/webhook/test", json={"events": [text_event("help")]})

    assert response.status_code == 404


def test_test_webhook_skips_signature(
    bridge_client: TestClient, sender: AsyncMock, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(settings, "enable_test_webhook", True)

    response = bridge_client.post("/webhook/test", json={"events": [text_event("help")]})

    assert response.status_code == 200
    sender.reply_message.assert_awaited_once()
