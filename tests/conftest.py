"""Shared test fixtures for chatops tests.

Provides signed LINE webhook payloads, a mock messaging API, and a broker
wired to it.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from linebot.v3 import WebhookParser

from chatops_core.config import LineConfig
from chatops_line.broker import LineBroker

SECRET = "test-channel-secret"
TOKEN = "test-channel-token"

USER_ID = "U4af4980629c1e8c2b4d6b3f7b7c0e4a1"
GROUP_ID = "Ca56f94637c1e8c2b4d6b3f7b7c0e4a1b"
ROOM_ID = "Ra8dbf4673c1e8c2b4d6b3f7b7c0e4a1c"
REPLY_TOKEN = "nHuyWiB7yP5Zw52FIkcQobQuGDXCTA"
TIMESTAMP = 1462629479859


def sign(body: str, secret: str = SECRET) -> str:
    """Compute the X-Line-Signature header for a webhook body."""
    digest = hmac.new(secret.encode(), body.encode(), hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def user_source() -> dict[str, Any]:
    return {"type": "user", "userId": USER_ID}


def group_source() -> dict[str, Any]:
    return {"type": "group", "groupId": GROUP_ID, "userId": USER_ID}


def room_source() -> dict[str, Any]:
    return {"type": "room", "roomId": ROOM_ID, "userId": USER_ID}


def line_event(
    event_type: str, source: dict[str, Any] | None = None, **fields: Any
) -> dict[str, Any]:
    """Build one webhook event object as the LINE platform sends it."""
    event = {
        "type": event_type,
        "mode": "active",
        "timestamp": TIMESTAMP,
        "source": source or user_source(),
        "webhookEventId": "01FZ74A0TDDPYRVKNK77XKC3ZR",
        "deliveryContext": {"isRedelivery": False},
    }
    event.update(fields)
    return event


def text_event(
    text: str = "Hello, world", source: dict[str, Any] | None = None
) -> dict[str, Any]:
    return line_event(
        "message",
        source,
        replyToken=REPLY_TOKEN,
        message={
            "type": "text",
            "id": "444573844083572737",
            "quoteToken": "q3Plxr4AgKd",
            "text": text,
        },
    )


def location_event() -> dict[str, Any]:
    return line_event(
        "message",
        replyToken=REPLY_TOKEN,
        message={
            "type": "location",
            "id": "325708",
            "title": "my location",
            "address": "1-6-1 Yotsuya, Shinjuku-ku, Tokyo",
            "latitude": 35.687574,
            "longitude": 139.72922,
        },
    )


def sticker_event() -> dict[str, Any]:
    return line_event(
        "message",
        replyToken=REPLY_TOKEN,
        message={
            "type": "sticker",
            "id": "1501597916",
            "quoteToken": "q3Plxr4AgKd",
            "packageId": "446",
            "stickerId": "1988",
            "stickerResourceType": "STATIC",
        },
    )


def webhook_body(*events: dict[str, Any]) -> str:
    """Serialize events into a webhook delivery body."""
    return json.dumps({"destination": "Uxxxxxxxxxxxxxx", "events": list(events)})


def parse_events(*events: dict[str, Any]) -> list[Any]:
    """Run events through the real SDK parser, as the webhook does."""
    body = webhook_body(*events)
    return WebhookParser(SECRET).parse(body, sign(body))


@pytest.fixture
def line_config() -> LineConfig:
    """Provide a LineConfig with test credentials."""
    return LineConfig(secret=SECRET, token=TOKEN, listen="127.0.0.1:8080")


@pytest.fixture
def mock_api() -> MagicMock:
    """Create a mock LINE messaging API.

    Returns:
        Mock AsyncMessagingApi instance.
    """
    api = MagicMock()
    api.reply_message = AsyncMock(return_value=None)
    api.push_message = AsyncMock(return_value=None)
    api.leave_group = AsyncMock(return_value=None)
    api.leave_room = AsyncMock(return_value=None)
    api.get_profile = AsyncMock(
        return_value=SimpleNamespace(display_name="Brown", user_id=USER_ID)
    )
    return api


@pytest.fixture
def broker(line_config: LineConfig, mock_api: MagicMock) -> LineBroker:
    """Provide a LineBroker wired to the mock messaging API."""
    return LineBroker(line_config, "line", api=mock_api)
