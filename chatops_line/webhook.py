"""Webhook HTTP server for LINE platform deliveries.

Validates the X-Line-Signature of each delivery, parses it into LINE SDK
event objects, and queues them for the broker's consuming loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from aiohttp import web
from linebot.v3 import WebhookParser
from linebot.v3.exceptions import InvalidSignatureError

logger = logging.getLogger(__name__)

PARSER_KEY = web.AppKey("parser", WebhookParser)
INCOMING_KEY = web.AppKey("incoming", asyncio.Queue)
BROKER_NAME_KEY = web.AppKey("broker_name", str)


async def handle_callback(request: web.Request) -> web.Response:
    """POST /callback - Receive a webhook delivery from the LINE platform.

    Args:
        request: The aiohttp request object.

    Returns:
        200 once every event is queued, 400 on a bad signature, 500 if the
        payload could not be parsed.
    """
    signature = request.headers.get("X-Line-Signature", "")
    body = await request.text()

    parser = request.app[PARSER_KEY]
    try:
        events: list[Any] = parser.parse(body, signature)
    except InvalidSignatureError:
        logger.warning("Rejected webhook delivery with invalid signature")
        return web.Response(status=400, text="invalid signature")
    except Exception:
        logger.exception("Could not parse webhook delivery")
        return web.Response(status=500, text="could not parse request")

    incoming = request.app[INCOMING_KEY]
    for event in events:
        await incoming.put(event)

    return web.Response(text="OK")


async def handle_health(request: web.Request) -> web.Response:
    """GET /health - Health check endpoint.

    Args:
        request: The aiohttp request object.

    Returns:
        JSON response with status and broker name.
    """
    return web.json_response(
        {"status": "ok", "broker": request.app[BROKER_NAME_KEY]}
    )


def create_app(
    parser: WebhookParser,
    incoming: asyncio.Queue,
    *,
    broker_name: str = "line",
    callback_path: str = "/callback",
) -> web.Application:
    """Create and configure the webhook application.

    Args:
        parser: LINE webhook parser holding the channel secret.
        incoming: Queue receiving parsed LINE events.
        broker_name: Name reported by the health endpoint.
        callback_path: Path the LINE platform posts deliveries to.

    Returns:
        Configured aiohttp Application instance.
    """
    app = web.Application()
    app[PARSER_KEY] = parser
    app[INCOMING_KEY] = incoming
    app[BROKER_NAME_KEY] = broker_name

    app.router.add_post(callback_path, handle_callback)
    app.router.add_get("/health", handle_health)

    return app
