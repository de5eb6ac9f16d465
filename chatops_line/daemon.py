"""Daemon runner for the LINE broker.

Runs the webhook listener and the framework-side consuming loop in a
single asyncio event loop.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys

from chatops_core.config import BrokerConfig
from chatops_core.types import Evt


def log_level() -> int:
    """Read CHATOPS_LOG_LEVEL, falling back to INFO for unknown names."""
    name = os.getenv("CHATOPS_LOG_LEVEL", "INFO").upper()
    return logging.getLevelNamesMapping().get(name, logging.INFO)


logging.basicConfig(
    level=log_level(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def consume(out: asyncio.Queue[Evt]) -> None:
    """Log every event the broker delivers, forever.

    Args:
        out: Queue the broker puts translated events on.
    """
    while True:
        evt = await out.get()
        kind = "chat" if evt.is_chat else "event"
        sender = evt.user or evt.user_id
        logger.info(f"[{evt.room_id}] {kind} from {sender}: {evt.body}")
        out.task_done()


async def start_daemon() -> None:
    """Start the full daemon: LINE webhook listener + event consumer.

    Reads configuration from environment variables:
    - LINE_CHANNEL_SECRET: LINE channel secret
    - LINE_CHANNEL_ACCESS_TOKEN: LINE channel access token
    - LINE_LISTEN: Webhook listen address (default: :8080)
    - LINE_CALLBACK_PATH: Webhook path (default: /callback)
    - CHATOPS_BROKER_NAME: Broker instance name (default: line)
    """
    config = BrokerConfig.from_env()

    try:
        broker = config.line.new_broker(config.name)
    except ValueError as e:
        logger.error(f"Could not create the LINE broker: {e}")
        sys.exit(1)

    logger.info(f"Starting chatops broker '{broker.name()}'")

    out: asyncio.Queue[Evt] = asyncio.Queue()
    stream_task = asyncio.create_task(broker.stream(out))
    consume_task = asyncio.create_task(consume(out))

    try:
        # Returns only if the listener dies; consume() never finishes
        await asyncio.wait(
            [stream_task, consume_task], return_when=asyncio.FIRST_COMPLETED
        )
        if stream_task.done():
            stream_task.result()
    finally:
        logger.info("Stopping broker...")
        for task in (stream_task, consume_task):
            task.cancel()
        await asyncio.gather(stream_task, consume_task, return_exceptions=True)
        logger.info("Daemon stopped")


def run_daemon() -> None:
    """Entry point for daemon mode.

    Runs the asyncio event loop with the daemon tasks.
    """
    try:
        asyncio.run(start_daemon())
    except KeyboardInterrupt:
        # Tasks are cancelled and cleaned up in start_daemon
        pass
