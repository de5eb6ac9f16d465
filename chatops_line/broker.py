"""LINE Messaging API broker.

Receives LINE webhook deliveries, translates them into framework Evts, and
answers through the LINE reply and push APIs. Room and topic directories
have no LINE counterpart and are stubbed out.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import aiohttp
from aiohttp import web
from linebot.v3 import WebhookParser
from linebot.v3.messaging import (
    AsyncApiClient,
    AsyncMessagingApi,
    Configuration,
    PushMessageRequest,
    ReplyMessageRequest,
    TextMessage,
)
from linebot.v3.messaging.exceptions import ApiException
from linebot.v3.webhooks import (
    BeaconEvent,
    FollowEvent,
    GroupSource,
    JoinEvent,
    LeaveEvent,
    LocationMessageContent,
    MessageEvent,
    PostbackEvent,
    RoomSource,
    TextMessageContent,
    UnfollowEvent,
    UserSource,
)

from chatops_core.types import Evt

from .identity import IdentityCache
from .webhook import create_app

if TYPE_CHECKING:
    from chatops_core.config import LineConfig

logger = logging.getLogger(__name__)

TABLE_SEPARATOR = " │ "
TABLE_RULE = "──────────────────"

# Failures from the LINE API client, including its total request timeout.
VENDOR_ERRORS = (ApiException, aiohttp.ClientError, asyncio.TimeoutError)


class MissingOriginalEventError(ValueError):
    """Raised when an Evt carries no LINE event to reply to."""

    def __init__(self) -> None:
        super().__init__("Missing original event")


def format_table(header: list[str], rows: list[list[str]]) -> str:
    """Render a header and rows as a plain text table."""
    body = TABLE_SEPARATOR.join(header) + "\n"
    body += TABLE_RULE + "\n"
    for row in rows:
        body += TABLE_SEPARATOR.join(row) + "\n"
    return body


def event_time(event: Any) -> datetime:
    """Convert a LINE epoch-millisecond timestamp to an aware datetime."""
    return datetime.fromtimestamp(event.timestamp / 1000, tz=timezone.utc)


def source_room_id(source: Any) -> str:
    """Pick the conversation id out of a LINE event source.

    Group and room chats are addressed by their own id; one-to-one chats
    are addressed by the user id.
    """
    if isinstance(source, GroupSource):
        return source.group_id
    if isinstance(source, RoomSource):
        return source.room_id
    if isinstance(source, UserSource):
        return source.user_id or ""
    return ""


class LineBroker:
    """Broker for the LINE Messaging API.

    Implements the chatops_core Broker protocol. The messaging API client
    is created on first use so that it binds to the running event loop.
    """

    def __init__(
        self,
        config: LineConfig,
        name: str,
        api: AsyncMessagingApi | None = None,
    ) -> None:
        """Initialize the LINE broker.

        Args:
            config: LINE credentials and listener settings.
            name: Instance name reported to the framework.
            api: Messaging API client. Created lazily when omitted.
        """
        self.config = config
        self._name = name
        self._api = api
        self._api_client: AsyncApiClient | None = None
        self.parser = WebhookParser(config.secret)
        self.identities = IdentityCache()

    @property
    def api(self) -> AsyncMessagingApi:
        """LINE messaging API client."""
        if self._api is None:
            self._api_client = AsyncApiClient(
                Configuration(access_token=self.config.token)
            )
            self._api = AsyncMessagingApi(self._api_client)
        return self._api

    async def close(self) -> None:
        """Close the HTTP session owned by the messaging API client."""
        if self._api_client is not None:
            await self._api_client.close()
            self._api_client = None
            self._api = None

    def name(self) -> str:
        return self._name

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    async def reply(self, evt: Evt) -> None:
        """Reply to the LINE event evt was translated from.

        Raises:
            MissingOriginalEventError: evt has no LINE event with a reply token.
            ApiException: The LINE API rejected the reply.
        """
        reply_token = getattr(evt.original, "reply_token", None)
        if not reply_token:
            raise MissingOriginalEventError()

        await self.api.reply_message(
            ReplyMessageRequest(
                reply_token=reply_token,
                messages=[TextMessage(text=evt.body)],
            )
        )

    async def send(self, evt: Evt) -> None:
        try:
            await self.reply(evt)
        except (MissingOriginalEventError, *VENDOR_ERRORS) as e:
            logger.error(f"Failed to send message: {e}")

    async def send_table(
        self, evt: Evt, header: list[str], rows: list[list[str]]
    ) -> None:
        out = evt.reply_body(format_table(header, rows))
        try:
            await self.reply(out)
        except (MissingOriginalEventError, *VENDOR_ERRORS) as e:
            logger.error(f"Failed to send table message: {e}")

    async def send_dm(self, evt: Evt) -> None:
        try:
            await self.api.push_message(
                PushMessageRequest(
                    to=evt.user_id,
                    messages=[TextMessage(text=evt.body)],
                )
            )
        except VENDOR_ERRORS as e:
            logger.error(f"Failed to send direct message: {e}")

    async def leave(self, room_id: str) -> None:
        """Leave a group chat or multi-person room.

        LINE group ids start with "C" and room ids with "R".
        """
        if room_id.startswith("C"):
            await self.api.leave_group(room_id)
        else:
            await self.api.leave_room(room_id)

    # ------------------------------------------------------------------
    # Directory and topic stubs
    # ------------------------------------------------------------------

    async def set_topic(self, room_id: str, topic: str) -> None:
        logger.info("set_topic() is a stub")

    async def get_topic(self, room_id: str) -> str:
        logger.info("get_topic() is a stub")
        return ""

    def looks_like_room_id(self, room: str) -> bool:
        logger.info("looks_like_room_id() is a stub that always returns True")
        return True

    def looks_like_user_id(self, user: str) -> bool:
        logger.info("looks_like_user_id() is a stub that always returns True")
        return True

    async def room_id_to_name(self, id: str) -> str:
        logger.info("room_id_to_name() is a stub that returns the input id")
        return id

    async def room_name_to_id(self, name: str) -> str:
        logger.info("room_name_to_id() is a stub that returns the input name")
        return name

    async def user_name_to_id(self, name: str) -> str:
        logger.info("user_name_to_id() is a stub that returns the input name")
        return name

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    async def user_id_to_name(self, id: str) -> str:
        """Resolve a LINE user id to a display name.

        Names are cached after the first successful profile lookup. Failed
        lookups return "" and are retried next time.
        """
        if not id:
            logger.debug("user_id_to_name() cannot look up an empty id")
            return ""

        name = self.identities.get(id)
        if name is not None:
            return name

        try:
            profile = await self.api.get_profile(id)
        except VENDOR_ERRORS as e:
            logger.warning(f"Could not retrieve user profile for '{id}': {e}")
            return ""

        self.identities.put(id, profile.display_name)
        return profile.display_name

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    async def stream(self, out: asyncio.Queue[Evt]) -> None:
        """Run the webhook listener and translate its events onto out.

        Runs until cancelled. A listener that cannot bind is fatal.
        """
        incoming: asyncio.Queue[Any] = asyncio.Queue()
        app = create_app(
            self.parser,
            incoming,
            broker_name=self._name,
            callback_path=self.config.callback_path,
        )
        runner = web.AppRunner(app)
        await runner.setup()

        try:
            host, port = self.config.host_port()
            site = web.TCPSite(runner, host, port)
            await site.start()
        except (OSError, ValueError) as e:
            logger.critical(
                f"Webhook listener could not start on '{self.config.listen}': {e}"
            )
            await runner.cleanup()
            raise SystemExit(1) from e

        logger.info(
            f"LINE webhook listening on {host}:{port}{self.config.callback_path}"
        )

        try:
            while True:
                event = await incoming.get()
                try:
                    await self.handle_event(event, out)
                except Exception:
                    logger.exception(f"Failed to handle LINE event: {event!r}")
        finally:
            await runner.cleanup()
            await self.close()

    async def handle_event(self, event: Any, out: asyncio.Queue[Evt]) -> None:
        """Translate one LINE webhook event and queue the result, if any."""
        if isinstance(event, MessageEvent):
            evt = await self._translate_message(event)
            if evt is not None:
                await out.put(evt)

        elif isinstance(event, FollowEvent):
            await out.put(await self._translate_follow(event, "followed"))

        elif isinstance(event, UnfollowEvent):
            await out.put(await self._translate_follow(event, "unfollowed"))

        elif isinstance(event, JoinEvent):
            room_id = source_room_id(event.source)
            time = event_time(event)
            await out.put(
                Evt(
                    id=time.isoformat(),
                    body=f"Got joined {event.source.type} event",
                    room=room_id,
                    room_id=room_id,
                    time=time,
                    broker=self,
                    original=event,
                )
            )

        elif isinstance(event, LeaveEvent):
            logger.debug(f"Got leave event: {event!r}")

        elif isinstance(event, PostbackEvent):
            logger.debug(f"Got postback event: {event.postback.data}")

        elif isinstance(event, BeaconEvent):
            logger.debug(f"Got beacon event: {event!r}")

        else:
            logger.debug(f"Unknown event: {getattr(event, 'type', type(event))}")

    async def _translate_message(self, event: MessageEvent) -> Evt | None:
        message = event.message

        if isinstance(message, TextMessageContent):
            body = message.text
        elif isinstance(message, LocationMessageContent):
            body = f"{message.title or ''}: {message.address or ''}"
        else:
            # Content types the SDK does not know arrive as unknown events
            logger.debug(f"Ignoring {message.type} message {message.id}")
            return None

        room_id = source_room_id(event.source)
        user_id = getattr(event.source, "user_id", None) or ""
        user = await self.user_id_to_name(user_id) if user_id else ""

        return Evt(
            id=message.id,
            body=body,
            room=room_id,
            room_id=room_id,
            user=user,
            user_id=user_id,
            time=event_time(event),
            broker=self,
            is_chat=True,
            original=event,
        )

    async def _translate_follow(
        self, event: FollowEvent | UnfollowEvent, action: str
    ) -> Evt:
        user_id = event.source.user_id or ""
        user = await self.user_id_to_name(user_id)
        time = event_time(event)
        return Evt(
            id=time.isoformat(),
            body=f"Got {user} {action} event",
            room=user_id,
            room_id=user_id,
            user=user,
            user_id=user_id,
            time=time,
            broker=self,
            original=event,
        )
