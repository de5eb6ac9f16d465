"""Broker adapter protocol.

Implemented by: chatops_line.LineBroker (reference), or any chat platform.

Responsible for moving chat events between one messaging platform and the
framework: streaming inbound events, answering in conversations, and
resolving room/user identifiers.
"""

from __future__ import annotations

import asyncio
from typing import Protocol, runtime_checkable

from chatops_core.types import Evt


@runtime_checkable
class Broker(Protocol):
    """Connects the framework to a single messaging platform.

    Design principles:
    - Outbound sends never raise; failures are the broker's to log.
    - Inbound events are delivered in arrival order on one queue.
    - Directory lookups degrade to returning their input when the platform
      has no way to answer them.
    """

    def name(self) -> str:
        """Instance name this broker was configured with."""
        ...

    async def send(self, evt: Evt) -> None:
        """Answer in the conversation the event came from."""
        ...

    async def send_table(
        self, evt: Evt, header: list[str], rows: list[list[str]]
    ) -> None:
        """Render rows as a text table and answer with it.

        Args:
            evt: Event whose conversation receives the table.
            header: Column titles.
            rows: Table rows, one list of cells per row.
        """
        ...

    async def send_dm(self, evt: Evt) -> None:
        """Send evt.body directly to evt.user_id."""
        ...

    async def set_topic(self, room_id: str, topic: str) -> None:
        """Set a room's topic."""
        ...

    async def get_topic(self, room_id: str) -> str:
        """Get a room's topic."""
        ...

    async def leave(self, room_id: str) -> None:
        """Leave a room or group.

        Raises:
            Exception: Platform errors are propagated to the caller.
        """
        ...

    def looks_like_room_id(self, room: str) -> bool:
        """Whether the string has the shape of a room identifier."""
        ...

    def looks_like_user_id(self, user: str) -> bool:
        """Whether the string has the shape of a user identifier."""
        ...

    async def room_id_to_name(self, id: str) -> str:
        """Resolve a room id to its display name."""
        ...

    async def room_name_to_id(self, name: str) -> str:
        """Resolve a room display name to its id."""
        ...

    async def user_id_to_name(self, id: str) -> str:
        """Resolve a user id to a display name, or "" if unknown."""
        ...

    async def user_name_to_id(self, name: str) -> str:
        """Resolve a user display name to its id."""
        ...

    async def stream(self, out: asyncio.Queue[Evt]) -> None:
        """Receive platform events forever, putting translated Evts on out."""
        ...
