"""Shared data types for chatops broker interfaces."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from chatops_core.adapters.broker import Broker


@dataclass
class Evt:
    """A chat event flowing between a broker and the framework.

    Brokers build these from platform deliveries on the way in, and
    handlers hand them back (usually a clone with a new body) on the way
    out. ``original`` holds the raw platform event so the broker can find
    whatever it needs to answer in place (e.g., a reply token).
    """

    id: str = ""
    body: str = ""
    room: str = ""
    room_id: str = ""
    user: str = ""
    user_id: str = ""
    time: datetime | None = None
    broker: Broker | None = None
    is_chat: bool = False
    original: Any = None

    def clone(self) -> Evt:
        """Return a shallow copy that can be mutated independently."""
        return replace(self)

    def reply_body(self, body: str) -> Evt:
        """Clone this event with a different body."""
        return replace(self, body=body)
