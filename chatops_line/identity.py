"""User identity cache for the LINE broker.

LINE only exposes display names through a per-user profile call, so the
broker remembers every name it has resolved. Entries are never evicted.
"""

from __future__ import annotations

import threading


class IdentityCache:
    """Thread-safe mapping of LINE user id to display name."""

    def __init__(self) -> None:
        self._names: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> str | None:
        """Return the cached display name, or None on a miss."""
        with self._lock:
            return self._names.get(user_id)

    def put(self, user_id: str, name: str) -> None:
        """Remember a resolved display name."""
        with self._lock:
            self._names[user_id] = name

    def __contains__(self, user_id: object) -> bool:
        with self._lock:
            return user_id in self._names

    def __len__(self) -> int:
        with self._lock:
            return len(self._names)
