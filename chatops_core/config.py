"""Chatops configuration system.

Externalizes the settings a broker needs at runtime: platform credentials,
the address the webhook listener binds to, and the broker's instance name.

Configuration can be loaded from:
- Environment variables (LINE_*, CHATOPS_*), optionally seeded from .env
- Programmatic construction

This module defines the schema. Building a broker from it is left to the
integration package.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chatops_line.broker import LineBroker


@dataclass
class LineConfig:
    """LINE Messaging API configuration."""

    secret: str = ""
    """Channel secret, used to validate webhook signatures."""

    token: str = ""
    """Channel access token, used for reply/push/profile calls."""

    listen: str = ":8080"
    """Webhook listener address, as ``host:port`` or ``:port``."""

    callback_path: str = "/callback"

    @classmethod
    def from_env(cls) -> LineConfig:
        """Build a LineConfig from LINE_* environment variables."""
        return cls(
            secret=os.getenv("LINE_CHANNEL_SECRET", ""),
            token=os.getenv("LINE_CHANNEL_ACCESS_TOKEN", ""),
            listen=os.getenv("LINE_LISTEN", ":8080"),
            callback_path=os.getenv("LINE_CALLBACK_PATH", "/callback"),
        )

    def host_port(self) -> tuple[str, int]:
        """Split the listen address into a bindable host and port.

        Returns:
            (host, port). An empty host binds every interface.

        Raises:
            ValueError: If the address has no port or the port is not a number.
        """
        host, sep, port = self.listen.rpartition(":")
        if not sep or not port.isdigit():
            raise ValueError(f"invalid listen address: {self.listen!r}")
        return host or "0.0.0.0", int(port)

    def new_broker(self, name: str) -> LineBroker:
        """Create a LINE broker named ``name`` from this configuration.

        Raises:
            ValueError: If the channel secret or access token is missing.
        """
        if not self.secret:
            raise ValueError("LINE channel secret is not configured")
        if not self.token:
            raise ValueError("LINE channel access token is not configured")

        from chatops_line.broker import LineBroker

        return LineBroker(self, name)


@dataclass
class BrokerConfig:
    """Top-level broker configuration.

    Load from the environment:
        config = BrokerConfig.from_env()

    Or construct programmatically:
        config = BrokerConfig(
            name="line",
            line=LineConfig(secret="...", token="...", listen=":8080"),
        )
    """

    name: str = "line"
    line: LineConfig = field(default_factory=LineConfig)

    @classmethod
    def from_env(cls) -> BrokerConfig:
        """Build a BrokerConfig from the environment."""
        return cls(
            name=os.getenv("CHATOPS_BROKER_NAME", "line"),
            line=LineConfig.from_env(),
        )
