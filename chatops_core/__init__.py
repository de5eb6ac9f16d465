"""
Chatops core: broker contracts for chat-operations bots.

Platform-agnostic event record, broker protocol, and configuration
shared by every messaging-platform integration.
"""

__version__ = "0.1.0"

from chatops_core.adapters import Broker
from chatops_core.config import BrokerConfig, LineConfig
from chatops_core.types import Evt

__all__ = [
    # Adapter protocols
    "Broker",
    # Configuration
    "BrokerConfig",
    "LineConfig",
    # Events
    "Evt",
]
