"""Adapter protocol interfaces for chatops.

Each protocol defines a capability boundary that integration packages
implement:

    chatops_line → Broker

Protocols use structural subtyping (PEP 544): brokers implement the
interface without inheriting from it.
"""

from chatops_core.adapters.broker import Broker

__all__ = [
    "Broker",
]
