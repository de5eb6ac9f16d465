"""Chatops LINE broker - LINE Messaging API integration."""

__version__ = "0.1.0"

from chatops_line.broker import LineBroker, MissingOriginalEventError
from chatops_line.identity import IdentityCache

__all__ = ["IdentityCache", "LineBroker", "MissingOriginalEventError"]
