"""Event handlers for the Discord channel mirror."""

from .canned_reply import CannedReply
from .dispatcher import EventDispatcher

__all__ = [
    "CannedReply",
    "EventDispatcher",
]
