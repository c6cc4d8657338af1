"""
Encoder notifications and their application to the ledger.
"""

from .bus import EventBus, EventHandler
from .models import ConverterEvent, EventKind, parse_event
from .synchronizer import EventSynchronizer

__all__ = [
    "ConverterEvent",
    "EventBus",
    "EventHandler",
    "EventKind",
    "EventSynchronizer",
    "parse_event",
]
