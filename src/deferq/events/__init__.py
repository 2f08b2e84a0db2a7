"""Notification boundary for the schedule queue.

The queue never delivers payloads itself. It publishes:
- ReadyBatch events to an EventSink (usually an EventBus)
- AckNode acknowledgments through an AckTransport
"""

from deferq.events.bus import EventBus
from deferq.events.types import (
    READY_BATCH_EVENT,
    AckNode,
    AckTransport,
    EventHandler,
    EventSink,
    ReadyBatch,
)

__all__ = [
    "READY_BATCH_EVENT",
    "AckNode",
    "AckTransport",
    "EventBus",
    "EventHandler",
    "EventSink",
    "ReadyBatch",
]
