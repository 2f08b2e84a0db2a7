"""deferq - durable delayed-delivery queue."""

from deferq.events import AckNode, EventBus, ReadyBatch
from deferq.scheduling import (
    RemoveAllError,
    ScheduledEntry,
    ScheduleQueue,
    ScheduleValidationError,
)

__version__ = "0.1.0"

__all__ = [
    "AckNode",
    "EventBus",
    "ReadyBatch",
    "RemoveAllError",
    "ScheduleQueue",
    "ScheduleValidationError",
    "ScheduledEntry",
]
