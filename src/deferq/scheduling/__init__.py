"""Scheduling subsystem: durable delayed delivery.

Public API:
- ScheduleQueue: save/remove/clear over a storage directory
- RecordStore: One file per entry, named <id>-<epochMillis>.<ext>
- SchedulingIndex: In-memory list of pending entries
- TriggerLoop: Polling loop that drains ready entries to a sink
- RecoveryLoader: Rebuilds the index from disk at startup

Types:
- ScheduledEntry: A pending entry (id, scheduled time, file)
"""

from deferq.scheduling.errors import (
    RemoveAllError,
    ScheduleError,
    ScheduleValidationError,
)
from deferq.scheduling.index import SchedulingIndex
from deferq.scheduling.queue import ScheduleQueue
from deferq.scheduling.recovery import RecoveryLoader, recover_entries
from deferq.scheduling.store import RecordStore
from deferq.scheduling.types import ScheduledEntry
from deferq.scheduling.watcher import TriggerLoop

__all__ = [
    "RecordStore",
    "RecoveryLoader",
    "RemoveAllError",
    "ScheduleError",
    "ScheduleQueue",
    "ScheduleValidationError",
    "ScheduledEntry",
    "SchedulingIndex",
    "TriggerLoop",
    "recover_entries",
]
