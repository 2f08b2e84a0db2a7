"""Event types published by the schedule queue.

Two notifications leave the queue:
- AckNode: acknowledgment of a saved submission, routed through an
  AckTransport under ``<ack_prefix><message_id>``
- ReadyBatch: every entry whose time has arrived on a given tick,
  published to an EventSink
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from deferq.scheduling.types import ScheduledEntry

READY_BATCH_EVENT = "schedule-node.send"


@dataclass(frozen=True)
class AckNode:
    """Minimal acknowledgment marker sent once a submission is stored."""

    tag: str = "ack-cache"
    attrs: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ReadyBatch:
    """Entries drained from the index on one tick."""

    entries: list[ScheduledEntry]
    name: str = READY_BATCH_EVENT

    def __len__(self) -> int:
        return len(self.entries)


@runtime_checkable
class EventSink(Protocol):
    """Anything that can receive ready batches."""

    async def publish(self, event: ReadyBatch) -> None: ...


@runtime_checkable
class AckTransport(Protocol):
    """Routes acknowledgments back to whoever submitted the payload."""

    def emit(self, event: str, node: AckNode) -> Any: ...


# Type for event handlers: async (event) -> None
EventHandler = Callable[[Any], Awaitable[None]]
