"""In-memory index of pending entries.

A plain ordered list: duplicate ids are allowed and coexist, since the
store is keyed by ``(id, scheduled_at)`` rather than by id alone. All
mutations go through one lock because recovery populates the index while
the public API may already be inserting.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from datetime import UTC, datetime

from deferq.scheduling.types import ScheduledEntry


class SchedulingIndex:
    def __init__(self) -> None:
        self._entries: list[ScheduledEntry] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[ScheduledEntry]:
        return iter(self.snapshot())

    def snapshot(self) -> list[ScheduledEntry]:
        with self._lock:
            return list(self._entries)

    def insert(self, entry: ScheduledEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def insert_if_absent(self, entry: ScheduledEntry) -> bool:
        """Insert unless an entry already tracks the same file.

        Recovery and a concurrent save can both observe one freshly written
        file; only the first of them gets to index it.
        """
        with self._lock:
            if any(
                e.storage_location == entry.storage_location for e in self._entries
            ):
                return False
            self._entries.append(entry)
            return True

    def remove_by_id(self, entry_id: str) -> bool:
        """Remove the first entry with ``entry_id``. Returns whether one was found."""
        with self._lock:
            for i, entry in enumerate(self._entries):
                if entry.id == entry_id:
                    del self._entries[i]
                    return True
            return False

    def remove_entry(self, entry: ScheduledEntry) -> bool:
        """Remove ``entry`` itself. Returns whether it was indexed.

        Matches on the file first, then on ``(id, scheduled_at)``. A pending
        entry that only shares the id is left alone, so removing an
        already-drained entry never unschedules its later duplicate.
        """
        with self._lock:
            for i, candidate in enumerate(self._entries):
                if candidate.storage_location == entry.storage_location:
                    del self._entries[i]
                    return True
            for i, candidate in enumerate(self._entries):
                if (candidate.id, candidate.scheduled_at) == (
                    entry.id,
                    entry.scheduled_at,
                ):
                    del self._entries[i]
                    return True
            return False

    def drain_ready(self, now: datetime | None = None) -> list[ScheduledEntry]:
        """Remove and return every entry whose scheduled time is before ``now``."""
        now = now or datetime.now(UTC)
        with self._lock:
            ready = [e for e in self._entries if e.is_ready(now)]
            if ready:
                self._entries = [e for e in self._entries if not e.is_ready(now)]
            return ready

    def clear(self) -> list[ScheduledEntry]:
        with self._lock:
            previous, self._entries = self._entries, []
            return previous
