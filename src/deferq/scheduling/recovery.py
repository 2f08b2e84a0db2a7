"""Recovery of pending entries from the storage directory.

Disk is the source of truth: on startup every file whose name decodes is
turned back into an index entry. Anything else in the directory is skipped
without complaint, since it may be unrelated or a leftover temp file.
"""

import asyncio
import logging
from pathlib import Path

from deferq.scheduling.index import SchedulingIndex
from deferq.scheduling.store import RecordStore
from deferq.scheduling.types import ScheduledEntry

logger = logging.getLogger(__name__)


def recover_entries(store: RecordStore, index: SchedulingIndex) -> list[ScheduledEntry]:
    """Synchronously rebuild index entries from disk. Returns what was inserted."""
    return _insert_decoded(store, index, store.list_all())


def _insert_decoded(
    store: RecordStore, index: SchedulingIndex, files: list[Path]
) -> list[ScheduledEntry]:
    recovered: list[ScheduledEntry] = []
    for file in files:
        decoded = store.decode_location(file)
        if decoded is None:
            logger.debug("recovery_skipped_file", extra={"file.path": str(file)})
            continue
        entry_id, scheduled_at = decoded
        entry = ScheduledEntry(
            id=entry_id, scheduled_at=scheduled_at, storage_location=file
        )
        if index.insert_if_absent(entry):
            recovered.append(entry)
    return recovered


class RecoveryLoader:
    """Runs recovery once, off the caller's path.

    ``start()`` schedules the load on the running event loop and returns
    immediately; ``wait()`` awaits its completion.
    """

    def __init__(
        self,
        store: RecordStore,
        index: SchedulingIndex,
        logger: logging.Logger | None = None,
    ):
        self._store = store
        self._index = index
        self._logger = logger or logging.getLogger(__name__)
        self._task: asyncio.Task | None = None
        self._recovered: list[ScheduledEntry] | None = None

    @property
    def done(self) -> bool:
        return self._recovered is not None

    @property
    def recovered(self) -> list[ScheduledEntry]:
        return list(self._recovered or [])

    def start(self) -> None:
        if self._task is not None or self._recovered is not None:
            return
        self._task = asyncio.get_running_loop().create_task(self.load())

    def run_sync(self) -> list[ScheduledEntry]:
        """Recover inline, for callers without an event loop."""
        if self._recovered is None:
            try:
                files = self._store.list_all()
            except OSError as e:
                files = self._listing_failed(e)
            self._finish(_insert_decoded(self._store, self._index, files))
        return self.recovered

    async def load(self) -> list[ScheduledEntry]:
        if self._recovered is not None:
            return self.recovered
        try:
            files = await asyncio.to_thread(self._store.list_all)
        except OSError as e:
            files = self._listing_failed(e)
        self._finish(_insert_decoded(self._store, self._index, files))
        return self.recovered

    async def wait(self) -> list[ScheduledEntry]:
        if self._task is not None:
            await asyncio.shield(self._task)
        return self.recovered

    def _listing_failed(self, error: OSError) -> list[Path]:
        self._logger.warning(
            "recovery_listing_failed",
            extra={
                "file.path": str(self._store.directory),
                "error.message": str(error),
            },
        )
        return []

    def _finish(self, recovered: list[ScheduledEntry]) -> None:
        self._recovered = recovered
        self._logger.info(
            "recovery_completed",
            extra={
                "recovery.count": len(recovered),
                "file.path": str(self._store.directory),
            },
        )
