"""Schedule queue: durable delayed delivery.

Wires the record store, the scheduling index, recovery and the trigger
loop together behind save/remove/clear. Disk is the source of truth and
the index is a cache of it:

- save_node: validate -> write file -> index -> acknowledge
- remove_node: unindex -> delete file (best-effort)
- remove_all: clear index -> delete every file in the directory

Ready entries leave the index when the trigger loop drains them, but
their files stay on disk until the consumer calls remove_node().
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from types import TracebackType

from deferq.config.models import QueueConfig
from deferq.events.types import AckNode, AckTransport, EventSink
from deferq.scheduling.errors import RemoveAllError, ScheduleValidationError
from deferq.scheduling.index import SchedulingIndex
from deferq.scheduling.recovery import RecoveryLoader
from deferq.scheduling.store import RecordStore
from deferq.scheduling.types import ScheduledEntry, normalize_timestamp
from deferq.scheduling.watcher import TriggerLoop

_FORBIDDEN_ID_CHARS = ("/", "\\", "\x00", "\n", "\r")


def _validate_id(entry_id: object) -> str:
    if not isinstance(entry_id, str) or not entry_id:
        raise ScheduleValidationError("ID invalid in schedule queue")
    if any(ch in entry_id for ch in _FORBIDDEN_ID_CHARS):
        raise ScheduleValidationError(
            f"ID must not contain path separators or line breaks: {entry_id!r}"
        )
    return entry_id


def _validate_payload(payload: object) -> bytes:
    if not isinstance(payload, bytes | bytearray | memoryview):
        raise ScheduleValidationError(
            f"Payload must be bytes, got {type(payload).__name__}"
        )
    return bytes(payload)


class ScheduleQueue:
    """Durable delayed-delivery queue over one storage directory.

    Example:
        bus = EventBus()

        @bus.on(ReadyBatch)
        async def deliver(batch: ReadyBatch):
            for entry in batch.entries:
                send(queue.read_payload(entry))
                await queue.remove_node(entry)

        queue = ScheduleQueue(Path("~/.deferq/spool"), bus=bus)
        async with queue:
            await queue.save_node("m1", datetime.now(UTC) + timedelta(seconds=5), b"...")
    """

    def __init__(
        self,
        path: Path | str,
        *,
        logger: logging.Logger | None = None,
        bus: EventSink | None = None,
        transport: AckTransport | None = None,
        config: QueueConfig | None = None,
    ):
        self._config = config or QueueConfig(storage_dir=Path(path))
        self._logger = logger or logging.getLogger(__name__)
        self._bus = bus
        self._transport = transport

        self._store = RecordStore(Path(path).expanduser(), self._config.extension)
        self._store.ensure_directory()
        self._index = SchedulingIndex()
        self._trigger = TriggerLoop(
            self._index,
            sink=bus,
            interval=self._config.poll_interval,
            logger=self._logger,
        )

        self._recovery = RecoveryLoader(self._store, self._index, logger=self._logger)
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            self._recovery.run_sync()
        else:
            self._recovery.start()

    @property
    def path(self) -> Path:
        return self._store.directory

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def index(self) -> SchedulingIndex:
        return self._index

    @property
    def trigger(self) -> TriggerLoop:
        return self._trigger

    @property
    def entries(self) -> list[ScheduledEntry]:
        """Snapshot of pending entries, in insertion order."""
        return self._index.snapshot()

    async def wait_recovered(self) -> list[ScheduledEntry]:
        """Wait for startup recovery and return the entries it found."""
        return await self._recovery.wait()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        self._trigger.start()

    async def stop(self) -> None:
        await self._trigger.stop()

    async def __aenter__(self) -> ScheduleQueue:
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    async def save_node(
        self,
        entry_id: str,
        scheduled_at: datetime | int | float,
        payload: bytes,
        message_id: str | None = None,
    ) -> ScheduledEntry:
        """Persist a payload and schedule it.

        The file is written before the entry is indexed or acknowledged, so
        an acknowledged entry is always on disk.

        Args:
            entry_id: Caller-supplied identifier. Duplicates are allowed.
            scheduled_at: Not-before instant (datetime or epoch milliseconds).
            payload: Opaque bytes stored in the file.
            message_id: Identifier used for the acknowledgment; defaults to
                ``entry_id``.

        Raises:
            ScheduleValidationError: If the id, time or payload is invalid.
            OSError: If the file could not be written.
        """
        scheduled_at = normalize_timestamp(scheduled_at)
        entry_id = _validate_id(entry_id)
        data = _validate_payload(payload)

        location = await asyncio.to_thread(
            self._store.write, entry_id, scheduled_at, data
        )
        entry = ScheduledEntry(
            id=entry_id, scheduled_at=scheduled_at, storage_location=location
        )
        self._index.insert_if_absent(entry)
        self._acknowledge(message_id or entry_id)
        self._logger.info(
            "schedule_node_saved",
            extra={
                "schedule.entry_id": entry_id,
                "schedule.scheduled_at": scheduled_at.isoformat(),
                "file.path": str(location),
            },
        )
        return entry

    async def remove_node(self, entry: ScheduledEntry) -> bool:
        """Unindex an entry and delete its file.

        A failed delete is logged, never raised. Returns whether the file
        was deleted.
        """
        self._index.remove_entry(entry)
        try:
            await asyncio.to_thread(self._store.delete, entry.storage_location)
        except OSError as e:
            self._logger.error(
                "remove_node_failed",
                extra={
                    "schedule.entry_id": entry.id,
                    "file.path": str(entry.storage_location),
                    "error.message": str(e),
                },
            )
            return False
        self._logger.info(
            "schedule_node_removed",
            extra={
                "schedule.entry_id": entry.id,
                "file.path": str(entry.storage_location),
            },
        )
        return True

    async def remove_all(self) -> int:
        """Clear the index and delete every file in the storage directory.

        Every file is attempted even if some fail.

        Returns:
            Number of files deleted.

        Raises:
            RemoveAllError: If any file could not be deleted.
        """
        self._index.clear()
        files = await asyncio.to_thread(self._store.list_all)

        deleted = 0
        failures: list[tuple[Path, OSError]] = []
        for file in files:
            try:
                await asyncio.to_thread(self._store.delete, file)
            except OSError as e:
                failures.append((file, e))
                continue
            deleted += 1
            self._logger.info("schedule_file_removed", extra={"file.path": str(file)})

        if failures:
            self._logger.error(
                "remove_all_failed",
                extra={
                    "remove.deleted": deleted,
                    "remove.failed": [str(path) for path, _ in failures],
                },
            )
            raise RemoveAllError(failures)
        return deleted

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    def read_payload(self, entry: ScheduledEntry) -> bytes:
        """Read the stored payload for an entry (at delivery time)."""
        return self._store.read(entry.storage_location)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _acknowledge(self, message_id: str) -> None:
        if self._transport is None:
            return
        correlation_id = f"{self._config.ack_prefix}{message_id}"
        # The entry is already stored; a broken transport must not fail the save.
        try:
            self._transport.emit(correlation_id, AckNode(tag=self._config.ack_tag))
        except Exception as e:
            self._logger.error(
                "schedule_ack_failed",
                extra={"ack.correlation_id": correlation_id, "error.message": str(e)},
            )
