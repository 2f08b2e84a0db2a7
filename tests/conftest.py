"""Shared test fixtures and factories."""

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from deferq.events import AckNode, ReadyBatch
from deferq.scheduling import RecordStore, ScheduledEntry, SchedulingIndex

# =============================================================================
# Notification doubles
# =============================================================================


class RecordingSink:
    """EventSink that keeps every published batch."""

    def __init__(self):
        self.batches: list[ReadyBatch] = []

    async def publish(self, event: ReadyBatch) -> None:
        self.batches.append(event)

    @property
    def entries(self) -> list[ScheduledEntry]:
        return [entry for batch in self.batches for entry in batch.entries]


class RecordingTransport:
    """AckTransport that keeps every emitted acknowledgment."""

    def __init__(self):
        self.emitted: list[tuple[str, AckNode]] = []

    def emit(self, event: str, node: AckNode) -> bool:
        self.emitted.append((event, node))
        return True


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


# =============================================================================
# Storage Fixtures
# =============================================================================


@pytest.fixture
def spool_dir(tmp_path: Path) -> Path:
    return tmp_path / "spool"


@pytest.fixture
def store(spool_dir: Path) -> RecordStore:
    store = RecordStore(spool_dir)
    store.ensure_directory()
    return store


@pytest.fixture
def index() -> SchedulingIndex:
    return SchedulingIndex()


def make_entry(
    entry_id: str,
    scheduled_at: datetime,
    directory: Path = Path("/spool"),
) -> ScheduledEntry:
    """Build an entry whose location follows the store's naming scheme."""
    return ScheduledEntry(
        id=entry_id,
        scheduled_at=scheduled_at,
        storage_location=RecordStore(directory).encode_location(entry_id, scheduled_at),
    )


def at_millis(dt: datetime) -> datetime:
    """Truncate a datetime to the millisecond precision used on disk."""
    return dt.replace(microsecond=(dt.microsecond // 1000) * 1000)


@pytest.fixture
def now() -> datetime:
    return at_millis(datetime.now(UTC))


@pytest.fixture
def past(now: datetime) -> datetime:
    return now - timedelta(hours=1)


@pytest.fixture
def future(now: datetime) -> datetime:
    return now + timedelta(hours=1)
