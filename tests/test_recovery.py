"""Tests for startup recovery from the storage directory."""

from datetime import UTC, datetime
from pathlib import Path

import pytest

from deferq.scheduling.index import SchedulingIndex
from deferq.scheduling.recovery import RecoveryLoader, recover_entries
from deferq.scheduling.store import RecordStore


def _populate(store: RecordStore) -> list[tuple[str, datetime]]:
    valid = [
        ("m1", datetime(2026, 1, 1, tzinfo=UTC)),
        ("m2", datetime(2026, 1, 2, 3, 4, 5, 6000, tzinfo=UTC)),
        ("with-dash", datetime(2030, 6, 1, tzinfo=UTC)),
    ]
    for entry_id, at in valid:
        store.write(entry_id, at, entry_id.encode())

    malformed = ["notes.txt", "m3.msg", "m4-abc.msg", ".m5-1.msg.tmp"]
    for name in malformed:
        (store.directory / name).write_bytes(b"junk")
    return valid


class TestRecoverEntries:
    def test_rebuilds_valid_and_skips_malformed(
        self, store: RecordStore, index: SchedulingIndex
    ):
        valid = _populate(store)

        recovered = recover_entries(store, index)

        assert sorted((e.id, e.scheduled_at) for e in recovered) == sorted(valid)
        assert len(index) == len(valid)
        for entry in recovered:
            assert entry.storage_location == store.encode_location(
                entry.id, entry.scheduled_at
            )

    def test_empty_directory(self, store: RecordStore, index: SchedulingIndex):
        assert recover_entries(store, index) == []
        assert len(index) == 0

    def test_does_not_reindex_known_files(
        self, store: RecordStore, index: SchedulingIndex
    ):
        _populate(store)
        recover_entries(store, index)

        assert recover_entries(store, index) == []
        assert len(index) == 3


class TestRecoveryLoader:
    @pytest.mark.asyncio
    async def test_start_runs_in_background(
        self, store: RecordStore, index: SchedulingIndex
    ):
        _populate(store)
        loader = RecoveryLoader(store, index)

        loader.start()
        assert loader.done is False

        recovered = await loader.wait()

        assert loader.done is True
        assert len(recovered) == 3
        assert len(index) == 3

    @pytest.mark.asyncio
    async def test_start_twice_loads_once(
        self, store: RecordStore, index: SchedulingIndex
    ):
        _populate(store)
        loader = RecoveryLoader(store, index)

        loader.start()
        loader.start()
        await loader.wait()

        assert len(index) == 3

    def test_run_sync(self, store: RecordStore, index: SchedulingIndex):
        _populate(store)
        loader = RecoveryLoader(store, index)

        assert len(loader.run_sync()) == 3
        assert len(loader.run_sync()) == 3
        assert len(index) == 3

    @pytest.mark.asyncio
    async def test_wait_without_start(self, tmp_path: Path, index: SchedulingIndex):
        loader = RecoveryLoader(RecordStore(tmp_path), index)
        assert await loader.wait() == []

    @pytest.mark.asyncio
    async def test_listing_failure_is_not_fatal(
        self, store: RecordStore, index: SchedulingIndex, monkeypatch: pytest.MonkeyPatch
    ):
        def fail_listing() -> list[Path]:
            raise PermissionError("denied")

        monkeypatch.setattr(store, "list_all", fail_listing)
        loader = RecoveryLoader(store, index)

        loader.start()

        assert await loader.wait() == []
        assert loader.done is True
        assert loader.run_sync() == []
