"""Tests for the trigger loop."""

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from deferq.events import EventBus, ReadyBatch
from deferq.scheduling.index import SchedulingIndex
from deferq.scheduling.watcher import DEFAULT_INTERVAL, TriggerLoop
from tests.conftest import RecordingSink, make_entry


class TestTick:
    """Tests for a single tick."""

    @pytest.mark.asyncio
    async def test_publishes_ready_entries(
        self, index: SchedulingIndex, sink: RecordingSink, now, past, future
    ):
        due = make_entry("due", past)
        later = make_entry("later", future)
        index.insert(due)
        index.insert(later)
        loop = TriggerLoop(index, sink)

        batch = await loop.tick(now)

        assert batch is not None
        assert batch.entries == [due]
        assert batch.name == "schedule-node.send"
        assert sink.batches == [batch]
        assert index.snapshot() == [later]

    @pytest.mark.asyncio
    async def test_empty_tick_publishes_nothing(
        self, index: SchedulingIndex, sink: RecordingSink, now, future
    ):
        index.insert(make_entry("later", future))
        loop = TriggerLoop(index, sink)

        assert await loop.tick(now) is None
        assert sink.batches == []
        assert loop.tick_count == 1

    @pytest.mark.asyncio
    async def test_one_batch_per_tick(
        self, index: SchedulingIndex, sink: RecordingSink, now, past
    ):
        for i in range(3):
            index.insert(make_entry(f"m{i}", past + timedelta(seconds=i)))
        loop = TriggerLoop(index, sink)

        await loop.tick(now)
        await loop.tick(now)

        assert len(sink.batches) == 1
        assert [e.id for e in sink.batches[0].entries] == ["m0", "m1", "m2"]

    @pytest.mark.asyncio
    async def test_without_sink_still_drains(self, index: SchedulingIndex, now, past):
        index.insert(make_entry("due", past))
        loop = TriggerLoop(index)

        batch = await loop.tick(now)

        assert batch is not None
        assert len(index) == 0

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_break_bus(
        self, index: SchedulingIndex, now, past
    ):
        bus = EventBus()
        received: list[ReadyBatch] = []

        @bus.on(ReadyBatch)
        async def broken(batch: ReadyBatch):
            raise RuntimeError("boom")

        @bus.on(ReadyBatch)
        async def ok(batch: ReadyBatch):
            received.append(batch)

        index.insert(make_entry("due", past))
        await TriggerLoop(index, bus).tick(now)

        assert len(received) == 1


class TestLifecycle:
    """Tests for start/stop."""

    def test_initially_stopped(self, index: SchedulingIndex):
        loop = TriggerLoop(index)
        assert loop.armed is False
        assert loop.interval == DEFAULT_INTERVAL == 1.0

    @pytest.mark.asyncio
    async def test_start_stop(self, index: SchedulingIndex):
        loop = TriggerLoop(index, interval=0.01)

        loop.start()
        assert loop.armed is True

        await loop.stop()
        assert loop.armed is False

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, index: SchedulingIndex):
        loop = TriggerLoop(index, interval=0.01)

        await loop.stop()
        loop.start()
        await loop.stop()
        await loop.stop()

        assert loop.armed is False

    @pytest.mark.asyncio
    async def test_double_start_keeps_one_task(self, index: SchedulingIndex):
        loop = TriggerLoop(index, interval=0.01)
        loop.start()
        task = loop._task
        loop.start()

        assert loop._task is task
        await loop.stop()

    @pytest.mark.asyncio
    async def test_armed_loop_delivers(
        self, index: SchedulingIndex, sink: RecordingSink, past
    ):
        loop = TriggerLoop(index, sink, interval=0.01)
        index.insert(make_entry("due", past))

        loop.start()
        await asyncio.sleep(0.1)
        await loop.stop()

        assert [e.id for e in sink.entries] == ["due"]
        assert loop.tick_count >= 2

    @pytest.mark.asyncio
    async def test_no_ticks_after_stop(
        self, index: SchedulingIndex, sink: RecordingSink, past
    ):
        loop = TriggerLoop(index, sink, interval=0.01)
        loop.start()
        await loop.stop()

        index.insert(make_entry("due", past))
        await asyncio.sleep(0.05)

        assert sink.batches == []
        assert len(index) == 1

    @pytest.mark.asyncio
    async def test_entry_fires_after_its_time(
        self, index: SchedulingIndex, sink: RecordingSink
    ):
        loop = TriggerLoop(index, sink, interval=0.02)
        index.insert(make_entry("soon", datetime.now(UTC) + timedelta(seconds=0.2)))

        loop.start()
        await asyncio.sleep(0.1)
        assert sink.batches == []

        await asyncio.sleep(0.3)
        await loop.stop()

        assert [e.id for e in sink.entries] == ["soon"]
        assert len(index) == 0
