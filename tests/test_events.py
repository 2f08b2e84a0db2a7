"""Tests for the event bus and event types."""

import pytest

from deferq.events import AckNode, AckTransport, EventBus, EventSink, ReadyBatch
from tests.conftest import RecordingSink, RecordingTransport, make_entry


class TestEventBus:
    @pytest.mark.asyncio
    async def test_dispatches_by_type(self, past):
        bus = EventBus()
        batches: list[ReadyBatch] = []
        acks: list[AckNode] = []

        @bus.on(ReadyBatch)
        async def on_batch(event: ReadyBatch):
            batches.append(event)

        async def on_ack(event: AckNode):
            acks.append(event)

        bus.subscribe(AckNode, on_ack)

        batch = ReadyBatch(entries=[make_entry("m1", past)])
        await bus.publish(batch)

        assert batches == [batch]
        assert acks == []

    @pytest.mark.asyncio
    async def test_handlers_run_in_order(self):
        bus = EventBus()
        calls: list[str] = []

        async def first(event):
            calls.append("first")

        async def second(event):
            calls.append("second")

        bus.subscribe(ReadyBatch, first)
        bus.subscribe(ReadyBatch, second)
        await bus.publish(ReadyBatch(entries=[]))

        assert calls == ["first", "second"]

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        bus = EventBus()
        calls: list[object] = []

        async def handler(event):
            calls.append(event)

        bus.subscribe(ReadyBatch, handler)
        assert bus.handler_count(ReadyBatch) == 1
        assert bus.unsubscribe(ReadyBatch, handler) is True
        assert bus.unsubscribe(ReadyBatch, handler) is False

        await bus.publish(ReadyBatch(entries=[]))
        assert calls == []

    @pytest.mark.asyncio
    async def test_publish_without_handlers(self):
        await EventBus().publish(ReadyBatch(entries=[]))


class TestProtocols:
    def test_bus_is_sink(self):
        assert isinstance(EventBus(), EventSink)

    def test_doubles_satisfy_protocols(self):
        assert isinstance(RecordingSink(), EventSink)
        assert isinstance(RecordingTransport(), AckTransport)

    def test_ack_node_defaults(self):
        assert AckNode() == AckNode(tag="ack-cache", attrs={})

    def test_ready_batch_len(self, past):
        batch = ReadyBatch(entries=[make_entry("a", past), make_entry("b", past)])
        assert len(batch) == 2
