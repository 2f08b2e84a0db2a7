"""Trigger loop: drains ready entries from the index on a fixed interval.

The loop owns its asyncio task and nothing else: it only queries the
in-memory index and publishes batches. Deleting the backing files of
delivered entries is left to whoever receives the batch.
"""

import asyncio
import logging
from datetime import UTC, datetime

from deferq.events.types import EventSink, ReadyBatch
from deferq.scheduling.index import SchedulingIndex

DEFAULT_INTERVAL = 1.0


class TriggerLoop:
    """Periodic tick that hands ready entries to a sink.

    Example:
        loop = TriggerLoop(index, bus, interval=1.0)
        loop.start()
        ...
        await loop.stop()
    """

    def __init__(
        self,
        index: SchedulingIndex,
        sink: EventSink | None = None,
        interval: float = DEFAULT_INTERVAL,
        logger: logging.Logger | None = None,
    ):
        self._index = index
        self._sink = sink
        self._interval = interval
        self._task: asyncio.Task | None = None
        self._tick_count = 0
        self._logger = logger or logging.getLogger(__name__)

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def armed(self) -> bool:
        return self._task is not None

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def start(self) -> None:
        """Arm the loop. Must be called from a running event loop."""
        if self._task is not None:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        self._logger.info(
            "trigger_loop_started", extra={"loop.interval": self._interval}
        )

    async def stop(self) -> None:
        """Disarm the loop. Safe to call when already stopped."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self._logger.info(
            "trigger_loop_stopped", extra={"loop.ticks": self._tick_count}
        )

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.tick()
            except Exception as e:
                self._logger.error(
                    "trigger_tick_error", extra={"error.message": str(e)}
                )

    async def tick(self, now: datetime | None = None) -> ReadyBatch | None:
        """Drain ready entries and publish them as one batch.

        Returns the published batch, or None when nothing was ready.
        """
        self._tick_count += 1
        ready = self._index.drain_ready(now or datetime.now(UTC))
        if not ready:
            return None

        batch = ReadyBatch(entries=ready)
        self._logger.info(
            "ready_batch_published",
            extra={"batch.size": len(ready), "batch.ids": [e.id for e in ready]},
        )
        if self._sink is not None:
            await self._sink.publish(batch)
        return batch
