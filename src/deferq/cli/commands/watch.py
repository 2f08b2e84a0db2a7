"""Watch command: run the trigger loop in the foreground."""

from __future__ import annotations

import asyncio
from typing import Annotated

import typer

from deferq.cli.console import console, dim, success, warning


def register(app: typer.Typer) -> None:
    """Register the watch command."""

    @app.command()
    def watch(
        ctx: typer.Context,
        consume: Annotated[
            bool,
            typer.Option(
                "--consume",
                help="Delete delivered files after printing them",
            ),
        ] = False,
        interval: Annotated[
            float | None,
            typer.Option(
                "--interval",
                "-i",
                help="Seconds between ticks (overrides config)",
                min=0.01,
            ),
        ] = None,
        duration: Annotated[
            float | None,
            typer.Option(
                "--duration",
                help="Stop after this many seconds (default: run until Ctrl-C)",
            ),
        ] = None,
    ) -> None:
        """Print entries as they become ready."""
        from deferq.events import EventBus, ReadyBatch
        from deferq.scheduling import ScheduleQueue

        queue_config = ctx.obj.config.queue
        if interval is not None:
            queue_config = queue_config.model_copy(update={"poll_interval": interval})

        async def run() -> int:
            bus = EventBus()
            delivered = 0
            queue = ScheduleQueue(queue_config.storage_dir, bus=bus, config=queue_config)

            @bus.on(ReadyBatch)
            async def on_ready(batch: ReadyBatch) -> None:
                nonlocal delivered
                for entry in batch.entries:
                    try:
                        payload = await asyncio.to_thread(queue.read_payload, entry)
                    except OSError as e:
                        warning(f"skipped {entry.id}: {e}")
                        continue
                    size = len(payload)
                    console.print(
                        f"[green]ready[/green] {entry.id} "
                        f"scheduled={entry.scheduled_at.isoformat(timespec='milliseconds')} "
                        f"bytes={size}"
                    )
                    if consume:
                        await queue.remove_node(entry)
                    delivered += 1

            recovered = await queue.wait_recovered()
            dim(f"Watching {queue.path} ({len(recovered)} pending)")
            async with queue:
                if duration is None:
                    await asyncio.Event().wait()
                else:
                    await asyncio.sleep(duration)
            return delivered

        try:
            delivered = asyncio.run(run())
        except KeyboardInterrupt:
            return
        success(f"Delivered {delivered} entr{'y' if delivered == 1 else 'ies'}")
