"""Entry management commands: list, add, remove, clear."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer

from deferq.cli.console import (
    confirm_or_cancel,
    console,
    create_table,
    dim,
    error,
    format_countdown,
    success,
    warning,
)

if TYPE_CHECKING:
    from deferq.scheduling import ScheduleQueue


def _open_queue(ctx: typer.Context) -> ScheduleQueue:
    """Open the queue outside an event loop (recovery runs inline)."""
    from deferq.scheduling import ScheduleQueue

    queue_config = ctx.obj.config.queue
    return ScheduleQueue(queue_config.storage_dir, config=queue_config)


def _parse_at(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"Not an ISO-8601 timestamp: {value}") from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def register(app: typer.Typer) -> None:
    """Register the entry commands."""

    @app.command("list")
    def list_entries(ctx: typer.Context) -> None:
        """List pending entries in the storage directory."""
        queue = _open_queue(ctx)
        entries = queue.entries

        if not entries:
            warning(f"No scheduled entries in {queue.path}")
            return

        table = create_table(
            None,
            [("ID", "cyan"), ("Scheduled", ""), ("Due", ""), ("File", "dim")],
        )
        now = datetime.now(UTC)
        for entry in entries:
            table.add_row(
                entry.id,
                entry.scheduled_at.isoformat(timespec="milliseconds"),
                format_countdown(entry.scheduled_at, now),
                entry.storage_location.name,
            )

        console.print(table)
        dim(f"Total: {len(entries)} entr{'y' if len(entries) == 1 else 'ies'}")

    @app.command()
    def add(
        ctx: typer.Context,
        entry_id: Annotated[str, typer.Argument(help="Entry identifier")],
        at: Annotated[
            str | None,
            typer.Option("--at", help="ISO-8601 delivery time (UTC if naive)"),
        ] = None,
        delay: Annotated[
            float | None,
            typer.Option("--in", help="Delay in seconds from now"),
        ] = None,
        data: Annotated[
            str | None,
            typer.Option("--data", help="Payload text"),
        ] = None,
        file: Annotated[
            Path | None,
            typer.Option("--file", "-f", help="Read payload from file"),
        ] = None,
    ) -> None:
        """Schedule a payload for delivery."""
        from deferq.scheduling import ScheduleValidationError

        if (at is None) == (delay is None):
            error("Exactly one of --at or --in is required")
            raise typer.Exit(1)
        if data is not None and file is not None:
            error("Use either --data or --file, not both")
            raise typer.Exit(1)

        if at is not None:
            scheduled_at = _parse_at(at)
        else:
            scheduled_at = datetime.now(UTC) + timedelta(seconds=delay or 0)
        payload = file.read_bytes() if file is not None else (data or "").encode()

        queue = _open_queue(ctx)
        try:
            entry = asyncio.run(queue.save_node(entry_id, scheduled_at, payload))
        except ScheduleValidationError as e:
            error(str(e))
            raise typer.Exit(1) from None
        except OSError as e:
            error(f"Failed to write entry: {e}")
            raise typer.Exit(1) from None

        success(
            f"Scheduled {entry.id} for "
            f"{entry.scheduled_at.isoformat(timespec='milliseconds')} "
            f"({format_countdown(entry.scheduled_at)})"
        )

    @app.command()
    def remove(
        ctx: typer.Context,
        entry_id: Annotated[str, typer.Argument(help="Entry identifier")],
    ) -> None:
        """Remove every pending entry with the given ID."""
        queue = _open_queue(ctx)
        matches = [e for e in queue.entries if e.id == entry_id]
        if not matches:
            error(f"No entry found with ID {entry_id}")
            raise typer.Exit(1)

        async def do_remove() -> int:
            results = [await queue.remove_node(entry) for entry in matches]
            return sum(results)

        removed = asyncio.run(do_remove())
        if removed < len(matches):
            warning(f"Removed {removed} of {len(matches)} file(s) for {entry_id}")
        else:
            success(f"Removed {removed} entr{'y' if removed == 1 else 'ies'} for {entry_id}")

    @app.command()
    def clear(
        ctx: typer.Context,
        force: Annotated[
            bool,
            typer.Option("--force", "-f", help="Clear without confirmation"),
        ] = False,
    ) -> None:
        """Delete every file in the storage directory."""
        from deferq.scheduling import RemoveAllError

        queue = _open_queue(ctx)
        files = queue.store.list_all()
        if not files:
            warning("No files to clear")
            return

        if not confirm_or_cancel(
            f"This will delete {len(files)} file(s) in {queue.path}. Continue?", force
        ):
            return

        try:
            count = asyncio.run(queue.remove_all())
        except RemoveAllError as e:
            error(str(e))
            raise typer.Exit(1) from None
        success(f"Cleared {count} file(s)")
