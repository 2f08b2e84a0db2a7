"""Main CLI application."""

from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

import typer

from deferq.cli.commands import entries, watch
from deferq.config.models import ConfigError, DeferqConfig

app = typer.Typer(
    name="deferq",
    help="deferq - durable delayed-delivery queue",
    no_args_is_help=True,
)


@dataclass
class CLIState:
    """Resolved configuration shared with subcommands via ``ctx.obj``."""

    config: DeferqConfig

    @property
    def storage_dir(self) -> Path:
        return self.config.queue.storage_dir


@app.callback()
def main(
    ctx: typer.Context,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
        ),
    ] = None,
    storage_dir: Annotated[
        Path | None,
        typer.Option(
            "--dir",
            "-d",
            help="Storage directory (overrides config)",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging",
        ),
    ] = False,
) -> None:
    """Manage scheduled entries."""
    from deferq.cli.console import error
    from deferq.config import load_config
    from deferq.logging import configure_logging

    try:
        resolved = load_config(config)
    except (FileNotFoundError, ConfigError) as e:
        error(str(e))
        raise typer.Exit(1) from None

    if storage_dir is not None:
        resolved.queue.storage_dir = storage_dir.expanduser()

    configure_logging(
        level="DEBUG" if verbose else resolved.logging.level,
        use_rich=resolved.logging.use_rich,
        log_to_file=resolved.logging.log_to_file,
    )
    ctx.obj = CLIState(config=resolved)


entries.register(app)
watch.register(app)


if __name__ == "__main__":
    app()
