"""Schedule errors."""

from __future__ import annotations

from pathlib import Path


class ScheduleError(Exception):
    """Base class for schedule queue errors."""


class ScheduleValidationError(ScheduleError, ValueError):
    """Raised when a save request is rejected before any I/O happens."""


class RemoveAllError(ScheduleError, OSError):
    """Raised when one or more files could not be deleted during a bulk clear.

    Every file is attempted; ``failures`` holds the ones that were left behind.
    """

    def __init__(self, failures: list[tuple[Path, OSError]]) -> None:
        self.failures = failures
        names = ", ".join(path.name for path, _ in failures)
        super().__init__(f"Failed to delete {len(failures)} file(s): {names}")
