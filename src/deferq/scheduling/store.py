"""File-per-entry record store.

Each scheduled entry is a single file named ``<id>-<epochMillis>.<ext>``
inside the storage directory. The name is the only metadata: the id and
the scheduled time are recovered by parsing it, and the file body is the
opaque payload.

Writes use a dot-prefixed temp file + os.replace(), so a crash mid-write
never leaves a partial file under a name recovery would pick up.
"""

from __future__ import annotations

import logging
import os
import re
from datetime import datetime
from pathlib import Path

from deferq.scheduling.types import from_epoch_millis, to_epoch_millis

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = "msg"


class RecordStore:
    """Translates scheduled entries to and from files in one directory."""

    def __init__(self, directory: Path, extension: str = DEFAULT_EXTENSION) -> None:
        self._directory = Path(directory)
        self._extension = extension.lstrip(".")
        self._pattern = re.compile(
            rf"(.+)-(\d+)\.{re.escape(self._extension)}", re.DOTALL
        )

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def extension(self) -> str:
        return self._extension

    def ensure_directory(self) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Naming
    # ------------------------------------------------------------------

    def encode_location(self, entry_id: str, scheduled_at: datetime) -> Path:
        """Build the storage path for ``(entry_id, scheduled_at)``. No I/O."""
        millis = to_epoch_millis(scheduled_at)
        return self._directory / f"{entry_id}-{millis}.{self._extension}"

    def decode_location(self, location: Path | str) -> tuple[str, datetime] | None:
        """Parse a storage path back into ``(entry_id, scheduled_at)``.

        Returns None for any name that does not follow the naming scheme.
        """
        name = Path(location).name
        match = self._pattern.fullmatch(name)
        if match is None:
            return None
        try:
            scheduled_at = from_epoch_millis(int(match.group(2)))
        except (OverflowError, ValueError):
            return None
        return match.group(1), scheduled_at

    # ------------------------------------------------------------------
    # File operations
    # ------------------------------------------------------------------

    def write(self, entry_id: str, scheduled_at: datetime, payload: bytes) -> Path:
        """Create or overwrite the file for an entry.

        Raises:
            OSError: If the storage medium rejects the write.
        """
        location = self.encode_location(entry_id, scheduled_at)
        temp_file = location.with_name(f".{location.name}.tmp")
        try:
            with temp_file.open("wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_file, location)
        except OSError:
            # Clean up temp file on failure
            temp_file.unlink(missing_ok=True)
            raise
        return location

    def read(self, location: Path) -> bytes:
        return Path(location).read_bytes()

    def delete(self, location: Path) -> None:
        """Remove the backing file.

        Raises:
            OSError: If the file could not be removed.
        """
        Path(location).unlink()

    def list_all(self) -> list[Path]:
        """List every regular file in the storage directory, sorted by name."""
        if not self._directory.exists():
            return []
        return sorted(p for p in self._directory.iterdir() if p.is_file())
