"""Schedule types.

Public types:
- ScheduledEntry: A pending entry tracked by the scheduling index
- to_epoch_millis / from_epoch_millis: Conversions used by the on-disk names
"""

import math
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path

from deferq.scheduling.errors import ScheduleValidationError

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def to_epoch_millis(value: datetime) -> int:
    """Convert an aware datetime to integer milliseconds since the epoch."""
    delta = value - EPOCH
    return (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000


def from_epoch_millis(millis: int) -> datetime:
    """Convert epoch milliseconds back to an aware UTC datetime."""
    return EPOCH + timedelta(milliseconds=millis)


def normalize_timestamp(value: object) -> datetime:
    """Coerce a caller-supplied time value into a UTC datetime.

    Accepts aware or naive datetimes (naive values are taken as UTC) and
    finite epoch-millisecond numbers. The result is truncated to millisecond
    precision so it survives the trip through a file name unchanged.

    Raises:
        ScheduleValidationError: If the value is not a usable point in time.
    """
    if isinstance(value, bool):
        raise ScheduleValidationError("Timestamp invalid in schedule queue")

    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        value = value.astimezone(UTC)
    elif isinstance(value, int | float):
        if not math.isfinite(value):
            raise ScheduleValidationError("Timestamp invalid in schedule queue")
        try:
            value = from_epoch_millis(int(value))
        except (OverflowError, OSError, ValueError) as e:
            raise ScheduleValidationError(
                "Timestamp invalid in schedule queue"
            ) from e
    else:
        raise ScheduleValidationError("Timestamp invalid in schedule queue")

    if value < EPOCH:
        raise ScheduleValidationError("Timestamp before the epoch in schedule queue")

    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


@dataclass(frozen=True)
class ScheduledEntry:
    """A pending delayed-delivery record.

    The payload itself stays on disk at ``storage_location`` until a
    consumer reads it.
    """

    id: str
    scheduled_at: datetime
    storage_location: Path

    def is_ready(self, now: datetime | None = None) -> bool:
        """Ready once the current time is strictly past ``scheduled_at``."""
        now = now or datetime.now(UTC)
        return now > self.scheduled_at

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "scheduled_at": self.scheduled_at.isoformat(),
            "storage_location": str(self.storage_location),
        }
