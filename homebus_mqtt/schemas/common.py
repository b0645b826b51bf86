"""
Common Schema Types
==================

Bounded Context: Shared Data Structures

Types:
- Timestamp: Integer nanosecond epoch wrapper
"""

import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class Timestamp:
    """
    Immutable nanosecond epoch timestamp.

    Attributes:
        value: Nanoseconds since the Unix epoch

    Example:
        >>> ts = Timestamp.now()
        >>> ts.value
        1729352445123456789
    """
    value: int

    def __post_init__(self):
        """Validate invariants."""
        if not isinstance(self.value, int) or isinstance(self.value, bool):
            raise ValueError(f"Timestamp must be an integer, got {self.value!r}")
        if self.value < 0:
            raise ValueError(f"Timestamp must be >= 0, got {self.value}")

    @classmethod
    def now(cls) -> 'Timestamp':
        """Create timestamp from current wall-clock time."""
        return cls(value=time.time_ns())

    @classmethod
    def from_datetime(cls, dt: datetime) -> 'Timestamp':
        """Create timestamp from an aware datetime (naive is treated as UTC)."""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        delta = dt - _EPOCH
        return cls(value=(delta.days * 86_400 + delta.seconds) * 1_000_000_000
                   + delta.microseconds * 1_000)

    def to_datetime(self) -> datetime:
        """UTC datetime (microsecond precision)."""
        return _EPOCH + timedelta(microseconds=self.value // 1_000)

    def to_dict(self) -> int:
        """Serialize to JSON (as integer)."""
        return self.value
