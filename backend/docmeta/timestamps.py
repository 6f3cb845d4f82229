"""
UTC instants with nanosecond precision and their stored string form.

Stored form is ISO-8601 extended with a fixed 9-digit fraction
(`2024-01-15T10:30:00.123456789Z`) so that string order equals time order,
which is what the engine compares for `createdAt` ranges and `updatedAt`
filters. Parsing accepts 0-9 fractional digits.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

_NANOS_PER_SECOND = 1_000_000_000
_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# 0001-01-01T00:00:00Z .. 9999-12-31T23:59:59Z, the span a 4-digit year can encode.
_MIN_EPOCH_SECOND = -62_135_596_800
_MAX_EPOCH_SECOND = 253_402_300_799

_ISO_RE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})T(?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<frac>\d{1,9}))?(?P<tz>Z|\+00:00)$"
)


@dataclass(frozen=True, slots=True, order=True)
class Instant:
    epoch_seconds: int
    nanos: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.nanos < _NANOS_PER_SECOND:
            raise ValueError(f"nanos out of range: {self.nanos}")
        if not _MIN_EPOCH_SECOND <= self.epoch_seconds <= _MAX_EPOCH_SECOND:
            raise ValueError(f"instant outside years 1-9999: epoch second {self.epoch_seconds}")

    @classmethod
    def of_epoch_second(cls, seconds: int, nanos: int = 0) -> Instant:
        extra, nanos = divmod(int(nanos), _NANOS_PER_SECOND)
        return cls(int(seconds) + extra, nanos)

    @classmethod
    def now(cls) -> Instant:
        total = time.time_ns()
        return cls(total // _NANOS_PER_SECOND, total % _NANOS_PER_SECOND)

    @classmethod
    def from_datetime(cls, dt: datetime) -> Instant:
        if dt.tzinfo is None:
            raise ValueError("datetime must be timezone-aware")
        delta = dt.astimezone(timezone.utc) - _UNIX_EPOCH
        seconds = delta.days * 86_400 + delta.seconds
        return cls(seconds, delta.microseconds * 1_000)

    @classmethod
    def parse(cls, text: str) -> Instant:
        m = _ISO_RE.match(str(text or "").strip())
        if not m:
            raise ValueError(f"Invalid ISO-8601 instant: {text!r}")
        base = datetime.fromisoformat(f"{m['date']}T{m['time']}+00:00")
        frac = m["frac"] or ""
        nanos = int(frac.ljust(9, "0")) if frac else 0
        return cls(cls.from_datetime(base).epoch_seconds, nanos)

    def to_datetime(self) -> datetime:
        # datetime stops at microseconds; the sub-microsecond part is dropped.
        return _UNIX_EPOCH + timedelta(seconds=self.epoch_seconds, microseconds=self.nanos // 1_000)

    def isoformat(self) -> str:
        dt = _UNIX_EPOCH + timedelta(seconds=self.epoch_seconds)
        # strftime("%Y") does not zero-pad years below 1000 on every platform.
        return (
            f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d}"
            f"T{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}.{self.nanos:09d}Z"
        )

    def _total_nanos(self) -> int:
        return self.epoch_seconds * _NANOS_PER_SECOND + self.nanos

    def __add__(self, other: timedelta) -> Instant:
        if not isinstance(other, timedelta):
            return NotImplemented
        delta = (other.days * 86_400 + other.seconds) * _NANOS_PER_SECOND + other.microseconds * 1_000
        return Instant.of_epoch_second(0, self._total_nanos() + delta)

    def __sub__(self, other: timedelta) -> Instant:
        if not isinstance(other, timedelta):
            return NotImplemented
        return self + (-other)

    def __str__(self) -> str:
        return self.isoformat()


EPOCH = Instant(0, 0)


def encode_instant(value: Instant | None) -> str | None:
    """Instant -> stored string. None stays None (written as the engine's NULL type)."""
    if value is None:
        return None
    return value.isoformat()


def decode_instant(value: str | None) -> Instant | None:
    if value is None:
        return None
    return Instant.parse(value)
