"""Text encoding and decoding of Postgres timestamps (DateStyle "ISO, MDY").

Values are ``datetime.datetime`` objects. Naive datetimes are treated as UTC.
Postgres can represent dates that Python cannot: years before 1 AD (sent with
a " BC" suffix) and years after 9999. Parsing such a value raises
``ValueError``.
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache

__all__ = [
    "INFINITY_TS_ENABLED_ALREADY",
    "INFINITY_TS_NEGATIVE_MUST_BE_SMALLER",
    "NullTime",
    "disable_infinity_ts",
    "enable_infinity_ts",
    "format_timestamp",
    "format_ts",
    "parse_timestamp",
    "parse_ts",
]

INFINITY_TS_ENABLED_ALREADY = "pq: infinity timestamp enabled already"
INFINITY_TS_NEGATIVE_MUST_BE_SMALLER = (
    "pq: infinity timestamp: negative value must be smaller (before) than positive"
)

_INVALID_TIMESTAMP = "invalid timestamp"
_NUMBER = re.compile(r"[+-]?[0-9]+")


class _InfinityBounds:
    """Process-wide mapping of "-infinity"/"infinity" to concrete datetimes."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.enabled = False
        self.negative: datetime | None = None
        self.positive: datetime | None = None


_infinity = _InfinityBounds()


def _as_aware(ts: datetime) -> datetime:
    return ts if ts.tzinfo is not None and ts.utcoffset() is not None else ts.replace(
        tzinfo=timezone.utc
    )


def enable_infinity_ts(negative: datetime, positive: datetime) -> None:
    """Decode and encode Postgres' -infinity/infinity as the given datetimes.

    Any datetime at or before ``negative`` is then encoded as "-infinity" and
    any at or after ``positive`` as "infinity". Raises RuntimeError if already
    enabled and ValueError if ``negative`` is not before ``positive``.
    """
    with _infinity.lock:
        if _infinity.enabled:
            raise RuntimeError(INFINITY_TS_ENABLED_ALREADY)
        if not _as_aware(negative) < _as_aware(positive):
            raise ValueError(INFINITY_TS_NEGATIVE_MUST_BE_SMALLER)
        _infinity.enabled = True
        _infinity.negative = negative
        _infinity.positive = positive


def disable_infinity_ts() -> None:
    """Turn off the infinity mapping set up by enable_infinity_ts."""
    with _infinity.lock:
        _infinity.enabled = False
        _infinity.negative = None
        _infinity.positive = None


@lru_cache(maxsize=None)
def _fixed_zone(offset: int) -> timezone:
    return timezone(timedelta(seconds=offset))


def _atoi(text: str, begin: int, end: int) -> int:
    if begin < 0 or end < 0 or begin > end or end > len(text):
        raise ValueError(_INVALID_TIMESTAMP)
    if not _NUMBER.fullmatch(text[begin:end]):
        raise ValueError(f"expected number; got '{text}'")
    return int(text[begin:end])


def _expect(text: str, char: str, pos: int) -> None:
    if pos + 1 > len(text) or pos < 0:
        raise ValueError(_INVALID_TIMESTAMP)
    if text[pos] != char:
        raise ValueError(f"expected '{char}' at position {pos}; got '{text[pos]}'")


def parse_timestamp(current_location: tzinfo | None, text: str) -> datetime:
    """Parse a timestamp in Postgres' text format.

    The result carries the server's fixed UTC offset, or ``current_location``
    when that zone agrees with the server on the offset at that instant.
    Raises ValueError on malformed input or unrepresentable dates.
    """
    mon_sep = text.find("-")
    # Gregorian year: 1 BC is followed by AD 1.
    year = _atoi(text, 0, mon_sep)
    day_sep = mon_sep + 3
    month = _atoi(text, mon_sep + 1, day_sep)
    _expect(text, "-", day_sep)
    time_sep = day_sep + 3
    day = _atoi(text, day_sep + 1, time_sep)

    min_len = mon_sep + len("01-01") + 1
    is_bc = text.endswith(" BC")
    if is_bc:
        min_len += 3

    hour = minute = second = 0
    if len(text) > min_len:
        _expect(text, " ", time_sep)
        min_sep = time_sep + 3
        _expect(text, ":", min_sep)
        hour = _atoi(text, time_sep + 1, min_sep)
        sec_sep = min_sep + 3
        _expect(text, ":", sec_sep)
        minute = _atoi(text, min_sep + 1, sec_sep)
        second = _atoi(text, sec_sep + 1, sec_sep + 3)

    # Optional, ordered sections follow: fraction, zone offset, BC marker.
    remainder = mon_sep + len("01-01 00:00:00") + 1
    nanos = 0
    tz_off = 0

    if remainder < len(text) and text[remainder] == ".":
        frac_start = remainder + 1
        frac_off = next(
            (i for i, ch in enumerate(text[frac_start:]) if ch in "-+Z "),
            len(text) - frac_start,
        )
        fraction = _atoi(text, frac_start, frac_start + frac_off)
        nanos = fraction * (1_000_000_000 // 10**frac_off)
        remainder += frac_off + 1

    tz_start = remainder
    if tz_start < len(text) and text[tz_start] in "-+":
        sign = -1 if text[tz_start] == "-" else 1
        tz_hours = _atoi(text, tz_start + 1, tz_start + 3)
        remainder += 3
        tz_min = tz_sec = 0
        if remainder < len(text) and text[remainder] == ":":
            tz_min = _atoi(text, remainder + 1, remainder + 3)
            remainder += 3
        if remainder < len(text) and text[remainder] == ":":
            tz_sec = _atoi(text, remainder + 1, remainder + 3)
            remainder += 3
        tz_off = sign * (tz_hours * 3600 + tz_min * 60 + tz_sec)
    elif tz_start < len(text) and text[tz_start] == "Z":
        remainder += 1

    if is_bc:
        iso_year = 1 - year
        remainder += 3
    else:
        iso_year = year
    if remainder < len(text):
        raise ValueError(f"expected end of input, got {text[remainder:]}")

    try:
        result = datetime(
            iso_year, month, day, hour, minute, second, nanos // 1000,
            tzinfo=_fixed_zone(tz_off),
        )
    except (ValueError, OverflowError) as exc:
        raise ValueError(f"timestamp {text!r} cannot be represented: {exc}") from exc

    if current_location is not None:
        local = result.astimezone(current_location)
        offset = local.utcoffset()
        if offset is not None and offset == timedelta(seconds=tz_off):
            result = local
    return result


def parse_ts(current_location: tzinfo | None, text: str) -> datetime | bytes:
    """Parse a timestamp, mapping -infinity/infinity when that is enabled.

    Without the mapping the infinities come back as the raw bytes.
    """
    if text in ("-infinity", "infinity"):
        with _infinity.lock:
            if _infinity.enabled:
                return _infinity.negative if text == "-infinity" else _infinity.positive
        return text.encode()
    return parse_timestamp(current_location, text)


def format_timestamp(ts: datetime) -> bytes:
    """Format a datetime in Postgres' text format for timestamps."""
    ts = _as_aware(ts)
    parts = [
        f"{ts.year:04d}-{ts.month:02d}-{ts.day:02d} "
        f"{ts.hour:02d}:{ts.minute:02d}:{ts.second:02d}"
    ]
    if ts.microsecond:
        parts.append(f".{ts.microsecond:06d}".rstrip("0"))

    offset = int(ts.utcoffset().total_seconds())  # type: ignore[union-attr]
    if offset == 0:
        parts.append("Z")
    else:
        sign = "-" if offset < 0 else "+"
        magnitude = abs(offset)
        parts.append(f"{sign}{magnitude // 3600:02d}:{magnitude % 3600 // 60:02d}")
        if magnitude % 60:
            parts.append(f":{magnitude % 60:02d}")
    return "".join(parts).encode()


def format_ts(ts: datetime) -> bytes:
    """Format a datetime, encoding the infinity bounds when enabled."""
    with _infinity.lock:
        if _infinity.enabled:
            aware = _as_aware(ts)
            if aware <= _as_aware(_infinity.negative):  # type: ignore[arg-type]
                return b"-infinity"
            if aware >= _as_aware(_infinity.positive):  # type: ignore[arg-type]
                return b"infinity"
    return format_timestamp(ts)


@dataclass
class NullTime:
    """A datetime that may be NULL."""

    time: datetime | None = None
    valid: bool = False

    def scan(self, value: object) -> None:
        """Take a value from the database; anything but a datetime means NULL."""
        if isinstance(value, datetime):
            self.time, self.valid = value, True
        else:
            self.time, self.valid = None, False

    def value(self) -> datetime | None:
        """Return the datetime to send, or None for NULL."""
        return self.time if self.valid else None