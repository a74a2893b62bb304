"""Timestamp normalization for audit log exports.

The export writes timestamps as a packed ``yyyyMMddHHmmss`` digit run,
optionally followed by a decimal point and fractional seconds (e.g.
``20240115103045.1234567``). Separators and stray characters vary between
exports, so everything except digits and ``.`` is discarded before parsing.
Values are already UTC; no offset is read from the source.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime

# Sentinel used as ``transaction_date`` when a transaction has no parseable
# timestamp at all.
EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

_NON_NUMERIC_RE = re.compile(r"[^0-9.]")


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a packed numeric timestamp into an aware UTC ``datetime``.

    Only the first three fractional digits are used (milliseconds), padded
    with zeros when shorter. Returns ``None`` when fewer than 14 digits
    precede the decimal point or the calendar values are out of range.
    """

    if value is None:
        return None
    numeric = _NON_NUMERIC_RE.sub("", value)
    parts = numeric.split(".")
    main = parts[0]
    if len(main) < 14:
        return None

    fraction = parts[1] if len(parts) > 1 else "0"
    try:
        year = int(main[0:4])
        month = int(main[4:6])
        day = int(main[6:8])
        hour = int(main[8:10])
        minute = int(main[10:12])
        second = int(main[12:14])
        millisecond = int(fraction[:3].ljust(3, "0"))
        return datetime(
            year, month, day, hour, minute, second, millisecond * 1000, tzinfo=UTC
        )
    except ValueError:
        return None


def month_bucket(value: datetime) -> str:
    """Return the UTC ``YYYY-MM`` bucket for ``value``."""

    utc = value.astimezone(UTC)
    return f"{utc.year:04d}-{utc.month:02d}"


def to_iso(value: datetime | None) -> str | None:
    """Render ``value`` as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` (``None`` passes through)."""

    if value is None:
        return None
    utc = value.astimezone(UTC)
    return (
        f"{utc.year:04d}-{utc.month:02d}-{utc.day:02d}"
        f"T{utc.hour:02d}:{utc.minute:02d}:{utc.second:02d}"
        f".{utc.microsecond // 1000:03d}Z"
    )


__all__ = ["EPOCH", "month_bucket", "parse_timestamp", "to_iso"]
