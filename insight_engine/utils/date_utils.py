"""Date manipulation utilities"""

from datetime import date, datetime, timezone
from typing import Any, Mapping, Optional

from dateutil import parser as date_parser

# Epoch values above this are treated as milliseconds
_EPOCH_MS_CUTOFF = 1e11

# Two fill-in values that disagree on year, month and day; a free-form string
# parses identically under both only when it names all three
_PARSE_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def _from_epoch(seconds: float) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(tzinfo=None)


def to_datetime(value: Any) -> Optional[datetime]:
    """
    Normalize any supported external date representation to a naive UTC datetime.

    Accepts datetime, date, ISO-8601 or free-form strings naming a full date
    (year, month and day), epoch seconds or milliseconds, Firestore-style
    timestamp mappings and objects exposing ``to_datetime()`` or a ``seconds``
    attribute. Returns None when the value cannot be interpreted.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    if isinstance(value, (int, float)):
        seconds = value / 1000 if value > _EPOCH_MS_CUTOFF else value
        try:
            return _from_epoch(seconds)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return to_datetime(date_parser.isoparse(text))
        except ValueError:
            pass
        try:
            first, second = (date_parser.parse(text, default=default) for default in _PARSE_DEFAULTS)
        except (ValueError, OverflowError):
            return None
        if first != second:
            # Partial date such as "Jan 15"
            return None
        return to_datetime(first)

    if isinstance(value, Mapping):
        seconds = value.get("seconds", value.get("_seconds"))
        nanos = value.get("nanoseconds", value.get("_nanoseconds", 0)) or 0
        if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
            return _from_epoch(seconds + nanos / 1e9)
        return None

    # Firestore Timestamp and similar SDK objects
    converter = getattr(value, "to_datetime", None)
    if callable(converter):
        return to_datetime(converter())
    seconds = getattr(value, "seconds", None)
    if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
        return _from_epoch(seconds + (getattr(value, "nanoseconds", 0) or 0) / 1e9)

    return None


def month_key(moment: datetime) -> str:
    """Calendar month bucket as YYYY-MM"""
    return f"{moment.year:04d}-{moment.month:02d}"


def weeks_between(start: datetime, end: datetime) -> float:
    """Elapsed time between two moments in (fractional) weeks"""
    return abs((end - start).total_seconds()) / (7 * 24 * 60 * 60)


def days_apart(first: datetime, second: datetime) -> int:
    """Calendar days between two moments, ignoring time of day"""
    return abs((first.date() - second.date()).days)
