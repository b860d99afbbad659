from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, time, UTC
from typing import Any


def get_utcnow() -> datetime:
    return datetime.now(UTC)


def to_millis(value: Any) -> int:
    """
    Normalizes any timestamp shape seen in stored records to epoch milliseconds.

    Accepted: datetime / date, ISO-8601 strings, `{"seconds", "nanoseconds"}`
    mappings, objects exposing `seconds` or `timestamp()`, and plain numbers
    (taken as milliseconds). Anything else is 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return int(value.timestamp() * 1000)
    if isinstance(value, date):
        return to_millis(datetime.combine(value, time.min, tzinfo=UTC))
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            return to_millis(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except ValueError:
            return 0
    if isinstance(value, Mapping):
        return _seconds_to_millis(value.get("seconds"), value.get("nanoseconds"))
    if hasattr(value, "seconds"):
        return _seconds_to_millis(getattr(value, "seconds", None), getattr(value, "nanoseconds", None))
    if callable(getattr(value, "timestamp", None)):
        try:
            return int(value.timestamp() * 1000)
        except (TypeError, ValueError):
            return 0
    return 0


def to_datetime(value: Any) -> datetime | None:
    millis = to_millis(value)
    if not millis:
        return None
    return datetime.fromtimestamp(millis / 1000, tz=UTC)


def _seconds_to_millis(seconds: Any, nanoseconds: Any) -> int:
    if not isinstance(seconds, (int, float)) or isinstance(seconds, bool):
        return 0
    nanos = nanoseconds if isinstance(nanoseconds, (int, float)) and not isinstance(nanoseconds, bool) else 0
    return int(seconds * 1000) + int(nanos // 1_000_000)
