"""
Timestamp normalisation and local-day arithmetic.

Firestore hands timestamps back as ``DatetimeWithNanoseconds`` (a ``datetime``
subclass) or, through lower level APIs, as protobuf ``Timestamp`` messages.
Callers of the registries only ever see plain, timezone-aware ``datetime``
values. Naive values are read as local wall-clock time.
"""
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, Optional, Tuple


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def normalize_timestamp(value: Any) -> datetime:
    """Convert any store or caller representation to an aware ``datetime``."""
    if hasattr(value, "ToDatetime"):
        value = value.ToDatetime(tzinfo=timezone.utc)
    elif isinstance(value, str):
        value = datetime.fromisoformat(value)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        # unix milliseconds
        value = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    elif isinstance(value, date) and not isinstance(value, datetime):
        value = datetime.combine(value, time.min)

    if not isinstance(value, datetime):
        raise TypeError(f"Cannot interpret {type(value).__name__} as a timestamp")

    if value.tzinfo is None:
        value = value.astimezone()
    # drop datetime subclasses such as DatetimeWithNanoseconds
    return datetime(
        value.year, value.month, value.day,
        value.hour, value.minute, value.second, value.microsecond,
        tzinfo=value.tzinfo,
    )


def local_day_bounds(now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> Tuple[datetime, datetime]:
    """
    Return ``[start of day, start of next day)`` for the day containing ``now``.

    The day is taken in ``tz`` when given, otherwise in the local timezone of
    the running process.
    """
    if now is None:
        now = datetime.now(tz) if tz is not None else datetime.now()
    elif tz is not None:
        now = normalize_timestamp(now).astimezone(tz)
    elif now.tzinfo is not None:
        now = now.astimezone()

    today = now.date()
    tomorrow = today + timedelta(days=1)
    if tz is not None:
        return (
            datetime.combine(today, time.min, tzinfo=tz),
            datetime.combine(tomorrow, time.min, tzinfo=tz),
        )
    # naive local midnight -> aware, so DST transitions get the right offset
    return (
        datetime.combine(today, time.min).astimezone(),
        datetime.combine(tomorrow, time.min).astimezone(),
    )
