"""Helpers for timezone-aware timestamps in the machine's local offset."""

import re
from datetime import date, datetime, time, timedelta


# Fractions longer than microseconds (e.g. nanoseconds written by older builds)
_FRACTION = re.compile(r'(\.\d{6})\d+')


def local_now() -> datetime:
    """Return the current moment as an aware datetime in the local offset."""
    return datetime.now().astimezone()


def local_midnight(day: date) -> datetime:
    """Return the aware datetime of local midnight at the start of `day`."""
    return datetime.combine(day, time.min).astimezone()


def next_local_midnight(day: date) -> datetime:
    """Return local midnight at the start of the day after `day`."""
    return local_midnight(day + timedelta(days=1))


def to_local(moment: datetime) -> datetime:
    """Attach the local offset to naive datetimes and convert aware ones to it."""
    return moment.astimezone()


def format_timestamp(moment: datetime) -> str:
    """Encode a datetime as ISO-8601 text that keeps the offset."""
    return to_local(moment).isoformat()


def parse_timestamp(value: str) -> datetime:
    """Decode text written by `format_timestamp` (or a legacy store)."""
    value = _FRACTION.sub(r'\1', value.strip())
    moment = datetime.fromisoformat(value.replace(' ', 'T', 1))
    if moment.tzinfo is None:
        return moment.astimezone()
    return moment
