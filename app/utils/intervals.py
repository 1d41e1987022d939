# app/utils/intervals.py
from datetime import datetime, timezone
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

from app.core.errors import InvalidInterval
from app.models.transaction import RecurrenceInterval


_STEPS = {
    RecurrenceInterval.daily: relativedelta(days=1),
    RecurrenceInterval.weekly: relativedelta(days=7),
    RecurrenceInterval.monthly: relativedelta(months=1),
    RecurrenceInterval.yearly: relativedelta(years=1),
}


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how DateTime columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def start_of_day(value: datetime) -> datetime:
    return to_naive_utc(value).replace(hour=0, minute=0, second=0, microsecond=0)


def parse_interval(value: Union[str, RecurrenceInterval, None]) -> RecurrenceInterval:
    if isinstance(value, RecurrenceInterval):
        return value
    try:
        return RecurrenceInterval(value)
    except ValueError:
        raise InvalidInterval(f"Invalid interval: {value!r}", interval=value)


def add_interval(value: datetime, interval: Union[str, RecurrenceInterval, None]) -> datetime:
    """
    Advance ``value`` by one interval unit.

    Months and years use calendar arithmetic, so Jan 31 + 1 month is the last
    day of February rather than an overflow into March.
    """
    return value + _STEPS[parse_interval(interval)]


def is_future_day(value: datetime, now: Optional[datetime] = None) -> bool:
    """True when ``value`` falls on a later calendar day than ``now``."""
    return start_of_day(value) > start_of_day(now or utcnow())
