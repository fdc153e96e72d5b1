# schoolms/utils/dates.py
"""Date helpers. Timestamps are stored as naive UTC."""
from datetime import date, datetime, timezone
from typing import Optional, Union


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def first_of_month(value: Union[date, datetime]) -> date:
    return date(value.year, value.month, 1)


def first_of_next_month(value: Optional[Union[date, datetime]] = None) -> date:
    value = value or utcnow()
    if value.month == 12:
        return date(value.year + 1, 1, 1)
    return date(value.year, value.month + 1, 1)
