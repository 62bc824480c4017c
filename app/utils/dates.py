# app/utils/dates.py
from datetime import date, datetime, time, timezone
from typing import Union

EPOCH = datetime(1970, 1, 1)


def utcnow() -> datetime:
    """Naive UTC now; timestamps are stored without tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_date(value: str) -> datetime:
    """Accepts YYYY-MM-DD or a full ISO timestamp. Aware values are moved to naive UTC."""
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def start_of_day(d: Union[date, datetime]) -> datetime:
    return datetime.combine(d if not isinstance(d, datetime) else d.date(), time.min)


def end_of_day(d: Union[date, datetime]) -> datetime:
    return datetime.combine(d if not isinstance(d, datetime) else d.date(), time.max)
