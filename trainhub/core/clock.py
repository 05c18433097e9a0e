"""Wall-clock helpers.

Timestamps are stored naive, expressed in ``config.TIMEZONE``. Aware values
coming in over the API are converted to that zone before the tzinfo is
dropped, so every comparison in the scheduling code is naive-vs-naive.
"""

from datetime import date, datetime, timezone, tzinfo
from zoneinfo import ZoneInfo

from trainhub.core import config


def _zone() -> tzinfo:
    if config.TIMEZONE.upper() == 'UTC':
        return timezone.utc
    return ZoneInfo(config.TIMEZONE)


def now() -> datetime:
    return datetime.now(_zone()).replace(tzinfo=None)


def to_wall_clock(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(_zone()).replace(tzinfo=None)


def day_of_week(value: date) -> int:
    """Day index with Sunday as 0, matching stored availability blocks."""
    return (value.weekday() + 1) % 7
