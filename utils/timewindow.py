"""Clock and trailing-window helpers shared by the abuse and click components.

All moments are naive UTC datetimes. Windows are always measured backwards
from the caller's "now"; nothing here is calendar-day bucketed except
``day_bucket``/``day_start`` which are used for click history.
"""

from collections.abc import Callable
from datetime import date, datetime, time, timedelta, timezone

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def window_start(now: datetime, window: timedelta) -> datetime:
    """Inclusive lower bound of the trailing window ending at ``now``."""
    if window <= timedelta(0):
        raise ValueError("window must be positive")
    return now - window


def day_bucket(moment: datetime) -> date:
    return moment.date()


def day_start(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.min)
