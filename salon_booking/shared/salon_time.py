"""Salon-local clock helpers. All business dates are computed in the salon's zone."""

from datetime import date, datetime, timedelta
from typing import Callable, Optional

import pytz

from ..config import SALON_TIMEZONE

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    """Current instant as an aware UTC datetime"""
    return datetime.now(pytz.utc)


def salon_tz(tz_name: Optional[str] = None):
    return pytz.timezone(tz_name or SALON_TIMEZONE)


def salon_now(clock: Clock = system_clock, tz_name: Optional[str] = None) -> datetime:
    return clock().astimezone(salon_tz(tz_name))


def salon_today(clock: Clock = system_clock, tz_name: Optional[str] = None) -> date:
    return salon_now(clock, tz_name).date()


def slot_bounds(
    slot_date: date, slot_time: str, duration_minutes: int, tz_name: Optional[str] = None
) -> tuple[datetime, datetime]:
    """
    Aware start/end of a slot. The wall-clock start is localized in the salon zone
    so the resulting instant does not depend on the host's zone.
    """
    tz = salon_tz(tz_name)
    naive_start = datetime.strptime(f"{slot_date.isoformat()} {slot_time}", "%Y-%m-%d %H:%M")
    start = tz.localize(naive_start)
    end = tz.normalize(start + timedelta(minutes=duration_minutes))
    return start, end


def utc_naive(clock: Clock = system_clock) -> datetime:
    """Current instant as naive UTC, the form stored in DateTime columns"""
    return clock().astimezone(pytz.utc).replace(tzinfo=None)
