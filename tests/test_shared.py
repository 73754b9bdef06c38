import asyncio
from datetime import date

import pytest

from salon_booking.shared.compensation import run_best_effort
from salon_booking.shared.locks import KeyedLock
from salon_booking.shared.salon_time import salon_today, slot_bounds
from salon_booking.shared.validators import (
    validate_booking_date,
    validate_booking_time,
    validate_email,
    validate_phone,
)

from conftest import FixedClock


@pytest.mark.parametrize("value", ["00:00", "09:30", "14:00", "23:59"])
def test_valid_times(value):
    assert validate_booking_time(value) == value


@pytest.mark.parametrize("value", ["9:30", "24:00", "12:60", "noon", "", None])
def test_invalid_times(value):
    with pytest.raises(ValueError):
        validate_booking_time(value)


def test_booking_date():
    assert validate_booking_date(" 2025-06-10 ") == date(2025, 6, 10)
    for bad in ("2025-13-01", "10/06/2025", "", None):
        with pytest.raises(ValueError):
            validate_booking_date(bad)


def test_email_and_phone():
    assert validate_email(" Alice@Example.COM ") == "alice@example.com"
    with pytest.raises(ValueError):
        validate_email("alice@")
    assert validate_phone(" +33 6 12 34 56 78 ") == "+33 6 12 34 56 78"
    for bad in ("12345", "06-12-AB", "1" * 16):
        with pytest.raises(ValueError):
            validate_phone(bad)


def test_slot_bounds_handles_dst():
    winter_start, winter_end = slot_bounds(date(2025, 1, 15), "09:00", 30)
    summer_start, _ = slot_bounds(date(2025, 7, 15), "09:00", 30)

    assert winter_start.isoformat() == "2025-01-15T09:00:00+01:00"
    assert winter_end.isoformat() == "2025-01-15T09:30:00+01:00"
    assert summer_start.isoformat() == "2025-07-15T09:00:00+02:00"


def test_salon_today_crosses_midnight_before_utc():
    clock = FixedClock(None)
    clock.set_local(2025, 6, 2, 0, 30)
    assert clock().date() == date(2025, 6, 1)
    assert salon_today(clock) == date(2025, 6, 2)


def test_keyed_lock_serializes_and_cleans_up():
    locks = KeyedLock()
    order = []

    async def worker(name, key):
        async with locks.hold(key):
            order.append(f"{name}-in")
            await asyncio.sleep(0)
            order.append(f"{name}-out")

    async def scenario():
        await asyncio.gather(worker("a", "slot"), worker("b", "slot"))

    asyncio.run(scenario())

    assert order == ["a-in", "a-out", "b-in", "b-out"]
    assert len(locks) == 0


def test_run_best_effort_reports_failure():
    async def boom():
        raise RuntimeError("down")

    async def fine():
        return None

    assert asyncio.run(run_best_effort("failing call", boom)) is False
    assert asyncio.run(run_best_effort("working call", fine)) is True
