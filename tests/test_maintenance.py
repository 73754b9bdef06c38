import asyncio
from datetime import date, datetime, timedelta

from salon_booking.database import SessionLocal
from salon_booking.models import Appointment, PendingVerification
from salon_booking.services.maintenance import (
    MaintenanceScheduler,
    purge_expired,
    run_maintenance,
    send_reminders,
)


def make_appointment(db, day, time="10:00", created_at=datetime(2025, 5, 1), email=None):
    appointment = Appointment(
        date=day, time=time, client_name="Client", phone="0600000000",
        email=email or f"{day.isoformat()}-{time.replace(':', '')}@example.com",
        calendar_event_id="evt", created_at=created_at,
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


def remaining_dates(db):
    db.expire_all()
    return sorted(a.date for a in db.query(Appointment).all())


class TestPurge:
    def test_keeps_appointments_inside_grace_window(self, db, clock):
        # salon today is 2025-06-01, cutoff 2025-05-25
        for day in (date(2025, 5, 20), date(2025, 5, 24), date(2025, 5, 25), date(2025, 6, 3)):
            make_appointment(db, day)

        result = purge_expired(db, clock, grace_days=7)

        assert result["appointments"] == 2
        assert result["cutoff"] == date(2025, 5, 25)
        assert remaining_dates(db) == [date(2025, 5, 25), date(2025, 6, 3)]

    def test_is_idempotent(self, db, clock):
        make_appointment(db, date(2025, 5, 1))
        purge_expired(db, clock, grace_days=7)
        assert purge_expired(db, clock, grace_days=7)["appointments"] == 0

    def test_removes_expired_verifications_only(self, db, clock):
        now = clock().replace(tzinfo=None)
        db.add_all(
            [
                PendingVerification(
                    email="old@example.com", otp="1234", client_name="Old",
                    date=date(2025, 6, 5), time="10:00", phone="0600000000",
                    created_at=now - timedelta(minutes=30), expires_at=now - timedelta(minutes=15),
                ),
                PendingVerification(
                    email="fresh@example.com", otp="5678", client_name="Fresh",
                    date=date(2025, 6, 5), time="11:00", phone="0600000000",
                    created_at=now, expires_at=now + timedelta(minutes=15),
                ),
            ]
        )
        db.commit()

        result = purge_expired(db, clock, grace_days=7)

        assert result["verifications"] == 1
        db.expire_all()
        assert [p.email for p in db.query(PendingVerification).all()] == ["fresh@example.com"]


class TestReminders:
    def run(self, db, notifier, clock, **kwargs):
        kwargs.setdefault("min_age_minutes", 60)
        kwargs.setdefault("hour_matching", True)
        return asyncio.run(send_reminders(db, notifier, clock, **kwargs))

    def test_sends_once_for_tomorrow(self, db, notifier, clock):
        tomorrow = make_appointment(db, date(2025, 6, 2), "10:00")
        make_appointment(db, date(2025, 6, 3), "10:00")
        make_appointment(db, date(2025, 6, 1), "10:00")

        first = self.run(db, notifier, clock)
        second = self.run(db, notifier, clock)

        assert first["sent"] == 1
        assert second["sent"] == 0
        assert notifier.reminders == [tomorrow.id]
        db.expire_all()
        assert db.get(Appointment, tomorrow.id).reminder_sent is True

    def test_hour_filter_waits_for_matching_hour(self, db, notifier, clock):
        # salon-local now is 12:00
        early = make_appointment(db, date(2025, 6, 2), "12:30")
        late = make_appointment(db, date(2025, 6, 2), "15:00")

        result = self.run(db, notifier, clock)
        assert notifier.reminders == [early.id]
        assert result["skipped"] == 1

        clock.set_local(2025, 6, 1, 15, 5)
        self.run(db, notifier, clock)
        assert notifier.reminders == [early.id, late.id]

    def test_hour_filter_disabled(self, db, notifier, clock):
        make_appointment(db, date(2025, 6, 2), "18:00")
        result = self.run(db, notifier, clock, hour_matching=False)
        assert result["sent"] == 1

    def test_recent_booking_is_not_reminded_yet(self, db, notifier, clock):
        just_booked = clock().replace(tzinfo=None) - timedelta(minutes=10)
        appointment = make_appointment(db, date(2025, 6, 2), "09:00", created_at=just_booked)

        assert self.run(db, notifier, clock)["sent"] == 0

        clock.now = clock.now + timedelta(hours=1)
        assert self.run(db, notifier, clock)["sent"] == 1
        assert notifier.reminders == [appointment.id]

    def test_failed_delivery_is_retried(self, db, notifier, clock):
        appointment = make_appointment(db, date(2025, 6, 2), "09:00")
        notifier.fail_reminders = True

        result = self.run(db, notifier, clock)

        assert result["failed"] == 1
        db.expire_all()
        assert db.get(Appointment, appointment.id).reminder_sent is False

        notifier.fail_reminders = False
        assert self.run(db, notifier, clock)["sent"] == 1


def test_run_maintenance_does_both_jobs(db, notifier, clock):
    make_appointment(db, date(2025, 5, 1))
    reminded = make_appointment(db, date(2025, 6, 2), "08:00")

    results = asyncio.run(run_maintenance(SessionLocal, notifier, clock))

    assert results["reminders"]["sent"] == 1
    assert results["purge"]["appointments"] == 1
    assert notifier.reminders == [reminded.id]


def test_scheduler_ticks_until_stopped(notifier, clock):
    async def scenario():
        scheduler = MaintenanceScheduler(SessionLocal, notifier, interval_seconds=0.01, clock=clock)
        scheduler.start()
        assert scheduler.running
        await asyncio.sleep(0.1)
        await scheduler.stop()
        return scheduler

    scheduler = asyncio.run(scenario())

    assert scheduler.ticks >= 2
    assert not scheduler.running


def test_scheduler_stop_without_start_is_noop(notifier):
    scheduler = MaintenanceScheduler(SessionLocal, notifier, interval_seconds=60)
    asyncio.run(scheduler.stop())
    assert not scheduler.running
