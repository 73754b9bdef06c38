"""
Maintenance jobs: expired-appointment purge and next-day reminders.
Both are idempotent and safe to run concurrently with themselves and with
request traffic. MaintenanceScheduler runs them inside the API process;
worker.py runs the same jobs from arq cron for out-of-process deployments.
"""

import asyncio
import logging
from datetime import timedelta
from typing import Callable, Optional

from sqlalchemy.orm import Session

from .. import config
from ..email_service import BookingNotifier
from ..models import Appointment, PendingVerification
from ..shared.salon_time import Clock, salon_now, salon_today, system_clock, utc_naive

logger = logging.getLogger(__name__)


def purge_expired(
    db: Session, clock: Clock = system_clock, grace_days: Optional[int] = None
) -> dict:
    """
    Delete, in one transaction, appointments older than the grace window and
    pending verifications whose code has expired. Calendar events are left alone.
    """
    grace_days = config.PURGE_GRACE_DAYS if grace_days is None else grace_days
    cutoff = salon_today(clock) - timedelta(days=grace_days)

    try:
        appointments = (
            db.query(Appointment)
            .filter(Appointment.date < cutoff)
            .delete(synchronize_session=False)
        )
        verifications = (
            db.query(PendingVerification)
            .filter(PendingVerification.expires_at <= utc_naive(clock))
            .delete(synchronize_session=False)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    if appointments or verifications:
        logger.info(
            f"Purge: {appointments} appointments before {cutoff} and "
            f"{verifications} expired verifications deleted"
        )
    return {"appointments": appointments, "verifications": verifications, "cutoff": cutoff}


async def send_reminders(
    db: Session,
    notifier: BookingNotifier,
    clock: Clock = system_clock,
    min_age_minutes: Optional[int] = None,
    hour_matching: Optional[bool] = None,
) -> dict:
    """
    Email tomorrow's clients (salon-local) once their appointment hour is reached.

    Each appointment is claimed by flipping reminder_sent with a conditional
    update before the email goes out, and released again if delivery fails so
    the next run retries it.
    """
    if min_age_minutes is None:
        min_age_minutes = config.REMINDER_MIN_AGE_MINUTES
    hour_matching = config.REMINDER_HOUR_MATCHING if hour_matching is None else hour_matching

    now_local = salon_now(clock)
    target_day = now_local.date() + timedelta(days=1)
    created_before = utc_naive(clock) - timedelta(minutes=min_age_minutes)

    candidates = (
        db.query(Appointment)
        .filter(Appointment.date == target_day, Appointment.reminder_sent.is_(False))
        .order_by(Appointment.time.asc())
        .all()
    )

    summary = {"sent": 0, "skipped": 0, "failed": 0}
    for appointment in candidates:
        if hour_matching and int(appointment.time[:2]) > now_local.hour:
            summary["skipped"] += 1
            continue
        if appointment.created_at and appointment.created_at > created_before:
            summary["skipped"] += 1
            continue

        claimed = (
            db.query(Appointment)
            .filter(Appointment.id == appointment.id, Appointment.reminder_sent.is_(False))
            .update({Appointment.reminder_sent: True}, synchronize_session=False)
        )
        db.commit()
        if not claimed:
            continue

        try:
            await notifier.send_reminder(appointment)
        except Exception as e:
            logger.error(f"Reminder to {appointment.email} failed, will retry: {e}")
            db.query(Appointment).filter(Appointment.id == appointment.id).update(
                {Appointment.reminder_sent: False}, synchronize_session=False
            )
            db.commit()
            summary["failed"] += 1
            continue

        summary["sent"] += 1
        logger.info(
            f"Reminder sent to {appointment.email} for {appointment.date} {appointment.time}"
        )

    return summary


async def run_maintenance(
    session_factory: Callable[[], Session],
    notifier: BookingNotifier,
    clock: Clock = system_clock,
) -> dict:
    """One scheduler tick: reminders then purge, each isolated from the other's failure"""
    results = {}

    db = session_factory()
    try:
        results["reminders"] = await send_reminders(db, notifier, clock)
    except Exception:
        logger.exception("Reminder job failed")
        db.rollback()
    finally:
        db.close()

    db = session_factory()
    try:
        results["purge"] = purge_expired(db, clock)
    except Exception:
        logger.exception("Purge job failed")
    finally:
        db.close()

    return results


class MaintenanceScheduler:
    """
    Periodic task owned by the application lifespan. Runs one tick at start()
    and then every ``interval_seconds`` until stop() is awaited.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        notifier: BookingNotifier,
        interval_seconds: Optional[float] = None,
        clock: Clock = system_clock,
    ):
        self.session_factory = session_factory
        self.notifier = notifier
        self.interval_seconds = (
            config.MAINTENANCE_INTERVAL_SECONDS if interval_seconds is None else interval_seconds
        )
        self.clock = clock
        self.ticks = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        logger.info(f"Maintenance scheduler started (every {self.interval_seconds}s)")
        self._task = asyncio.create_task(self._run(), name="maintenance-scheduler")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Maintenance scheduler stopped")

    async def _run(self) -> None:
        while True:
            await run_maintenance(self.session_factory, self.notifier, self.clock)
            self.ticks += 1
            await asyncio.sleep(self.interval_seconds)
