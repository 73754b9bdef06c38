"""
Reservation workflow - two-phase, OTP-gated booking.

Phase 1 (request_verification) validates the request, stores a single pending
verification per email and emails a 4-digit code. Phase 2 (confirm_verification)
checks the code, mirrors the slot into the calendar and only then writes the
appointment. A failure before the appointment write leaves the pending
verification in place so the client can retry with the same code.
"""

import logging
import secrets
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ... import config
from ...email_service import BookingNotifier, EmailDeliveryError
from ...errors import (
    CalendarUnavailable,
    DeliveryFailed,
    DuplicateActiveBooking,
    Forbidden,
    InvalidInput,
    InvalidOrExpiredCode,
    SlotUnavailable,
)
from ...models import Appointment, PendingVerification
from ...services.google_calendar_service import GoogleCalendarClient
from ...shared.compensation import run_best_effort
from ...shared.locks import KeyedLock
from ...shared.salon_time import Clock, salon_today, slot_bounds, system_clock, utc_naive
from ...shared.validators import (
    validate_booking_date,
    validate_booking_time,
    validate_email,
    validate_phone,
)
from .repository import BookingRepository

logger = logging.getLogger(__name__)

OTP_MIN = 1000
OTP_MAX = 9999

# Shared by every service instance in the process
email_locks = KeyedLock()
slot_locks = KeyedLock()


def generate_otp() -> str:
    """Uniform 4-digit code in [1000, 9999]"""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


class ReservationService:
    """Service layer for the booking workflow"""

    def __init__(
        self,
        db: Session,
        calendar: GoogleCalendarClient,
        notifier: BookingNotifier,
        clock: Clock = system_clock,
        otp_ttl_minutes: Optional[int] = None,
        duration_minutes: Optional[int] = None,
    ):
        self.db = db
        self.calendar = calendar
        self.notifier = notifier
        self.clock = clock
        self.repo = BookingRepository()
        self.otp_ttl = timedelta(
            minutes=otp_ttl_minutes if otp_ttl_minutes is not None else config.OTP_TTL_MINUTES
        )
        self.duration_minutes = duration_minutes or config.APPOINTMENT_DURATION_MINUTES

    async def request_verification(
        self,
        email: Optional[str],
        client_name: Optional[str],
        date: Optional[str],
        time: Optional[str],
        phone: Optional[str],
        origin_ip: Optional[str] = None,
    ) -> PendingVerification:
        """Phase 1: validate, store the pending verification and email the code"""
        fields = (email, client_name, date, time, phone)
        if any(value is None or not str(value).strip() for value in fields):
            raise InvalidInput("Données manquantes")

        try:
            email = validate_email(email)
            slot_date = validate_booking_date(date)
            slot_time = validate_booking_time(time)
            phone = validate_phone(phone)
        except ValueError as e:
            raise InvalidInput(str(e)) from e
        client_name = client_name.strip()

        if self.repo.is_blacklisted(self.db, email):
            logger.warning(f"Verification request from blacklisted email {email}")
            raise Forbidden()

        async with email_locks.hold(email):
            today = salon_today(self.clock)
            existing = self.repo.find_active_appointment(self.db, email, today)
            if existing:
                logger.warning(
                    f"Duplicate booking attempt by {email}: "
                    f"already booked {existing.date} {existing.time}"
                )
                raise DuplicateActiveBooking(existing.date.isoformat(), existing.time)

            if self.repo.slot_taken(self.db, slot_date, slot_time):
                raise SlotUnavailable()

            otp = generate_otp()
            now = utc_naive(self.clock)
            pending = self.repo.upsert_pending(
                self.db,
                email,
                otp=otp,
                client_name=client_name,
                date=slot_date,
                time=slot_time,
                phone=phone,
                origin_ip=origin_ip,
                created_at=now,
                expires_at=now + self.otp_ttl,
            )
            logger.info(f"Verification code issued for {email} ({slot_date} {slot_time})")
            logger.debug(f"Generated OTP for {email}: {otp}")

            try:
                await self.notifier.send_verification_code(email, client_name, otp)
            except EmailDeliveryError as e:
                # The pending row stays; a new request simply overwrites it
                logger.error(f"Failed to deliver verification code to {email}: {e}")
                raise DeliveryFailed() from e

        return pending

    async def confirm_verification(self, email: Optional[str], code: Optional[str]) -> Appointment:
        """Phase 2: check the code, create the calendar event, then the appointment"""
        if not email or not email.strip() or not code or not str(code).strip():
            raise InvalidInput("Données manquantes")
        email = email.strip().lower()
        code = str(code).strip()

        # Lock order is always email then slot
        async with email_locks.hold(email):
            appointment = await self._book_pending(email, code)

        logger.info(
            f"Appointment {appointment.id} confirmed for {email} "
            f"on {appointment.date} {appointment.time}"
        )

        await run_best_effort(
            f"confirmation email to {email}",
            lambda: self.notifier.send_booking_confirmation(appointment),
        )
        return appointment

    async def _book_pending(self, email: str, code: str) -> Appointment:
        """Turn the pending verification into an appointment; caller holds the email lock"""
        pending = self._load_valid_pending(email, code)
        slot_key = (pending.date, pending.time)

        async with slot_locks.hold(slot_key):
            # Another confirmation may have consumed or replaced the record while we waited
            self.db.expire_all()
            pending = self._load_valid_pending(email, code)
            if (pending.date, pending.time) != slot_key:
                raise InvalidOrExpiredCode()

            if self.repo.slot_taken(self.db, pending.date, pending.time):
                logger.warning(
                    f"Slot {pending.date} {pending.time} already booked, rejecting {email}"
                )
                raise SlotUnavailable()

            start, end = slot_bounds(pending.date, pending.time, self.duration_minutes)
            try:
                event_id = await self.calendar.create_event(
                    summary=f"✂️ {pending.client_name}",
                    description=f"Tel: {pending.phone}\nMail: {email}",
                    start=start,
                    end=end,
                )
            except CalendarUnavailable:
                raise
            except Exception as e:
                logger.exception(f"Calendar event creation failed for {email}")
                raise CalendarUnavailable() from e

            try:
                appointment = self.repo.create_appointment_from_pending(
                    self.db, pending, event_id, utc_naive(self.clock)
                )
            except Exception as e:
                self.db.rollback()
                logger.exception(
                    f"Failed to store appointment for {email}, removing event {event_id}"
                )
                await run_best_effort(
                    f"calendar delete of orphan event {event_id}",
                    lambda: self.calendar.delete_event(event_id),
                )
                if self.repo.slot_taken(self.db, slot_key[0], slot_key[1]):
                    raise SlotUnavailable() from e
                raise

        return appointment

    def _load_valid_pending(self, email: str, code: str) -> PendingVerification:
        pending = self.repo.get_pending(self.db, email)
        if pending is None or not secrets.compare_digest(pending.otp.encode(), code.encode()):
            logger.warning(f"Invalid verification code submitted for {email}")
            raise InvalidOrExpiredCode()
        if pending.expires_at and pending.expires_at <= utc_naive(self.clock):
            logger.warning(f"Expired verification code submitted for {email}")
            raise InvalidOrExpiredCode("Code expiré, veuillez refaire une demande")
        return pending

    def get_busy_slots(self, date: Optional[str]) -> list[str]:
        if not date or not date.strip():
            raise InvalidInput("Date manquante")
        try:
            slot_date = validate_booking_date(date)
        except ValueError as e:
            raise InvalidInput(str(e)) from e
        return self.repo.get_busy_times(self.db, slot_date)

    def is_open(self) -> bool:
        return self.repo.is_salon_open(self.db)
