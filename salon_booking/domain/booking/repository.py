"""Booking repository - Database operations for verifications and appointments"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Appointment, BlacklistEntry, PendingVerification, SalonStatus


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_pending(db: Session, email: str) -> Optional[PendingVerification]:
        return db.get(PendingVerification, email)

    @staticmethod
    def upsert_pending(db: Session, email: str, **fields) -> PendingVerification:
        """Replace any pending verification for ``email`` with a fresh one"""
        pending = db.get(PendingVerification, email)
        if pending is None:
            pending = PendingVerification(email=email, **fields)
            db.add(pending)
        else:
            # Full overwrite: every column of the previous request is replaced
            for key, value in fields.items():
                setattr(pending, key, value)
        db.commit()
        db.refresh(pending)
        return pending

    @staticmethod
    def find_active_appointment(
        db: Session, email: str, today: date
    ) -> Optional[Appointment]:
        """Earliest appointment for ``email`` dated today or later"""
        return (
            db.query(Appointment)
            .filter(Appointment.email == email, Appointment.date >= today)
            .order_by(Appointment.date.asc(), Appointment.time.asc())
            .first()
        )

    @staticmethod
    def slot_taken(db: Session, slot_date: date, slot_time: str) -> bool:
        return (
            db.query(Appointment.id)
            .filter(Appointment.date == slot_date, Appointment.time == slot_time)
            .first()
            is not None
        )

    @staticmethod
    def create_appointment_from_pending(
        db: Session, pending: PendingVerification, calendar_event_id: str, created_at: datetime
    ) -> Appointment:
        """Insert the appointment and consume the pending verification in one commit"""
        appointment = Appointment(
            date=pending.date,
            time=pending.time,
            client_name=pending.client_name,
            phone=pending.phone,
            email=pending.email,
            calendar_event_id=calendar_event_id,
            reminder_sent=False,
            origin_ip=pending.origin_ip,
            created_at=created_at,
        )
        db.add(appointment)
        db.delete(pending)
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def get_busy_times(db: Session, slot_date: date) -> list[str]:
        rows = (
            db.query(Appointment.time)
            .filter(Appointment.date == slot_date)
            .order_by(Appointment.time.asc())
            .all()
        )
        return [row.time for row in rows]

    @staticmethod
    def is_blacklisted(db: Session, email: str) -> bool:
        return db.get(BlacklistEntry, email) is not None

    @staticmethod
    def is_salon_open(db: Session) -> bool:
        status = db.get(SalonStatus, "status")
        return True if status is None else bool(status.is_open)
