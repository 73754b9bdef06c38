"""Admin repository - Database operations behind the admin surface"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Appointment, BlacklistEntry, SalonStatus


class AdminRepository:
    @staticmethod
    def list_appointments(db: Session) -> list[Appointment]:
        return (
            db.query(Appointment)
            .order_by(Appointment.date.desc(), Appointment.time.desc())
            .all()
        )

    @staticmethod
    def get_appointment(db: Session, appointment_id: str) -> Optional[Appointment]:
        return db.get(Appointment, appointment_id)

    @staticmethod
    def delete_appointment(db: Session, appointment: Appointment) -> None:
        db.delete(appointment)
        db.commit()

    @staticmethod
    def set_salon_status(db: Session, is_open: bool) -> SalonStatus:
        status = db.get(SalonStatus, "status")
        if status is None:
            status = SalonStatus(key="status", is_open=is_open)
            db.add(status)
        else:
            status.is_open = is_open
        db.commit()
        db.refresh(status)
        return status

    @staticmethod
    def list_blacklist(db: Session) -> list[BlacklistEntry]:
        return db.query(BlacklistEntry).order_by(BlacklistEntry.email.asc()).all()

    @staticmethod
    def add_to_blacklist(db: Session, email: str) -> BlacklistEntry:
        entry = db.get(BlacklistEntry, email)
        if entry is None:
            entry = BlacklistEntry(email=email)
            db.add(entry)
            db.commit()
            db.refresh(entry)
        return entry

    @staticmethod
    def remove_from_blacklist(db: Session, email: str) -> bool:
        entry = db.get(BlacklistEntry, email)
        if entry is None:
            return False
        db.delete(entry)
        db.commit()
        return True
