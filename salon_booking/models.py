import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Date, DateTime, String, UniqueConstraint

from .database import Base


def generate_public_id():
    """Generate an opaque identifier for appointments"""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    """Naive UTC timestamp, the form stored in DateTime columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class PendingVerification(Base):
    """One outstanding booking request per email; a new request overwrites the old one"""

    __tablename__ = "temp_verifications"

    email = Column(String(255), primary_key=True)
    otp = Column(String(10), nullable=False)
    client_name = Column(String(255), nullable=False)
    date = Column(Date, nullable=False)
    time = Column(String(5), nullable=False)  # HH:MM salon-local
    phone = Column(String(50), nullable=False)
    origin_ip = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False)


class Appointment(Base):
    __tablename__ = "appointments"
    # One appointment per slot; checked before confirmation and enforced here as a backstop
    __table_args__ = (UniqueConstraint("date", "time", name="uq_appointments_slot"),)

    id = Column(String(32), primary_key=True, default=generate_public_id)
    date = Column(Date, nullable=False, index=True)
    time = Column(String(5), nullable=False)
    client_name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    calendar_event_id = Column(String(255), nullable=True)
    reminder_sent = Column(Boolean, default=False, nullable=False)
    origin_ip = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "time": self.time,
            "clientName": self.client_name,
            "phone": self.phone,
            "email": self.email,
            "calendarEventId": self.calendar_event_id,
            "reminderSent": self.reminder_sent,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class SalonStatus(Base):
    """Single-row open/closed switch; absence means open"""

    __tablename__ = "settings"

    key = Column(String(50), primary_key=True, default="status")
    is_open = Column(Boolean, default=True, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class BlacklistEntry(Base):
    __tablename__ = "blacklist"

    email = Column(String(255), primary_key=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
