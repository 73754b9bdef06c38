"""Admin service - listing, cancellation, opening hours switch and blacklist"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import InvalidInput, NotFound
from ...models import Appointment, BlacklistEntry
from ...services.google_calendar_service import GoogleCalendarClient
from ...shared.compensation import run_best_effort
from ...shared.validators import validate_email
from .repository import AdminRepository

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(self, db: Session, calendar: GoogleCalendarClient):
        self.db = db
        self.calendar = calendar
        self.repo = AdminRepository()

    def list_appointments(self) -> list[Appointment]:
        return self.repo.list_appointments(self.db)

    async def delete_appointment(self, appointment_id: str) -> None:
        """
        Cancel an appointment. The store record is authoritative: the linked
        calendar event is removed best-effort and its failure never blocks the delete.
        """
        appointment = self.repo.get_appointment(self.db, appointment_id)
        if appointment is None:
            raise NotFound("Rendez-vous introuvable")

        event_id = appointment.calendar_event_id
        if event_id:
            await run_best_effort(
                f"calendar delete of event {event_id}",
                lambda: self.calendar.delete_event(event_id),
            )

        self.repo.delete_appointment(self.db, appointment)
        logger.info(f"Appointment {appointment_id} deleted by admin")

    def set_status(self, is_open: Optional[bool]) -> bool:
        if is_open is None:
            raise InvalidInput("is_open manquant")
        status = self.repo.set_salon_status(self.db, is_open)
        logger.info(f"Salon status set to {'open' if status.is_open else 'closed'}")
        return status.is_open

    def list_blacklist(self) -> list[BlacklistEntry]:
        return self.repo.list_blacklist(self.db)

    def add_to_blacklist(self, email: Optional[str]) -> BlacklistEntry:
        email = self._clean_email(email)
        entry = self.repo.add_to_blacklist(self.db, email)
        logger.info(f"Email {email} added to blacklist")
        return entry

    def remove_from_blacklist(self, email: Optional[str]) -> None:
        email = self._clean_email(email)
        if not self.repo.remove_from_blacklist(self.db, email):
            raise NotFound("Email absent de la liste noire")
        logger.info(f"Email {email} removed from blacklist")

    @staticmethod
    def _clean_email(email: Optional[str]) -> str:
        if not email or not email.strip():
            raise InvalidInput("Email manquant")
        try:
            return validate_email(email)
        except ValueError as e:
            raise InvalidInput(str(e)) from e
