"""
Booking error taxonomy.
Each error knows its HTTP status and the JSON body returned to the caller;
upstream failure details are logged where they occur and never placed in the body.
"""

from typing import Optional


class BookingError(Exception):
    status_code = 500
    default_message = "Erreur technique"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def payload(self) -> dict:
        return {"success": False, "error": self.message}

    def headers(self) -> Optional[dict]:
        return None


class InvalidInput(BookingError):
    status_code = 400
    default_message = "Données manquantes ou invalides"


class Forbidden(BookingError):
    status_code = 403
    default_message = "Réservation impossible pour cette adresse email"


class DuplicateActiveBooking(BookingError):
    status_code = 403

    def __init__(self, existing_date: str, existing_time: str):
        self.existing_date = existing_date
        self.existing_time = existing_time
        super().__init__(f"Vous avez déjà un rendez-vous le {existing_date} à {existing_time}.")

    def payload(self) -> dict:
        return {
            "success": False,
            "isDuplicate": True,
            "message": self.message,
            "suggestion": "Un seul rendez-vous actif est autorisé par client.",
            "existingDate": self.existing_date,
            "existingTime": self.existing_time,
        }


class SlotUnavailable(BookingError):
    status_code = 409
    default_message = "Ce créneau n'est plus disponible"


class InvalidOrExpiredCode(BookingError):
    status_code = 400
    default_message = "Code invalide"


class DeliveryFailed(BookingError):
    status_code = 500
    default_message = "Erreur technique"


class CalendarUnavailable(BookingError):
    status_code = 500
    default_message = "Erreur confirmation"


class Unauthorized(BookingError):
    status_code = 401
    default_message = "Refusé"


class NotFound(BookingError):
    status_code = 404
    default_message = "Introuvable"


class RateLimited(BookingError):
    status_code = 429
    default_message = "Trop de demandes, réessayez plus tard"

    def __init__(self, retry_after: int, message: Optional[str] = None):
        self.retry_after = retry_after
        super().__init__(message)

    def headers(self) -> Optional[dict]:
        return {"Retry-After": str(self.retry_after)}
