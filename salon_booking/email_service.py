"""
Email Service using Resend
Compiles MJML templates and delivers the salon's transactional emails
"""

import logging
from typing import Union

import resend
from mjml import mjml_to_html

from . import config
from .email_templates import (
    appointment_reminder_template,
    booking_confirmation_template,
    verification_code_template,
)
from .models import Appointment

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised when an email could not be handed to the delivery provider"""


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise EmailDeliveryError(f"Failed to compile MJML template: {e}") from e

    # Newer mjml releases return an object exposing .html/.errors, older ones a dict
    if isinstance(result, dict):
        errors, html = result.get("errors"), result.get("html", "")
    else:
        errors, html = getattr(result, "errors", None), getattr(result, "html", str(result))
    if errors:
        logger.warning(f"MJML compilation warnings: {errors}")
    return html


async def send_email(to: Union[str, list[str]], subject: str, mjml_content: str) -> dict:
    """
    Send an email through Resend.

    Raises:
        EmailDeliveryError: when no provider is configured or Resend rejects the message
    """
    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

    if not config.RESEND_API_KEY:
        logger.error("No email service configured - RESEND_API_KEY missing")
        raise EmailDeliveryError("Email service not configured")

    resend.api_key = config.RESEND_API_KEY
    try:
        response = resend.Emails.send(
            {
                "from": config.EMAIL_FROM_ADDRESS,
                "to": recipients,
                "subject": subject,
                "html": html_content,
            }
        )
    except Exception as e:
        logger.error(f"Email send error to {recipients}: {e}")
        raise EmailDeliveryError(f"Failed to send email: {e}") from e

    logger.info(f"Email sent via Resend to {recipients}: {response}")
    return response


def format_date_label(appointment_date) -> str:
    return appointment_date.strftime("%d/%m/%Y")


class BookingNotifier:
    """
    Email capability handed to the booking workflow and the maintenance jobs.
    Every method raises EmailDeliveryError on failure; callers decide whether it is fatal.
    """

    async def send_verification_code(self, email: str, client_name: str, otp: str) -> dict:
        return await send_email(
            to=email,
            subject=f"Code de validation – {config.SALON_NAME}",
            mjml_content=verification_code_template(client_name, otp),
        )

    async def send_booking_confirmation(self, appointment: Appointment) -> dict:
        return await send_email(
            to=appointment.email,
            subject=f"Rendez-vous confirmé – {config.SALON_NAME}",
            mjml_content=booking_confirmation_template(
                appointment.client_name, format_date_label(appointment.date), appointment.time
            ),
        )

    async def send_reminder(self, appointment: Appointment) -> dict:
        return await send_email(
            to=appointment.email,
            subject=f"🔔 Rappel : Votre rendez-vous chez {config.SALON_NAME}",
            mjml_content=appointment_reminder_template(
                appointment.client_name, format_date_label(appointment.date), appointment.time
            ),
        )


def get_booking_notifier() -> BookingNotifier:
    return BookingNotifier()
