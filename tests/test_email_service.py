import asyncio
from datetime import date

import pytest

from salon_booking import config, email_service
from salon_booking.email_service import BookingNotifier, EmailDeliveryError, send_email
from salon_booking.email_templates import (
    appointment_reminder_template,
    booking_confirmation_template,
    verification_code_template,
)
from salon_booking.models import Appointment


@pytest.fixture
def sent(monkeypatch):
    messages = []

    def fake_send(params):
        messages.append(params)
        return {"id": "email-1"}

    monkeypatch.setattr(config, "RESEND_API_KEY", "re_test")
    monkeypatch.setattr(email_service, "compile_mjml_to_html", lambda mjml: f"<html>{mjml}</html>")
    monkeypatch.setattr(email_service.resend.Emails, "send", fake_send)
    return messages


def test_send_email_without_api_key_fails(monkeypatch):
    monkeypatch.setattr(config, "RESEND_API_KEY", None)
    monkeypatch.setattr(email_service, "compile_mjml_to_html", lambda mjml: "<html></html>")

    with pytest.raises(EmailDeliveryError):
        asyncio.run(send_email("alice@example.com", "Hello", "<mjml></mjml>"))


def test_send_email_provider_error(monkeypatch, sent):
    def failing_send(params):
        raise RuntimeError("quota exceeded")

    monkeypatch.setattr(email_service.resend.Emails, "send", failing_send)

    with pytest.raises(EmailDeliveryError):
        asyncio.run(send_email("alice@example.com", "Hello", "<mjml></mjml>"))


def test_verification_code_email(sent):
    asyncio.run(BookingNotifier().send_verification_code("alice@example.com", "Alice", "4821"))

    (message,) = sent
    assert message["to"] == ["alice@example.com"]
    assert message["from"] == config.EMAIL_FROM_ADDRESS
    assert "4821" in message["html"]
    assert config.SALON_NAME in message["subject"]


def test_confirmation_and_reminder_emails(sent):
    appointment = Appointment(
        date=date(2025, 6, 10), time="14:00", client_name="Alice",
        phone="0600000000", email="alice@example.com",
    )
    notifier = BookingNotifier()

    asyncio.run(notifier.send_booking_confirmation(appointment))
    asyncio.run(notifier.send_reminder(appointment))

    confirmation, reminder = sent
    assert "10/06/2025" in confirmation["html"]
    assert "14:00" in reminder["html"]
    assert "Rappel" in reminder["subject"]


def test_templates_escape_client_input():
    mjml = verification_code_template("<script>x</script>", "1234")
    assert "<script>" not in mjml
    assert "&lt;script&gt;" in mjml
    assert "1234" in mjml

    for template in (booking_confirmation_template, appointment_reminder_template):
        body = template("Alice", "10/06/2025", "14:00")
        assert body.strip().startswith("<mjml")
        assert "10/06/2025" in body and "14:00" in body
