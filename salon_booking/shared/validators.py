"""Shared validation utilities"""

import re
from datetime import date, datetime
from typing import Optional

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase, stripped email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    if not EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email format")

    return email


def validate_booking_date(value: str) -> date:
    """Parse a YYYY-MM-DD salon-local calendar date"""
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except (ValueError, AttributeError) as e:
        raise ValueError("Date must use the YYYY-MM-DD format") from e


def validate_booking_time(value: str) -> str:
    """Validate a 24-hour HH:MM time of day, returned normalized"""
    value = (value or "").strip()
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must use the 24-hour HH:MM format")
    return value


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Loose international phone check: keeps the caller's formatting
    but requires between 6 and 15 digits.
    """
    if not phone:
        return phone

    phone = phone.strip()
    if re.search(r"[^\d\s+().-]", phone):
        raise ValueError("Phone number contains invalid characters")

    digits = re.sub(r"\D", "", phone)
    if not 6 <= len(digits) <= 15:
        raise ValueError("Phone number must contain between 6 and 15 digits")

    return phone
