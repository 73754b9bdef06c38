import logging
import os
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./salon_booking.db")

# Admin shared secret - no default, admin routes refuse every request when unset
ADMIN_KEY = os.getenv("ADMIN_KEY")
if not ADMIN_KEY:
    logger.warning("ADMIN_KEY not set! All admin requests will be rejected")

# Salon identity
SALON_NAME = os.getenv("SALON_NAME", "YM Coiffure")
SALON_ADDRESS = os.getenv("SALON_ADDRESS", "58 rue Abbé Prévost, Clermont-Ferrand")
SALON_TIMEZONE = os.getenv("SALON_TIMEZONE", "Europe/Paris")

# Booking rules
APPOINTMENT_DURATION_MINUTES = int(os.getenv("APPOINTMENT_DURATION_MINUTES", "30"))
OTP_TTL_MINUTES = int(os.getenv("OTP_TTL_MINUTES", "15"))

# Maintenance jobs
PURGE_GRACE_DAYS = int(os.getenv("PURGE_GRACE_DAYS", "7"))
REMINDER_MIN_AGE_MINUTES = int(os.getenv("REMINDER_MIN_AGE_MINUTES", "60"))
REMINDER_HOUR_MATCHING = os.getenv("REMINDER_HOUR_MATCHING", "true").lower() == "true"
MAINTENANCE_INTERVAL_SECONDS = int(os.getenv("MAINTENANCE_INTERVAL_SECONDS", "3600"))
MAINTENANCE_SCHEDULER_ENABLED = (
    os.getenv("MAINTENANCE_SCHEDULER_ENABLED", "true").lower() == "true"
)

# Public OTP request throttling (per client IP)
VERIFY_REQUEST_RATE_LIMIT = int(os.getenv("VERIFY_REQUEST_RATE_LIMIT", "5"))
VERIFY_REQUEST_RATE_WINDOW_SECONDS = int(os.getenv("VERIFY_REQUEST_RATE_WINDOW_SECONDS", "600"))

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", f"{SALON_NAME} <noreply@ymcoiffure.fr>")

# Google Calendar OAuth Configuration
# The refresh token belongs to the salon's Google account (offline access, calendar scope)
GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")
GOOGLE_REFRESH_TOKEN = os.getenv("GOOGLE_REFRESH_TOKEN")
GOOGLE_CALENDAR_ID = os.getenv("GOOGLE_CALENDAR_ID", "primary")

ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")
PORT = int(os.getenv("PORT", "3000"))
