import os
import tempfile

# Point the app at a throwaway SQLite file before salon_booking is imported
_tmpdir = tempfile.mkdtemp(prefix="salon-booking-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_tmpdir}/test.db"
os.environ["MAINTENANCE_SCHEDULER_ENABLED"] = "false"
os.environ["ADMIN_KEY"] = "test-admin-key"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ["SALON_TIMEZONE"] = "Europe/Paris"
os.environ.pop("RESEND_API_KEY", None)

import asyncio  # noqa: E402
from datetime import datetime  # noqa: E402

import pytest  # noqa: E402
import pytz  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from salon_booking.database import Base, SessionLocal, engine  # noqa: E402
from salon_booking.domain.booking.service import ReservationService  # noqa: E402
from salon_booking.email_service import EmailDeliveryError, get_booking_notifier  # noqa: E402
from salon_booking.errors import CalendarUnavailable  # noqa: E402
from salon_booking.main import app  # noqa: E402
from salon_booking.rate_limiter import verify_request_rate_limit  # noqa: E402
from salon_booking.services.google_calendar_service import get_calendar_client  # noqa: E402

ADMIN_HEADERS = {"x-admin-key": "test-admin-key"}


class FakeCalendar:
    def __init__(self):
        self.events = {}
        self.deleted = []
        self.fail_create = False
        self.fail_delete = False
        self._counter = 0

    async def create_event(self, summary, description, start, end):
        # Yield so concurrent confirmations can interleave
        await asyncio.sleep(0)
        if self.fail_create:
            raise CalendarUnavailable()
        self._counter += 1
        event_id = f"evt-{self._counter}"
        self.events[event_id] = {
            "summary": summary,
            "description": description,
            "start": start,
            "end": end,
        }
        return event_id

    async def delete_event(self, event_id):
        await asyncio.sleep(0)
        if self.fail_delete:
            raise CalendarUnavailable()
        self.deleted.append(event_id)
        self.events.pop(event_id, None)


class FakeNotifier:
    def __init__(self):
        self.codes = {}
        self.code_messages = []
        self.confirmations = []
        self.reminders = []
        self.fail_codes = False
        self.fail_confirmations = False
        self.fail_reminders = False

    async def send_verification_code(self, email, client_name, otp):
        await asyncio.sleep(0)
        if self.fail_codes:
            raise EmailDeliveryError("provider rejected message")
        self.codes[email] = otp
        self.code_messages.append((email, client_name, otp))
        return {"id": "fake"}

    async def send_booking_confirmation(self, appointment):
        if self.fail_confirmations:
            raise EmailDeliveryError("provider rejected message")
        self.confirmations.append(appointment.email)
        return {"id": "fake"}

    async def send_reminder(self, appointment):
        if self.fail_reminders:
            raise EmailDeliveryError("provider rejected message")
        self.reminders.append(appointment.id)
        return {"id": "fake"}


class FixedClock:
    """Settable clock returning an aware UTC instant"""

    def __init__(self, when: datetime):
        self.now = when

    def set_local(self, year, month, day, hour=12, minute=0, tz="Europe/Paris"):
        local = pytz.timezone(tz).localize(datetime(year, month, day, hour, minute))
        self.now = local.astimezone(pytz.utc)

    def __call__(self):
        return self.now


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def calendar():
    return FakeCalendar()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def clock():
    c = FixedClock(datetime(2025, 6, 1, 10, 0, tzinfo=pytz.utc))
    c.set_local(2025, 6, 1, 12, 0)
    return c


@pytest.fixture
def service(db, calendar, notifier, clock):
    return ReservationService(db, calendar, notifier, clock=clock)


@pytest.fixture
def client(calendar, notifier):
    app.dependency_overrides[get_calendar_client] = lambda: calendar
    app.dependency_overrides[get_booking_notifier] = lambda: notifier
    app.dependency_overrides[verify_request_rate_limit] = lambda: None
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
