"""Admin domain schemas"""

from typing import Optional

from pydantic import BaseModel


class AppointmentResponse(BaseModel):
    id: str
    date: str
    time: str
    clientName: str
    phone: str
    email: str
    calendarEventId: Optional[str] = None
    reminderSent: bool
    createdAt: Optional[str] = None


class ToggleStatusRequest(BaseModel):
    is_open: Optional[bool] = None


class ToggleStatusResponse(BaseModel):
    success: bool
    is_open: bool


class BlacklistRequest(BaseModel):
    email: Optional[str] = None


class BlacklistEntryResponse(BaseModel):
    email: str
    createdAt: Optional[str] = None
