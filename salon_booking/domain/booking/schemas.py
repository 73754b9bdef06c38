"""Booking domain schemas - Pydantic models for the public API"""

from typing import Optional

from pydantic import BaseModel, field_validator


class VerifyRequest(BaseModel):
    """
    Slot request. Fields are optional at the schema level so that missing
    values reach the workflow and are reported as InvalidInput (400).
    """

    email: Optional[str] = None
    clientName: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    phone: Optional[str] = None


class VerifyConfirm(BaseModel):
    email: Optional[str] = None
    code: Optional[str] = None

    @field_validator("code", mode="before")
    @classmethod
    def coerce_numeric_code(cls, v):
        # Some clients post the code as a JSON number
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class SuccessResponse(BaseModel):
    success: bool
    message: Optional[str] = None


class ConfirmResponse(BaseModel):
    success: bool
    date: str
    time: str


class StatusResponse(BaseModel):
    is_open: bool


class BusySlotsResponse(BaseModel):
    busySlots: list[str]
