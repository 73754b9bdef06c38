"""Booking router - public FastAPI endpoints for the reservation workflow"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ...database import get_db
from ...email_service import BookingNotifier, get_booking_notifier
from ...rate_limiter import client_ip_from_request, verify_request_rate_limit
from ...services.google_calendar_service import GoogleCalendarClient, get_calendar_client
from .schemas import (
    BusySlotsResponse,
    ConfirmResponse,
    StatusResponse,
    SuccessResponse,
    VerifyConfirm,
    VerifyRequest,
)
from .service import ReservationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Booking"])


def get_reservation_service(
    db: Session = Depends(get_db),
    calendar: GoogleCalendarClient = Depends(get_calendar_client),
    notifier: BookingNotifier = Depends(get_booking_notifier),
) -> ReservationService:
    """Dependency injection for ReservationService"""
    return ReservationService(db, calendar, notifier)


@router.post(
    "/verify-request",
    response_model=SuccessResponse,
    dependencies=[Depends(verify_request_rate_limit)],
)
async def verify_request(
    data: VerifyRequest,
    request: Request,
    service: ReservationService = Depends(get_reservation_service),
):
    """Validate a slot request and email a one-time code to the client"""
    await service.request_verification(
        email=data.email,
        client_name=data.clientName,
        date=data.date,
        time=data.time,
        phone=data.phone,
        origin_ip=client_ip_from_request(request),
    )
    return SuccessResponse(success=True, message="Code envoyé, vérifiez votre email")


@router.post("/verify-confirm", response_model=ConfirmResponse)
async def verify_confirm(
    data: VerifyConfirm,
    service: ReservationService = Depends(get_reservation_service),
):
    """Check the code and turn the pending request into a booked appointment"""
    appointment = await service.confirm_verification(email=data.email, code=data.code)
    return ConfirmResponse(success=True, date=appointment.date.isoformat(), time=appointment.time)


@router.get("/status", response_model=StatusResponse)
def get_status(service: ReservationService = Depends(get_reservation_service)):
    """Open/closed flag; reports open when the setting cannot be read"""
    try:
        return StatusResponse(is_open=service.is_open())
    except Exception as e:
        logger.error(f"Failed to read salon status, defaulting to open: {e}")
        return StatusResponse(is_open=True)


@router.get("/busy-slots", response_model=BusySlotsResponse)
def get_busy_slots(
    date: Optional[str] = Query(None),
    service: ReservationService = Depends(get_reservation_service),
):
    """Times already booked on a given YYYY-MM-DD date"""
    return BusySlotsResponse(busySlots=service.get_busy_slots(date))
