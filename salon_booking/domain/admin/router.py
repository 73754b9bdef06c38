"""Admin router - endpoints gated by the x-admin-key header"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...services.google_calendar_service import GoogleCalendarClient, get_calendar_client
from .schemas import (
    AppointmentResponse,
    BlacklistEntryResponse,
    BlacklistRequest,
    ToggleStatusRequest,
    ToggleStatusResponse,
)
from .service import AdminService

router = APIRouter(prefix="/api/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


def get_admin_service(
    db: Session = Depends(get_db),
    calendar: GoogleCalendarClient = Depends(get_calendar_client),
) -> AdminService:
    """Dependency injection for AdminService"""
    return AdminService(db, calendar)


@router.get("/appointments", response_model=list[AppointmentResponse])
def list_appointments(service: AdminService = Depends(get_admin_service)):
    """All appointments, most recent date first"""
    return [AppointmentResponse(**a.to_dict()) for a in service.list_appointments()]


@router.post("/toggle-status", response_model=ToggleStatusResponse)
def toggle_status(data: ToggleStatusRequest, service: AdminService = Depends(get_admin_service)):
    return ToggleStatusResponse(success=True, is_open=service.set_status(data.is_open))


@router.delete("/appointment/{appointment_id}")
async def delete_appointment(
    appointment_id: str, service: AdminService = Depends(get_admin_service)
):
    await service.delete_appointment(appointment_id)
    return {"success": True}


@router.get("/blacklist", response_model=list[BlacklistEntryResponse])
def list_blacklist(service: AdminService = Depends(get_admin_service)):
    return [
        BlacklistEntryResponse(
            email=entry.email,
            createdAt=entry.created_at.isoformat() if entry.created_at else None,
        )
        for entry in service.list_blacklist()
    ]


@router.post("/blacklist")
def add_to_blacklist(data: BlacklistRequest, service: AdminService = Depends(get_admin_service)):
    entry = service.add_to_blacklist(data.email)
    return {"success": True, "email": entry.email}


@router.delete("/blacklist/{email}")
def remove_from_blacklist(email: str, service: AdminService = Depends(get_admin_service)):
    service.remove_from_blacklist(email)
    return {"success": True}
