"""Appointment router - FastAPI endpoints for appointment operations"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session

from ...database import get_db
from ...document_store import AppointmentDetailStore, get_detail_store
from ...encryption import FieldCipher, get_field_cipher
from ...models import APPOINTMENT_STATUSES
from .schemas import (
    AppointmentCreate,
    AppointmentCreatedResponse,
    AppointmentResponse,
    AppointmentStatusResponse,
    AppointmentUpdate,
    AttendanceRequest,
    AvailabilityRequest,
    AvailabilityResponse,
    RescheduleRequest,
    StatusChangeRequest,
)
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Appointments"])


def get_appointment_service(
    db: Session = Depends(get_db),
    details: AppointmentDetailStore = Depends(get_detail_store),
    cipher: FieldCipher = Depends(get_field_cipher),
) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db, details, cipher)


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("/lista", response_model=list[AppointmentResponse])
async def list_appointments(service: AppointmentService = Depends(get_appointment_service)):
    """Get all appointments with client, pet, service, staff and clinical detail"""
    return await service.list_appointments()


@router.post("/crear", response_model=AppointmentCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    data: AppointmentCreate,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Create an appointment and its clinical detail document"""
    appointment = await service.create_appointment(data)
    return AppointmentCreatedResponse(message="Appointment created successfully", idCita=appointment.id)


@router.put("/actualizar/{idCita}")
async def update_appointment(
    data: AppointmentUpdate,
    idCita: int = Path(..., ge=1),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Overwrite an appointment (status back to scheduled, attendance reset)"""
    await service.update_appointment(idCita, data)
    return {"message": "Appointment updated successfully"}


@router.delete("/eliminar/{idCita}")
async def cancel_appointment(
    idCita: int = Path(..., ge=1),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Cancel an appointment; nothing is deleted"""
    await service.cancel_appointment(idCita)
    return {"message": "Appointment cancelled successfully"}


# ============================================================================
# FILTERED LISTINGS
# ============================================================================


@router.get("/fecha/{fecha}", response_model=list[AppointmentResponse])
async def list_by_date(
    fecha: date,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Get appointments on a given date"""
    return await service.list_appointments(start_date=fecha, end_date=fecha)


@router.get("/cliente/{idCliente}", response_model=list[AppointmentResponse])
async def list_by_client(
    idCliente: int = Path(..., ge=1),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Get appointments for a client"""
    return await service.list_appointments(client_id=idCliente)


@router.get("/mascota/{idMascota}", response_model=list[AppointmentResponse])
async def list_by_pet(
    idMascota: int = Path(..., ge=1),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Get appointments for a pet"""
    return await service.list_appointments(pet_id=idMascota)


@router.get("/veterinario/{idVeterinario}", response_model=list[AppointmentResponse])
async def list_by_staff(
    idVeterinario: int = Path(..., ge=1),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Get appointments assigned to a staff member"""
    return await service.list_appointments(user_id=idVeterinario)


@router.get("/estado/{estado}", response_model=list[AppointmentResponse])
async def list_by_status(
    estado: str = Path(..., pattern="^(" + "|".join(APPOINTMENT_STATUSES) + ")$"),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Get appointments in a given status"""
    return await service.list_appointments(status=estado)


@router.get("/agenda-hoy", response_model=list[AppointmentResponse])
async def agenda_today(service: AppointmentService = Depends(get_appointment_service)):
    """Today's non-cancelled appointments, earliest first"""
    return await service.agenda(days=1)


@router.get("/agenda-semana", response_model=list[AppointmentResponse])
async def agenda_week(service: AppointmentService = Depends(get_appointment_service)):
    """Non-cancelled appointments for today and the next six days"""
    return await service.agenda(days=7)


# ============================================================================
# SCHEDULING OPERATIONS
# ============================================================================


@router.post("/verificar-disponibilidad", response_model=AvailabilityResponse)
async def check_availability(
    data: AvailabilityRequest,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Check whether a date/time slot is free"""
    return service.check_availability(data)


@router.put("/cambiar-estado/{idCita}", response_model=AppointmentStatusResponse)
async def change_status(
    data: StatusChangeRequest,
    idCita: int = Path(..., ge=1),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Change the status of an appointment"""
    appointment = await service.change_status(idCita, data)
    return AppointmentStatusResponse(message="Appointment status updated", estadoCita=appointment.status)


@router.put("/marcar-asistencia/{idCita}", response_model=AppointmentStatusResponse)
async def mark_attendance(
    data: AttendanceRequest,
    idCita: int = Path(..., ge=1),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Record whether the pet attended"""
    appointment = await service.mark_attendance(idCita, data)
    return AppointmentStatusResponse(message="Attendance recorded", estadoCita=appointment.status)


@router.put("/reprogramar/{idCita}")
async def reschedule_appointment(
    data: RescheduleRequest,
    idCita: int = Path(..., ge=1),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Move an appointment to another date/time"""
    await service.reschedule(idCita, data)
    return {"message": "Appointment rescheduled successfully"}


__all__ = [
    "router",
    "list_appointments",
    "create_appointment",
    "update_appointment",
    "cancel_appointment",
    "check_availability",
    "change_status",
    "mark_attendance",
    "reschedule_appointment",
]
