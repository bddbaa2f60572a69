"""Appointment domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from ...models import APPOINTMENT_STATUSES
from ...shared.validators import (
    validate_list,
    validate_max_length,
    validate_not_past_date,
    validate_positive_id,
    validate_time_hhmm,
)

# Detail document internal statuses
DETAIL_STATUS_PENDING = "pending"
DETAIL_STATUS_CANCELLED = "cancelled"

# Clinical text limits
MAX_LENGTHS = {
    "motivo": 255,
    "sintomas": 500,
    "diagnosticoPrevio": 300,
    "notasAdicionales": 500,
    "observaciones": 500,
}


class ScheduleFields(BaseModel):
    """Date/time slot shared by creation, rescheduling and availability checks"""

    fecha: date
    hora: str
    usuarioIdUser: Optional[int] = None

    @field_validator("fecha")
    @classmethod
    def validate_fecha(cls, v):
        return validate_not_past_date(v)

    @field_validator("hora")
    @classmethod
    def validate_hora(cls, v):
        return validate_time_hhmm(v)

    @field_validator("usuarioIdUser")
    @classmethod
    def validate_staff_id(cls, v):
        return validate_positive_id(v, "usuarioIdUser")


class AppointmentCreate(ScheduleFields):
    """Schema for creating an appointment (relational row + clinical detail)"""

    idCliente: int
    idMascota: int
    idServicio: int
    motivo: Optional[str] = None
    sintomas: Optional[str] = None
    diagnosticoPrevio: Optional[str] = None
    tratamientosAnteriores: Optional[list[str]] = None
    notasAdicionales: Optional[str] = None

    @field_validator("idCliente", "idMascota", "idServicio")
    @classmethod
    def validate_ids(cls, v, info: ValidationInfo):
        return validate_positive_id(v, info.field_name)

    @field_validator("motivo", "sintomas", "diagnosticoPrevio", "notasAdicionales")
    @classmethod
    def validate_text_lengths(cls, v, info: ValidationInfo):
        return validate_max_length(v, MAX_LENGTHS[info.field_name], info.field_name)

    @field_validator("tratamientosAnteriores", mode="before")
    @classmethod
    def validate_treatments(cls, v):
        return validate_list(v, "tratamientosAnteriores")


class AppointmentUpdate(AppointmentCreate):
    """Schema for overwriting an appointment; same required set as creation"""


class StatusChangeRequest(BaseModel):
    """Schema for moving an appointment to another status"""

    estado: str
    observaciones: Optional[str] = None

    @field_validator("estado")
    @classmethod
    def validate_estado(cls, v):
        if v not in APPOINTMENT_STATUSES:
            raise ValueError(f"estado must be one of: {', '.join(APPOINTMENT_STATUSES)}")
        return v

    @field_validator("observaciones")
    @classmethod
    def validate_observaciones(cls, v):
        return validate_max_length(v, MAX_LENGTHS["observaciones"], "observaciones")


class AttendanceRequest(BaseModel):
    """Schema for recording whether the pet was brought in"""

    asistio: bool
    fechaReal: Optional[datetime] = None


class RescheduleRequest(ScheduleFields):
    """Schema for moving an appointment to another slot"""


class AvailabilityRequest(ScheduleFields):
    """Schema for checking whether a slot is free"""


class AvailabilityResponse(BaseModel):
    disponible: bool
    conflictos: list[int] = []


class AppointmentDetailDocument(BaseModel):
    """Clinical detail document as stored in the document store"""

    idCitaSql: str
    idCliente: str
    idMascota: str
    motivo: str = ""
    sintomas: str = ""
    diagnosticoPrevio: str = ""
    tratamientosAnteriores: list[str] = Field(default_factory=list)
    estado: str = DETAIL_STATUS_PENDING
    notasAdicionales: str = ""
    asistio: bool = False
    fechaReal: Optional[datetime] = None
    observaciones: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class ClientSummary(BaseModel):
    nombre: str
    cedula: str


class PetSummary(BaseModel):
    nombre: str
    especie: str


class ServiceSummary(BaseModel):
    nombre: str
    precio: Optional[float] = None


class AppointmentDetailResponse(BaseModel):
    """Clinical fields merged into a listed appointment"""

    motivo: Optional[str] = None
    sintomas: Optional[str] = None
    diagnosticoPrevio: Optional[str] = None
    tratamientosAnteriores: list[str] = []
    estado: Optional[str] = None
    notasAdicionales: Optional[str] = None
    asistio: bool = False
    fechaReal: Optional[datetime] = None


class AppointmentResponse(BaseModel):
    """Appointment row joined with its reference data and clinical detail"""

    model_config = ConfigDict(from_attributes=True)

    idCita: int
    idCliente: int
    idMascota: int
    idServicio: int
    usuarioIdUser: Optional[int] = None
    fecha: date
    hora: str
    estadoCita: str
    createCita: Optional[datetime] = None
    updateCita: Optional[datetime] = None
    cliente: ClientSummary
    mascota: PetSummary
    servicio: ServiceSummary
    veterinario: str
    detalles: Optional[AppointmentDetailResponse] = None


class AppointmentCreatedResponse(BaseModel):
    message: str
    idCita: int


class AppointmentStatusResponse(BaseModel):
    message: str
    estadoCita: str
