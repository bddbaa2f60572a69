"""Appointment service - Business logic spanning the relational and document stores"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Optional

from fastapi import HTTPException
from pydantic import ValidationError
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...document_store import AppointmentDetailStore
from ...encryption import FieldCipher, decrypt_or_empty
from ...models import (
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_CONFIRMED,
    STATUS_NO_SHOW,
    STATUS_SCHEDULED,
    Appointment,
)
from .repository import AppointmentRepository
from .schemas import (
    DETAIL_STATUS_CANCELLED,
    DETAIL_STATUS_PENDING,
    AppointmentCreate,
    AppointmentDetailDocument,
    AppointmentDetailResponse,
    AppointmentResponse,
    AppointmentUpdate,
    AttendanceRequest,
    AvailabilityRequest,
    AvailabilityResponse,
    ClientSummary,
    PetSummary,
    RescheduleRequest,
    ServiceSummary,
    StatusChangeRequest,
)

logger = logging.getLogger(__name__)

DATASTORE_ERRORS = (SQLAlchemyError, RedisError)

# Relational status -> internal status of the detail document
DETAIL_STATUS_FOR = {
    STATUS_SCHEDULED: DETAIL_STATUS_PENDING,
    STATUS_CONFIRMED: "confirmed",
    STATUS_CANCELLED: DETAIL_STATUS_CANCELLED,
    STATUS_COMPLETED: "completed",
    STATUS_NO_SHOW: "no-show",
}


class DatastoreError(Exception):
    """A relational or document store operation failed while serving a request"""

    def __init__(self, message: str, error: str):
        super().__init__(f"{message}: {error}")
        self.message = message
        self.error = error


def parse_time(hora: str) -> time:
    """Convert a validated HH:MM string to a time"""
    return datetime.strptime(hora, "%H:%M").time()


class AppointmentService:
    """Service layer keeping an appointment row and its detail document in step"""

    def __init__(self, db: Session, details: AppointmentDetailStore, cipher: FieldCipher):
        self.db = db
        self.details = details
        self.cipher = cipher
        self.repo = AppointmentRepository()

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    async def list_appointments(self, **filters) -> list[AppointmentResponse]:
        """List appointments merged with their decrypted reference data and clinical detail"""
        try:
            rows = self.repo.list_appointments(self.db, **filters)
            documents = await self.details.find_many(str(row[0].id) for row in rows)
        except DATASTORE_ERRORS as e:
            logger.error(f"❌ Error listing appointments: {e}")
            raise DatastoreError("Error retrieving appointments", str(e)) from e

        return [self._to_response(row, document) for row, document in zip(rows, documents)]

    async def agenda(self, days: int = 1) -> list[AppointmentResponse]:
        """Upcoming non-cancelled appointments from today, earliest first"""
        today = date.today()
        return await self.list_appointments(
            start_date=today,
            end_date=today + timedelta(days=days - 1),
            exclude_cancelled=True,
            ascending=True,
        )

    def check_availability(self, data: AvailabilityRequest) -> AvailabilityResponse:
        """Report whether a slot is free, optionally for a specific staff member"""
        try:
            conflicts = self.repo.find_conflicts(
                self.db, data.fecha, parse_time(data.hora), data.usuarioIdUser
            )
        except SQLAlchemyError as e:
            logger.error(f"❌ Error checking availability for {data.fecha} {data.hora}: {e}")
            raise DatastoreError("Error checking availability", str(e)) from e

        return AvailabilityResponse(
            disponible=not conflicts, conflictos=[a.id for a in conflicts]
        )

    def _decrypt(self, value: Optional[str]) -> str:
        return decrypt_or_empty(self.cipher, value)

    def _to_response(self, row, document: Optional[dict[str, Any]]) -> AppointmentResponse:
        appointment, client, pet, service, staff = row
        return AppointmentResponse(
            idCita=appointment.id,
            idCliente=appointment.client_id,
            idMascota=appointment.pet_id,
            idServicio=appointment.service_id,
            usuarioIdUser=appointment.user_id,
            fecha=appointment.date,
            hora=appointment.time.strftime("%H:%M"),
            estadoCita=appointment.status,
            createCita=appointment.created_at,
            updateCita=appointment.updated_at,
            cliente=ClientSummary(
                nombre=self._decrypt(client.name), cedula=self._decrypt(client.id_number)
            ),
            mascota=PetSummary(nombre=self._decrypt(pet.name), especie=self._decrypt(pet.species)),
            servicio=ServiceSummary(nombre=self._decrypt(service.name), precio=service.price),
            veterinario=self._decrypt(staff.name) if staff else "",
            detalles=self._detail_response(appointment.id, document),
        )

    @staticmethod
    def _detail_response(
        appointment_id: int, document: Optional[dict[str, Any]]
    ) -> Optional[AppointmentDetailResponse]:
        if not document:
            return None
        try:
            return AppointmentDetailResponse.model_validate(document)
        except ValidationError as e:
            logger.error(f"❌ Detail document for appointment {appointment_id} is malformed: {e}")
            return None

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def get_appointment(self, appointment_id: int) -> Appointment:
        """Get an appointment or raise 404"""
        try:
            appointment = self.repo.get_appointment_by_id(self.db, appointment_id)
        except SQLAlchemyError as e:
            logger.error(f"❌ Error loading appointment {appointment_id}: {e}")
            raise DatastoreError("Error retrieving the appointment", str(e)) from e

        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        return appointment

    async def create_appointment(self, data: AppointmentCreate) -> Appointment:
        """
        Create the relational row, then its detail document.
        If the document cannot be written the row is removed again so that no
        appointment exists without clinical detail.
        """
        logger.info(f"📥 Creating appointment for client {data.idCliente}, pet {data.idMascota}")
        created_at = datetime.now()

        try:
            appointment = self.repo.create_appointment(
                self.db,
                client_id=data.idCliente,
                pet_id=data.idMascota,
                service_id=data.idServicio,
                user_id=data.usuarioIdUser,
                date=data.fecha,
                time=parse_time(data.hora),
                status=STATUS_SCHEDULED,
                created_at=created_at,
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Error creating appointment row: {e}")
            raise DatastoreError("Error creating the appointment", str(e)) from e

        document = self._build_document(appointment.id, data, created_at)
        try:
            await self.details.insert_one(document.model_dump(mode="json"))
        except RedisError as e:
            logger.error(
                f"❌ Detail write failed for appointment {appointment.id}, removing the row: {e}"
            )
            self._discard(appointment)
            raise DatastoreError("Error creating the appointment", str(e)) from e

        logger.info(f"✅ Appointment {appointment.id} created")
        return appointment

    async def update_appointment(self, appointment_id: int, data: AppointmentUpdate) -> Appointment:
        """Overwrite scheduling and clinical fields; status goes back to scheduled, attendance to false"""
        appointment = self.get_appointment(appointment_id)
        now = datetime.now()

        updates = {
            "client_id": data.idCliente,
            "pet_id": data.idMascota,
            "service_id": data.idServicio,
            "user_id": data.usuarioIdUser,
            "date": data.fecha,
            "time": parse_time(data.hora),
            "status": STATUS_SCHEDULED,
            "updated_at": now,
        }
        detail_fields = {
            "idCliente": str(data.idCliente),
            "idMascota": str(data.idMascota),
            "motivo": data.motivo or "",
            "sintomas": data.sintomas or "",
            "diagnosticoPrevio": data.diagnosticoPrevio or "",
            "tratamientosAnteriores": data.tratamientosAnteriores or [],
            "notasAdicionales": data.notasAdicionales or "",
            "asistio": False,
            "updatedAt": now.isoformat(),
        }

        result = await self._write_both(
            appointment,
            updates,
            detail_fields,
            "Error updating the appointment",
            missing_document=self._build_document(appointment.id, data, now),
        )
        logger.info(f"✅ Appointment {appointment_id} updated")
        return result

    async def cancel_appointment(self, appointment_id: int) -> Appointment:
        """Soft cancel: the row stays, both stores are marked cancelled"""
        appointment = self.get_appointment(appointment_id)
        now = datetime.now()

        result = await self._write_both(
            appointment,
            {"status": STATUS_CANCELLED, "updated_at": now},
            {"estado": DETAIL_STATUS_CANCELLED, "updatedAt": now.isoformat()},
            "Error cancelling the appointment",
        )
        logger.info(f"🗑️ Appointment {appointment_id} cancelled")
        return result

    async def change_status(self, appointment_id: int, data: StatusChangeRequest) -> Appointment:
        """Move to any status; no transition table is enforced"""
        appointment = self.get_appointment(appointment_id)
        now = datetime.now()

        detail_fields = {"estado": DETAIL_STATUS_FOR[data.estado], "updatedAt": now.isoformat()}
        if data.observaciones is not None:
            detail_fields["observaciones"] = data.observaciones

        logger.info(f"🔄 Appointment {appointment_id}: {appointment.status} -> {data.estado}")
        return await self._write_both(
            appointment,
            {"status": data.estado, "updated_at": now},
            detail_fields,
            "Error changing the appointment status",
        )

    async def mark_attendance(self, appointment_id: int, data: AttendanceRequest) -> Appointment:
        """Record attendance; the appointment becomes completed or no-show"""
        appointment = self.get_appointment(appointment_id)
        now = datetime.now()

        status = STATUS_COMPLETED if data.asistio else STATUS_NO_SHOW
        visited_at = data.fechaReal or (now if data.asistio else None)
        detail_fields = {
            "asistio": data.asistio,
            "fechaReal": visited_at.isoformat() if visited_at else None,
            "estado": DETAIL_STATUS_FOR[status],
            "updatedAt": now.isoformat(),
        }

        return await self._write_both(
            appointment,
            {"status": status, "updated_at": now},
            detail_fields,
            "Error recording attendance",
        )

    async def reschedule(self, appointment_id: int, data: RescheduleRequest) -> Appointment:
        """Move an appointment to another slot; clinical detail is left as is"""
        appointment = self.get_appointment(appointment_id)

        updates = {
            "date": data.fecha,
            "time": parse_time(data.hora),
            "status": STATUS_SCHEDULED,
            "updated_at": datetime.now(),
        }
        if data.usuarioIdUser is not None:
            updates["user_id"] = data.usuarioIdUser

        result = await self._write_both(
            appointment, updates, None, "Error rescheduling the appointment"
        )
        logger.info(f"📅 Appointment {appointment_id} moved to {data.fecha} {data.hora}")
        return result

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _build_document(
        appointment_id: int, data: AppointmentCreate, timestamp: datetime
    ) -> AppointmentDetailDocument:
        return AppointmentDetailDocument(
            idCitaSql=str(appointment_id),
            idCliente=str(data.idCliente),
            idMascota=str(data.idMascota),
            motivo=data.motivo or "",
            sintomas=data.sintomas or "",
            diagnosticoPrevio=data.diagnosticoPrevio or "",
            tratamientosAnteriores=data.tratamientosAnteriores or [],
            estado=DETAIL_STATUS_PENDING,
            notasAdicionales=data.notasAdicionales or "",
            asistio=False,
            createdAt=timestamp,
        )

    async def _write_both(
        self,
        appointment: Appointment,
        updates: dict[str, Any],
        detail_fields: Optional[dict[str, Any]],
        failure_message: str,
        missing_document: Optional[AppointmentDetailDocument] = None,
    ) -> Appointment:
        """
        Stage the relational changes, write the document, then commit.

        A document failure rolls the session back. A commit failure puts the
        previous document back (or removes one that did not exist before).
        """
        key = str(appointment.id)
        previous = None
        document_written = False

        try:
            if detail_fields is not None:
                previous = await self.details.find_one(key)

            self.repo.stage_update(self.db, appointment, **updates)

            if detail_fields is not None:
                if previous is not None:
                    document_written = await self.details.update_one(key, detail_fields)
                elif missing_document is not None:
                    logger.warning(f"⚠️ Appointment {key} had no detail document, recreating it")
                    await self.details.insert_one(
                        {**missing_document.model_dump(mode="json"), **detail_fields}
                    )
                    document_written = True
                else:
                    logger.warning(f"⚠️ Appointment {key} has no detail document to update")
        except DATASTORE_ERRORS as e:
            self.db.rollback()
            logger.error(f"❌ {failure_message} {key}: {e}")
            raise DatastoreError(failure_message, str(e)) from e

        try:
            self.db.commit()
            self.db.refresh(appointment)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ {failure_message} {key}, commit failed: {e}")
            if document_written:
                await self._restore_document(key, previous)
            raise DatastoreError(failure_message, str(e)) from e

        return appointment

    async def _restore_document(self, key: str, previous: Optional[dict[str, Any]]) -> None:
        try:
            if previous is None:
                await self.details.delete_one(key)
            else:
                await self.details.replace_one(key, previous)
            logger.info(f"↩️ Detail document for appointment {key} restored")
        except RedisError as e:
            logger.error(f"❌ Could not restore detail document for appointment {key}: {e}")

    def _discard(self, appointment: Appointment) -> None:
        appointment_id = appointment.id
        try:
            self.repo.delete_appointment(self.db, appointment)
            logger.info(f"↩️ Appointment row {appointment_id} removed")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"❌ Could not remove appointment row {appointment_id}, it has no detail document: {e}"
            )
