"""Appointment repository - Relational database operations for appointments"""

from datetime import date, time
from typing import Optional

from sqlalchemy.orm import Session

from ...models import STATUS_CANCELLED, Appointment, Client, Pet, Service, User


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def list_appointments(
        db: Session,
        client_id: Optional[int] = None,
        pet_id: Optional[int] = None,
        user_id: Optional[int] = None,
        status: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        exclude_cancelled: bool = False,
        ascending: bool = False,
    ) -> list[tuple[Appointment, Client, Pet, Service, Optional[User]]]:
        """
        Get appointments joined with their client, pet and service.
        Staff assignment is optional, so users are outer joined.
        Newest first unless ascending is set.
        """
        query = (
            db.query(Appointment, Client, Pet, Service, User)
            .join(Client, Appointment.client_id == Client.id)
            .join(Pet, Appointment.pet_id == Pet.id)
            .join(Service, Appointment.service_id == Service.id)
            .outerjoin(User, Appointment.user_id == User.id)
        )

        if client_id:
            query = query.filter(Appointment.client_id == client_id)
        if pet_id:
            query = query.filter(Appointment.pet_id == pet_id)
        if user_id:
            query = query.filter(Appointment.user_id == user_id)
        if status:
            query = query.filter(Appointment.status == status)
        if start_date:
            query = query.filter(Appointment.date >= start_date)
        if end_date:
            query = query.filter(Appointment.date <= end_date)
        if exclude_cancelled:
            query = query.filter(Appointment.status != STATUS_CANCELLED)

        if ascending:
            query = query.order_by(Appointment.date.asc(), Appointment.time.asc(), Appointment.id.asc())
        else:
            query = query.order_by(
                Appointment.date.desc(), Appointment.time.desc(), Appointment.id.desc()
            )

        return query.all()

    @staticmethod
    def get_appointment_by_id(db: Session, appointment_id: int) -> Optional[Appointment]:
        """Get a specific appointment by ID"""
        return db.query(Appointment).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def create_appointment(db: Session, **appointment_data) -> Appointment:
        """Create a new appointment"""
        appointment = Appointment(**appointment_data)
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def stage_update(db: Session, appointment: Appointment, **updates) -> Appointment:
        """Apply changes and flush them without committing"""
        columns = Appointment.__table__.columns
        for key, value in updates.items():
            if key not in columns:
                raise AttributeError(f"Appointment has no column '{key}'")
            setattr(appointment, key, value)

        db.flush()
        return appointment

    @staticmethod
    def delete_appointment(db: Session, appointment: Appointment) -> None:
        """Hard delete; only used to undo a creation whose detail write failed"""
        db.delete(appointment)
        db.commit()

    @staticmethod
    def find_conflicts(
        db: Session, day: date, slot: time, user_id: Optional[int] = None
    ) -> list[Appointment]:
        """Non-cancelled appointments occupying a date/time slot"""
        query = db.query(Appointment).filter(
            Appointment.date == day,
            Appointment.time == slot,
            Appointment.status != STATUS_CANCELLED,
        )

        if user_id:
            query = query.filter(Appointment.user_id == user_id)

        return query.order_by(Appointment.id.asc()).all()
