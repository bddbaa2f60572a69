from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# Relational appointment statuses
STATUS_SCHEDULED = "scheduled"
STATUS_CONFIRMED = "confirmed"
STATUS_CANCELLED = "cancelled"
STATUS_COMPLETED = "completed"
STATUS_NO_SHOW = "no-show"

APPOINTMENT_STATUSES = (
    STATUS_SCHEDULED,
    STATUS_CONFIRMED,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_NO_SHOW,
)


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False)  # Encrypted
    id_number = Column(Text, nullable=True)  # Encrypted national ID (cedula)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    pets = relationship("Pet", back_populates="owner")
    appointments = relationship("Appointment", back_populates="client")


class Pet(Base):
    __tablename__ = "pets"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    name = Column(Text, nullable=False)  # Encrypted
    species = Column(Text, nullable=True)  # Encrypted
    breed = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    owner = relationship("Client", back_populates="pets")
    appointments = relationship("Appointment", back_populates="pet")


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False)  # Encrypted
    price = Column(Float, nullable=True)
    duration_minutes = Column(Integer, default=30, nullable=True)

    appointments = relationship("Appointment", back_populates="service")


class User(Base):
    """Clinic staff (veterinarians, assistants) that appointments can be assigned to"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False)  # Encrypted
    email = Column(String(255), unique=True, index=True, nullable=True)
    role = Column(String(50), default="veterinarian", nullable=True)

    appointments = relationship("Appointment", back_populates="staff")


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    pet_id = Column(Integer, ForeignKey("pets.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)  # Optional staff
    date = Column(Date, nullable=False, index=True)
    time = Column(Time, nullable=False)
    status = Column(String(20), default=STATUS_SCHEDULED, nullable=False, index=True)
    created_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, nullable=True)

    client = relationship("Client", back_populates="appointments")
    pet = relationship("Pet", back_populates="appointments")
    service = relationship("Service", back_populates="appointments")
    staff = relationship("User", back_populates="appointments")
