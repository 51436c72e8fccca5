# admin_agent/models.py
import uuid
import datetime

from sqlalchemy import Column, String, DateTime, Float, ForeignKey
from sqlalchemy.orm import relationship

from admin_agent.db import Base

MACHINE_AVAILABLE = "Available"
MACHINE_IN_USE = "In Use"
MACHINE_OFFLINE = "Offline"

BOOKING_PENDING = "Pending"
BOOKING_CONFIRMED = "Confirmed"
BOOKING_CANCELLED = "Cancelled"


def _uuid() -> str:
    return str(uuid.uuid4())


class Laundromat(Base):
    __tablename__ = "participating_laundromats"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False)
    address = Column(String(512), nullable=False)
    borough = Column(String(64), nullable=False)
    phone = Column(String(32), nullable=True)
    created_at = Column(DateTime, default=datetime.datetime.utcnow)

    machines = relationship("Machine", back_populates="laundromat")


class Machine(Base):
    __tablename__ = "machines"

    machine_id = Column(String(64), primary_key=True)
    laundromat_id = Column(String(36), ForeignKey("participating_laundromats.id"), nullable=False, index=True)
    machine_type = Column(String(64), nullable=False)
    current_status = Column(String(32), nullable=False, default=MACHINE_AVAILABLE, index=True)
    average_monthly_revenue = Column(Float, nullable=True)
    created_at = Column(DateTime, default=datetime.datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.datetime.utcnow)

    laundromat = relationship("Laundromat", back_populates="machines")


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=True)
    created_at = Column(DateTime, default=datetime.datetime.utcnow)

    bookings = relationship("Booking", back_populates="user")


class Driver(Base):
    __tablename__ = "drivers"

    id = Column(String(36), primary_key=True, default=_uuid)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=False)
    email = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.datetime.utcnow)


class Booking(Base):
    __tablename__ = "bookings"

    booking_id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=True, index=True)
    status = Column(String(32), nullable=False, default=BOOKING_PENDING, index=True)
    created_at = Column(DateTime, default=datetime.datetime.utcnow)

    user = relationship("User", back_populates="bookings")
