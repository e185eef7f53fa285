import enum

from sqlalchemy import (
    Column, Integer, String, Float, DateTime, Boolean, Text, ForeignKey, Enum as SQLEnum
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.models.vehicle import enum_values


class ReservationStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    ACTIVE = "active"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Statuses that occupy the vehicle
BLOCKING_RESERVATION_STATUSES = (
    ReservationStatus.PENDING,
    ReservationStatus.APPROVED,
    ReservationStatus.ACTIVE,
)


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)

    # Half-open interval [start_date, end_date)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    status = Column(
        SQLEnum(ReservationStatus, native_enum=False, values_callable=enum_values, length=20),
        nullable=False,
        default=ReservationStatus.PENDING,
    )

    purpose = Column(String(255))
    start_location = Column(String(255))
    end_location = Column(String(255))
    notes = Column(Text)  # return audit trail is appended here

    # Costs recorded at return
    fuel_cost = Column(Float)
    parking_cost = Column(Float)
    toll_cost = Column(Float)

    # False while an approval/cancellation has not been seen by the user
    user_notified = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    vehicle = relationship("Vehicle", back_populates="reservations")
    user = relationship("Profile")
    returns = relationship(
        "ReservationReturn", back_populates="reservation", cascade="all, delete-orphan"
    )


class ReservationReturn(Base):
    """Structured record of a vehicle return."""

    __tablename__ = "reservation_returns"

    id = Column(Integer, primary_key=True, index=True)
    reservation_id = Column(
        Integer, ForeignKey("reservations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    mileage = Column(Integer, nullable=False)
    fuel_level = Column(String(20))
    battery_level = Column(Integer)
    has_issues = Column(Boolean, nullable=False, default=False)
    issues_description = Column(Text)
    fuel_cost = Column(Float)
    parking_cost = Column(Float)
    toll_cost = Column(Float)
    returned_at = Column(DateTime, nullable=False)

    reservation = relationship("Reservation", back_populates="returns")
