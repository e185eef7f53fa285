import enum

from sqlalchemy import Column, Integer, String, Date, DateTime, Text, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base


def enum_values(enum_cls):
    return [member.value for member in enum_cls]


class FuelType(str, enum.Enum):
    GASOLINE = "gasoline"
    DIESEL = "diesel"
    ELECTRIC = "electric"
    HYBRID = "hybrid"


class VehicleStatus(str, enum.Enum):
    """Operator-controlled status. "reserved" is derived at read time, never stored."""
    AVAILABLE = "available"
    MAINTENANCE = "maintenance"
    UNAVAILABLE = "unavailable"


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True)
    brand = Column(String(50), nullable=False)
    model = Column(String(50), nullable=False)
    year = Column(Integer)
    license_plate = Column(String(20), unique=True, index=True, nullable=False)
    vin = Column(String(17))
    color = Column(String(50))
    fuel_type = Column(
        SQLEnum(FuelType, native_enum=False, values_callable=enum_values, length=20),
        nullable=False,
        default=FuelType.GASOLINE,
    )
    mileage = Column(Integer, nullable=False, default=0)  # km, never decreases
    status = Column(
        SQLEnum(VehicleStatus, native_enum=False, values_callable=enum_values, length=20),
        nullable=False,
        default=VehicleStatus.AVAILABLE,
    )

    # Exclusive assignment removes the vehicle from the shared reservation pool
    assigned_user_id = Column(Integer, ForeignKey("profiles.id", ondelete="SET NULL"))

    # Documents
    insurance_provider = Column(String(100))
    insurance_policy_number = Column(String(100))
    insurance_expiry_date = Column(Date)
    last_technical_inspection = Column(Date)

    notes = Column(Text)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    assigned_user = relationship("Profile", foreign_keys=[assigned_user_id])
    reservations = relationship(
        "Reservation", back_populates="vehicle", cascade="all, delete-orphan"
    )
    maintenance_jobs = relationship(
        "MaintenanceJob", back_populates="vehicle", cascade="all, delete-orphan"
    )
    fuel_costs = relationship("FuelCost", cascade="all, delete-orphan")
    booking_tokens = relationship("GarageBookingToken", cascade="all, delete-orphan")
