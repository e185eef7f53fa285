import enum

from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, Text, JSON, Enum as SQLEnum
from sqlalchemy.sql import func
from app.core.database import Base
from app.models.vehicle import enum_values


class IntervalUnit(str, enum.Enum):
    DISTANCE = "distance"  # interval_value in km
    TIME = "time"  # interval_value in months


class MaintenanceRule(Base):
    __tablename__ = "maintenance_rules"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text)
    fuel_types = Column(JSON, nullable=False, default=list)  # list of FuelType values
    interval_unit = Column(
        SQLEnum(IntervalUnit, native_enum=False, values_callable=enum_values, length=20),
        nullable=False,
    )
    interval_value = Column(Integer, nullable=False)

    # Priority bands as fractions of the interval still remaining
    high_fraction = Column(Float, nullable=False, default=0.10)
    normal_fraction = Column(Float, nullable=False, default=0.25)
    low_fraction = Column(Float, nullable=False, default=0.50)

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())

    def applies_to(self, fuel_type) -> bool:
        value = fuel_type.value if isinstance(fuel_type, enum.Enum) else fuel_type
        return value in (self.fuel_types or [])
