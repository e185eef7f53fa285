import enum

from sqlalchemy import Column, Integer, String, Float, DateTime, Text, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.models.vehicle import enum_values


class MaintenanceType(str, enum.Enum):
    ROUTINE = "routine"
    REPAIR = "repair"
    INSPECTION = "inspection"
    OTHER = "other"


class MaintenanceStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


BLOCKING_MAINTENANCE_STATUSES = (
    MaintenanceStatus.SCHEDULED,
    MaintenanceStatus.IN_PROGRESS,
)


class MaintenanceJob(Base):
    __tablename__ = "maintenance"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)

    type = Column(
        SQLEnum(MaintenanceType, native_enum=False, values_callable=enum_values, length=20),
        nullable=False,
        default=MaintenanceType.ROUTINE,
    )
    status = Column(
        SQLEnum(MaintenanceStatus, native_enum=False, values_callable=enum_values, length=20),
        nullable=False,
        default=MaintenanceStatus.SCHEDULED,
    )
    description = Column(Text)
    scheduled_date = Column(DateTime, nullable=False)
    completed_date = Column(DateTime)
    mileage_at_service = Column(Integer)

    cost = Column(Float)
    provider = Column(String(200))
    notes = Column(Text)

    # Maintenance rule this job satisfies, used to anchor usage-based alerts
    rule_name = Column(String(100), index=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    vehicle = relationship("Vehicle", back_populates="maintenance_jobs")
