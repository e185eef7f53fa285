from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from app.models.maintenance import MaintenanceStatus, MaintenanceType
from app.schemas.types import OptionalText, UtcDateTime
from app.schemas.vehicle import VehicleSummary


class MaintenanceBase(BaseModel):
    type: MaintenanceType = MaintenanceType.ROUTINE
    description: OptionalText = None
    scheduled_date: UtcDateTime


class MaintenanceCreate(MaintenanceBase):
    vehicle_id: int
    status: MaintenanceStatus = MaintenanceStatus.SCHEDULED
    completed_date: Optional[UtcDateTime] = None
    mileage_at_service: Optional[int] = Field(default=None, ge=0)
    cost: Optional[float] = Field(default=None, ge=0)
    provider: OptionalText = None
    notes: OptionalText = None
    rule_name: OptionalText = None


class MaintenanceUpdate(BaseModel):
    type: Optional[MaintenanceType] = None
    status: Optional[MaintenanceStatus] = None
    description: OptionalText = None
    scheduled_date: Optional[UtcDateTime] = None
    completed_date: Optional[UtcDateTime] = None
    mileage_at_service: Optional[int] = Field(default=None, ge=0)
    cost: Optional[float] = Field(default=None, ge=0)
    provider: OptionalText = None
    notes: OptionalText = None
    rule_name: OptionalText = None


class MaintenanceResponse(MaintenanceBase):
    id: int
    vehicle_id: int
    status: MaintenanceStatus
    completed_date: Optional[datetime] = None
    mileage_at_service: Optional[int] = None
    cost: Optional[float] = None
    provider: Optional[str] = None
    notes: Optional[str] = None
    rule_name: Optional[str] = None
    vehicle: Optional[VehicleSummary] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
