from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional

from app.models.vehicle import FuelType, VehicleStatus
from app.schemas.profile import ProfileSummary
from app.schemas.types import OptionalDate, OptionalText


class VehicleBase(BaseModel):
    brand: str
    model: str
    year: Optional[int] = None
    license_plate: str
    vin: OptionalText = None
    color: OptionalText = None
    fuel_type: FuelType = FuelType.GASOLINE
    notes: OptionalText = None


class VehicleCreate(VehicleBase):
    mileage: int = Field(default=0, ge=0)
    status: VehicleStatus = VehicleStatus.AVAILABLE
    assigned_user_id: Optional[int] = None
    insurance_provider: OptionalText = None
    insurance_policy_number: OptionalText = None
    insurance_expiry_date: OptionalDate = None
    last_technical_inspection: OptionalDate = None
    # Backfill completed baseline maintenance so alerts do not fire on day one
    maintenance_up_to_date: bool = False


class VehicleUpdate(BaseModel):
    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    license_plate: Optional[str] = None
    vin: OptionalText = None
    color: OptionalText = None
    fuel_type: Optional[FuelType] = None
    mileage: Optional[int] = Field(default=None, ge=0)
    status: Optional[VehicleStatus] = None
    insurance_provider: OptionalText = None
    insurance_policy_number: OptionalText = None
    insurance_expiry_date: OptionalDate = None
    last_technical_inspection: OptionalDate = None
    notes: OptionalText = None


class VehicleAssign(BaseModel):
    user_id: Optional[int] = None


class VehicleSummary(BaseModel):
    id: int
    brand: str
    model: str
    license_plate: str
    fuel_type: FuelType
    mileage: int

    class Config:
        from_attributes = True


class VehicleResponse(VehicleBase):
    id: int
    mileage: int
    status: VehicleStatus
    display_status: Optional[str] = None  # status, or "reserved" while a booking covers now
    assigned_user_id: Optional[int] = None
    assigned_user: Optional[ProfileSummary] = None
    insurance_provider: Optional[str] = None
    insurance_policy_number: Optional[str] = None
    insurance_expiry_date: Optional[date] = None
    last_technical_inspection: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
