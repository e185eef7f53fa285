from pydantic import AliasChoices, BaseModel, Field
from datetime import datetime
from typing import List, Optional

from app.models.reservation import ReservationStatus
from app.schemas.profile import ProfileSummary
from app.schemas.types import OptionalText, UtcDateTime
from app.schemas.vehicle import VehicleSummary


class ReservationBase(BaseModel):
    vehicle_id: int
    user_id: int
    start_date: UtcDateTime
    end_date: UtcDateTime
    purpose: OptionalText = None
    start_location: OptionalText = None
    end_location: OptionalText = None
    notes: OptionalText = None


class ReservationCreate(ReservationBase):
    pass


class ReservationUpdate(BaseModel):
    vehicle_id: Optional[int] = None
    user_id: Optional[int] = None
    start_date: Optional[UtcDateTime] = None
    end_date: Optional[UtcDateTime] = None
    status: Optional[ReservationStatus] = None
    purpose: OptionalText = None
    start_location: OptionalText = None
    end_location: OptionalText = None
    notes: OptionalText = None


class ReservationReturnRequest(BaseModel):
    mileage: int = Field(ge=0, validation_alias=AliasChoices("mileage", "current_mileage"))
    fuel_level: OptionalText = None
    battery_level: Optional[int] = Field(default=None, ge=0, le=100)
    has_issues: bool = False
    issues_description: OptionalText = None
    fuel_cost: Optional[float] = Field(default=None, ge=0)
    parking_cost: Optional[float] = Field(default=None, ge=0)
    toll_cost: Optional[float] = Field(default=None, ge=0)


class ReservationReturnResponse(BaseModel):
    id: int
    reservation_id: int
    mileage: int
    fuel_level: Optional[str] = None
    battery_level: Optional[int] = None
    has_issues: bool
    issues_description: Optional[str] = None
    fuel_cost: Optional[float] = None
    parking_cost: Optional[float] = None
    toll_cost: Optional[float] = None
    returned_at: datetime

    class Config:
        from_attributes = True


class ReservationResponse(BaseModel):
    id: int
    vehicle_id: int
    user_id: int
    start_date: datetime
    end_date: datetime
    status: ReservationStatus
    purpose: Optional[str] = None
    start_location: Optional[str] = None
    end_location: Optional[str] = None
    notes: Optional[str] = None
    fuel_cost: Optional[float] = None
    parking_cost: Optional[float] = None
    toll_cost: Optional[float] = None
    user_notified: bool = True
    vehicle: Optional[VehicleSummary] = None
    user: Optional[ProfileSummary] = None
    returns: List[ReservationReturnResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReturnResult(BaseModel):
    message: str
    reservation: ReservationResponse
    repair_maintenance_id: Optional[int] = None


class NotificationCount(BaseModel):
    count: int


class NotificationsRead(BaseModel):
    updated: int
