from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional

from app.models.reservation import ReservationStatus
from app.schemas.maintenance import MaintenanceResponse
from app.schemas.types import OptionalText, UtcDateTime
from app.schemas.vehicle import VehicleSummary


class GarageVehicle(VehicleSummary):
    year: Optional[int] = None


class BlockedSlot(BaseModel):
    """Reservation window shown to a garage, without the booking user's details."""

    id: int
    start_date: datetime
    end_date: datetime
    status: ReservationStatus

    class Config:
        from_attributes = True


class GarageBookingInfo(BaseModel):
    vehicle: GarageVehicle
    alert_rule_name: str
    expires_at: datetime
    used: bool
    reservations: List[BlockedSlot]
    maintenance: List[MaintenanceResponse]


class GarageBookingRequest(BaseModel):
    scheduled_date: UtcDateTime
    description: OptionalText = None


class GarageBookingResult(BaseModel):
    message: str
    maintenance: MaintenanceResponse
