from pydantic import BaseModel, Field
from datetime import date as date_type, datetime
from typing import Optional

from app.schemas.profile import ProfileSummary
from app.schemas.types import OptionalText


class FuelCostCreate(BaseModel):
    vehicle_id: int
    user_id: Optional[int] = None
    date: date_type
    amount: float = Field(ge=0)
    liters: Optional[float] = Field(default=None, ge=0)
    mileage: Optional[int] = Field(default=None, ge=0)
    notes: OptionalText = None


class FuelCostResponse(BaseModel):
    id: int
    vehicle_id: int
    user_id: Optional[int] = None
    date: date_type
    amount: float
    liters: Optional[float] = None
    mileage: Optional[int] = None
    notes: Optional[str] = None
    user: Optional[ProfileSummary] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
