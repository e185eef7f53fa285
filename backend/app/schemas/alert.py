import enum
from datetime import date
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from app.models.rule import IntervalUnit


class Priority(str, enum.Enum):
    """Alert priority tiers. Lower rank = more urgent."""

    URGENT = "urgent"
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    Priority.URGENT: 0,
    Priority.HIGH: 1,
    Priority.NORMAL: 2,
    Priority.LOW: 3,
}

NOTIFIABLE_PRIORITIES = (Priority.URGENT, Priority.HIGH)


class AlertBase(BaseModel):
    """Projection shared by every alert kind."""

    vehicle_id: int
    brand: str
    model: str
    license_plate: str
    fuel_type: str
    rule_name: str
    description: str
    priority: Priority
    current_value: float
    threshold_value: float
    remaining: float  # km or days left before due, negative when overdue
    progress: float  # current_value / threshold_value clamped to [0, 1]

    @property
    def key(self) -> str:
        return f"{self.vehicle_id}:{self.rule_name}"


class UsageAlert(AlertBase):
    kind: Literal["usage"] = "usage"
    interval_unit: IntervalUnit
    last_service_mileage: Optional[int] = None
    last_service_date: Optional[date] = None
    due_mileage: Optional[int] = None
    due_date: Optional[date] = None


class CalendarAlert(AlertBase):
    kind: Literal["calendar"] = "calendar"
    document: Literal["insurance", "technical_inspection"]
    due_date: date
    days_until_due: int


Alert = Annotated[Union[UsageAlert, CalendarAlert], Field(discriminator="kind")]


class NotifyResponse(BaseModel):
    message: str
    sent: bool
    alert_count: int = 0
