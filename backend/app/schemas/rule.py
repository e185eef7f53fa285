from pydantic import BaseModel
from typing import List, Optional

from app.models.rule import IntervalUnit


class MaintenanceRuleResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    fuel_types: List[str]
    interval_unit: IntervalUnit
    interval_value: int
    high_fraction: float
    normal_fraction: float
    low_fraction: float
    is_active: bool

    class Config:
        from_attributes = True
