from app.schemas.vehicle import VehicleCreate, VehicleUpdate, VehicleResponse, VehicleAssign
from app.schemas.profile import ProfileCreate, ProfileUpdate, ProfileResponse
from app.schemas.reservation import (
    ReservationCreate, ReservationUpdate, ReservationResponse, ReservationReturnRequest
)
from app.schemas.maintenance import MaintenanceCreate, MaintenanceUpdate, MaintenanceResponse
from app.schemas.alert import Alert, UsageAlert, CalendarAlert, Priority
from app.schemas.fuel_cost import FuelCostCreate, FuelCostResponse

__all__ = [
    "VehicleCreate", "VehicleUpdate", "VehicleResponse", "VehicleAssign",
    "ProfileCreate", "ProfileUpdate", "ProfileResponse",
    "ReservationCreate", "ReservationUpdate", "ReservationResponse", "ReservationReturnRequest",
    "MaintenanceCreate", "MaintenanceUpdate", "MaintenanceResponse",
    "Alert", "UsageAlert", "CalendarAlert", "Priority",
    "FuelCostCreate", "FuelCostResponse",
]
