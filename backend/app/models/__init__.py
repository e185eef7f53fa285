from app.models.vehicle import Vehicle, FuelType, VehicleStatus
from app.models.profile import Profile, ProfileRole
from app.models.reservation import (
    Reservation, ReservationReturn, ReservationStatus, BLOCKING_RESERVATION_STATUSES
)
from app.models.maintenance import (
    MaintenanceJob, MaintenanceType, MaintenanceStatus, BLOCKING_MAINTENANCE_STATUSES
)
from app.models.rule import MaintenanceRule, IntervalUnit
from app.models.garage_token import GarageBookingToken
from app.models.fuel_cost import FuelCost

__all__ = [
    "Vehicle", "FuelType", "VehicleStatus",
    "Profile", "ProfileRole",
    "Reservation", "ReservationReturn", "ReservationStatus", "BLOCKING_RESERVATION_STATUSES",
    "MaintenanceJob", "MaintenanceType", "MaintenanceStatus", "BLOCKING_MAINTENANCE_STATUSES",
    "MaintenanceRule", "IntervalUnit",
    "GarageBookingToken",
    "FuelCost",
]
