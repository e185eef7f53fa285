import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from app.core.clock import utcnow
from app.core.database import commit
from app.core.exceptions import NotFoundError, ValidationError
from app.core.redis_client import get_notified_store
from app.models.profile import Profile
from app.models.vehicle import Vehicle
from app.schemas.vehicle import VehicleCreate, VehicleResponse, VehicleUpdate
from app.services.alerts import INSPECTION_RULE_NAME, INSURANCE_RULE_NAME
from app.services.maintenance import build_baseline_jobs
from app.services.reservations import currently_reserved_vehicle_ids
from app.services.rules import list_active_rules

logger = logging.getLogger(__name__)

RESERVED_DISPLAY_STATUS = "reserved"

DOCUMENT_FIELDS = {
    "insurance_expiry_date": INSURANCE_RULE_NAME,
    "last_technical_inspection": INSPECTION_RULE_NAME,
}


def get_vehicle(db: Session, vehicle_id: int) -> Vehicle:
    vehicle = (
        db.query(Vehicle)
        .options(joinedload(Vehicle.assigned_user))
        .filter(Vehicle.id == vehicle_id)
        .first()
    )
    if not vehicle:
        raise NotFoundError("Vehicle not found")
    return vehicle


def list_vehicles(db: Session) -> List[Vehicle]:
    return (
        db.query(Vehicle)
        .options(joinedload(Vehicle.assigned_user))
        .order_by(Vehicle.created_at.desc(), Vehicle.id.desc())
        .all()
    )


def to_response(vehicle: Vehicle, reserved_ids: set) -> VehicleResponse:
    """Serialize a vehicle with its derived display status."""
    response = VehicleResponse.model_validate(vehicle)
    if vehicle.status.value == "available" and vehicle.id in reserved_ids:
        response.display_status = RESERVED_DISPLAY_STATUS
    else:
        response.display_status = vehicle.status.value
    return response


def to_responses(db: Session, vehicles: List[Vehicle], now: Optional[datetime] = None) -> List[VehicleResponse]:
    reserved_ids = currently_reserved_vehicle_ids(db, now)
    return [to_response(vehicle, reserved_ids) for vehicle in vehicles]


def _check_assignee(db: Session, user_id: Optional[int]) -> None:
    if user_id is not None and not db.query(Profile.id).filter(Profile.id == user_id).first():
        raise NotFoundError("User not found")


def create_vehicle(db: Session, data: VehicleCreate, now: Optional[datetime] = None) -> Vehicle:
    """Create a vehicle, backfilling baseline maintenance when declared up to date."""
    now = now or utcnow()
    payload = data.model_dump(exclude={"maintenance_up_to_date"})
    _check_assignee(db, payload.get("assigned_user_id"))

    if db.query(Vehicle.id).filter(Vehicle.license_plate == data.license_plate).first():
        raise ValidationError("License plate already registered")

    vehicle = Vehicle(**payload)
    db.add(vehicle)
    db.flush()  # assigns vehicle.id for the baseline records

    baseline = []
    if data.maintenance_up_to_date:
        baseline = build_baseline_jobs(vehicle, list_active_rules(db), now)
        db.add_all(baseline)

    commit(db, "create vehicle")
    db.refresh(vehicle)
    if baseline:
        logger.info(
            f"Created {len(baseline)} baseline maintenance records for "
            f"{vehicle.brand} {vehicle.model} ({vehicle.license_plate})"
        )
    return vehicle


def update_vehicle(db: Session, vehicle_id: int, data: VehicleUpdate) -> Vehicle:
    vehicle = get_vehicle(db, vehicle_id)
    update_data = data.model_dump(exclude_unset=True)

    mileage = update_data.get("mileage")
    if mileage is not None and mileage < vehicle.mileage:
        raise ValidationError(
            f"Mileage cannot decrease (current {vehicle.mileage} km, submitted {mileage} km)"
        )

    plate = update_data.get("license_plate")
    if plate and plate != vehicle.license_plate:
        taken = db.query(Vehicle.id).filter(Vehicle.license_plate == plate, Vehicle.id != vehicle.id).first()
        if taken:
            raise ValidationError("License plate already registered")

    renewed = [
        rule_name for field, rule_name in DOCUMENT_FIELDS.items()
        if field in update_data and update_data[field] != getattr(vehicle, field)
    ]

    for key, value in update_data.items():
        if key in ("brand", "model", "license_plate", "fuel_type", "mileage", "status") and value is None:
            continue
        setattr(vehicle, key, value)

    commit(db, "update vehicle")
    db.refresh(vehicle)

    # A changed document date is a new deadline and must be notified again
    store = get_notified_store()
    for rule_name in renewed:
        if store.clear_vehicle(vehicle.id, rule_name):
            logger.info(f"Re-armed {rule_name} notification for vehicle {vehicle.id}")
    return vehicle


def assign_vehicle(db: Session, vehicle_id: int, user_id: Optional[int]) -> Vehicle:
    """Assign the vehicle exclusively to one user, or release it with None."""
    vehicle = get_vehicle(db, vehicle_id)
    _check_assignee(db, user_id)
    vehicle.assigned_user_id = user_id
    commit(db, "assign vehicle")
    db.refresh(vehicle)
    return vehicle


def delete_vehicle(db: Session, vehicle_id: int) -> None:
    vehicle = get_vehicle(db, vehicle_id)
    db.delete(vehicle)
    commit(db, "delete vehicle")
    logger.info(f"Vehicle {vehicle_id} deleted")
