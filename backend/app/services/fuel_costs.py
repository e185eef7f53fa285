import logging
from typing import List

from sqlalchemy.orm import Session, joinedload

from app.core.database import commit
from app.core.exceptions import NotFoundError
from app.models.fuel_cost import FuelCost
from app.models.profile import Profile
from app.models.vehicle import Vehicle
from app.schemas.fuel_cost import FuelCostCreate

logger = logging.getLogger(__name__)


def list_for_vehicle(db: Session, vehicle_id: int) -> List[FuelCost]:
    return (
        db.query(FuelCost)
        .options(joinedload(FuelCost.user))
        .filter(FuelCost.vehicle_id == vehicle_id)
        .order_by(FuelCost.date.desc(), FuelCost.id.desc())
        .all()
    )


def create_fuel_cost(db: Session, data: FuelCostCreate) -> FuelCost:
    """Record a fuel purchase against a vehicle's cost ledger."""
    if not db.query(Vehicle.id).filter(Vehicle.id == data.vehicle_id).first():
        raise NotFoundError("Vehicle not found")
    if data.user_id is not None and not db.query(Profile.id).filter(Profile.id == data.user_id).first():
        raise NotFoundError("User not found")

    entry = FuelCost(**data.model_dump())
    db.add(entry)
    commit(db, "create fuel cost")
    db.refresh(entry)
    return entry


def delete_fuel_cost(db: Session, fuel_cost_id: int) -> None:
    entry = db.query(FuelCost).filter(FuelCost.id == fuel_cost_id).first()
    if not entry:
        raise NotFoundError("Fuel cost not found")
    db.delete(entry)
    commit(db, "delete fuel cost")
