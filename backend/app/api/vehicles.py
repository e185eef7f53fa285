from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from app.core.database import get_db
from app.schemas.vehicle import VehicleAssign, VehicleCreate, VehicleResponse, VehicleUpdate
from app.services import vehicles as vehicle_service
from app.services.reservations import currently_reserved_vehicle_ids

router = APIRouter()


@router.get("/", response_model=List[VehicleResponse])
def list_vehicles(db: Session = Depends(get_db)):
    """All vehicles, with "reserved" shown for those out on a reservation right now."""
    return vehicle_service.to_responses(db, vehicle_service.list_vehicles(db))


@router.get("/{vehicle_id}", response_model=VehicleResponse)
def get_vehicle(vehicle_id: int, db: Session = Depends(get_db)):
    vehicle = vehicle_service.get_vehicle(db, vehicle_id)
    return vehicle_service.to_response(vehicle, currently_reserved_vehicle_ids(db))


@router.post("/", response_model=VehicleResponse, status_code=201)
def create_vehicle(vehicle: VehicleCreate, db: Session = Depends(get_db)):
    """Create a vehicle. With ``maintenance_up_to_date`` its service history is backfilled."""
    db_vehicle = vehicle_service.create_vehicle(db, vehicle)
    return vehicle_service.to_response(db_vehicle, set())


@router.put("/{vehicle_id}", response_model=VehicleResponse)
def update_vehicle(vehicle_id: int, vehicle: VehicleUpdate, db: Session = Depends(get_db)):
    db_vehicle = vehicle_service.update_vehicle(db, vehicle_id, vehicle)
    return vehicle_service.to_response(db_vehicle, currently_reserved_vehicle_ids(db))


@router.put("/{vehicle_id}/assign", response_model=VehicleResponse)
def assign_vehicle(vehicle_id: int, body: VehicleAssign, db: Session = Depends(get_db)):
    """Assign the vehicle to one user, or put it back in the pool with ``user_id: null``."""
    db_vehicle = vehicle_service.assign_vehicle(db, vehicle_id, body.user_id)
    return vehicle_service.to_response(db_vehicle, currently_reserved_vehicle_ids(db))


@router.delete("/{vehicle_id}")
def delete_vehicle(vehicle_id: int, db: Session = Depends(get_db)):
    vehicle_service.delete_vehicle(db, vehicle_id)
    return {"message": "Vehicle deleted"}
