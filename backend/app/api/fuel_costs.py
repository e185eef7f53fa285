from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from app.core.database import get_db
from app.schemas.fuel_cost import FuelCostCreate, FuelCostResponse
from app.services import fuel_costs as fuel_cost_service

router = APIRouter()


@router.get("/vehicle/{vehicle_id}", response_model=List[FuelCostResponse])
def list_vehicle_fuel_costs(vehicle_id: int, db: Session = Depends(get_db)):
    return fuel_cost_service.list_for_vehicle(db, vehicle_id)


@router.post("/", response_model=FuelCostResponse, status_code=201)
def create_fuel_cost(entry: FuelCostCreate, db: Session = Depends(get_db)):
    return fuel_cost_service.create_fuel_cost(db, entry)


@router.delete("/{fuel_cost_id}")
def delete_fuel_cost(fuel_cost_id: int, db: Session = Depends(get_db)):
    fuel_cost_service.delete_fuel_cost(db, fuel_cost_id)
    return {"message": "Fuel cost deleted"}
