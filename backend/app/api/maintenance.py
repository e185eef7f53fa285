from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from app.core.database import get_db
from app.schemas.maintenance import MaintenanceCreate, MaintenanceResponse, MaintenanceUpdate
from app.services import maintenance as maintenance_service

router = APIRouter()


@router.get("/", response_model=List[MaintenanceResponse])
def list_maintenance(db: Session = Depends(get_db)):
    """All maintenance jobs, latest scheduled first."""
    return maintenance_service.list_jobs(db)


@router.get("/vehicle/{vehicle_id}", response_model=List[MaintenanceResponse])
def list_vehicle_maintenance(vehicle_id: int, db: Session = Depends(get_db)):
    return maintenance_service.list_for_vehicle(db, vehicle_id)


@router.post("/", response_model=MaintenanceResponse, status_code=201)
def create_maintenance(job: MaintenanceCreate, db: Session = Depends(get_db)):
    return maintenance_service.create_job(db, job)


@router.put("/{job_id}", response_model=MaintenanceResponse)
def update_maintenance(job_id: int, job: MaintenanceUpdate, db: Session = Depends(get_db)):
    """Update a job. Completing it writes the service mileage back to the vehicle."""
    return maintenance_service.update_job(db, job_id, job)


@router.delete("/{job_id}")
def delete_maintenance(job_id: int, db: Session = Depends(get_db)):
    maintenance_service.delete_job(db, job_id)
    return {"message": "Maintenance record deleted"}
