"""Maintenance job lifecycle and baseline seeding."""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from app.core.clock import utcnow
from app.core.database import commit
from app.core.exceptions import NotFoundError, ValidationError
from app.core.redis_client import get_notified_store
from app.models.maintenance import (
    MaintenanceJob, MaintenanceStatus, MaintenanceType, BLOCKING_MAINTENANCE_STATUSES
)
from app.models.rule import MaintenanceRule
from app.models.vehicle import Vehicle
from app.schemas.maintenance import MaintenanceCreate, MaintenanceUpdate
from app.services.conflicts import ensure_no_conflict, lock_vehicle, maintenance_window

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    MaintenanceStatus.SCHEDULED: {
        MaintenanceStatus.IN_PROGRESS,
        MaintenanceStatus.COMPLETED,  # operators may skip the "started" step
        MaintenanceStatus.CANCELLED,
    },
    MaintenanceStatus.IN_PROGRESS: {MaintenanceStatus.COMPLETED},
    MaintenanceStatus.COMPLETED: set(),
    MaintenanceStatus.CANCELLED: set(),
}


def get_job(db: Session, job_id: int) -> MaintenanceJob:
    job = db.query(MaintenanceJob).filter(MaintenanceJob.id == job_id).first()
    if not job:
        raise NotFoundError("Maintenance record not found")
    return job


def list_jobs(db: Session) -> List[MaintenanceJob]:
    return (
        db.query(MaintenanceJob)
        .options(joinedload(MaintenanceJob.vehicle))
        .order_by(MaintenanceJob.scheduled_date.desc())
        .all()
    )


def list_for_vehicle(db: Session, vehicle_id: int) -> List[MaintenanceJob]:
    return (
        db.query(MaintenanceJob)
        .filter(MaintenanceJob.vehicle_id == vehicle_id)
        .order_by(MaintenanceJob.scheduled_date.desc())
        .all()
    )


def _apply_mileage(vehicle: Vehicle, mileage: Optional[int]) -> None:
    # Vehicle mileage only ever moves forward
    if mileage is not None and mileage > (vehicle.mileage or 0):
        vehicle.mileage = mileage


def _clear_notified(job: MaintenanceJob) -> None:
    cleared = get_notified_store().clear_vehicle(job.vehicle_id, job.rule_name)
    if cleared:
        logger.info(f"Re-armed {cleared} alert notification(s) for vehicle {job.vehicle_id}")


def create_job(db: Session, data: MaintenanceCreate, now: Optional[datetime] = None) -> MaintenanceJob:
    """Insert a maintenance job; blocking jobs must fit the vehicle's schedule."""
    vehicle = lock_vehicle(db, data.vehicle_id)

    if data.status in BLOCKING_MAINTENANCE_STATUSES:
        start, end = maintenance_window(data.scheduled_date)
        ensure_no_conflict(db, vehicle.id, start, end)

    job = MaintenanceJob(**data.model_dump())
    if job.status == MaintenanceStatus.COMPLETED:
        job.completed_date = job.completed_date or now or utcnow()
        _apply_mileage(vehicle, job.mileage_at_service)

    db.add(job)
    commit(db, "create maintenance record")
    db.refresh(job)
    if job.status == MaintenanceStatus.COMPLETED:
        _clear_notified(job)
    logger.info(f"Maintenance {job.id} ({job.type.value}, {job.status.value}) created for vehicle {vehicle.id}")
    return job


def update_job(
    db: Session, job_id: int, data: MaintenanceUpdate, now: Optional[datetime] = None
) -> MaintenanceJob:
    """Apply a partial update, enforcing transitions and syncing vehicle mileage on completion."""
    job = get_job(db, job_id)
    update_data = data.model_dump(exclude_unset=True)

    new_status = update_data.get("status")
    if new_status is not None and new_status != job.status:
        if new_status not in ALLOWED_TRANSITIONS[job.status]:
            raise ValidationError(
                f"Cannot change maintenance status from {job.status.value} to {new_status.value}"
            )
    completing = new_status == MaintenanceStatus.COMPLETED and job.status != MaintenanceStatus.COMPLETED

    vehicle = lock_vehicle(db, job.vehicle_id)

    resulting_status = new_status or job.status
    new_date = update_data.get("scheduled_date")
    if new_date is not None and new_date != job.scheduled_date and resulting_status in BLOCKING_MAINTENANCE_STATUSES:
        start, end = maintenance_window(new_date)
        ensure_no_conflict(db, vehicle.id, start, end, exclude_maintenance_id=job.id)

    for key, value in update_data.items():
        if key in ("status", "type", "scheduled_date") and value is None:
            continue
        setattr(job, key, value)

    if completing:
        job.completed_date = update_data.get("completed_date") or now or utcnow()
        # Only a mileage supplied with the completion is written back to the vehicle
        _apply_mileage(vehicle, update_data.get("mileage_at_service"))

    commit(db, "update maintenance record")
    db.refresh(job)
    if completing:
        _clear_notified(job)
        logger.info(f"Maintenance {job.id} completed for vehicle {vehicle.id}")
    return job


def delete_job(db: Session, job_id: int) -> None:
    job = get_job(db, job_id)
    db.delete(job)
    commit(db, "delete maintenance record")


def build_baseline_jobs(
    vehicle: Vehicle, rules: List[MaintenanceRule], now: datetime
) -> List[MaintenanceJob]:
    """Completed jobs standing in for maintenance done before the vehicle joined the fleet."""
    if not vehicle.mileage or vehicle.mileage <= 0:
        return []
    return [
        MaintenanceJob(
            vehicle_id=vehicle.id,
            type=MaintenanceType.ROUTINE,
            status=MaintenanceStatus.COMPLETED,
            description=f"{rule.name} - baseline (maintenance up to date when the vehicle was added)",
            scheduled_date=now,
            completed_date=now,
            mileage_at_service=vehicle.mileage,
            rule_name=rule.name,
            notes="Recorded automatically: maintenance declared up to date at vehicle creation",
        )
        for rule in rules
        if rule.is_active and rule.applies_to(vehicle.fuel_type)
    ]
