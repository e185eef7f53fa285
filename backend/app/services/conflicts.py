"""Interval conflict checks for exclusively-owned vehicles.

Two windows [s1, e1) and [s2, e2) conflict when ``s1 <= e2 and e1 >= s2``.
Touching boundaries count as a conflict, so back-to-back bookings are
rejected. A maintenance job is a single instant at its scheduled date and
conflicts with any window that contains it. Only blocking reservations and
maintenance jobs participate.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError
from app.models.maintenance import MaintenanceJob, BLOCKING_MAINTENANCE_STATUSES
from app.models.reservation import Reservation, BLOCKING_RESERVATION_STATUSES
from app.models.vehicle import Vehicle

RESERVATION_CONFLICT = "reservation"
MAINTENANCE_CONFLICT = "maintenance"


def intervals_overlap(s1: datetime, e1: datetime, s2: datetime, e2: datetime) -> bool:
    return s1 <= e2 and e1 >= s2


def maintenance_window(scheduled_date: datetime) -> tuple:
    """A job checked against the schedule as the degenerate window [date, date]."""
    return scheduled_date, scheduled_date


def lock_vehicle(db: Session, vehicle_id: int) -> Vehicle:
    """Load a vehicle row FOR UPDATE so check-then-write on it is serialized."""
    vehicle = db.query(Vehicle).filter(Vehicle.id == vehicle_id).with_for_update().first()
    if not vehicle:
        raise NotFoundError("Vehicle not found")
    return vehicle


def has_conflict(
    db: Session,
    vehicle_id: int,
    start: datetime,
    end: datetime,
    exclude_reservation_id: Optional[int] = None,
    exclude_maintenance_id: Optional[int] = None,
) -> Optional[str]:
    """Return the kind of the first conflicting record, or None.

    Reservations are checked before maintenance jobs.
    """
    query = db.query(Reservation.id).filter(
        Reservation.vehicle_id == vehicle_id,
        Reservation.status.in_(BLOCKING_RESERVATION_STATUSES),
        Reservation.start_date <= end,
        Reservation.end_date >= start,
    )
    if exclude_reservation_id is not None:
        query = query.filter(Reservation.id != exclude_reservation_id)
    if query.first() is not None:
        return RESERVATION_CONFLICT

    query = db.query(MaintenanceJob.id).filter(
        MaintenanceJob.vehicle_id == vehicle_id,
        MaintenanceJob.status.in_(BLOCKING_MAINTENANCE_STATUSES),
        MaintenanceJob.scheduled_date <= end,
        MaintenanceJob.scheduled_date >= start,
    )
    if exclude_maintenance_id is not None:
        query = query.filter(MaintenanceJob.id != exclude_maintenance_id)
    if query.first() is not None:
        return MAINTENANCE_CONFLICT

    return None


def ensure_no_conflict(
    db: Session,
    vehicle_id: int,
    start: datetime,
    end: datetime,
    exclude_reservation_id: Optional[int] = None,
    exclude_maintenance_id: Optional[int] = None,
) -> None:
    """Raise ConflictError when the window collides with a blocking record."""
    kind = has_conflict(
        db, vehicle_id, start, end,
        exclude_reservation_id=exclude_reservation_id,
        exclude_maintenance_id=exclude_maintenance_id,
    )
    if kind is not None:
        raise ConflictError(kind)
