"""Reservation lifecycle: create, update, return and delete under conflict guard."""
import logging
from datetime import datetime
from typing import List, Optional, Set

from sqlalchemy.orm import Session, joinedload

from app.core.clock import utcnow
from app.core.database import commit
from app.core.exceptions import NotFoundError, ValidationError
from app.models.maintenance import MaintenanceJob, MaintenanceStatus, MaintenanceType
from app.models.profile import Profile
from app.models.reservation import (
    Reservation, ReservationReturn, ReservationStatus, BLOCKING_RESERVATION_STATUSES
)
from app.models.vehicle import Vehicle, VehicleStatus
from app.schemas.reservation import ReservationCreate, ReservationReturnRequest, ReservationUpdate
from app.services.conflicts import ensure_no_conflict, lock_vehicle

logger = logging.getLogger(__name__)

# Status changes allowed through update; "completed" is only reachable by returning
ALLOWED_TRANSITIONS = {
    ReservationStatus.PENDING: {ReservationStatus.APPROVED, ReservationStatus.CANCELLED},
    ReservationStatus.APPROVED: {ReservationStatus.ACTIVE, ReservationStatus.CANCELLED},
    ReservationStatus.ACTIVE: {ReservationStatus.CANCELLED},
    ReservationStatus.CANCELLED: set(),
    ReservationStatus.COMPLETED: set(),
}

# Transitions the booking user should be told about
USER_VISIBLE_STATUSES = {ReservationStatus.APPROVED, ReservationStatus.CANCELLED}

RETURNABLE_STATUSES = {ReservationStatus.APPROVED, ReservationStatus.ACTIVE}


def _validate_interval(start: datetime, end: datetime) -> None:
    if start >= end:
        raise ValidationError("Reservation end date must be after its start date")


def _check_pool_access(vehicle: Vehicle, user_id: int) -> None:
    # An assigned vehicle is reserved for its assignee only
    if vehicle.assigned_user_id is not None and vehicle.assigned_user_id != user_id:
        raise ValidationError("This vehicle is assigned to another user")


def _get_user(db: Session, user_id: int) -> Profile:
    user = db.query(Profile).filter(Profile.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def get_reservation(db: Session, reservation_id: int) -> Reservation:
    reservation = db.query(Reservation).filter(Reservation.id == reservation_id).first()
    if not reservation:
        raise NotFoundError("Reservation not found")
    return reservation


def _listing(db: Session):
    return db.query(Reservation).options(
        joinedload(Reservation.vehicle), joinedload(Reservation.user)
    )


def list_reservations(db: Session) -> List[Reservation]:
    return _listing(db).order_by(Reservation.start_date.desc()).all()


def list_for_vehicle(db: Session, vehicle_id: int) -> List[Reservation]:
    return (
        _listing(db)
        .filter(Reservation.vehicle_id == vehicle_id)
        .order_by(Reservation.start_date.desc())
        .all()
    )


def list_for_user(db: Session, user_id: int) -> List[Reservation]:
    return (
        _listing(db)
        .filter(Reservation.user_id == user_id)
        .order_by(Reservation.start_date.desc())
        .all()
    )


def create_reservation(db: Session, data: ReservationCreate) -> Reservation:
    """Insert a pending reservation if the window is free."""
    _validate_interval(data.start_date, data.end_date)
    _get_user(db, data.user_id)
    vehicle = lock_vehicle(db, data.vehicle_id)
    _check_pool_access(vehicle, data.user_id)

    ensure_no_conflict(db, vehicle.id, data.start_date, data.end_date)

    reservation = Reservation(**data.model_dump(), status=ReservationStatus.PENDING)
    db.add(reservation)
    commit(db, "create reservation")
    db.refresh(reservation)
    logger.info(
        f"Reservation {reservation.id} created for vehicle {vehicle.id} "
        f"({reservation.start_date} -> {reservation.end_date})"
    )
    return reservation


def update_reservation(db: Session, reservation_id: int, data: ReservationUpdate) -> Reservation:
    """Apply a partial update, re-checking conflicts when the window or vehicle moves."""
    reservation = get_reservation(db, reservation_id)
    update_data = data.model_dump(exclude_unset=True)

    new_status = update_data.get("status")
    if new_status is not None and new_status != reservation.status:
        if new_status not in ALLOWED_TRANSITIONS[reservation.status]:
            raise ValidationError(
                f"Cannot change reservation status from {reservation.status.value} to {new_status.value}"
            )

    window_keys = {"vehicle_id", "start_date", "end_date"}
    moves_window = any(update_data.get(key) is not None for key in window_keys)
    new_user_id = update_data.get("user_id")
    changes_user = new_user_id is not None and new_user_id != reservation.user_id
    vehicle_id = update_data.get("vehicle_id") or reservation.vehicle_id

    if moves_window or changes_user:
        vehicle = lock_vehicle(db, vehicle_id)
        _check_pool_access(vehicle, new_user_id or reservation.user_id)

    if moves_window:
        start = update_data.get("start_date") or reservation.start_date
        end = update_data.get("end_date") or reservation.end_date
        _validate_interval(start, end)

        resulting_status = new_status or reservation.status
        if resulting_status in BLOCKING_RESERVATION_STATUSES:
            ensure_no_conflict(db, vehicle_id, start, end, exclude_reservation_id=reservation.id)

    if update_data.get("user_id") is not None:
        _get_user(db, update_data["user_id"])

    non_nullable = window_keys | {"user_id", "status"}
    for key, value in update_data.items():
        if key in non_nullable and value is None:
            continue
        setattr(reservation, key, value)

    if new_status in USER_VISIBLE_STATUSES:
        reservation.user_notified = False

    commit(db, "update reservation")
    db.refresh(reservation)
    return reservation


def delete_reservation(db: Session, reservation_id: int) -> None:
    reservation = get_reservation(db, reservation_id)
    db.delete(reservation)
    commit(db, "delete reservation")


def format_return_note(data: ReservationReturnRequest) -> str:
    """Human-readable return summary appended to the reservation notes."""
    parts = [f"Return - Mileage: {data.mileage} km"]
    if data.fuel_level:
        parts.append(f"Fuel: {data.fuel_level}")
    if data.battery_level is not None:
        parts.append(f"Battery: {data.battery_level}%")
    if data.fuel_cost:
        parts.append(f"Fuel cost: {data.fuel_cost:.2f}")
    if data.parking_cost:
        parts.append(f"Parking: {data.parking_cost:.2f}")
    if data.toll_cost:
        parts.append(f"Toll: {data.toll_cost:.2f}")
    if data.has_issues:
        parts.append(f"Issues: {data.issues_description or 'reported without description'}")
    return ", ".join(parts)


def return_vehicle(
    db: Session,
    reservation_id: int,
    data: ReservationReturnRequest,
    now: Optional[datetime] = None,
) -> tuple:
    """Complete a reservation once its window has ended.

    Returns ``(reservation, repair_job)``; ``repair_job`` is None unless an
    incident was reported. Every write happens in one transaction.
    """
    now = now or utcnow()
    reservation = get_reservation(db, reservation_id)

    if reservation.status not in RETURNABLE_STATUSES:
        raise ValidationError(f"A {reservation.status.value} reservation cannot be returned")
    if now < reservation.end_date:
        raise ValidationError("The vehicle cannot be returned before the end of the reservation")

    vehicle = lock_vehicle(db, reservation.vehicle_id)
    if data.mileage < vehicle.mileage:
        raise ValidationError(
            f"Returned mileage ({data.mileage} km) is lower than the vehicle's "
            f"current mileage ({vehicle.mileage} km)"
        )

    vehicle.mileage = data.mileage
    vehicle.status = VehicleStatus.AVAILABLE

    note = format_return_note(data)
    reservation.notes = f"{reservation.notes}\n\n{note}" if reservation.notes else note
    reservation.status = ReservationStatus.COMPLETED
    if data.fuel_cost is not None:
        reservation.fuel_cost = data.fuel_cost
    if data.parking_cost is not None:
        reservation.parking_cost = data.parking_cost
    if data.toll_cost is not None:
        reservation.toll_cost = data.toll_cost

    db.add(ReservationReturn(
        reservation_id=reservation.id,
        mileage=data.mileage,
        fuel_level=data.fuel_level,
        battery_level=data.battery_level,
        has_issues=data.has_issues,
        issues_description=data.issues_description,
        fuel_cost=data.fuel_cost,
        parking_cost=data.parking_cost,
        toll_cost=data.toll_cost,
        returned_at=now,
    ))

    repair = None
    if data.has_issues:
        repair = MaintenanceJob(
            vehicle_id=vehicle.id,
            type=MaintenanceType.REPAIR,
            status=MaintenanceStatus.SCHEDULED,
            description=f"Issues reported on return: {data.issues_description or 'no description'}",
            scheduled_date=now,
            mileage_at_service=data.mileage,
        )
        db.add(repair)

    commit(db, "return vehicle")
    db.refresh(reservation)
    if repair is not None:
        db.refresh(repair)
        logger.info(f"Repair job {repair.id} opened for vehicle {vehicle.id} after return")
    logger.info(f"Reservation {reservation.id} returned at {data.mileage} km")
    return reservation, repair


def currently_reserved_vehicle_ids(db: Session, now: Optional[datetime] = None) -> Set[int]:
    """Vehicles with a blocking reservation covering ``now`` (derived "reserved" state)."""
    now = now or utcnow()
    rows = db.query(Reservation.vehicle_id).filter(
        Reservation.status.in_(BLOCKING_RESERVATION_STATUSES),
        Reservation.start_date <= now,
        Reservation.end_date > now,
    ).distinct().all()
    return {row.vehicle_id for row in rows}


def unread_notification_count(db: Session, user_id: int) -> int:
    return db.query(Reservation).filter(
        Reservation.user_id == user_id,
        Reservation.user_notified.is_(False),
    ).count()


def mark_notifications_read(db: Session, user_id: int) -> int:
    updated = db.query(Reservation).filter(
        Reservation.user_id == user_id,
        Reservation.user_notified.is_(False),
    ).update({Reservation.user_notified: True}, synchronize_session=False)
    commit(db, "mark reservation notifications as read")
    return updated
