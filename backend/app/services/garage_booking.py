"""Time-boxed booking links that let an external garage schedule maintenance."""
import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.core.config import settings
from app.core.database import commit
from app.core.exceptions import ExpiredError, NotFoundError
from app.models.garage_token import GarageBookingToken
from app.models.maintenance import (
    MaintenanceJob, MaintenanceStatus, MaintenanceType, BLOCKING_MAINTENANCE_STATUSES
)
from app.models.reservation import Reservation, BLOCKING_RESERVATION_STATUSES
from app.models.vehicle import Vehicle
from app.schemas.garage_booking import GarageBookingRequest
from app.services.conflicts import ensure_no_conflict, lock_vehicle, maintenance_window

logger = logging.getLogger(__name__)


def booking_url(token: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/garage-booking/{token}"


def mint_token(
    db: Session, vehicle_id: int, alert_rule_name: str, now: Optional[datetime] = None
) -> GarageBookingToken:
    """Create and commit a fresh token for one vehicle and alert rule."""
    now = now or utcnow()
    token = GarageBookingToken(
        token=secrets.token_hex(32),
        vehicle_id=vehicle_id,
        alert_rule_name=alert_rule_name,
        expires_at=now + timedelta(days=settings.GARAGE_TOKEN_VALIDITY_DAYS),
        used=False,
    )
    db.add(token)
    commit(db, "create garage booking token")
    db.refresh(token)
    return token


def get_valid_token(db: Session, token: str, now: Optional[datetime] = None) -> GarageBookingToken:
    """Look up a token; 404 when unknown, 410 once expired whether used or not."""
    now = now or utcnow()
    record = db.query(GarageBookingToken).filter(GarageBookingToken.token == token).first()
    if not record:
        raise NotFoundError("Invalid or expired link.")
    if now >= record.expires_at:
        raise ExpiredError("This link has expired.")
    return record


def booking_info(db: Session, token: str, now: Optional[datetime] = None) -> dict:
    """Vehicle and its blocking schedule, for the garage's own slot picking."""
    record = get_valid_token(db, token, now)
    vehicle = db.query(Vehicle).filter(Vehicle.id == record.vehicle_id).first()
    if not vehicle:
        raise NotFoundError("Invalid or expired link.")

    reservations = (
        db.query(Reservation)
        .filter(
            Reservation.vehicle_id == vehicle.id,
            Reservation.status.in_(BLOCKING_RESERVATION_STATUSES),
        )
        .order_by(Reservation.start_date)
        .all()
    )
    maintenance = (
        db.query(MaintenanceJob)
        .filter(
            MaintenanceJob.vehicle_id == vehicle.id,
            MaintenanceJob.status.in_(BLOCKING_MAINTENANCE_STATUSES),
        )
        .order_by(MaintenanceJob.scheduled_date)
        .all()
    )
    return {
        "vehicle": vehicle,
        "alert_rule_name": record.alert_rule_name,
        "expires_at": record.expires_at,
        "used": record.used,
        "reservations": reservations,
        "maintenance": maintenance,
    }


def submit_booking(
    db: Session, token: str, data: GarageBookingRequest, now: Optional[datetime] = None
) -> MaintenanceJob:
    """Schedule routine maintenance at the garage's proposed date and mark the token used.

    A used token stays valid until it expires so the garage can revise its proposal.
    """
    record = get_valid_token(db, token, now)
    vehicle = lock_vehicle(db, record.vehicle_id)

    start, end = maintenance_window(data.scheduled_date)
    ensure_no_conflict(db, vehicle.id, start, end)

    job = MaintenanceJob(
        vehicle_id=vehicle.id,
        type=MaintenanceType.ROUTINE,
        status=MaintenanceStatus.SCHEDULED,
        description=data.description or f"Garage appointment - {record.alert_rule_name}",
        scheduled_date=data.scheduled_date,
        cost=0,
        rule_name=record.alert_rule_name,
    )
    db.add(job)
    record.used = True
    commit(db, "record garage booking")
    db.refresh(job)
    logger.info(
        f"Garage booked {record.alert_rule_name} for vehicle {vehicle.id} on {data.scheduled_date}"
    )
    return job
