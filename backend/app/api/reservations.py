from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from app.core.database import get_db
from app.schemas.reservation import (
    NotificationCount,
    NotificationsRead,
    ReservationCreate,
    ReservationResponse,
    ReservationReturnRequest,
    ReservationUpdate,
    ReturnResult,
)
from app.services import reservations as reservation_service

router = APIRouter()


@router.get("/", response_model=List[ReservationResponse])
def list_reservations(db: Session = Depends(get_db)):
    return reservation_service.list_reservations(db)


@router.get("/vehicle/{vehicle_id}", response_model=List[ReservationResponse])
def list_vehicle_reservations(vehicle_id: int, db: Session = Depends(get_db)):
    return reservation_service.list_for_vehicle(db, vehicle_id)


@router.get("/user/{user_id}", response_model=List[ReservationResponse])
def list_user_reservations(user_id: int, db: Session = Depends(get_db)):
    return reservation_service.list_for_user(db, user_id)


@router.get("/notifications/{user_id}", response_model=NotificationCount)
def get_notification_count(user_id: int, db: Session = Depends(get_db)):
    """Number of approval/cancellation changes the user has not seen yet."""
    return {"count": reservation_service.unread_notification_count(db, user_id)}


@router.put("/notifications/{user_id}/read", response_model=NotificationsRead)
def mark_notifications_read(user_id: int, db: Session = Depends(get_db)):
    return {"updated": reservation_service.mark_notifications_read(db, user_id)}


@router.post("/", response_model=ReservationResponse, status_code=201)
def create_reservation(reservation: ReservationCreate, db: Session = Depends(get_db)):
    """Book a vehicle. Overlaps answer 409 with ``conflict`` set to the blocking kind."""
    return reservation_service.create_reservation(db, reservation)


@router.put("/{reservation_id}", response_model=ReservationResponse)
def update_reservation(reservation_id: int, reservation: ReservationUpdate, db: Session = Depends(get_db)):
    return reservation_service.update_reservation(db, reservation_id, reservation)


@router.delete("/{reservation_id}")
def delete_reservation(reservation_id: int, db: Session = Depends(get_db)):
    reservation_service.delete_reservation(db, reservation_id)
    return {"message": "Reservation deleted"}


@router.post("/{reservation_id}/return", response_model=ReturnResult)
def return_vehicle(reservation_id: int, body: ReservationReturnRequest, db: Session = Depends(get_db)):
    """Close a reservation: record mileage and costs, and open a repair job if issues were reported."""
    reservation, repair = reservation_service.return_vehicle(db, reservation_id, body)
    return {
        "message": "Vehicle returned",
        "reservation": reservation,
        "repair_maintenance_id": repair.id if repair else None,
    }
