from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.garage_booking import GarageBookingInfo, GarageBookingRequest, GarageBookingResult
from app.services import garage_booking as booking_service

router = APIRouter()


@router.get("/{token}", response_model=GarageBookingInfo)
def get_booking(token: str, db: Session = Depends(get_db)):
    """Public: vehicle details and its busy periods for a booking link."""
    return booking_service.booking_info(db, token)


@router.post("/{token}", response_model=GarageBookingResult, status_code=201)
def submit_booking(token: str, body: GarageBookingRequest, db: Session = Depends(get_db)):
    """Public: schedule the maintenance at the garage's chosen date."""
    job = booking_service.submit_booking(db, token, body)
    return {"message": "Appointment booked", "maintenance": job}
