from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from app.core.database import get_db
from app.schemas.alert import Alert, NotifyResponse
from app.services.alerts import collect_alerts
from app.services.notifications import AlertNotifier
from app.services.vehicles import get_vehicle

router = APIRouter()


@router.get("/", response_model=List[Alert])
def list_alerts(db: Session = Depends(get_db)):
    """Usage and document alerts for the whole fleet, most pressing first."""
    return collect_alerts(db)


@router.get("/vehicle/{vehicle_id}", response_model=List[Alert])
def list_vehicle_alerts(vehicle_id: int, db: Session = Depends(get_db)):
    get_vehicle(db, vehicle_id)
    return collect_alerts(db, vehicle_id=vehicle_id)


@router.post("/notify", response_model=NotifyResponse)
def notify_alerts(db: Session = Depends(get_db)):
    """Email every current urgent/high alert to the internal recipients right away."""
    return AlertNotifier().notify_now(db)
