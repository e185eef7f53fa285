from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from app.core.database import get_db
from app.schemas.profile import (
    EmailCheck, EmailCheckResponse, ProfileCreate, ProfileResponse, ProfileUpdate
)
from app.services import profiles as profile_service

router = APIRouter()


@router.get("/profiles", response_model=List[ProfileResponse])
def list_profiles(db: Session = Depends(get_db)):
    return profile_service.list_profiles(db)


@router.get("/profiles/{profile_id}", response_model=ProfileResponse)
def get_profile(profile_id: int, db: Session = Depends(get_db)):
    return profile_service.get_profile(db, profile_id)


@router.post("/profiles", response_model=ProfileResponse, status_code=201)
def create_profile(profile: ProfileCreate, db: Session = Depends(get_db)):
    return profile_service.create_profile(db, profile)


@router.put("/profiles/{profile_id}", response_model=ProfileResponse)
def update_profile(profile_id: int, profile: ProfileUpdate, db: Session = Depends(get_db)):
    return profile_service.update_profile(db, profile_id, profile)


@router.post("/check-email", response_model=EmailCheckResponse)
def check_email(body: EmailCheck, db: Session = Depends(get_db)):
    """Whether an email address is already registered."""
    return {"exists": profile_service.email_exists(db, body.email)}
