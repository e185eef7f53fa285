from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.database import commit
from app.core.exceptions import NotFoundError, ValidationError
from app.models.profile import Profile
from app.schemas.profile import ProfileCreate, ProfileUpdate


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def email_exists(db: Session, email: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Profile.id).filter(func.lower(Profile.email) == _normalize_email(email))
    if exclude_id is not None:
        query = query.filter(Profile.id != exclude_id)
    return query.first() is not None


def get_profile(db: Session, profile_id: int) -> Profile:
    profile = db.query(Profile).filter(Profile.id == profile_id).first()
    if not profile:
        raise NotFoundError("User not found")
    return profile


def list_profiles(db: Session) -> List[Profile]:
    return db.query(Profile).order_by(Profile.full_name).all()


def create_profile(db: Session, data: ProfileCreate) -> Profile:
    if email_exists(db, data.email):
        raise ValidationError("Email already registered")
    payload = data.model_dump()
    payload["email"] = _normalize_email(payload["email"])
    profile = Profile(**payload)
    db.add(profile)
    commit(db, "create profile")
    db.refresh(profile)
    return profile


def update_profile(db: Session, profile_id: int, data: ProfileUpdate) -> Profile:
    profile = get_profile(db, profile_id)
    update_data = data.model_dump(exclude_unset=True)

    email = update_data.get("email")
    if email:
        if email_exists(db, email, exclude_id=profile.id):
            raise ValidationError("Email already registered")
        update_data["email"] = _normalize_email(email)

    for key, value in update_data.items():
        if key in ("full_name", "email", "role") and value is None:
            continue
        setattr(profile, key, value)

    commit(db, "update profile")
    db.refresh(profile)
    return profile
