from pydantic import BaseModel
from datetime import datetime
from typing import Optional

from app.models.profile import ProfileRole
from app.schemas.types import OptionalText


class ProfileBase(BaseModel):
    full_name: str
    email: str
    phone: OptionalText = None
    role: ProfileRole = ProfileRole.USER


class ProfileCreate(ProfileBase):
    pass


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: OptionalText = None
    role: Optional[ProfileRole] = None


class ProfileSummary(BaseModel):
    id: int
    full_name: str
    email: str

    class Config:
        from_attributes = True


class ProfileResponse(ProfileBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EmailCheck(BaseModel):
    email: str


class EmailCheckResponse(BaseModel):
    exists: bool
