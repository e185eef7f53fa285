import enum

from sqlalchemy import Column, Integer, String, DateTime, Enum as SQLEnum
from sqlalchemy.sql import func
from app.core.database import Base
from app.models.vehicle import enum_values


class ProfileRole(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(30))
    role = Column(
        SQLEnum(ProfileRole, native_enum=False, values_callable=enum_values, length=20),
        nullable=False,
        default=ProfileRole.USER,
    )
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())
