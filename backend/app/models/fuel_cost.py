from sqlalchemy import Column, Integer, Float, Date, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base


class FuelCost(Base):
    __tablename__ = "fuel_costs"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id", ondelete="SET NULL"))

    date = Column(Date, nullable=False)
    amount = Column(Float, nullable=False)
    liters = Column(Float)
    mileage = Column(Integer)
    notes = Column(Text)

    created_at = Column(DateTime, server_default=func.now())

    user = relationship("Profile")
