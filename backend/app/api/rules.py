from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from app.core.database import get_db
from app.schemas.rule import MaintenanceRuleResponse
from app.services.rules import list_active_rules

router = APIRouter()


@router.get("/", response_model=List[MaintenanceRuleResponse])
def list_rules(db: Session = Depends(get_db)):
    return list_active_rules(db)
