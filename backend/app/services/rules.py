from typing import List

from sqlalchemy.orm import Session

from app.data.maintenance_rules import DEFAULT_MAINTENANCE_RULES
from app.models.rule import IntervalUnit, MaintenanceRule


def list_active_rules(db: Session) -> List[MaintenanceRule]:
    return (
        db.query(MaintenanceRule)
        .filter(MaintenanceRule.is_active.is_(True))
        .order_by(MaintenanceRule.name)
        .all()
    )


def seed_default_rules(db: Session) -> int:
    """Insert the default rules when the table is empty. Returns the number created."""
    if db.query(MaintenanceRule).count() > 0:
        return 0

    for item in DEFAULT_MAINTENANCE_RULES:
        db.add(MaintenanceRule(
            name=item["name"],
            description=item["description"],
            fuel_types=list(item["fuel_types"]),
            interval_unit=IntervalUnit(item["interval_unit"]),
            interval_value=item["interval_value"],
        ))
    db.commit()
    return len(DEFAULT_MAINTENANCE_RULES)
