"""Derived maintenance and document alerts.

Nothing here is persisted: alerts are recomputed from the current vehicles,
maintenance rules and completed maintenance history on every call, so two
calls over unchanged inputs return identical results.

Two families are produced:

* usage alerts, one per (vehicle, rule) pairing where the rule covers the
  vehicle's fuel type, measured in km (distance rules) or days (time rules)
  since the last completed maintenance that satisfied the rule;
* calendar alerts for regulatory documents (insurance expiry, technical
  inspection every two years), shown from 90 days before the due date.
"""
import enum
from collections import defaultdict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.models.maintenance import MaintenanceJob, MaintenanceStatus
from app.models.rule import IntervalUnit, MaintenanceRule
from app.models.vehicle import Vehicle
from app.schemas.alert import CalendarAlert, Priority, UsageAlert
from app.services.rules import list_active_rules

INSURANCE_RULE_NAME = "Insurance"
INSPECTION_RULE_NAME = "Technical inspection"

DOCUMENT_WINDOW_DAYS = 90
DOCUMENT_HIGH_DAYS = 30
INSPECTION_VALIDITY = relativedelta(years=2)

DEFAULT_HIGH_FRACTION = 0.10
DEFAULT_NORMAL_FRACTION = 0.25
DEFAULT_LOW_FRACTION = 0.50


def _value(item) -> str:
    return item.value if isinstance(item, enum.Enum) else item


def _ratio(current: float, threshold: float) -> float:
    if threshold <= 0:
        return 1.0
    return round(min(max(current / threshold, 0.0), 1.0), 4)


def band_priority(
    remaining: float,
    threshold: float,
    high_fraction: float = DEFAULT_HIGH_FRACTION,
    normal_fraction: float = DEFAULT_NORMAL_FRACTION,
    low_fraction: float = DEFAULT_LOW_FRACTION,
) -> Optional[Priority]:
    """Priority from what is left of an interval, or None when not yet worth showing."""
    if remaining <= 0:
        return Priority.URGENT
    # Bands are applied narrowest first so priority never goes backwards
    high, normal, low = sorted((high_fraction, normal_fraction, low_fraction))
    if remaining <= high * threshold:
        return Priority.HIGH
    if remaining <= normal * threshold:
        return Priority.NORMAL
    if remaining <= low * threshold:
        return Priority.LOW
    return None


def document_priority(days_until: int) -> Optional[Priority]:
    if days_until > DOCUMENT_WINDOW_DAYS:
        return None
    if days_until < 0:
        return Priority.URGENT
    if days_until <= DOCUMENT_HIGH_DAYS:
        return Priority.HIGH
    return Priority.NORMAL


def _service_date(job: MaintenanceJob) -> datetime:
    return job.completed_date or job.scheduled_date


def job_matches_rule(job: MaintenanceJob, rule: MaintenanceRule) -> bool:
    if _value(job.status) != MaintenanceStatus.COMPLETED.value:
        return False
    if job.rule_name:
        return job.rule_name == rule.name
    # Older records carry the rule only as a description prefix
    return bool(job.description) and job.description.startswith(rule.name)


def last_matching_service(
    rule: MaintenanceRule, history: Iterable[MaintenanceJob], needs_mileage: bool = False
) -> Optional[MaintenanceJob]:
    candidates = [
        job for job in history
        if job_matches_rule(job, rule) and (not needs_mileage or job.mileage_at_service is not None)
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda job: (_service_date(job), job.mileage_at_service or 0))


def _fractions(rule: MaintenanceRule) -> dict:
    return {
        "high_fraction": rule.high_fraction if rule.high_fraction is not None else DEFAULT_HIGH_FRACTION,
        "normal_fraction": rule.normal_fraction if rule.normal_fraction is not None else DEFAULT_NORMAL_FRACTION,
        "low_fraction": rule.low_fraction if rule.low_fraction is not None else DEFAULT_LOW_FRACTION,
    }


def _vehicle_fields(vehicle: Vehicle) -> dict:
    return {
        "vehicle_id": vehicle.id,
        "brand": vehicle.brand,
        "model": vehicle.model,
        "license_plate": vehicle.license_plate,
        "fuel_type": _value(vehicle.fuel_type),
    }


def distance_alert(
    vehicle: Vehicle, rule: MaintenanceRule, history: Iterable[MaintenanceJob]
) -> Optional[UsageAlert]:
    last = last_matching_service(rule, history, needs_mileage=True)
    mileage = vehicle.mileage or 0
    base_mileage = last.mileage_at_service if last else 0
    used = max(mileage - base_mileage, 0)
    threshold = rule.interval_value
    remaining = threshold - used

    priority = band_priority(remaining, threshold, **_fractions(rule))
    if priority is None:
        return None

    if remaining > 0:
        description = f"{rule.name} due in {remaining:,} km ({used:,} km since last service)"
    else:
        description = f"{rule.name} overdue by {-remaining:,} km"

    return UsageAlert(
        **_vehicle_fields(vehicle),
        rule_name=rule.name,
        description=description,
        priority=priority,
        current_value=used,
        threshold_value=threshold,
        remaining=remaining,
        progress=_ratio(used, threshold),
        interval_unit=IntervalUnit.DISTANCE,
        last_service_mileage=last.mileage_at_service if last else None,
        last_service_date=_service_date(last).date() if last else None,
        due_mileage=base_mileage + threshold,
    )


def time_alert(
    vehicle: Vehicle, rule: MaintenanceRule, history: Iterable[MaintenanceJob], today: date
) -> Optional[UsageAlert]:
    last = last_matching_service(rule, history)
    if last is not None:
        anchor = _service_date(last).date()
    elif vehicle.created_at is not None:
        anchor = vehicle.created_at.date()
    else:
        return None

    due = anchor + relativedelta(months=rule.interval_value)
    threshold = (due - anchor).days
    elapsed = max((today - anchor).days, 0)
    remaining = (due - today).days

    priority = band_priority(remaining, threshold, **_fractions(rule))
    if priority is None:
        return None

    if remaining > 0:
        description = f"{rule.name} due in {remaining} days ({due.isoformat()})"
    else:
        description = f"{rule.name} overdue by {-remaining} days (was due {due.isoformat()})"

    return UsageAlert(
        **_vehicle_fields(vehicle),
        rule_name=rule.name,
        description=description,
        priority=priority,
        current_value=elapsed,
        threshold_value=threshold,
        remaining=remaining,
        progress=_ratio(elapsed, threshold),
        interval_unit=IntervalUnit.TIME,
        last_service_mileage=last.mileage_at_service if last else None,
        last_service_date=anchor if last else None,
        due_date=due,
    )


def usage_alert(
    vehicle: Vehicle, rule: MaintenanceRule, history: Iterable[MaintenanceJob], today: date
) -> Optional[UsageAlert]:
    if rule.is_active is False or not rule.applies_to(vehicle.fuel_type):
        return None
    if _value(rule.interval_unit) == IntervalUnit.TIME.value:
        return time_alert(vehicle, rule, history, today)
    return distance_alert(vehicle, rule, history)


def _document_alert(
    vehicle: Vehicle, document: str, rule_name: str, due: date, today: date, label: str
) -> Optional[CalendarAlert]:
    days_until = (due - today).days
    priority = document_priority(days_until)
    if priority is None:
        return None

    if days_until < 0:
        description = f"{label} expired {-days_until} days ago"
    else:
        description = f"{label} expires in {days_until} days"

    current = max(DOCUMENT_WINDOW_DAYS - days_until, 0)
    return CalendarAlert(
        **_vehicle_fields(vehicle),
        rule_name=rule_name,
        description=description,
        priority=priority,
        current_value=current,
        threshold_value=DOCUMENT_WINDOW_DAYS,
        remaining=days_until,
        progress=_ratio(current, DOCUMENT_WINDOW_DAYS),
        document=document,
        due_date=due,
        days_until_due=days_until,
    )


def calendar_alerts(vehicle: Vehicle, today: date) -> List[CalendarAlert]:
    alerts = []

    if vehicle.insurance_expiry_date:
        provider = vehicle.insurance_provider or "N/A"
        alert = _document_alert(
            vehicle, "insurance", INSURANCE_RULE_NAME, vehicle.insurance_expiry_date, today,
            f"Insurance ({provider})",
        )
        if alert:
            alerts.append(alert)

    if vehicle.last_technical_inspection:
        due = vehicle.last_technical_inspection + INSPECTION_VALIDITY
        alert = _document_alert(
            vehicle, "technical_inspection", INSPECTION_RULE_NAME, due, today,
            "Technical inspection",
        )
        if alert:
            alerts.append(alert)

    return alerts


def sort_key(alert) -> tuple:
    return alert.priority.rank, alert.vehicle_id, alert.rule_name


def compute_alerts(
    vehicles: Iterable[Vehicle],
    rules: Iterable[MaintenanceRule],
    history: Dict[int, List[MaintenanceJob]],
    now: datetime,
) -> list:
    """Union of usage and calendar alerts for the given vehicles.

    ``history`` maps vehicle id to that vehicle's maintenance jobs; only
    completed jobs are taken into account.
    """
    today = now.date()
    rules = list(rules)
    alerts = []
    for vehicle in vehicles:
        vehicle_history = history.get(vehicle.id, [])
        for rule in rules:
            alert = usage_alert(vehicle, rule, vehicle_history, today)
            if alert:
                alerts.append(alert)
        alerts.extend(calendar_alerts(vehicle, today))
    return sorted(alerts, key=sort_key)


def collect_alerts(db: Session, now: Optional[datetime] = None, vehicle_id: Optional[int] = None) -> list:
    """Load current state from the store and compute alerts."""
    now = now or utcnow()

    vehicle_query = db.query(Vehicle)
    job_query = db.query(MaintenanceJob).filter(MaintenanceJob.status == MaintenanceStatus.COMPLETED)
    if vehicle_id is not None:
        vehicle_query = vehicle_query.filter(Vehicle.id == vehicle_id)
        job_query = job_query.filter(MaintenanceJob.vehicle_id == vehicle_id)

    history = defaultdict(list)
    for job in job_query.all():
        history[job.vehicle_id].append(job)

    return compute_alerts(vehicle_query.all(), list_active_rules(db), history, now)
