"""Tests for the alert engine."""
from datetime import date, datetime, timedelta

import pytest

from app.models import FuelType, MaintenanceJob, MaintenanceRule, MaintenanceStatus, MaintenanceType, Vehicle
from app.models.rule import IntervalUnit
from app.schemas.alert import Priority
from app.services.alerts import (
    band_priority,
    calendar_alerts,
    collect_alerts,
    compute_alerts,
    document_priority,
    job_matches_rule,
    usage_alert,
)

NOW = datetime(2025, 6, 1, 12, 0)
TODAY = NOW.date()


def vehicle(**overrides):
    fields = {
        "id": 1,
        "brand": "Peugeot",
        "model": "308",
        "license_plate": "GH-456-JK",
        "fuel_type": FuelType.GASOLINE,
        "mileage": 0,
        "created_at": datetime(2025, 1, 1),
    }
    fields.update(overrides)
    return Vehicle(**fields)


def rule(name="Gasoline/diesel service", unit=IntervalUnit.DISTANCE, value=15000, fuel_types=("gasoline", "diesel")):
    return MaintenanceRule(name=name, fuel_types=list(fuel_types), interval_unit=unit, interval_value=value)


def completed(mileage=None, when=datetime(2025, 1, 1), rule_name="Gasoline/diesel service", description=None):
    return MaintenanceJob(
        vehicle_id=1,
        type=MaintenanceType.ROUTINE,
        status=MaintenanceStatus.COMPLETED,
        scheduled_date=when,
        completed_date=when,
        mileage_at_service=mileage,
        rule_name=rule_name,
        description=description,
    )


class TestBandPriority:
    """Tests for band_priority."""

    @pytest.mark.parametrize("remaining,expected", [
        (-10, Priority.URGENT),
        (0, Priority.URGENT),
        (1500, Priority.HIGH),
        (3750, Priority.NORMAL),
        (7500, Priority.LOW),
        (7501, None),
    ])
    def test_default_bands(self, remaining, expected):
        assert band_priority(remaining, 15000) == expected

    def test_monotonic_in_remaining(self):
        """Less remaining never yields a lower priority."""
        ranks = []
        for remaining in range(15000, -1000, -250):
            priority = band_priority(remaining, 15000)
            ranks.append(priority.rank if priority else 99)
        assert ranks == sorted(ranks, reverse=True)

    def test_misordered_fractions_still_monotonic(self):
        assert band_priority(900, 10000, high_fraction=0.5, normal_fraction=0.25, low_fraction=0.1) == Priority.HIGH
        assert band_priority(4000, 10000, high_fraction=0.5, normal_fraction=0.25, low_fraction=0.1) == Priority.LOW


class TestDocumentPriority:
    @pytest.mark.parametrize("days,expected", [
        (-1, Priority.URGENT),
        (0, Priority.HIGH),
        (10, Priority.HIGH),
        (30, Priority.HIGH),
        (31, Priority.NORMAL),
        (90, Priority.NORMAL),
        (91, None),
    ])
    def test_bands(self, days, expected):
        assert document_priority(days) == expected


class TestUsageAlert:
    """Tests for distance and time based alerts."""

    def test_remaining_measured_from_last_service(self):
        alert = usage_alert(vehicle(mileage=50000), rule(), [completed(mileage=40000)], TODAY)
        assert alert.remaining == 5000
        assert alert.current_value == 10000
        assert alert.due_mileage == 55000
        assert alert.priority == Priority.LOW

    def test_escalates_to_high_near_due(self):
        alert = usage_alert(vehicle(mileage=53600), rule(), [completed(mileage=40000)], TODAY)
        assert alert.remaining == 1400
        assert alert.priority == Priority.HIGH

    def test_overdue_is_urgent(self):
        alert = usage_alert(vehicle(mileage=56000), rule(), [completed(mileage=40000)], TODAY)
        assert alert.priority == Priority.URGENT
        assert "overdue by 1,000 km" in alert.description

    def test_latest_matching_service_wins(self):
        history = [completed(mileage=10000, when=datetime(2024, 1, 1)), completed(mileage=40000)]
        alert = usage_alert(vehicle(mileage=50000), rule(), history, TODAY)
        assert alert.last_service_mileage == 40000

    def test_unrelated_service_ignored(self):
        history = [completed(mileage=49000, rule_name="Tire inspection")]
        alert = usage_alert(vehicle(mileage=50000), rule(), history, TODAY)
        assert alert.priority == Priority.URGENT

    def test_rule_for_other_fuel_type_skipped(self):
        assert usage_alert(vehicle(fuel_type=FuelType.ELECTRIC, mileage=90000), rule(), [], TODAY) is None

    def test_fresh_interval_has_no_alert(self):
        assert usage_alert(vehicle(mileage=41000), rule(), [completed(mileage=40000)], TODAY) is None

    def test_time_rule_counts_days_from_last_service(self):
        electric = rule("Annual electric service", IntervalUnit.TIME, 12, ("electric",))
        history = [completed(when=datetime(2024, 6, 20), rule_name="Annual electric service")]
        alert = usage_alert(vehicle(fuel_type=FuelType.ELECTRIC), electric, history, TODAY)
        assert alert.due_date == date(2025, 6, 20)
        assert alert.remaining == 19
        assert alert.priority == Priority.HIGH

    def test_time_rule_anchors_on_vehicle_creation(self):
        electric = rule("Annual electric service", IntervalUnit.TIME, 12, ("electric",))
        alert = usage_alert(
            vehicle(fuel_type=FuelType.ELECTRIC, created_at=datetime(2024, 5, 1)), electric, [], TODAY
        )
        assert alert.priority == Priority.URGENT
        assert alert.last_service_date is None


class TestJobMatchesRule:
    def test_description_prefix_used_when_rule_name_missing(self):
        job = completed(rule_name=None, description="Gasoline/diesel service - oil and filters")
        assert job_matches_rule(job, rule())

    def test_scheduled_job_never_matches(self):
        job = completed()
        job.status = MaintenanceStatus.SCHEDULED
        assert not job_matches_rule(job, rule())


class TestCalendarAlerts:
    """Insurance and technical inspection alerts."""

    def test_insurance_due_in_ten_days_is_high(self):
        alerts = calendar_alerts(vehicle(insurance_expiry_date=TODAY + timedelta(days=10)), TODAY)
        assert [a.priority for a in alerts] == [Priority.HIGH]
        assert alerts[0].document == "insurance"

    def test_expired_insurance_is_urgent(self):
        alerts = calendar_alerts(vehicle(insurance_expiry_date=TODAY - timedelta(days=1)), TODAY)
        assert alerts[0].priority == Priority.URGENT
        assert alerts[0].days_until_due == -1

    def test_distant_insurance_has_no_alert(self):
        assert calendar_alerts(vehicle(insurance_expiry_date=TODAY + timedelta(days=120)), TODAY) == []

    def test_inspection_due_two_years_after_last(self):
        alerts = calendar_alerts(vehicle(last_technical_inspection=date(2023, 7, 1)), TODAY)
        assert len(alerts) == 1
        assert alerts[0].due_date == date(2025, 7, 1)
        assert alerts[0].priority == Priority.HIGH


class TestComputeAlerts:
    def test_idempotent(self):
        vehicles = [vehicle(mileage=56000, insurance_expiry_date=TODAY + timedelta(days=5))]
        history = {1: [completed(mileage=40000)]}
        first = compute_alerts(vehicles, [rule()], history, NOW)
        second = compute_alerts(vehicles, [rule()], history, NOW)
        assert [a.model_dump() for a in first] == [a.model_dump() for a in second]

    def test_sorted_by_priority(self):
        vehicles = [vehicle(mileage=56000, insurance_expiry_date=TODAY + timedelta(days=60))]
        alerts = compute_alerts(vehicles, [rule()], {1: [completed(mileage=40000)]}, NOW)
        assert [a.priority for a in alerts] == [Priority.URGENT, Priority.NORMAL]

    def test_collect_alerts_from_store(self, db, make_vehicle, make_job):
        car = make_vehicle(mileage=15000)
        make_job(
            car, NOW, MaintenanceStatus.COMPLETED,
            mileage_at_service=15000, rule_name="Gasoline/diesel service", completed_date=NOW,
        )
        names = {a.rule_name for a in collect_alerts(db, NOW)}
        # 15000 km with no tire or brake history; the service itself is fresh
        assert names == {"Tire inspection", "Brake inspection"}
