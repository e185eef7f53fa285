"""Tests for the maintenance scheduler."""
from datetime import datetime, timedelta

import pytest

from app.core.exceptions import ConflictError, ValidationError
from app.core.redis_client import alert_key
from app.models import FuelType, MaintenanceJob, MaintenanceRule, MaintenanceStatus, ReservationStatus
from app.models.rule import IntervalUnit
from app.schemas.maintenance import MaintenanceCreate, MaintenanceUpdate
from app.services import maintenance as maintenance_service

DAY = timedelta(days=1)


class TestCreateJob:
    """Tests for create_job."""

    def test_scheduled_job_during_reservation_rejected(
        self, db, make_vehicle, make_profile, make_reservation, now
    ):
        vehicle = make_vehicle()
        make_reservation(vehicle, make_profile(), now, now + 2 * DAY, ReservationStatus.APPROVED)
        with pytest.raises(ConflictError) as exc_info:
            maintenance_service.create_job(
                db, MaintenanceCreate(vehicle_id=vehicle.id, scheduled_date=now + DAY)
            )
        assert exc_info.value.kind == "reservation"
        assert db.query(MaintenanceJob).count() == 0

    def test_overlapping_jobs_rejected(self, db, make_vehicle, make_job, now):
        vehicle = make_vehicle()
        make_job(vehicle, now)
        with pytest.raises(ConflictError) as exc_info:
            maintenance_service.create_job(
                db, MaintenanceCreate(vehicle_id=vehicle.id, scheduled_date=now)
            )
        assert exc_info.value.kind == "maintenance"

    def test_jobs_hours_apart_both_accepted(self, db, make_vehicle, make_job, now):
        vehicle = make_vehicle()
        make_job(vehicle, now)
        job = maintenance_service.create_job(
            db, MaintenanceCreate(vehicle_id=vehicle.id, scheduled_date=now + timedelta(hours=12))
        )
        assert job.id is not None
        assert db.query(MaintenanceJob).count() == 2

    def test_completed_job_records_history_without_conflict_check(
        self, db, make_vehicle, make_profile, make_reservation, now
    ):
        vehicle = make_vehicle(mileage=10000)
        make_reservation(vehicle, make_profile(), now - DAY, now + DAY, ReservationStatus.ACTIVE)
        job = maintenance_service.create_job(
            db,
            MaintenanceCreate(
                vehicle_id=vehicle.id,
                scheduled_date=now,
                status=MaintenanceStatus.COMPLETED,
                mileage_at_service=11000,
            ),
            now=now,
        )
        assert job.completed_date == now
        db.refresh(vehicle)
        assert vehicle.mileage == 11000


class TestUpdateJob:
    """Tests for update_job."""

    def test_completion_writes_mileage_back(self, db, make_vehicle, make_job, now):
        vehicle = make_vehicle(mileage=20000)
        job = make_job(vehicle, now)
        updated = maintenance_service.update_job(
            db, job.id, MaintenanceUpdate(status=MaintenanceStatus.COMPLETED, mileage_at_service=20500), now=now
        )
        assert updated.status == MaintenanceStatus.COMPLETED
        assert updated.completed_date == now
        db.refresh(vehicle)
        assert vehicle.mileage == 20500

    def test_completion_never_lowers_mileage(self, db, make_vehicle, make_job, now):
        vehicle = make_vehicle(mileage=20000)
        job = make_job(vehicle, now)
        maintenance_service.update_job(
            db, job.id, MaintenanceUpdate(status=MaintenanceStatus.COMPLETED, mileage_at_service=19000), now=now
        )
        db.refresh(vehicle)
        assert vehicle.mileage == 20000

    def test_completion_rearms_notifications(self, db, make_vehicle, make_job, notified_store, now):
        vehicle = make_vehicle()
        job = make_job(vehicle, now, rule_name="Tire inspection")
        notified_store.add_many([
            alert_key(vehicle.id, "Tire inspection"),
            alert_key(vehicle.id, "Brake inspection"),
        ])
        maintenance_service.update_job(
            db, job.id, MaintenanceUpdate(status=MaintenanceStatus.COMPLETED), now=now
        )
        assert not notified_store.contains(alert_key(vehicle.id, "Tire inspection"))
        assert notified_store.contains(alert_key(vehicle.id, "Brake inspection"))

    @pytest.mark.parametrize("current,target", [
        (MaintenanceStatus.COMPLETED, MaintenanceStatus.SCHEDULED),
        (MaintenanceStatus.CANCELLED, MaintenanceStatus.IN_PROGRESS),
        (MaintenanceStatus.IN_PROGRESS, MaintenanceStatus.SCHEDULED),
    ])
    def test_disallowed_transitions(self, db, make_vehicle, make_job, now, current, target):
        job = make_job(make_vehicle(), now, current)
        with pytest.raises(ValidationError):
            maintenance_service.update_job(db, job.id, MaintenanceUpdate(status=target))

    def test_rescheduling_checks_conflicts(self, db, make_vehicle, make_profile, make_reservation, make_job, now):
        vehicle = make_vehicle()
        job = make_job(vehicle, now)
        make_reservation(vehicle, make_profile(), now + 3 * DAY, now + 4 * DAY)
        with pytest.raises(ConflictError):
            maintenance_service.update_job(db, job.id, MaintenanceUpdate(scheduled_date=now + 3 * DAY))

    def test_rescheduling_ignores_itself(self, db, make_vehicle, make_job, now):
        vehicle = make_vehicle()
        job = make_job(vehicle, now)
        updated = maintenance_service.update_job(
            db, job.id, MaintenanceUpdate(scheduled_date=now + timedelta(hours=2))
        )
        assert updated.scheduled_date == now + timedelta(hours=2)


class TestBuildBaselineJobs:
    """Tests for build_baseline_jobs."""

    @staticmethod
    def rule(name, fuel_types, active=True):
        return MaintenanceRule(
            name=name,
            fuel_types=fuel_types,
            interval_unit=IntervalUnit.DISTANCE,
            interval_value=15000,
            is_active=active,
        )

    def test_one_completed_job_per_matching_rule(self, make_vehicle, now):
        vehicle = make_vehicle(mileage=20000, fuel_type=FuelType.DIESEL)
        rules = [
            self.rule("Gasoline/diesel service", ["gasoline", "diesel"]),
            self.rule("Annual electric service", ["electric"]),
            self.rule("Retired rule", ["diesel"], active=False),
        ]
        jobs = maintenance_service.build_baseline_jobs(vehicle, rules, now)
        assert len(jobs) == 1
        job = jobs[0]
        assert job.status == MaintenanceStatus.COMPLETED
        assert job.mileage_at_service == 20000
        assert job.completed_date == now
        assert job.rule_name == "Gasoline/diesel service"

    def test_nothing_for_new_vehicle(self, make_vehicle, now):
        vehicle = make_vehicle(mileage=0)
        assert maintenance_service.build_baseline_jobs(
            vehicle, [self.rule("Tire inspection", ["gasoline"])], now
        ) == []
