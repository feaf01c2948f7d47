#!/usr/bin/env python3
"""Tests for the maint.py CLI."""
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from supabase import AuthError

import maint
from garage import (
    Category,
    IntervalType,
    MaintenanceTask,
    Priority,
    ValidationError,
    Vehicle,
)
from services import AppServices
from services.auth import StoredSession
from services.nhtsa import VinDecodeResult


def make_task(next_due_mileage=26216, next_due_date=None, vehicle_id="vehicle-1"):
    return MaintenanceTask(
        vehicle_id=vehicle_id,
        title="Oil Change",
        description="Change engine oil and oil filter",
        category=Category.OIL_CHANGE,
        interval_type=IntervalType.BOTH,
        priority=Priority.HIGH,
        interval_mileage=5000,
        interval_months=6,
        next_due_mileage=next_due_mileage,
        next_due_date=next_due_date,
    )


@pytest.fixture
def services(settings, fake_supabase):
    return AppServices(settings, fake_supabase, http_session=MagicMock())


@pytest.fixture
def signed_in(services):
    services.sessions.save(
        StoredSession(
            access_token="access",
            refresh_token="refresh",
            user_id="user-1",
            email="me@example.com",
        )
    )
    return services


def parse(*argv):
    return maint.build_parser().parse_args(list(argv))


class TestFormatting:
    """Tests for formatting helpers."""

    def test_format_miles(self):
        assert maint.format_miles(52000) == "52,000"
        assert maint.format_miles(0) == "0"
        assert maint.format_miles(None) == "-"

    def test_format_due_date(self):
        assert maint.format_due_date(datetime(2025, 7, 14, 8, tzinfo=timezone.utc)) == "2025-07-14"
        assert maint.format_due_date(None) == "-"

    def test_format_remaining(self):
        task = make_task(next_due_mileage=26216)
        assert maint.format_remaining(task, 21216) == "5,000"
        assert maint.format_remaining(task, 27216) == "-1,000"
        assert maint.format_remaining(task, None) == "-"
        assert maint.format_remaining(make_task(next_due_mileage=None), 100) == "-"

    def test_truncate(self):
        assert maint.truncate("short") == "short"
        assert maint.truncate("a" * 40, 10) == "aaaaaaa..."
        assert maint.truncate(None) == "-"

    def test_print_validation_error(self, capsys):
        maint.print_validation_error(ValidationError({"vin": "VIN must be 17 characters"}))
        assert capsys.readouterr().out == "Error (vin): VIN must be 17 characters\n"


class TestTables:
    def test_task_table(self):
        vehicle = Vehicle("user-1", "Subaru", "BRZ", 2015, 21216, nickname="Zippy", id="vehicle-1")
        rows = maint.make_task_table([make_task()], {"vehicle-1": vehicle})
        assert rows == [
            ["Oil Change", '"Zippy" (2015 Subaru BRZ)', "HIGH", "26,216", "-", "5,000"]
        ]

    def test_task_table_unknown_vehicle(self):
        rows = maint.make_task_table([make_task(vehicle_id="gone")], {})
        assert rows[0][1] == "gone"
        assert rows[0][5] == "-"

    def test_vehicle_table(self):
        vehicle = Vehicle("user-1", "Subaru", "WRX", 2011, 52000, id="vehicle-2")
        assert maint.make_vehicle_table([vehicle]) == [
            ["vehicle-2", "2011 Subaru WRX", "-", "52,000", "-"]
        ]

    def test_schedule_table(self, schedule):
        rows = maint.make_schedule_table(list(schedule))
        assert len(rows) == 14
        assert rows[0][:4] == ["Oil Change", "oil_change", "5,000 mi / 6 mo", "high"]

    def test_schedule_table_most_important_first(self, schedule):
        ranks = [Priority(row[3]).rank for row in maint.make_schedule_table(list(schedule))]
        assert ranks == sorted(ranks)
        assert ranks[-1] == Priority.LOW.rank


class TestBackendCommands:
    """Handlers run against the in-memory backend."""

    def test_requires_sign_in(self, services, capsys):
        assert maint.cmd_vehicles(parse("vehicles"), services) == 1
        assert "Not signed in" in capsys.readouterr().out

    def test_signin(self, services, fake_supabase, capsys):
        user = SimpleNamespace(id="user-1", email="me@example.com")
        fake_supabase.auth.sign_in_with_password.return_value = SimpleNamespace(
            user=user,
            session=SimpleNamespace(access_token="a", refresh_token="r", user=user),
        )
        args = parse("signin", "me@example.com", "--password", "secret1")
        assert maint.cmd_signin(args, services) == 0
        assert services.sessions.load().user_id == "user-1"
        assert "Signed in as me@example.com." in capsys.readouterr().out

    def test_add_vehicle_and_dashboard(self, signed_in, capsys):
        args = parse(
            "add-vehicle", "--make", "Subaru", "--model", "BRZ",
            "--year", "2015", "--mileage", "21216", "--nickname", "Zippy",
        )
        assert maint.cmd_add_vehicle(args, signed_in) == 0
        out = capsys.readouterr().out
        assert 'Added "Zippy" (2015 Subaru BRZ) at 21,216 mi.' in out
        assert "Maintenance tasks created: 14" in out

        assert maint.cmd_dashboard(parse("dashboard"), signed_in) == 0
        out = capsys.readouterr().out
        assert "Vehicles: 1" in out
        assert "Coming up soon: Oil Change" in out
        assert "UPCOMING:" in out
        assert "OVERDUE:" not in out

    def test_add_vehicle_from_vin(self, signed_in, capsys):
        signed_in.registry = MagicMock()
        signed_in.registry.decode_vin.return_value = VinDecodeResult(
            make="SUBARU", model="Legacy", year=2011, vin="4S3BMHB68B3286050", trim="2.5i"
        )
        args = parse("add-vehicle", "--vin", "4S3BMHB68B3286050", "--mileage", "52000")
        assert maint.cmd_add_vehicle(args, signed_in) == 0
        vehicle = signed_in.garage.list_vehicles("user-1")[0]
        assert (vehicle.make, vehicle.model, vehicle.year) == ("SUBARU", "Legacy", 2011)
        assert vehicle.trim == "2.5i"
        assert "VIN decoded: 2011 SUBARU Legacy" in capsys.readouterr().out

    def test_add_vehicle_vin_not_found(self, signed_in, capsys):
        signed_in.registry = MagicMock()
        signed_in.registry.decode_vin.return_value = None
        args = parse("add-vehicle", "--vin", "4S3BMHB68B3286050", "--mileage", "52000")
        assert maint.cmd_add_vehicle(args, signed_in) == 1
        assert signed_in.garage.list_vehicles("user-1") == []

    def test_update_miles_dry_run(self, signed_in, capsys):
        vehicle = signed_in.garage.add_vehicle("user-1", "Subaru", "BRZ", 2015, 21216).vehicle
        args = parse("update-miles", vehicle.id, "30000", "--dry-run")
        assert maint.cmd_update_miles(args, signed_in) == 0
        assert "dry run" in capsys.readouterr().out
        assert signed_in.backend.get_vehicle(vehicle.id).mileage == 21216

        assert maint.cmd_update_miles(parse("update-miles", vehicle.id, "30000"), signed_in) == 0
        assert signed_in.backend.get_vehicle(vehicle.id).mileage == 30000

    def test_update_miles_dry_run_validates(self, signed_in, capsys):
        vehicle = signed_in.garage.add_vehicle("user-1", "Subaru", "BRZ", 2015, 21216).vehicle
        args = parse("update-miles", vehicle.id, "abc", "--dry-run")
        with pytest.raises(ValidationError):
            maint.cmd_update_miles(args, signed_in)
        assert "New mileage" not in capsys.readouterr().out

    def test_update_miles_unknown_vehicle(self, signed_in, capsys):
        assert maint.cmd_update_miles(parse("update-miles", "nope", "10"), signed_in) == 1
        assert "Vehicle not found" in capsys.readouterr().out

    def test_delete_needs_confirmation(self, signed_in):
        vehicle = signed_in.garage.add_vehicle("user-1", "Subaru", "BRZ", 2015, 21216).vehicle
        assert maint.cmd_delete_vehicle(parse("delete-vehicle", vehicle.id), signed_in) == 1
        assert signed_in.backend.get_vehicle(vehicle.id) is not None
        assert maint.cmd_delete_vehicle(parse("delete-vehicle", vehicle.id, "--yes"), signed_in) == 0
        assert signed_in.backend.get_vehicle(vehicle.id) is None

    def test_whoami(self, signed_in, capsys):
        assert maint.cmd_whoami(parse("whoami"), signed_in) == 0
        out = capsys.readouterr().out
        assert "Email:   me@example.com" in out
        assert "Plan:    Free" in out


class TestRegistryCommands:
    def test_decode_vin(self, capsys):
        registry = MagicMock()
        registry.decode_vin.return_value = VinDecodeResult(
            make="SUBARU", model="Legacy", year=2011, vin="4S3BMHB68B3286050", trim="2.5i"
        )
        assert maint.cmd_decode_vin(parse("decode-vin", "4S3BMHB68B3286050"), registry) == 0
        out = capsys.readouterr().out
        assert "Make:  SUBARU" in out
        assert "Trim:  2.5i" in out

    def test_models_empty(self, capsys):
        registry = MagicMock()
        registry.get_models_for_make_year.return_value = []
        assert maint.cmd_models(parse("models", "Subaru", "1901"), registry) == 0
        assert "No models found for Subaru 1901." in capsys.readouterr().out


class TestMain:
    """End-to-end runs of main()."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch, tmp_path):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
        monkeypatch.setenv("MAINT_TRACKER_CONFIG", str(tmp_path / "missing.yaml"))

    def test_schedule(self, capsys):
        assert maint.main(["schedule"]) == 0
        out = capsys.readouterr().out
        assert "Schedule entries: 14" in out
        assert "Tire Pressure Check" in out

    def test_invalid_vin_reported_without_request(self, capsys):
        assert maint.main(["decode-vin", "SHORT"]) == 1
        assert "Error (vin): VIN must be 17 characters" in capsys.readouterr().out

    def test_backend_command_without_config(self, capsys):
        assert maint.main(["vehicles"]) == 1
        assert "SUPABASE_URL" in capsys.readouterr().out

    def test_unconfirmed_email_hint(self, capsys, monkeypatch, fake_supabase):
        fake_supabase.auth.sign_in_with_password.side_effect = AuthError(
            "Email not confirmed", None
        )
        monkeypatch.setattr(
            AppServices,
            "from_settings",
            classmethod(lambda cls, settings=None: cls(settings, fake_supabase, MagicMock())),
        )
        assert maint.main(["signin", "me@example.com", "--password", "secret1"]) == 1
        out = capsys.readouterr().out
        assert "Please verify your email address" in out
        assert "resend-verification me@example.com" in out
