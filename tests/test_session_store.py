"""Tests for the session store, lifecycle transitions and telemetry ingest."""

from concurrent.futures import ThreadPoolExecutor
from datetime import timezone

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import Session

from smart_ambulance.core.config import settings
from smart_ambulance.core.errors import (
    ConflictError,
    InvalidFieldError,
    NoActiveSessionError,
    StorageError,
    UnknownDeviceError,
    ValidationError,
)
from smart_ambulance.repositories import db, db_models, repository
from smart_ambulance.repositories.repository import CloseResult, TelemetryResult
from smart_ambulance.schemas import AdminField, TelemetryReport
from smart_ambulance.services import lifecycle, telemetry


def _report(**fields) -> TelemetryReport:
    return TelemetryReport.model_validate(fields)


def test_create_session_rejects_second_open_session():
    first = repository.create_session("AMB1")
    with pytest.raises(ConflictError):
        repository.create_session("AMB1")
    assert repository.find_open_session("AMB1").id == first.id


def test_new_session_allowed_after_close():
    first = repository.create_session("AMB1")
    repository.close_session(first.id)
    second = repository.create_session("AMB1")
    assert second.id > first.id
    assert repository.find_open_session("AMB1").id == second.id


def test_concurrent_starts_open_exactly_one_session():
    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(pool.map(lambda _: lifecycle.start("AMB1"), range(8)))
    assert sum(1 for o in outcomes if o.created) == 1
    assert len(repository.list_open_sessions()) == 1
    assert all(o.session_row_id is None for o in outcomes if not o.created)


def test_start_reports_already_active():
    created = lifecycle.start("AMB1")
    again = lifecycle.start("AMB1")
    assert created.created and created.session_row_id
    assert not again.created and again.session_row_id is None


def test_mark_done_twice_is_closed_then_already_closed():
    row_id = lifecycle.start("AMB1").session_row_id
    first = lifecycle.mark_done(row_id)
    snapshot = repository.get_session(row_id).model_dump()
    second = lifecycle.mark_done(row_id)

    assert first.result is CloseResult.closed
    assert second.result is CloseResult.already_closed
    assert second.already_done
    assert repository.get_session(row_id).model_dump() == snapshot
    assert len(repository.list_audit_entries("AMB1", action="service_completed")) == 1


def test_mark_done_unknown_row():
    assert lifecycle.mark_done(999).result is CloseResult.not_found


def test_closed_session_rejects_telemetry_and_field_updates():
    row_id = lifecycle.start("AMB1").session_row_id
    telemetry.ingest(_report(ambulance_id="AMB1", temperature=37.0, heartRate=80))
    lifecycle.mark_done(row_id)
    snapshot = repository.get_session(row_id).model_dump()

    result, row = repository.update_telemetry("AMB1", {"temperature": 40.0})
    assert result is TelemetryResult.rejected_not_open and row is None
    assert telemetry.ingest(_report(ambulance_id="AMB1", temperature=41)).result is TelemetryResult.rejected_not_open
    with pytest.raises(NoActiveSessionError):
        lifecycle.update_field("AMB1", "patientName", "Someone")

    assert repository.get_session(row_id).model_dump() == snapshot


def test_explicit_policy_does_not_open_sessions():
    outcome = telemetry.ingest(_report(ambulance_id="AMB1", temperature=37.0), policy=telemetry.EXPLICIT)
    assert outcome.result is TelemetryResult.rejected_not_open
    assert repository.find_open_session("AMB1") is None


def test_implicit_policy_opens_session_once():
    first = telemetry.ingest(_report(ambulance_id="AMB1", heartRate=90), policy=telemetry.IMPLICIT)
    second = telemetry.ingest(_report(ambulance_id="AMB1", heartRate=95), policy=telemetry.IMPLICIT)
    assert first.created and first.updated
    assert not second.created and second.updated
    assert first.session.id == second.session.id
    assert repository.find_open_session("AMB1").heart_rate == 95
    assert len(repository.list_audit_entries("AMB1", action="patient_created")) == 1


def test_ingest_overwrites_every_reading():
    lifecycle.start("AMB1")
    telemetry.ingest(_report(ambulance_id="AMB1", temperature=37.5, heartRate=88, speed=40, nextTrafficInt="MG Road"))
    telemetry.ingest(_report(ambulance_id="AMB1", heartRate=70))
    row = repository.find_open_session("AMB1")
    assert row.heart_rate == 70
    assert row.temperature == 0.0
    assert row.speed == 0.0
    assert row.next_traffic_int == ""


def test_ingest_keeps_dashboard_blood_pressure_unless_sent():
    lifecycle.start("AMB1")
    lifecycle.update_field("AMB1", "bloodPressure", "130/85")
    telemetry.ingest(_report(ambulance_id="AMB1", heartRate=70))
    assert repository.find_open_session("AMB1").blood_pressure == "130/85"
    telemetry.ingest(_report(ambulance_id="AMB1", bloodPressure="118/76"))
    assert repository.find_open_session("AMB1").blood_pressure == "118/76"


def test_ingest_by_device_mac(registry):
    lifecycle.start("AMB1")
    outcome = telemetry.ingest(_report(mac="aa-bb-cc-dd-ee-01", temperature=38.5))
    assert outcome.ambulance_id == "AMB1"
    assert repository.find_open_session("AMB1").temperature == 38.5


def test_ingest_unknown_device_and_missing_identity(registry):
    with pytest.raises(UnknownDeviceError):
        telemetry.ingest(_report(mac="00:00:00:00:00:00"))
    with pytest.raises(ValidationError):
        telemetry.ingest(_report(temperature=37))


def test_update_field_returns_old_value_and_audits():
    lifecycle.start("AMB1")
    outcome = lifecycle.update_field("AMB1", "hospital", "City Hospital")
    assert outcome.old_value == "" and outcome.new_value == "City Hospital"
    entries = repository.list_audit_entries("AMB1", action="field_update")
    assert [(e.field_name, e.old_value, e.new_value) for e in entries] == [("hospital", "", "City Hospital")]

    same = lifecycle.update_field("AMB1", "hospital", "City Hospital")
    assert not same.changed
    assert len(repository.list_audit_entries("AMB1", action="field_update")) == 1


def test_update_field_parses_typed_values():
    lifecycle.start("AMB1")
    assert lifecycle.update_field("AMB1", "patientAge", "42").new_value == 42
    assert lifecycle.update_field("AMB1", "patient_status", "Critical").new_value == "Critical"
    with pytest.raises(ValidationError):
        lifecycle.update_field("AMB1", "patientStatus", "Dying")
    with pytest.raises(ValidationError):
        lifecycle.update_field("AMB1", "patientAge", "forty")
    assert repository.find_open_session("AMB1").patient_status == "Critical"


def test_unknown_field_rejected_before_storage(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("storage must not be touched")

    monkeypatch.setattr(repository, "update_admin_field", fail)
    with pytest.raises(InvalidFieldError) as excinfo:
        lifecycle.update_field("AMB1", "done", "1")
    assert "hospital" in excinfo.value.extra["allowedFields"]


def test_reassign_ambulance_moves_open_slot():
    row_id = lifecycle.start("AMB1").session_row_id
    lifecycle.update_field("AMB1", AdminField.ambulance_id.value, "AMB2")
    assert repository.find_open_session("AMB1") is None
    assert repository.find_open_session("AMB2").id == row_id
    assert lifecycle.start("AMB1").created
    with pytest.raises(ConflictError):
        lifecycle.update_field("AMB1", "ambulanceID", "AMB2")


def test_hospital_listing_filters_open_sessions():
    closed_id = lifecycle.start("AMB1").session_row_id
    lifecycle.update_field("AMB1", "hospital", "City Hospital")
    lifecycle.mark_done(closed_id)
    lifecycle.start("AMB1")
    lifecycle.update_field("AMB1", "hospital", "City Hospital")
    lifecycle.start("AMB2")
    lifecycle.update_field("AMB2", "hospital", "Lake Clinic")

    open_rows = repository.list_sessions_for_hospital("City Hospital")
    history = repository.list_sessions_for_hospital("City Hospital", include_closed=True)
    assert [r.ambulance_id for r in open_rows] == ["AMB1"]
    assert len(history) == 2
    assert [r.ambulance_id for r in repository.list_open_sessions()] == ["AMB2", "AMB1"]


def test_writes_bind_utc_aware_timestamps():
    assert repository._now().tzinfo is timezone.utc
    call = db_models.CallRequest(initiator_kind="AMB", target_identity="HOSP1", url="https://meet.example/x")
    assert call.created_at.tzinfo is timezone.utc

    row = repository.create_session("AMB1")
    repository.append_audit(ambulance_id="AMB1", action="service_started")
    repository.update_telemetry("AMB1", {"temperature": 37.0})
    assert repository.close_session(row.id)[0] is CloseResult.closed
    assert len(repository.list_audit_entries("AMB1")) == 1


def test_storage_failure_is_raised_and_rolled_back(monkeypatch):
    row_id = lifecycle.start("AMB1").session_row_id
    repository.update_telemetry("AMB1", {"temperature": 37.0})

    class LockedSession(Session):
        def commit(self):
            raise OperationalError("UPDATE patients", {}, Exception("database is locked"))

    with monkeypatch.context() as m:
        m.setattr(repository, "Session", LockedSession)
        with pytest.raises(StorageError) as excinfo:
            repository.update_telemetry("AMB1", {"temperature": 40.0})
    assert isinstance(excinfo.value.cause, OperationalError)
    assert repository.get_session(row_id).temperature == 37.0


def test_engine_follows_database_url(tmp_path, monkeypatch):
    target = tmp_path / "nested" / "dir" / "ambulance.db"
    monkeypatch.setattr(settings, "database_url", f"sqlite:///{target}")
    db.dispose_engine()
    repository.init_db()
    assert target.exists()
    assert repository.find_open_session("AMB1") is None
