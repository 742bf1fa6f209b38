"""Tests for vitals classification and permissive parsing of device reports."""

import pytest

from smart_ambulance.schemas import TelemetryReport, VitalStatus
from smart_ambulance.services.telemetry import vitals_status


@pytest.mark.parametrize(
    "temperature, heart_rate, oxygen, expected",
    [
        (39.0, 0, 0, (VitalStatus.high, VitalStatus.normal, VitalStatus.normal)),
        (0, 0, 0, (VitalStatus.normal, VitalStatus.normal, VitalStatus.normal)),
        (35.5, 55, 92, (VitalStatus.low, VitalStatus.low, VitalStatus.low)),
        (37.2, 72, 98, (VitalStatus.normal, VitalStatus.normal, VitalStatus.normal)),
        (38.0, 100, 95, (VitalStatus.normal, VitalStatus.normal, VitalStatus.normal)),
        (36.0, 101, 94, (VitalStatus.normal, VitalStatus.high, VitalStatus.low)),
    ],
)
def test_vitals_status(temperature, heart_rate, oxygen, expected):
    assert vitals_status(temperature, heart_rate, oxygen) == expected


def test_malformed_numeric_fields_become_zero():
    report = TelemetryReport.model_validate(
        {
            "ambulance_id": "AMB1",
            "temperature": "hot",
            "heartRate": None,
            "oxygenLevel": "nan",
            "speed": "",
            "latitude": [1, 2],
        }
    )
    assert report.temperature == 0.0
    assert report.heart_rate == 0
    assert report.oxygen_level == 0
    assert report.speed == 0.0
    assert report.latitude == 0.0


def test_numeric_strings_are_parsed():
    report = TelemetryReport.model_validate(
        {"ambulanceID": " AMB1 ", "temperature": " 37.4", "heartRate": "72.9", "oxygen_level": 98}
    )
    assert report.ambulance_id == "AMB1"
    assert report.temperature == pytest.approx(37.4)
    assert report.heart_rate == 72
    assert report.oxygen_level == 98


def test_missing_fields_default_and_blood_pressure_left_out():
    report = TelemetryReport.model_validate({"mac": "aa:bb"})
    columns = report.columns()
    assert report.ambulance_id is None
    assert report.mac == "aa:bb"
    assert columns["temperature"] == 0.0
    assert columns["next_traffic_int"] == ""
    assert "blood_pressure" not in columns
    assert "mac" not in columns and "ambulance_id" not in columns


def test_blood_pressure_written_when_sent():
    report = TelemetryReport.model_validate({"ambulance_id": "AMB1", "bloodPressure": "120/80"})
    assert report.columns()["blood_pressure"] == "120/80"


def test_integers_outside_column_range_become_zero():
    report = TelemetryReport.model_validate(
        {"ambulance_id": "AMB1", "heartRate": "1e30", "oxygenLevel": -1e25, "temperature": "1e30"}
    )
    assert report.heart_rate == 0
    assert report.oxygen_level == 0
    assert report.temperature == 1e30
