"""
Read models for the polling dashboards.
"""

from typing import List

from ..core.errors import ValidationError
from ..repositories import db_models, repository
from ..schemas import SessionView
from .telemetry import vitals_status


def to_view(row: db_models.PatientSession) -> SessionView:
    temp, heart, oxygen = vitals_status(row.temperature, row.heart_rate, row.oxygen_level)
    return SessionView(
        session_row_id=row.id,
        ambulance_id=row.ambulance_id,
        patient_id=row.patient_id,
        patient_name=row.patient_name,
        patient_age=row.patient_age,
        blood_group=row.blood_group,
        patient_status=row.patient_status,
        diabetics_level=row.diabetics_level,
        hospital=row.hospital,
        temperature=row.temperature,
        oxygen_level=row.oxygen_level,
        heart_rate=row.heart_rate,
        blood_pressure=row.blood_pressure,
        speed=row.speed,
        longitude=row.longitude,
        latitude=row.latitude,
        next_traffic_int=row.next_traffic_int,
        past_traffic_int=row.past_traffic_int,
        done=row.done,
        created_at=row.created_at,
        updated_at=row.updated_at,
        temp_status=temp,
        heart_rate_status=heart,
        oxygen_status=oxygen,
    )


def list_open_sessions() -> List[SessionView]:
    return [to_view(row) for row in repository.list_open_sessions()]


def list_open_sessions_for_hospital(hospital_name: str) -> List[SessionView]:
    if not hospital_name:
        raise ValidationError("Hospital name not found in session")
    return [to_view(row) for row in repository.list_sessions_for_hospital(hospital_name)]


def hospital_history(hospital_name: str) -> List[SessionView]:
    if not hospital_name:
        raise ValidationError("Hospital name not found in session")
    return [to_view(row) for row in repository.list_sessions_for_hospital(hospital_name, include_closed=True)]
