"""
SQLModel table definitions for persistence.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    """Timestamps are stored in UTC and bound timezone-aware."""
    return datetime.now(timezone.utc)


class Ambulance(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    ambulance_id: str = Field(index=True, unique=True)
    hardware_code: Optional[str] = Field(default=None, index=True)
    attendant_name: Optional[str] = None
    password_hash: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)


class Hospital(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    hospital_id: str = Field(index=True, unique=True)
    name: str = Field(index=True)
    doctor_name: Optional[str] = None
    password_hash: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)


class PatientSession(SQLModel, table=True):
    """One transport of one patient by one ambulance."""

    __tablename__ = "patients"

    id: Optional[int] = Field(default=None, primary_key=True)
    ambulance_id: str = Field(index=True)
    # Holds ambulance_id while open, NULL once done: the unique index keeps one open row per ambulance.
    open_slot: Optional[str] = Field(default=None, unique=True)
    patient_id: str = ""

    patient_name: str = ""
    patient_age: Optional[int] = None
    blood_group: str = ""
    patient_status: str = "Normal"
    diabetics_level: str = ""
    hospital: str = Field(default="", index=True)

    temperature: float = 0.0
    oxygen_level: int = 0
    heart_rate: int = 0
    blood_pressure: str = ""
    speed: float = 0.0
    longitude: float = 0.0
    latitude: float = 0.0
    next_traffic_int: str = ""
    past_traffic_int: str = ""

    done: bool = Field(default=False, index=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, index=True)


class CallRequest(SQLModel, table=True):
    __tablename__ = "video_conference"

    id: Optional[int] = Field(default=None, primary_key=True)
    initiator_kind: str = Field(index=True)
    target_identity: str = Field(index=True)
    url: str
    picked: bool = Field(default=False, index=True)
    created_at: datetime = Field(default_factory=utc_now)


class ActivityLog(SQLModel, table=True):
    __tablename__ = "activity_log"

    id: Optional[int] = Field(default=None, primary_key=True)
    ambulance_id: str = Field(index=True)
    patient_id: str = ""
    action: str
    field_name: str = ""
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
