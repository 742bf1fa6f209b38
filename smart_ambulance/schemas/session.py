from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ..core.errors import InvalidFieldError, ValidationError
from .common import ApiResponse


MAX_PATIENT_AGE = 150


class PatientStatus(str, Enum):
    normal = "Normal"
    medium = "Medium"
    critical = "Critical"


class VitalStatus(str, Enum):
    normal = "Normal"
    high = "High"
    low = "Low"


class AdminField(str, Enum):
    """
    Fields the dashboards may edit on an open session.

    The member name is the column it writes; the value is the key used on the wire.
    """

    patient_id = "patientID"
    patient_name = "patientName"
    patient_age = "patientAge"
    blood_group = "bloodGroup"
    patient_status = "patientStatus"
    blood_pressure = "bloodPressure"
    diabetics_level = "diabeticsLevel"
    hospital = "hospital"
    ambulance_id = "ambulanceID"

    @property
    def column(self) -> str:
        return self.name

    @classmethod
    def lookup(cls, key: Optional[str]) -> "AdminField":
        key = (key or "").strip()
        for member in cls:
            if key in (member.value, member.name):
                return member
        raise InvalidFieldError(
            "Invalid field name",
            allowedFields=[m.value for m in cls],
        )

    def parse(self, raw: Any) -> Any:
        text = "" if raw is None else str(raw).strip()
        if self is AdminField.patient_age:
            if text == "":
                return None
            try:
                age = int(float(text))
            except (ValueError, OverflowError):
                raise ValidationError(f"Invalid patient age: {text}")
            if not 0 <= age <= MAX_PATIENT_AGE:
                raise ValidationError(f"Invalid patient age: {text}")
            return age
        if self is AdminField.patient_status:
            try:
                return PatientStatus(text).value
            except ValueError:
                raise ValidationError(
                    f"Invalid patient status: {text}",
                    allowedValues=[s.value for s in PatientStatus],
                )
        if self is AdminField.ambulance_id and not text:
            raise ValidationError("Ambulance ID cannot be empty")
        return text


class SessionView(BaseModel):
    """Dashboard view of a session, including the derived vitals status."""

    session_row_id: int
    ambulance_id: str
    patient_id: str = ""
    patient_name: str = ""
    patient_age: Optional[int] = None
    blood_group: str = ""
    patient_status: str = PatientStatus.normal.value
    diabetics_level: str = ""
    hospital: str = ""
    temperature: float = 0.0
    oxygen_level: int = 0
    heart_rate: int = 0
    blood_pressure: str = ""
    speed: float = 0.0
    longitude: float = 0.0
    latitude: float = 0.0
    next_traffic_int: str = ""
    past_traffic_int: str = ""
    done: bool = False
    created_at: datetime
    updated_at: datetime
    temp_status: VitalStatus = VitalStatus.normal
    heart_rate_status: VitalStatus = VitalStatus.normal
    oxygen_status: VitalStatus = VitalStatus.normal


class StartSessionResponse(ApiResponse):
    ambulance_id: str
    session_row_id: Optional[int] = None
    timestamp: datetime


class ActiveSessionResponse(ApiResponse):
    session_row_id: int = 0
    patient_id: str = ""
    patient_name: str = ""
    hospital: str = ""


class MarkDoneRequest(BaseModel):
    session_row_id: int = Field(..., validation_alias=AliasChoices("session_row_id", "patient_row_id"))


class MarkDoneResponse(ApiResponse):
    session_row_id: int
    ambulance_id: str
    patient_id: str = ""
    patient_name: str = ""
    already_done: bool


class AdminFieldUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ambulance_id: str = Field(..., min_length=1, validation_alias=AliasChoices("ambulance_id", "ambulanceID"))
    field_name: str = Field(..., validation_alias=AliasChoices("fieldName", "field_name"))
    new_value: Any = Field(default="", validation_alias=AliasChoices("newValue", "new_value"))


class AdminFieldUpdateResponse(ApiResponse):
    field: str = Field(..., serialization_alias="fieldName")
    old_value: Any = Field(default=None, serialization_alias="oldValue")
    new_value: Any = Field(default=None, serialization_alias="newValue")
    ambulance_id: str
    patient_id: str = ""
    changed: bool = True
    timestamp: datetime


class OpenSessionsResponse(ApiResponse):
    sessions: Dict[str, SessionView]
    count: int
    poll_interval_seconds: int
    timestamp: datetime


class HospitalSessionsResponse(ApiResponse):
    hospital: str
    sessions: List[SessionView]
    count: int
    poll_interval_seconds: int
    timestamp: datetime
