"""
Telemetry payloads sent by the ambulance devices.

Devices are unreliable: numeric readings that are missing or unparsable are
coerced to zero instead of failing the report. Only the reporting identity is
mandatory, and that is checked by the ingest service, not here.
"""

import math
from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from .common import ApiResponse


def as_float(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


_INT_MIN, _INT_MAX = -(2**63), 2**63 - 1


def as_int(value: Any) -> int:
    number = int(as_float(value))
    # outside a signed 64-bit column the reading is as unusable as garbage
    return number if _INT_MIN <= number <= _INT_MAX else 0


def as_label(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def as_identity(value: Any) -> Optional[str]:
    text = as_label(value)
    return text or None


class TelemetryFields(BaseModel):
    """Vitals and location readings; every ingest overwrites all of them."""

    temperature: float = 0.0
    oxygen_level: int = Field(default=0, validation_alias=AliasChoices("oxygenLevel", "oxygen_level"))
    heart_rate: int = Field(default=0, validation_alias=AliasChoices("heartRate", "heart_rate"))
    speed: float = 0.0
    longitude: float = 0.0
    latitude: float = 0.0
    next_traffic_int: str = Field(default="", validation_alias=AliasChoices("nextTrafficInt", "next_traffic_int"))
    past_traffic_int: str = Field(default="", validation_alias=AliasChoices("pastTrafficInt", "past_traffic_int"))
    # Shared with the dashboard's editable fields, so it is only written when the device sends it.
    blood_pressure: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("bloodPressure", "blood_pressure")
    )

    @field_validator("temperature", "speed", "longitude", "latitude", mode="before")
    @classmethod
    def _float_reading(cls, value: Any) -> float:
        return as_float(value)

    @field_validator("oxygen_level", "heart_rate", mode="before")
    @classmethod
    def _int_reading(cls, value: Any) -> int:
        return as_int(value)

    @field_validator("next_traffic_int", "past_traffic_int", mode="before")
    @classmethod
    def _label(cls, value: Any) -> str:
        return as_label(value)

    @field_validator("blood_pressure", mode="before")
    @classmethod
    def _optional_label(cls, value: Any) -> Optional[str]:
        return None if value is None else as_label(value)

    def columns(self) -> dict:
        data = self.model_dump(include=set(TelemetryFields.model_fields))
        if data.get("blood_pressure") is None:
            data.pop("blood_pressure", None)
        return data


class TelemetryReport(TelemetryFields):
    ambulance_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("ambulance_id", "ambulanceID")
    )
    mac: Optional[str] = Field(default=None, validation_alias=AliasChoices("mac", "hardware_code"))

    @field_validator("ambulance_id", "mac", mode="before")
    @classmethod
    def _identity(cls, value: Any) -> Optional[str]:
        return as_identity(value)


class TelemetryResponse(ApiResponse):
    ambulance_id: str
    session_row_id: Optional[int] = None
    patient_id: str = ""
    updated: bool
    created: bool = False
    timestamp: datetime
