"""
Telemetry ingest: resolves the reporting ambulance, applies the session
policy and overwrites the open session's vitals and location readings.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from ..core.config import settings
from ..core.errors import ConflictError, UnknownDeviceError, ValidationError
from ..repositories import db_models, repository
from ..repositories.repository import TelemetryResult
from ..schemas import TelemetryFields, TelemetryReport, VitalStatus

logger = logging.getLogger(__name__)

EXPLICIT = "explicit"
IMPLICIT = "implicit"


@dataclass
class IngestOutcome:
    ambulance_id: str
    result: TelemetryResult
    created: bool = False
    session: Optional[db_models.PatientSession] = None

    @property
    def updated(self) -> bool:
        return self.result is TelemetryResult.updated


def vitals_status(temperature: float, heart_rate: int, oxygen_level: int) -> Tuple[VitalStatus, VitalStatus, VitalStatus]:
    """Classify temperature, heart rate and oxygen. A zero reading means "not reported" and stays Normal."""
    temp = VitalStatus.normal
    if temperature > 38:
        temp = VitalStatus.high
    elif 0 < temperature < 36:
        temp = VitalStatus.low

    heart = VitalStatus.normal
    if heart_rate > 100:
        heart = VitalStatus.high
    elif 0 < heart_rate < 60:
        heart = VitalStatus.low

    oxygen = VitalStatus.normal
    if 0 < oxygen_level < 95:
        oxygen = VitalStatus.low

    return temp, heart, oxygen


def resolve_ambulance_id(report: TelemetryReport) -> str:
    if report.ambulance_id:
        return report.ambulance_id
    if report.mac:
        ambulance = repository.find_ambulance_by_hardware_code(report.mac)
        if ambulance is None:
            raise UnknownDeviceError(
                "No ambulance found with this MAC address",
                hint=f"Register this device with hardware_code: {repository.normalize_hardware_code(report.mac)}",
            )
        return ambulance.ambulance_id
    raise ValidationError("Ambulance ID is required")


def _summary(fields: TelemetryFields) -> str:
    return f"Temp: {fields.temperature}, O2: {fields.oxygen_level}, HR: {fields.heart_rate}"


def ingest(report: TelemetryReport, policy: Optional[str] = None) -> IngestOutcome:
    """
    Merge one device report into the ambulance's open session.

    Under the explicit policy a report for an ambulance without an open
    session is not applied and comes back as ``rejected_not_open``; the same
    happens when the session is closed between lookup and write. Under the
    implicit policy the session is opened first.
    """
    policy = policy or settings.session_policy
    ambulance_id = resolve_ambulance_id(report)

    created = False
    if policy == IMPLICIT and repository.find_open_session(ambulance_id) is None:
        try:
            repository.create_session(ambulance_id)
            created = True
        except ConflictError:
            # another report opened it first
            pass
        if created:
            repository.append_audit(ambulance_id=ambulance_id, action="patient_created", new_value=ambulance_id)

    result, row = repository.update_telemetry(ambulance_id, report.columns())
    if result is TelemetryResult.rejected_not_open:
        logger.warning("Telemetry from %s not applied: no active session", ambulance_id)
        return IngestOutcome(ambulance_id=ambulance_id, result=result, created=created)

    repository.append_audit(
        ambulance_id=ambulance_id,
        patient_id=row.patient_id if row else "",
        action="sensor_update",
        field_name="vitals",
        new_value=_summary(report),
    )
    return IngestOutcome(ambulance_id=ambulance_id, result=result, created=created, session=row)


def update_vitals(session_row_id: int, fields: TelemetryFields) -> IngestOutcome:
    result, row = repository.update_session_telemetry(session_row_id, fields.columns())
    if result is TelemetryResult.updated:
        logger.info(
            "Vitals updated for session %s: %s", session_row_id, _summary(fields)
        )
        repository.append_audit(
            ambulance_id=row.ambulance_id,
            patient_id=row.patient_id,
            action="sensor_update",
            field_name="vitals",
            new_value=_summary(fields),
        )
    return IngestOutcome(ambulance_id=row.ambulance_id, result=result, session=row)
