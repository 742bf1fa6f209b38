import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Response, status

from ..core.errors import ValidationError
from ..schemas import TelemetryFields, TelemetryReport, TelemetryResponse
from ..services import telemetry

router = APIRouter()
log = logging.getLogger(__name__)


@router.post("/telemetry", response_model=TelemetryResponse)
def ingest_telemetry(report: TelemetryReport, response: Response):
    """
    Vitals and location report from the ambulance device.

    Identified by ``ambulance_id`` or by the device ``mac``. Unparsable
    readings are stored as zero. A report that reaches no open session is
    answered with ``success: false`` and ``updated: false``.
    """
    outcome = telemetry.ingest(report)
    row = outcome.session
    if not outcome.updated:
        return TelemetryResponse(
            success=False,
            message="No update performed. No active patient for this ambulance.",
            ambulance_id=outcome.ambulance_id,
            updated=False,
            created=outcome.created,
            timestamp=datetime.now(timezone.utc),
        )
    if outcome.created:
        response.status_code = status.HTTP_201_CREATED
    return TelemetryResponse(
        message="New patient record created successfully" if outcome.created else "Patient vitals updated successfully",
        ambulance_id=outcome.ambulance_id,
        session_row_id=row.id if row else None,
        patient_id=row.patient_id if row else "",
        updated=True,
        created=outcome.created,
        timestamp=datetime.now(timezone.utc),
    )


@router.post("/sessions/{session_row_id}/vitals", response_model=TelemetryResponse)
def update_session_vitals(session_row_id: int, fields: TelemetryFields):
    if session_row_id <= 0:
        raise ValidationError("Valid session_row_id is required")
    outcome = telemetry.update_vitals(session_row_id, fields)
    row = outcome.session
    if not outcome.updated:
        raise ValidationError(
            "Patient record is marked as done. Cannot update.",
            patient_id=row.patient_id,
            session_row_id=session_row_id,
        )
    return TelemetryResponse(
        message="Patient vitals updated successfully",
        ambulance_id=row.ambulance_id,
        session_row_id=row.id,
        patient_id=row.patient_id,
        updated=True,
        timestamp=datetime.now(timezone.utc),
    )
