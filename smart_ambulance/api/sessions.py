import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, status

from ..core.config import settings
from ..core.errors import ConflictError, NotFoundError, ValidationError
from ..repositories import repository
from ..repositories.repository import CloseResult
from ..schemas import (
    ActiveSessionResponse,
    AdminFieldUpdate,
    AdminFieldUpdateResponse,
    HospitalSessionsResponse,
    MarkDoneRequest,
    MarkDoneResponse,
    OpenSessionsResponse,
    StartSessionResponse,
)
from ..services import dashboard, lifecycle
from ..services.identity import Identity
from .deps import require_ambulance, require_hospital

router = APIRouter()
log = logging.getLogger(__name__)


@router.post("/sessions/start", response_model=StartSessionResponse, status_code=status.HTTP_201_CREATED)
def start_service(caller: Identity = Depends(require_ambulance)):
    outcome = lifecycle.start(caller.identity)
    if not outcome.created:
        raise ConflictError(
            "Emergency service already active. Please complete current service first.",
            ambulance_id=caller.identity,
        )
    return StartSessionResponse(
        message="Emergency service started successfully",
        ambulance_id=caller.identity,
        session_row_id=outcome.session_row_id,
        timestamp=datetime.now(timezone.utc),
    )


@router.get("/sessions/active", response_model=ActiveSessionResponse)
def active_session(ambulance_id: Optional[str] = None):
    """Row id of the ambulance's open session, or 0 when it has none."""
    if not ambulance_id or not ambulance_id.strip():
        raise ValidationError("Ambulance ID is required", session_row_id=0, patient_id="")
    row = repository.find_open_session(ambulance_id.strip())
    if row is None:
        return ActiveSessionResponse(message="No active patient found for this ambulance")
    return ActiveSessionResponse(
        message="Active patient found",
        session_row_id=row.id,
        patient_id=row.patient_id,
        patient_name=row.patient_name,
        hospital=row.hospital,
    )


@router.post("/sessions/done", response_model=MarkDoneResponse)
def mark_done(payload: MarkDoneRequest):
    if payload.session_row_id <= 0:
        raise ValidationError("Valid session_row_id is required")
    outcome = lifecycle.mark_done(payload.session_row_id)
    if outcome.result is CloseResult.not_found:
        raise NotFoundError(f"Patient record not found with ID: {payload.session_row_id}")
    row = outcome.session
    message = (
        "Patient already marked as reached hospital"
        if outcome.already_done
        else "Patient successfully marked as reached hospital"
    )
    return MarkDoneResponse(
        message=message,
        session_row_id=row.id,
        ambulance_id=row.ambulance_id,
        patient_id=row.patient_id,
        patient_name=row.patient_name,
        already_done=outcome.already_done,
    )


@router.post("/sessions/field", response_model=AdminFieldUpdateResponse)
def update_field(payload: AdminFieldUpdate):
    outcome = lifecycle.update_field(payload.ambulance_id.strip(), payload.field_name, payload.new_value)
    row = outcome.session
    return AdminFieldUpdateResponse(
        message="Field updated successfully" if outcome.changed else "No changes made (value was already the same)",
        field=outcome.field.value,
        old_value=outcome.old_value,
        new_value=outcome.new_value,
        ambulance_id=row.ambulance_id,
        patient_id=row.patient_id,
        changed=outcome.changed,
        timestamp=datetime.now(timezone.utc),
    )


@router.get("/sessions/open", response_model=OpenSessionsResponse)
def list_open_sessions():
    views = dashboard.list_open_sessions()
    return OpenSessionsResponse(
        sessions={view.ambulance_id: view for view in views},
        count=len(views),
        poll_interval_seconds=settings.poll_interval_seconds,
        timestamp=datetime.now(timezone.utc),
    )


@router.get("/hospital/sessions", response_model=HospitalSessionsResponse)
def list_hospital_sessions(caller: Identity = Depends(require_hospital)):
    views = dashboard.list_open_sessions_for_hospital(caller.hospital_name or "")
    return HospitalSessionsResponse(
        hospital=caller.hospital_name,
        sessions=views,
        count=len(views),
        poll_interval_seconds=settings.poll_interval_seconds,
        timestamp=datetime.now(timezone.utc),
    )


@router.get("/hospital/sessions/history", response_model=HospitalSessionsResponse)
def hospital_history(caller: Identity = Depends(require_hospital)):
    views = dashboard.hospital_history(caller.hospital_name or "")
    return HospitalSessionsResponse(
        hospital=caller.hospital_name,
        sessions=views,
        count=len(views),
        poll_interval_seconds=settings.poll_interval_seconds,
        timestamp=datetime.now(timezone.utc),
    )
