"""
Session lifecycle: NONE -> OPEN (start) -> CLOSED (mark_done, terminal).
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..core.errors import ConflictError, NoActiveSessionError
from ..repositories import db_models, repository
from ..repositories.repository import AdminFieldResult, CloseResult
from ..schemas import AdminField

logger = logging.getLogger(__name__)


@dataclass
class StartOutcome:
    created: bool
    ambulance_id: str
    session_row_id: Optional[int] = None


@dataclass
class DoneOutcome:
    result: CloseResult
    session: Optional[db_models.PatientSession] = None

    @property
    def already_done(self) -> bool:
        return self.result is CloseResult.already_closed


def start(ambulance_id: str) -> StartOutcome:
    try:
        row = repository.create_session(ambulance_id)
    except ConflictError:
        logger.warning("Start rejected for %s: service already active", ambulance_id)
        return StartOutcome(created=False, ambulance_id=ambulance_id)
    repository.append_audit(ambulance_id=ambulance_id, action="service_started", new_value="Emergency service started")
    return StartOutcome(created=True, ambulance_id=ambulance_id, session_row_id=row.id)


def mark_done(session_row_id: int) -> DoneOutcome:
    result, row = repository.close_session(session_row_id)
    if result is CloseResult.closed:
        # only the call that performed the transition writes the audit entry
        repository.append_audit(
            ambulance_id=row.ambulance_id,
            patient_id=row.patient_id,
            action="service_completed",
            field_name="done",
            old_value=0,
            new_value=1,
        )
    return DoneOutcome(result=result, session=row)


def update_field(ambulance_id: str, field_key: str, raw_value: Any) -> AdminFieldResult:
    """Validate and write one editable field; raises before touching storage on a bad key or value."""
    field = AdminField.lookup(field_key)
    value = field.parse(raw_value)
    outcome = repository.update_admin_field(ambulance_id, field, value)
    if not outcome.updated:
        raise NoActiveSessionError("No active patient found for this ambulance", ambulance_id=ambulance_id)
    if outcome.changed:
        repository.append_audit(
            ambulance_id=outcome.session.ambulance_id,
            patient_id=outcome.session.patient_id,
            action="field_update",
            field_name=field.value,
            old_value=outcome.old_value,
            new_value=outcome.new_value,
        )
        logger.info("Session %s: %s changed", outcome.session.id, field.value)
    return outcome
