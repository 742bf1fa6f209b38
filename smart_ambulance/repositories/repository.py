"""
Repository helpers for the session store, the ambulance/hospital registry,
the call signaling queue and the activity log.

Every helper opens its own short-lived SQLModel session. State transitions
are single conditional UPDATE statements so that concurrent requests never
act on a stale read; the affected row count decides the outcome.
"""

import logging
import re
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from ..core.errors import ConflictError, NotFoundError, ServiceError, StorageError
from ..schemas import AdminField, PartyKind
from . import db, db_models

logger = logging.getLogger(__name__)

_MAC_SEPARATORS = re.compile(r"[:\-._\s]")


class CloseResult(str, Enum):
    closed = "closed"
    already_closed = "already_closed"
    not_found = "not_found"


class TelemetryResult(str, Enum):
    updated = "updated"
    rejected_not_open = "rejected_not_open"


@dataclass
class AdminFieldResult:
    updated: bool
    field: AdminField
    old_value: Any = None
    new_value: Any = None
    session: Optional[db_models.PatientSession] = None

    @property
    def changed(self) -> bool:
        return self.updated and self.old_value != self.new_value


def init_db() -> None:
    db.init_db()


def _now() -> datetime:
    return db_models.utc_now()


@contextmanager
def _session() -> Iterator[Session]:
    session = Session(db.get_engine(), expire_on_commit=False)
    try:
        yield session
    except ServiceError:
        session.rollback()
        raise
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Storage failure")
        raise StorageError(cause=exc) from exc
    finally:
        session.close()


def _open_rows(ambulance_id: str):
    return (
        select(db_models.PatientSession)
        .where(db_models.PatientSession.ambulance_id == ambulance_id)
        .where(db_models.PatientSession.done == False)  # noqa: E712
    )


def normalize_hardware_code(code: Optional[str]) -> str:
    return _MAC_SEPARATORS.sub("", code or "").upper()


# Session store ------------------------------------------------------------
def find_open_session(ambulance_id: str) -> Optional[db_models.PatientSession]:
    with _session() as session:
        stmt = _open_rows(ambulance_id).order_by(
            db_models.PatientSession.created_at.asc(), db_models.PatientSession.id.asc()
        )
        return session.exec(stmt.limit(1)).first()


def get_session(session_row_id: int) -> Optional[db_models.PatientSession]:
    with _session() as session:
        return session.get(db_models.PatientSession, session_row_id)


def create_session(ambulance_id: str, patient_id: str = "") -> db_models.PatientSession:
    """
    Open a session for the ambulance.

    The insert itself is the existence check: ``open_slot`` is unique, so a
    second open row for the same ambulance fails inside the storage engine.
    """
    now = _now()
    row = db_models.PatientSession(
        ambulance_id=ambulance_id,
        open_slot=ambulance_id,
        patient_id=patient_id,
        created_at=now,
        updated_at=now,
    )
    with _session() as session:
        session.add(row)
        try:
            session.commit()
        except IntegrityError:
            session.rollback()
            logger.info("Session already open for ambulance %s", ambulance_id)
            raise ConflictError(
                "Emergency service already active. Please complete current service first.",
                ambulance_id=ambulance_id,
            )
        session.refresh(row)
    logger.info("Session %s opened for ambulance %s", row.id, ambulance_id)
    return row


def close_session(session_row_id: int) -> Tuple[CloseResult, Optional[db_models.PatientSession]]:
    with _session() as session:
        stmt = (
            update(db_models.PatientSession)
            .where(db_models.PatientSession.id == session_row_id)
            .where(db_models.PatientSession.done == False)  # noqa: E712
            .values(done=True, open_slot=None, updated_at=_now())
        )
        result = session.exec(stmt)  # type: ignore[call-overload]
        session.commit()
        row = session.get(db_models.PatientSession, session_row_id, populate_existing=True)
        if result.rowcount:
            logger.info("Session %s closed (ambulance %s)", session_row_id, row.ambulance_id if row else "?")
            return CloseResult.closed, row
        if row is None:
            return CloseResult.not_found, None
        return CloseResult.already_closed, row


def update_telemetry(
    ambulance_id: str, fields: Dict[str, Any]
) -> Tuple[TelemetryResult, Optional[db_models.PatientSession]]:
    with _session() as session:
        stmt = (
            update(db_models.PatientSession)
            .where(db_models.PatientSession.ambulance_id == ambulance_id)
            .where(db_models.PatientSession.done == False)  # noqa: E712
            .values(**fields, updated_at=_now())
        )
        result = session.exec(stmt)  # type: ignore[call-overload]
        session.commit()
        if not result.rowcount:
            return TelemetryResult.rejected_not_open, None
        row = session.exec(_open_rows(ambulance_id).limit(1)).first()
        return TelemetryResult.updated, row


def update_session_telemetry(
    session_row_id: int, fields: Dict[str, Any]
) -> Tuple[TelemetryResult, db_models.PatientSession]:
    with _session() as session:
        stmt = (
            update(db_models.PatientSession)
            .where(db_models.PatientSession.id == session_row_id)
            .where(db_models.PatientSession.done == False)  # noqa: E712
            .values(**fields, updated_at=_now())
        )
        result = session.exec(stmt)  # type: ignore[call-overload]
        session.commit()
        row = session.get(db_models.PatientSession, session_row_id, populate_existing=True)
        if row is None:
            raise NotFoundError(f"Patient record not found with ID: {session_row_id}")
        if not result.rowcount:
            return TelemetryResult.rejected_not_open, row
        return TelemetryResult.updated, row


def update_admin_field(ambulance_id: str, field: AdminField, value: Any) -> AdminFieldResult:
    """
    Write one editable field of the ambulance's open session.

    The old value is read first for the audit trail; the write is still
    conditional on the row being open, so a session closed in between is
    reported as having no active session.
    """
    with _session() as session:
        row = session.exec(_open_rows(ambulance_id).order_by(db_models.PatientSession.created_at.asc())).first()
        if row is None:
            return AdminFieldResult(updated=False, field=field)
        old_value = getattr(row, field.column)
        values: Dict[str, Any] = {field.column: value, "updated_at": _now()}
        if field is AdminField.ambulance_id:
            values["open_slot"] = value
        stmt = (
            update(db_models.PatientSession)
            .where(db_models.PatientSession.id == row.id)
            .where(db_models.PatientSession.done == False)  # noqa: E712
            .values(**values)
        )
        try:
            result = session.exec(stmt)  # type: ignore[call-overload]
            session.commit()
        except IntegrityError:
            session.rollback()
            raise ConflictError(f"Ambulance {value} already has an active session", ambulance_id=ambulance_id)
        if not result.rowcount:
            return AdminFieldResult(updated=False, field=field)
        row = session.get(db_models.PatientSession, row.id, populate_existing=True)
        return AdminFieldResult(updated=True, field=field, old_value=old_value, new_value=value, session=row)


# Dashboard reads ----------------------------------------------------------
def list_open_sessions() -> List[db_models.PatientSession]:
    with _session() as session:
        stmt = select(db_models.PatientSession).where(db_models.PatientSession.done == False)  # noqa: E712
        stmt = stmt.order_by(db_models.PatientSession.updated_at.desc(), db_models.PatientSession.id.desc())
        return list(session.exec(stmt))


def list_sessions_for_hospital(hospital_name: str, include_closed: bool = False) -> List[db_models.PatientSession]:
    with _session() as session:
        stmt = select(db_models.PatientSession).where(db_models.PatientSession.hospital == hospital_name)
        if not include_closed:
            stmt = stmt.where(db_models.PatientSession.done == False)  # noqa: E712
        stmt = stmt.order_by(db_models.PatientSession.updated_at.desc(), db_models.PatientSession.id.desc())
        return list(session.exec(stmt))


# Registry -----------------------------------------------------------------
def create_ambulance(
    ambulance_id: str,
    *,
    password_hash: Optional[str] = None,
    attendant_name: Optional[str] = None,
    hardware_code: Optional[str] = None,
) -> db_models.Ambulance:
    ambulance = db_models.Ambulance(
        ambulance_id=ambulance_id,
        password_hash=password_hash,
        attendant_name=attendant_name,
        hardware_code=normalize_hardware_code(hardware_code) or None,
        created_at=_now(),
    )
    with _session() as session:
        session.add(ambulance)
        try:
            session.commit()
        except IntegrityError:
            session.rollback()
            raise ConflictError(f"Ambulance {ambulance_id} is already registered")
        session.refresh(ambulance)
    logger.info("Ambulance registered: %s (attendant: %s)", ambulance_id, attendant_name or "unspecified")
    return ambulance


def get_ambulance(ambulance_id: str) -> Optional[db_models.Ambulance]:
    with _session() as session:
        stmt = select(db_models.Ambulance).where(db_models.Ambulance.ambulance_id == ambulance_id)
        return session.exec(stmt).first()


def find_ambulance_by_hardware_code(hardware_code: str) -> Optional[db_models.Ambulance]:
    code = normalize_hardware_code(hardware_code)
    if not code:
        return None
    with _session() as session:
        stmt = select(db_models.Ambulance).where(db_models.Ambulance.hardware_code == code)
        return session.exec(stmt).first()


def create_hospital(
    hospital_id: str,
    name: str,
    *,
    password_hash: Optional[str] = None,
    doctor_name: Optional[str] = None,
) -> db_models.Hospital:
    hospital = db_models.Hospital(
        hospital_id=hospital_id,
        name=name,
        password_hash=password_hash,
        doctor_name=doctor_name,
        created_at=_now(),
    )
    with _session() as session:
        session.add(hospital)
        try:
            session.commit()
        except IntegrityError:
            session.rollback()
            raise ConflictError(f"Hospital {hospital_id} is already registered")
        session.refresh(hospital)
    logger.info("Hospital registered: %s (%s)", hospital_id, name)
    return hospital


def get_hospital(hospital_id: str) -> Optional[db_models.Hospital]:
    with _session() as session:
        stmt = select(db_models.Hospital).where(db_models.Hospital.hospital_id == hospital_id)
        return session.exec(stmt).first()


def find_hospital_by_name(name: str) -> Optional[db_models.Hospital]:
    with _session() as session:
        stmt = select(db_models.Hospital).where(db_models.Hospital.name == name).order_by(db_models.Hospital.id)
        return session.exec(stmt).first()


def list_hospitals() -> List[db_models.Hospital]:
    with _session() as session:
        stmt = select(db_models.Hospital).order_by(db_models.Hospital.name.asc())
        return list(session.exec(stmt))


# Call signaling -----------------------------------------------------------
def place_call(initiator_kind: PartyKind, target_identity: str, url: str) -> db_models.CallRequest:
    call = db_models.CallRequest(
        initiator_kind=initiator_kind.value,
        target_identity=target_identity,
        url=url,
        picked=False,
        created_at=_now(),
    )
    with _session() as session:
        session.add(call)
        session.commit()
        session.refresh(call)
    return call


def poll_incoming(listener_kind: PartyKind, listener_identity: str) -> Optional[db_models.CallRequest]:
    with _session() as session:
        stmt = (
            select(db_models.CallRequest)
            .where(db_models.CallRequest.initiator_kind == listener_kind.counterpart.value)
            .where(db_models.CallRequest.target_identity == listener_identity)
            .where(db_models.CallRequest.picked == False)  # noqa: E712
            .order_by(db_models.CallRequest.created_at.desc(), db_models.CallRequest.id.desc())
            .limit(1)
        )
        return session.exec(stmt).first()


def acknowledge_call(call_id: int) -> bool:
    """Mark the call picked. Returns True when it had already been picked."""
    with _session() as session:
        stmt = (
            update(db_models.CallRequest)
            .where(db_models.CallRequest.id == call_id)
            .where(db_models.CallRequest.picked == False)  # noqa: E712
            .values(picked=True)
        )
        result = session.exec(stmt)  # type: ignore[call-overload]
        session.commit()
        if result.rowcount:
            return False
        if session.get(db_models.CallRequest, call_id) is None:
            raise NotFoundError(f"Call {call_id} not found")
        return True


# Activity log -------------------------------------------------------------
def append_audit(
    *,
    ambulance_id: str,
    action: str,
    patient_id: str = "",
    field_name: str = "",
    old_value: Any = None,
    new_value: Any = None,
) -> int:
    entry = db_models.ActivityLog(
        ambulance_id=ambulance_id,
        patient_id=patient_id or "",
        action=action,
        field_name=field_name,
        old_value=None if old_value is None else str(old_value),
        new_value=None if new_value is None else str(new_value),
        created_at=_now(),
    )
    with _session() as session:
        session.add(entry)
        session.commit()
        session.refresh(entry)
    return entry.id


def list_audit_entries(ambulance_id: str, action: Optional[str] = None, limit: int = 100) -> List[db_models.ActivityLog]:
    with _session() as session:
        stmt = select(db_models.ActivityLog).where(db_models.ActivityLog.ambulance_id == ambulance_id)
        if action:
            stmt = stmt.where(db_models.ActivityLog.action == action)
        stmt = stmt.order_by(db_models.ActivityLog.id.asc()).limit(limit)
        return list(session.exec(stmt))
