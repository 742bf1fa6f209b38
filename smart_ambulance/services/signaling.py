"""
Call signaling between the ambulance and hospital terminals.

A call request is a ring, nothing more: the initiator writes it, the target
sees it on its next poll and acknowledges it when the operator joins. The
initiator is never told whether the call was picked.
"""

import logging
from typing import Optional

from ..core.errors import ValidationError
from ..repositories import db_models, repository
from ..schemas import PartyKind

logger = logging.getLogger(__name__)


def place_call(initiator_kind: PartyKind, target_identity: Optional[str], url: Optional[str]) -> db_models.CallRequest:
    target_identity = (target_identity or "").strip()
    url = (url or "").strip()
    if not target_identity:
        raise ValidationError("Call target is required")
    if not url:
        raise ValidationError("Video call URL is required")
    call = repository.place_call(initiator_kind, target_identity, url)
    logger.info("Call %s placed by %s to %s", call.id, initiator_kind.value, target_identity)
    return call


def hospital_target_for(ambulance_id: str) -> str:
    """Hospital identity an ambulance rings by default: the destination chosen on its open session."""
    row = repository.find_open_session(ambulance_id)
    hospital_name = row.hospital if row else ""
    if not hospital_name:
        raise ValidationError("Please select a destination hospital first")
    hospital = repository.find_hospital_by_name(hospital_name)
    return hospital.hospital_id if hospital else hospital_name


def poll_incoming(listener_kind: PartyKind, listener_identity: str) -> Optional[db_models.CallRequest]:
    return repository.poll_incoming(listener_kind, listener_identity)


def acknowledge(call_id: Optional[int]) -> bool:
    """Returns True when the call had already been picked before this request."""
    if not call_id:
        raise ValidationError("Call ID is required")
    already_picked = repository.acknowledge_call(call_id)
    if not already_picked:
        logger.info("Call %s picked", call_id)
    return already_picked
