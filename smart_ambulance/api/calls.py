import logging

from fastapi import APIRouter, Depends, status

from ..schemas import (
    AcknowledgeCallRequest,
    AcknowledgeCallResponse,
    CallView,
    IncomingCallResponse,
    PartyKind,
    PlaceCallRequest,
    PlaceCallResponse,
)
from ..services import signaling
from ..services.identity import Identity
from .deps import get_identity

router = APIRouter(prefix="/calls", tags=["calls"])
log = logging.getLogger(__name__)


@router.post("", response_model=PlaceCallResponse, status_code=status.HTTP_201_CREATED)
def place_call(payload: PlaceCallRequest, caller: Identity = Depends(get_identity)):
    target = payload.target
    if not (target or "").strip() and caller.kind is PartyKind.ambulance:
        target = signaling.hospital_target_for(caller.identity)
    call = signaling.place_call(caller.kind, target, payload.url)
    return PlaceCallResponse(
        message="Video conference started successfully",
        call_id=call.id,
        url=call.url,
        target_identity=call.target_identity,
    )


@router.get("/incoming", response_model=IncomingCallResponse)
def incoming_call(caller: Identity = Depends(get_identity)):
    """Polled by both dashboards: the newest unpicked call addressed to the caller."""
    call = signaling.poll_incoming(caller.kind, caller.identity)
    if call is None:
        return IncomingCallResponse(has_incoming_call=False)
    return IncomingCallResponse(
        has_incoming_call=True,
        call=CallView(
            id=call.id,
            initiator_kind=PartyKind(call.initiator_kind),
            target_identity=call.target_identity,
            url=call.url,
            created_at=call.created_at,
        ),
    )


@router.post("/acknowledge", response_model=AcknowledgeCallResponse)
def acknowledge_call(payload: AcknowledgeCallRequest, caller: Identity = Depends(get_identity)):
    already_picked = signaling.acknowledge(payload.call_id)
    log.info("Call %s acknowledged by %s", payload.call_id, caller.identity)
    return AcknowledgeCallResponse(
        message="Call already picked" if already_picked else "Call status updated successfully",
        call_id=payload.call_id,
        already_picked=already_picked,
    )
