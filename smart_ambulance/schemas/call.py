from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field

from .common import ApiResponse


class PartyKind(str, Enum):
    ambulance = "AMB"
    hospital = "HOSP"

    @property
    def counterpart(self) -> "PartyKind":
        return PartyKind.hospital if self is PartyKind.ambulance else PartyKind.ambulance


class PlaceCallRequest(BaseModel):
    url: str = ""
    # Ambulance calls default to the hospital selected on the open session.
    target: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("target", "ambulanceID", "hospitalID", "target_identity")
    )


class PlaceCallResponse(ApiResponse):
    call_id: int
    url: str
    target_identity: str


class CallView(BaseModel):
    id: int
    initiator_kind: PartyKind
    target_identity: str
    url: str
    created_at: datetime


class IncomingCallResponse(ApiResponse):
    has_incoming_call: bool = Field(..., serialization_alias="hasIncomingCall")
    call: Optional[CallView] = None


class AcknowledgeCallRequest(BaseModel):
    call_id: Optional[int] = Field(default=None, validation_alias=AliasChoices("call_id", "callID"))


class AcknowledgeCallResponse(ApiResponse):
    call_id: int
    already_picked: bool
