from typing import Optional

from pydantic import AliasChoices, BaseModel, Field

from .call import PartyKind
from .common import ApiResponse


class AmbulanceLoginRequest(BaseModel):
    ambulance_id: str = Field(..., min_length=1, validation_alias=AliasChoices("ambulance_id", "ambulanceID"))
    password: str = Field(..., min_length=1)


class HospitalLoginRequest(BaseModel):
    hospital_id: str = Field(..., min_length=1, validation_alias=AliasChoices("hospital_id", "hospitalID"))
    password: str = Field(..., min_length=1)


class LoginResponse(ApiResponse):
    """
    Token plus the identity it stands for.

    The token goes back on every request as ``Authorization: Bearer <token>``.
    """
    token: str
    kind: PartyKind
    identity: str
    display_name: Optional[str] = None
    hospital_name: Optional[str] = None
    has_active_session: Optional[bool] = None


class SessionCheckResponse(ApiResponse):
    logged_in: bool
    kind: PartyKind
    identity: str
    display_name: Optional[str] = None
    hospital_name: Optional[str] = None
    expires_at: float
