import logging
from typing import Optional

from fastapi import APIRouter, Depends

from ..repositories import repository
from ..schemas import AmbulanceLoginRequest, ApiResponse, HospitalLoginRequest, LoginResponse, SessionCheckResponse
from ..services import identity
from ..services.identity import Identity
from .deps import bearer_token, get_identity

router = APIRouter(prefix="/auth", tags=["auth"])
log = logging.getLogger(__name__)


@router.post("/ambulance/login", response_model=LoginResponse)
def ambulance_login(payload: AmbulanceLoginRequest):
    token, caller = identity.login_ambulance(payload.ambulance_id.strip(), payload.password)
    has_active = repository.find_open_session(caller.identity) is not None
    return LoginResponse(
        message="Login successful",
        token=token,
        kind=caller.kind,
        identity=caller.identity,
        display_name=caller.display_name,
        has_active_session=has_active,
    )


@router.post("/hospital/login", response_model=LoginResponse)
def hospital_login(payload: HospitalLoginRequest):
    token, caller = identity.login_hospital(payload.hospital_id.strip(), payload.password)
    return LoginResponse(
        message="Login successful",
        token=token,
        kind=caller.kind,
        identity=caller.identity,
        display_name=caller.display_name,
        hospital_name=caller.hospital_name,
    )


@router.post("/logout", response_model=ApiResponse)
def logout(token: Optional[str] = Depends(bearer_token)):
    if token and identity.logout(token):
        return ApiResponse(message="Logged out")
    return ApiResponse(message="No active login")


@router.get("/session", response_model=SessionCheckResponse)
def check_session(caller: Identity = Depends(get_identity)):
    return SessionCheckResponse(
        logged_in=True,
        kind=caller.kind,
        identity=caller.identity,
        display_name=caller.display_name,
        hospital_name=caller.hospital_name,
        expires_at=caller.expires_at,
    )
