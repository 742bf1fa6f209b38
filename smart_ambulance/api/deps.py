from typing import Optional

from fastapi import Depends, Header

from ..core.errors import AuthenticationError
from ..schemas import PartyKind
from ..services import identity
from ..services.identity import Identity


def bearer_token(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def get_identity(token: Optional[str] = Depends(bearer_token)) -> Identity:
    return identity.resolve_token(token)


def require_ambulance(caller: Identity = Depends(get_identity)) -> Identity:
    if caller.kind is not PartyKind.ambulance:
        raise AuthenticationError("Ambulance login required")
    return caller


def require_hospital(caller: Identity = Depends(get_identity)) -> Identity:
    if caller.kind is not PartyKind.hospital:
        raise AuthenticationError("Hospital login required")
    return caller
