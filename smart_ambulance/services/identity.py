"""
Caller identity for the two terminals.

Logins are checked against the salted hashes stored in the registry and
exchanged for an opaque bearer token. The token registry is the only state
kept in process memory; restarting the service logs everyone out.
"""

import hashlib
import hmac
import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..core.config import settings
from ..core.errors import AuthenticationError
from ..repositories import repository
from ..schemas import PartyKind

logger = logging.getLogger(__name__)

_HASH_ITERATIONS = 120_000


@dataclass
class Identity:
    kind: PartyKind
    identity: str
    display_name: Optional[str] = None
    hospital_name: Optional[str] = None
    expires_at: float = 0.0


_TOKENS: Dict[str, Identity] = {}
_LOCK = threading.Lock()


def hash_password(password: str, salt: Optional[str] = None) -> str:
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), _HASH_ITERATIONS)
    return f"{salt}${digest.hex()}"


def verify_password(password: str, stored: Optional[str]) -> bool:
    if not stored or "$" not in stored:
        return False
    salt, _ = stored.split("$", 1)
    return hmac.compare_digest(hash_password(password, salt), stored)


def _issue(identity: Identity) -> str:
    token = secrets.token_urlsafe(32)
    now = time.time()
    identity.expires_at = now + settings.token_ttl_seconds
    with _LOCK:
        for stale in [t for t, known in _TOKENS.items() if known.expires_at < now]:
            del _TOKENS[stale]
        _TOKENS[token] = identity
    return token


def login_ambulance(ambulance_id: str, password: str) -> Tuple[str, Identity]:
    ambulance = repository.get_ambulance(ambulance_id)
    if ambulance is None:
        raise AuthenticationError("Invalid Ambulance ID")
    if not verify_password(password, ambulance.password_hash):
        raise AuthenticationError("Invalid password")
    identity = Identity(
        kind=PartyKind.ambulance,
        identity=ambulance.ambulance_id,
        display_name=ambulance.attendant_name,
    )
    token = _issue(identity)
    repository.append_audit(
        ambulance_id=ambulance.ambulance_id,
        action="login",
        field_name="attendant_name",
        new_value=ambulance.attendant_name,
    )
    logger.info("Ambulance %s logged in", ambulance.ambulance_id)
    return token, identity


def login_hospital(hospital_id: str, password: str) -> Tuple[str, Identity]:
    hospital = repository.get_hospital(hospital_id)
    if hospital is None or not verify_password(password, hospital.password_hash):
        raise AuthenticationError("Invalid Hospital ID or password")
    identity = Identity(
        kind=PartyKind.hospital,
        identity=hospital.hospital_id,
        display_name=hospital.doctor_name,
        hospital_name=hospital.name,
    )
    token = _issue(identity)
    logger.info("Hospital %s logged in", hospital.hospital_id)
    return token, identity


def resolve_token(token: Optional[str]) -> Identity:
    if not token:
        raise AuthenticationError("Not authenticated. Please login first.")
    with _LOCK:
        identity = _TOKENS.get(token)
        if identity is not None and identity.expires_at < time.time():
            _TOKENS.pop(token, None)
            identity = None
    if identity is None:
        raise AuthenticationError("Session expired or invalid. Please login again.")
    return identity


def logout(token: str) -> bool:
    with _LOCK:
        return _TOKENS.pop(token, None) is not None


def reset_tokens() -> None:
    with _LOCK:
        _TOKENS.clear()
