"""
Database engine helpers.

The engine is built lazily from ``settings.database_url`` so tests can point
it at a fresh file and call ``dispose_engine`` to pick the new URL up.
"""

from pathlib import Path
from typing import Any, Dict

from sqlalchemy.engine import make_url
from sqlmodel import SQLModel, create_engine

from ..core.config import settings

# Concurrent starts race on the open_slot index; writers wait for the lock instead of failing.
SQLITE_BUSY_TIMEOUT_SECONDS = 30

_ENGINE = None


def _connect_args(db_url: str) -> Dict[str, Any]:
    url = make_url(db_url)
    if url.get_backend_name() != "sqlite":
        return {}
    if url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    return {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT_SECONDS}


def get_engine():
    global _ENGINE
    if _ENGINE is None:
        db_url = settings.database_url
        _ENGINE = create_engine(db_url, echo=False, connect_args=_connect_args(db_url), pool_pre_ping=True)
    return _ENGINE


def dispose_engine() -> None:
    global _ENGINE
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None


def init_db() -> None:
    engine = get_engine()
    from . import db_models  # noqa: F401
    SQLModel.metadata.create_all(engine)
