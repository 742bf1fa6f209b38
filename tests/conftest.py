"""
Test configuration and fixtures.

Provides:
- A fresh SQLite database file per test (engine re-pointed through settings)
- Registered ambulance AMB1 and hospital HOSP1 ("City Hospital")
- TestClient plus bearer headers for both terminals
"""

from typing import Dict, Generator

import pytest
from fastapi.testclient import TestClient

from smart_ambulance.core.config import settings
from smart_ambulance.main import app
from smart_ambulance.repositories import db, repository
from smart_ambulance.services import identity

AMBULANCE_ID = "AMB1"
AMBULANCE_MAC = "AA:BB:CC:DD:EE:01"
HOSPITAL_ID = "HOSP1"
HOSPITAL_NAME = "City Hospital"
PASSWORD = "secret"


@pytest.fixture(autouse=True)
def database(tmp_path, monkeypatch) -> Generator[str, None, None]:
    url = f"sqlite:///{tmp_path / 'test.db'}"
    monkeypatch.setattr(settings, "database_url", url)
    monkeypatch.setattr(settings, "session_policy", "explicit")
    db.dispose_engine()
    repository.init_db()
    identity.reset_tokens()
    yield url
    identity.reset_tokens()
    db.dispose_engine()


@pytest.fixture
def registry(database) -> None:
    repository.create_ambulance(
        AMBULANCE_ID,
        password_hash=identity.hash_password(PASSWORD),
        attendant_name="Ravi",
        hardware_code=AMBULANCE_MAC,
    )
    repository.create_ambulance("AMB2", password_hash=identity.hash_password(PASSWORD), attendant_name="Asha")
    repository.create_hospital(
        HOSPITAL_ID, HOSPITAL_NAME, password_hash=identity.hash_password(PASSWORD), doctor_name="Dr. Rao"
    )


@pytest.fixture
def client(registry) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c


def _login(client: TestClient, path: str, payload: Dict[str, str]) -> Dict[str, str]:
    resp = client.post(path, json=payload)
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


@pytest.fixture
def ambulance_headers(client) -> Dict[str, str]:
    return _login(client, "/auth/ambulance/login", {"ambulance_id": AMBULANCE_ID, "password": PASSWORD})


@pytest.fixture
def hospital_headers(client) -> Dict[str, str]:
    return _login(client, "/auth/hospital/login", {"hospital_id": HOSPITAL_ID, "password": PASSWORD})
