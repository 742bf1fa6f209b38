"""
Smoke test for the transport flow against an in-process app and a throwaway
SQLite database. Runs start -> telemetry -> hospital selection -> call ->
acknowledge -> done using TestClient.
"""

import os
import tempfile
from typing import Dict

from fastapi.testclient import TestClient

from smart_ambulance.core.config import settings
from smart_ambulance.main import app
from smart_ambulance.repositories import db, repository
from smart_ambulance.services.identity import hash_password


def _seed() -> None:
    repository.create_ambulance(
        "AMB-SMOKE", password_hash=hash_password("secret"), attendant_name="Smoke", hardware_code="AA:BB:CC:00:00:01"
    )
    repository.create_hospital("HOSP-SMOKE", "Smoke General", password_hash=hash_password("secret"))


def _auth(client: TestClient, path: str, payload: Dict) -> Dict[str, str]:
    resp = client.post(path, json=payload)
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


def run_smoke():
    workdir = tempfile.mkdtemp(prefix="smart-ambulance-")
    settings.database_url = f"sqlite:///{os.path.join(workdir, 'smoke.db')}"
    db.dispose_engine()
    with TestClient(app) as client:
        _seed()
        amb = _auth(client, "/auth/ambulance/login", {"ambulance_id": "AMB-SMOKE", "password": "secret"})
        hosp = _auth(client, "/auth/hospital/login", {"hospital_id": "HOSP-SMOKE", "password": "secret"})

        resp = client.post("/sessions/start", headers=amb)
        assert resp.status_code == 201, resp.text
        row_id = resp.json()["session_row_id"]

        resp = client.post("/telemetry", json={"mac": "aa-bb-cc-00-00-01", "temperature": "39.1", "heartRate": 120})
        assert resp.status_code == 200, resp.text

        resp = client.post(
            "/sessions/field", json={"ambulance_id": "AMB-SMOKE", "fieldName": "hospital", "newValue": "Smoke General"}
        )
        assert resp.status_code == 200, resp.text

        resp = client.post("/calls", json={"url": "https://meet.example/smoke"}, headers=amb)
        assert resp.status_code == 201, resp.text
        incoming = client.get("/calls/incoming", headers=hosp).json()
        assert incoming["hasIncomingCall"], incoming
        client.post("/calls/acknowledge", json={"call_id": incoming["call"]["id"]}, headers=hosp)

        resp = client.post("/sessions/done", json={"session_row_id": row_id})
        assert resp.status_code == 200 and not resp.json()["already_done"], resp.text
        print("Smoke OK: start, telemetry, call and done")


if __name__ == "__main__":
    run_smoke()
