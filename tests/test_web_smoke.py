from __future__ import annotations

from fastapi.testclient import TestClient

from faulttrainer.web.app import app


def test_web_endpoints_session_flow():
    client = TestClient(app)
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}

    base = "/api/v1/session"
    r = client.post(base, json={"scenario": "kitchen-gfci", "seed": 7})
    assert r.status_code == 200
    sid = r.json()["session"]

    # Walk the interview, always taking the first choice.
    while True:
        dialogue = client.get(f"{base}/{sid}/dialogue").json()
        if dialogue["complete"]:
            break
        if not dialogue["choices"]:
            client.post(f"{base}/{sid}/dialogue/advance")
            continue
        r = client.post(f"{base}/{sid}/dialogue/choose", json={"choice": 0})
        assert r.status_code == 200

    r = client.get(f"{base}/{sid}/summary")
    assert r.status_code == 200
    assert r.json()["diagnostic_points"] == 6


def test_openapi_schema_lists_session_routes():
    client = TestClient(app)
    schema = client.get("/openapi.json").json()
    assert schema["info"]["title"] == "Fault Trainer"
    assert schema["info"]["version"] == "1.0.0"
    assert "/api/v1/session/{sid}/summary" in schema["paths"]
