"""Functional tests for the HTTP surface.

Exercises the save/load endpoints, record reads, admin teardown and seeding
through FastAPI's TestClient against the file-backed SQLite database.
"""

from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from formsync.main import create_app


@pytest.fixture
def client():
    return TestClient(create_app())


def _save(client, payload: dict, **top) -> dict:
    body = {"data": payload, **top}
    resp = client.post("/api/save", json=body)
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_save_writes_file_and_syncs(client, data_dir, saved_employee_spec, make_submission):
    body = _save(client, make_submission("abc123", full_name="Jane Doe", dependents=[{"name": "Sam", "age": "10"}]))

    assert body["ok"] is True
    assert body["file"] == "employee_intake_abc123.json"
    assert body["session_id"] == "abc123"
    assert body["sync"]["skipped"] is False
    assert body["sync"]["child_rows_written"] == {"dependents": 1}
    saved = json.loads((data_dir / "employee_intake_abc123.json").read_text(encoding="utf-8"))
    assert saved["full_name"] == "Jane Doe"


def test_save_without_spec_only_writes_file(client, data_dir, make_submission):
    body = _save(client, make_submission("S1", full_name="x"))

    assert body["sync"] is None
    assert (data_dir / "employee_intake_S1.json").is_file()


def test_save_generates_session_id_when_absent(client, data_dir):
    body = _save(client, {"full_name": "x"}, formName="walkin")

    assert body["session_id"]
    assert body["file"] == f"walkin_{body['session_id']}.json"


def test_save_requires_data(client):
    resp = client.post("/api/save", json={"formName": "x"})
    assert resp.status_code == 400
    assert resp.headers["content-type"].startswith("application/problem+json")


def test_save_rejects_unsafe_identifiers(client, make_submission):
    payload = make_submission("../../etc")
    resp = client.post("/api/save", json={"data": payload})
    assert resp.status_code == 422
    assert resp.json()["code"] == "FORMSYNC_INVALID_IDENTIFIER"

    resp = client.post("/api/save", json={"formName": "drop table;", "data": {"a": 1}})
    assert resp.status_code == 422


def test_schema_mismatch_is_problem_json_and_file_is_kept(client, data_dir, saved_employee_spec, make_submission):
    resp = client.post("/api/save", json={"data": make_submission("S", kids=[{"name": "Sam"}])})

    assert resp.status_code == 422
    assert resp.headers["content-type"].startswith("application/problem+json")
    problem = resp.json()
    assert problem["code"] == "FORMSYNC_SCHEMA_MISMATCH"
    assert problem["field"] == "dependents"
    assert problem["candidates"] == ["kids"]
    assert (data_dir / "employee_intake_S.json").is_file()


def test_sync_disabled_by_config(client, monkeypatch, saved_employee_spec, make_submission):
    monkeypatch.setenv("FORMSYNC_SYNC_ENABLED", "false")

    body = _save(client, make_submission("S", full_name="x"))

    assert body["sync"] is None


def test_load_round_trips_saved_file(client, make_submission):
    payload = make_submission("S", full_name="x")
    _save(client, payload)

    resp = client.get("/api/load", params={"formName": "employee_intake", "id": "S"})
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "data": payload}

    assert client.get("/api/load", params={"formName": "employee_intake", "id": "nope"}).status_code == 404
    assert client.get("/api/load", params={"formName": "employee_intake"}).status_code == 400


def test_record_endpoints(client, saved_employee_spec, make_submission):
    _save(client, make_submission("a", full_name="A", submitted_at="2026-01-01T00:00:00Z"))
    _save(client, make_submission("b", full_name="B", dependents=[{"name": "kid"}], submitted_at="2026-01-02T00:00:00Z"))

    records = client.get("/api/db/records/employee_intake").json()["records"]
    assert [r["session_id"] for r in records] == ["b", "a"]

    record = client.get("/api/db/record/employee_intake/b").json()["record"]
    assert record["full_name"] == "B"
    assert record["dependents"] == [{"row_index": 0, "name": "kid", "age": None}]

    missing = client.get("/api/db/record/employee_intake/zzz")
    assert missing.status_code == 404

    tables = client.get("/api/db/tables/employee_intake").json()["tables"]
    assert list(tables) == ["employee_intake", "employee_intake_dependents"]
    assert tables["employee_intake"][0]["column_name"] == "session_id"


def test_record_for_unknown_form_is_not_found(client):
    resp = client.get("/api/db/record/ghost/abc")
    assert resp.status_code == 404
    assert resp.json()["code"] == "FORMSYNC_SPEC_NOT_FOUND"


def test_records_for_unprovisioned_form_is_empty(client):
    assert client.get("/api/db/records/never_seen").json() == {
        "ok": True,
        "form_name": "never_seen",
        "records": [],
    }


def test_delete_form_reports_per_table(client, spec_store, saved_employee_spec, make_submission):
    _save(client, make_submission("S", dependents=[{"name": "kid"}]))

    resp = client.delete("/api/db/forms/employee_intake")

    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert [t["table"] for t in body["tables"]] == ["employee_intake_dependents", "employee_intake"]
    assert spec_store.load("employee_intake").provisioned is False
    assert client.get("/api/db/records/employee_intake").json()["records"] == []


def test_seed_syncs_saved_files(client, monkeypatch, data_dir, saved_employee_spec, make_submission):
    monkeypatch.setenv("FORMSYNC_SYNC_ENABLED", "false")
    _save(client, make_submission("one", full_name="1"))
    _save(client, make_submission("two", full_name="2"))
    _save(client, {"x": 1}, formName="orphan", sessionId="o1")
    (data_dir / "broken_b1.json").write_text(
        json.dumps({"_meta": {"formName": "employee_intake", "sessionId": "b1"}, "dependents": "oops"}),
        encoding="utf-8",
    )
    monkeypatch.delenv("FORMSYNC_SYNC_ENABLED")

    body = client.post("/api/db/seed").json()

    assert body["ok"] is True
    assert body["synced"] == ["employee_intake_one.json", "employee_intake_two.json"]
    assert body["skipped"] == ["orphan_o1.json"]
    assert list(body["failed"]) == ["broken_b1.json"]
    assert len(client.get("/api/db/records/employee_intake").json()["records"]) == 2


def test_store_less_deployment(no_database, data_dir, saved_employee_spec, make_submission):
    client = TestClient(create_app())

    body = _save(client, make_submission("S", full_name="x"))
    assert body["sync"]["skipped"] is True

    resp = client.get("/api/db/records/employee_intake")
    assert resp.status_code == 503
    assert resp.json()["code"] == "FORMSYNC_DATABASE_NOT_CONFIGURED"
    assert client.post("/api/db/seed").status_code == 503
    assert client.delete("/api/db/forms/employee_intake").json()["skipped"] is True
    assert client.get("/health").json() == {"status": "ok", "db": False}


def test_request_id_is_echoed_or_assigned(client):
    echoed = client.get("/health", headers={"X-Request-Id": "req-1"})
    assert echoed.headers["X-Request-Id"] == "req-1"
    assert client.get("/health").headers["X-Request-Id"]


def test_health_with_database(client):
    assert client.get("/health").json() == {"status": "ok", "db": True}


def test_saved_file_carries_resolved_identifiers_for_seeding(client, monkeypatch, saved_employee_spec):
    monkeypatch.setenv("FORMSYNC_SYNC_ENABLED", "false")
    named = _save(client, {"full_name": "Top"}, formName="employee_intake", sessionId="top1")
    generated = _save(client, {"full_name": "Gen"}, formName="employee_intake")
    monkeypatch.delenv("FORMSYNC_SYNC_ENABLED")

    stored = client.get("/api/load", params={"formName": "employee_intake", "id": generated["session_id"]}).json()
    assert stored["data"]["_meta"] == {"formName": "employee_intake", "sessionId": generated["session_id"]}

    body = client.post("/api/db/seed").json()

    assert sorted(body["synced"]) == sorted([named["file"], generated["file"]])
    assert body["failed"] == {}
    sessions = {r["session_id"] for r in client.get("/api/db/records/employee_intake").json()["records"]}
    assert sessions == {"top1", generated["session_id"]}
