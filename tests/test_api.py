import importlib
import sys
from datetime import date
from pathlib import Path

import pytest
from fastapi.testclient import TestClient


def _reload_app(monkeypatch: pytest.MonkeyPatch, *, db_path: Path, past_policy: str = "floor"):
    """revision_planner.* を破棄し、環境変数を反映した新しいアプリを返す補助関数。"""

    monkeypatch.setenv("STORE_BACKEND", "sqlite")
    monkeypatch.setenv("STORE_DB_PATH", str(db_path))
    monkeypatch.setenv("AGENDA_PAST_POLICY", past_policy)
    for name in list(sys.modules.keys()):
        if name == "revision_planner" or name.startswith("revision_planner."):
            sys.modules.pop(name)
    return importlib.import_module("revision_planner.main")


class _Clock:
    def __init__(self, today: date) -> None:
        self.today = today

    def __call__(self) -> date:
        return self.today


@pytest.fixture()
def clock() -> _Clock:
    return _Clock(date(2026, 10, 19))


def _make_client(monkeypatch, tmp_path, clock, **kwargs) -> TestClient:
    main = _reload_app(monkeypatch, db_path=tmp_path / "revisions.sqlite3", **kwargs)
    revision = importlib.import_module("revision_planner.routers.revision")
    main.app.dependency_overrides[revision.get_today] = clock
    return TestClient(main.app)


@pytest.fixture()
def client(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, clock: _Clock) -> TestClient:
    return _make_client(monkeypatch, tmp_path, clock)


def test_health(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_request_id_header_is_returned(client):
    resp = client.get("/healthz", headers={"X-Request-ID": "req-123"})
    assert resp.headers.get("x-request-id") == "req-123"


def test_list_users(client):
    resp = client.get("/api/users")
    assert resp.status_code == 200
    assert resp.json() == {"user_ids": [1, 2, 3, 4, 5]}


def test_list_users_from_env(monkeypatch, tmp_path, clock):
    monkeypatch.setenv("USER_IDS", "7, 9")
    client = _make_client(monkeypatch, tmp_path, clock)

    assert client.get("/api/users").json() == {"user_ids": [7, 9]}


def test_schedule_preview_for_past_start(client):
    resp = client.get("/api/schedule", params={"start_date": "2020-01-01"})
    assert resp.status_code == 200
    body = resp.json()
    assert [c["label"] for c in body["checkpoints"]] == ["1 Month", "3 Months", "6 Months", "1 Year"]
    assert body["checkpoints"][0]["date"] == "2026-10-19"


def test_schedule_preview_rejects_invalid_date(client):
    resp = client.get("/api/schedule", params={"start_date": "2025-02-30"})
    assert resp.status_code == 400


def test_schedule_preview_echoes_parsed_start_date(client):
    resp = client.get("/api/schedule", params={"start_date": " 2026-11-01 "})
    assert resp.status_code == 200
    assert resp.json()["start_date"] == "2026-11-01"


def test_schedule_preview_rejects_start_past_max_date(client):
    resp = client.get("/api/schedule", params={"start_date": "9999-12-30"})
    assert resp.status_code == 400


def test_add_topic_past_max_date_stores_nothing(client):
    resp = client.post("/api/users/1/topics", json={"topic": "Graphs", "start_date": "9999-12-30"})
    assert resp.status_code == 400
    assert client.get("/api/users/1/agenda").json()["state"] == "no_agenda"


def test_add_topic_persists_entries(client):
    resp = client.post("/api/users/1/topics", json={"topic": "Dynamic programming", "start_date": "2026-10-19"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["user_id"] == 1
    assert [e["label"] for e in body["entries"]] == ["1 Week", "1 Month", "3 Months", "6 Months", "1 Year"]
    assert body["agenda"]["state"] == "ready"
    assert len(body["agenda"]["items"]) == 5

    agenda = client.get("/api/users/1/agenda").json()
    assert [i["date"] for i in agenda["items"]] == [
        "2026-10-26",
        "2026-11-19",
        "2027-01-19",
        "2027-04-19",
        "2027-10-19",
    ]


def test_add_topic_unknown_user(client):
    resp = client.post("/api/users/99/topics", json={"topic": "Graphs", "start_date": "2026-10-19"})
    assert resp.status_code == 404


def test_add_topic_invalid_date(client):
    resp = client.post("/api/users/1/topics", json={"topic": "Graphs", "start_date": "yesterday"})
    assert resp.status_code == 400
    assert client.get("/api/users/1/agenda").json()["state"] == "no_agenda"


def test_add_topic_blank_topic(client):
    resp = client.post("/api/users/1/topics", json={"topic": "   ", "start_date": "2026-10-19"})
    assert resp.status_code == 400


def test_agenda_empty_user(client):
    resp = client.get("/api/users/2/agenda")
    assert resp.status_code == 200
    assert resp.json() == {"state": "no_agenda", "items": []}


def test_agenda_floors_overdue_entries(client, clock):
    client.post("/api/users/1/topics", json={"topic": "Graphs", "start_date": "2026-10-19"})
    clock.today = date(2026, 11, 30)

    items = client.get("/api/users/1/agenda").json()["items"]

    assert [(i["label"], i["display_date"]) for i in items[:2]] == [
        ("1 Week", "2026-11-30"),
        ("1 Month", "2026-11-30"),
    ]
    assert len(items) == 5


def test_agenda_drop_policy_reports_nothing_upcoming(monkeypatch, tmp_path, clock):
    client = _make_client(monkeypatch, tmp_path, clock, past_policy="drop")
    client.post("/api/users/1/topics", json={"topic": "Graphs", "start_date": "2026-10-19"})
    clock.today = date(2030, 1, 1)

    resp = client.get("/api/users/1/agenda")

    assert resp.json() == {"state": "nothing_upcoming", "items": []}


def test_clear_topics(client):
    client.post("/api/users/1/topics", json={"topic": "Graphs", "start_date": "2026-10-19"})

    resp = client.delete("/api/users/1/topics")

    assert resp.status_code == 200
    assert client.get("/api/users/1/agenda").json()["state"] == "no_agenda"
