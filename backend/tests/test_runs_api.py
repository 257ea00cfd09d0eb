from __future__ import annotations

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from backend.app.config import settings
from backend.app.main import app
from listener.client import JsonlRecordingClient
from listener.core.levels import LogLevel
from listener.core.models import Attribute, ItemType, Status

WHEN = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def recordings(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "recordings_dir", str(tmp_path))
    client = JsonlRecordingClient("nightly-1", tmp_path)
    run_id = client.start_run("Nightly", "Regression run", {Attribute("env", "ci")}, set(), WHEN)
    suite_id = client.create_item(None, ItemType.SUITE, "Suite A", "", [Attribute("Suite")], WHEN)
    test_id = client.create_item(suite_id, ItemType.TEST, "Login", "", [], WHEN)
    client.log(test_id, LogLevel.ERROR, "[Validation]: Button missing", WHEN)
    client.finish_item(test_id, Status.FAILED, WHEN)
    client.finish_item(suite_id, Status.PASSED, WHEN)
    client.finish_run(run_id, WHEN)
    client.close()
    return tmp_path


def test_health() -> None:
    response = TestClient(app).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_list_runs(recordings) -> None:
    response = TestClient(app).get(f"{settings.api_prefix}/runs")

    assert response.status_code == 200
    assert response.json() == {"sessions": ["nightly-1"]}


def test_get_run_returns_item_tree(recordings) -> None:
    response = TestClient(app).get(f"{settings.api_prefix}/runs/nightly-1")

    assert response.status_code == 200
    run = response.json()
    assert run["name"] == "Nightly"
    assert run["status"] == "FINISHED"
    assert run["summary"] == {"items": 2, "FAILED": 1, "PASSED": 1}
    (suite,) = run["children"]
    assert suite["name"] == "Suite A"
    (login,) = suite["children"]
    assert login["status"] == "FAILED"
    assert login["logs"] == [{"level": "error", "text": "[Validation]: Button missing"}]


def test_unknown_run_is_404(recordings) -> None:
    response = TestClient(app).get(f"{settings.api_prefix}/runs/absent")

    assert response.status_code == 404
    assert "absent" in response.json()["detail"]
