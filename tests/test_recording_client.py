from __future__ import annotations

import json
from datetime import datetime, timezone

from listener.client import JsonlRecordingClient, RecordingClient
from listener.core.levels import LogLevel
from listener.core.models import Attribute, ChangedComponent, ItemType, Status

WHEN = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def test_recording_client_assigns_ids_and_keeps_order() -> None:
    client = RecordingClient()

    run_id = client.start_run(
        "Nightly",
        "",
        {Attribute("smoke"), Attribute("env", "ci")},
        {ChangedComponent("shaver", None), ChangedComponent("barber", "1")},
        WHEN,
    )
    item_id = client.create_item(None, ItemType.SUITE, "Suite A", "", [], WHEN)
    client.log(item_id, LogLevel.INFO, "hello", WHEN)
    client.finish_item(item_id, Status.PASSED, WHEN)
    client.finish_run(run_id, WHEN)

    assert run_id and item_id and run_id != item_id
    assert [c["operation"] for c in client.calls] == [
        "start_run",
        "create_item",
        "log",
        "finish_item",
        "finish_run",
    ]
    start = client.calls[0]
    assert start["timestamp"] == "2024-05-01T12:00:00.000+00:00"
    assert start["attributes"] == [{"key": "env", "value": "ci"}, {"key": "smoke", "value": None}]
    assert start["changed_components"] == [
        {"componentName": "barber", "componentVersion": "1"},
        {"componentName": "shaver", "componentVersion": None},
    ]


def test_jsonl_client_writes_one_line_per_call(tmp_path) -> None:
    client = JsonlRecordingClient("session-1", tmp_path / "out")
    run_id = client.start_run("Nightly", "", set(), set(), WHEN)
    item_id = client.create_item(None, ItemType.SUITE, "Suite A", "", [], WHEN)
    client.send_attachment(item_id, LogLevel.ERROR, "shot", "shot.png", "image/png", b"1234", WHEN)
    client.finish_run(run_id, WHEN)
    client.close()
    client.close()

    lines = client.log_path.read_text(encoding="utf-8").splitlines()
    records = [json.loads(line) for line in lines]
    assert client.log_path == tmp_path / "out" / "session-1.jsonl"
    assert [r["operation"] for r in records] == ["start_run", "create_item", "send_attachment", "finish_run"]
    assert records[2]["size"] == 4
    assert "data" not in records[2]
    assert {r["session_id"] for r in records} == {"session-1"}
