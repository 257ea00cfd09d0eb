from __future__ import annotations

import pytest

from listener.client import RecordingClient
from listener.core.errors import MissingActiveItemError, ReportingClientError
from listener.core.models import Attribute, CreationData, ItemType, Status, utc_now
from listener.core.tree import RunTree


def _suite(name: str = "Suite A") -> CreationData:
    return CreationData.build(ItemType.SUITE, name, "", [Attribute("Suite")])


def _step(name: str = "OpenBrowser") -> CreationData:
    return CreationData.build(ItemType.STEP, name, "", [Attribute("Module")])


def test_step_at_root_is_wrapped_in_top_level_suite(started_tree) -> None:
    client, tree = started_tree

    step = tree.start(_step())

    created = client.calls_for("create_item")
    assert [call["item_type"] for call in created] == ["SUITE", "STEP"]
    assert created[0]["parent_id"] is None
    assert created[0]["name"] == "Top level suite"
    assert created[0]["description"] == "Created for loose items"
    assert created[0]["attributes"] == [Attribute("Suite").to_dict()]
    assert created[1]["parent_id"] == created[0]["item_id"]
    assert tree.synthesized_suites == 1
    assert tree.active_node is step
    assert [node.item_type for node in tree.open_path()] == [ItemType.RUN, ItemType.SUITE, ItemType.STEP]


def test_suite_at_root_is_opened_directly(started_tree) -> None:
    client, tree = started_tree

    tree.start(_suite())

    assert len(client.calls_for("create_item")) == 1
    assert tree.synthesized_suites == 0


def test_finish_closes_most_recent_item_first(started_tree) -> None:
    client, tree = started_tree
    suite = tree.start(_suite())
    test = tree.start(CreationData.build(ItemType.TEST, "Login", "", [Attribute("Test Case")]))

    closed = tree.finish(Status.FAILED)

    assert closed is test
    assert tree.active_node is suite
    finished = client.calls_for("finish_item")
    assert finished == [
        {
            "operation": "finish_item",
            "timestamp": finished[0]["timestamp"],
            "item_id": test.backend_id,
            "status": "FAILED",
        }
    ]


def test_finish_at_root_raises_and_sends_nothing(started_tree) -> None:
    client, tree = started_tree

    with pytest.raises(MissingActiveItemError):
        tree.finish(Status.PASSED)

    assert client.calls_for("finish_item") == []
    assert tree.at_root


def test_finish_run_stops_open_items_then_finishes_run(started_tree) -> None:
    client, tree = started_tree
    tree.start(_suite())
    tree.start(_step())

    tree.finish_run()

    assert tree.at_root
    assert tree.opened_count == tree.closed_count == 2
    assert [call["status"] for call in client.calls_for("finish_item")] == ["STOPPED", "STOPPED"]
    assert client.calls[-1]["operation"] == "finish_run"
    assert client.calls[-1]["run_id"] == tree.run_id


def test_inside_test_follows_open_path(started_tree) -> None:
    _, tree = started_tree
    tree.start(_suite())
    assert tree.inside_test is False

    tree.start(CreationData.build(ItemType.TEST, "Login", "", []))
    tree.start(_step())
    assert tree.inside_test is True

    tree.finish(Status.PASSED)
    tree.finish(Status.PASSED)
    assert tree.inside_test is False


class _FinishFailsOnceClient(RecordingClient):
    def __init__(self) -> None:
        super().__init__()
        self.failures_left = 1

    def finish_item(self, item_id, status, end_time):
        if self.failures_left:
            self.failures_left -= 1
            raise ReportingClientError("finish failed once")
        super().finish_item(item_id, status, end_time)


def test_finish_run_keeps_stopping_after_backend_error(host) -> None:
    client = _FinishFailsOnceClient()
    run_id = client.start_run("Nightly", "", set(), set(), utc_now())
    tree = RunTree(client, host, run_id, "Nightly")
    tree.start(_suite())
    tree.start(_step("Click"))
    tree.start(_step("Type"))

    with pytest.raises(ReportingClientError, match="finish failed once"):
        tree.finish_run()

    assert tree.at_root
    assert tree.closed_count == 3
    assert len(client.calls_for("finish_item")) == 2
    assert client.calls[-1]["operation"] == "finish_run"


class _NoIdClient(RecordingClient):
    def create_item(self, parent_id, item_type, name, description, attributes, start_time):
        super().create_item(parent_id, item_type, name, description, attributes, start_time)
        return None


def test_item_without_backend_id_still_pairs_with_its_finish(host) -> None:
    client = _NoIdClient()
    run_id = client.start_run("Nightly", "", set(), set(), utc_now())
    tree = RunTree(client, host, run_id, "Nightly")

    tree.start(_suite())
    tree.finish(Status.PASSED)

    assert tree.at_root
    assert tree.closed_count == 1
    assert client.calls_for("finish_item") == []


def test_render_lists_items_with_state(started_tree) -> None:
    _, tree = started_tree
    tree.start(_suite())
    tree.start(_step())
    tree.finish(Status.PASSED)

    rendered = tree.render().splitlines()

    assert rendered == ["RUN Nightly", "  SUITE Suite A OPEN", "    STEP OpenBrowser PASSED"]
