from __future__ import annotations

from typing import Tuple

import pytest

from listener.client import RecordingClient
from listener.core.models import utc_now
from listener.core.tree import RunTree
from listener.host import EventFileHost


@pytest.fixture
def host() -> EventFileHost:
    return EventFileHost("Top level suite", "Created for loose items")


@pytest.fixture
def started_tree(host: EventFileHost) -> Tuple[RecordingClient, RunTree]:
    client = RecordingClient()
    run_id = client.start_run("Nightly", "", set(), set(), utc_now())
    return client, RunTree(client, host, run_id, "Nightly")
