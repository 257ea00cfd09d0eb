# File: listener/qa/session_runner.py
"""Replay a recorded host event file through the listener without CLI side effects."""

from __future__ import annotations

import base64
import binascii
import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from listener.client import JsonlRecordingClient
from listener.config import ListenerSettings
from listener.core.listener import ReportListener
from listener.host import EventFileHost

logger = logging.getLogger(__name__)

EVENT_KINDS = {"host", "start", "text", "data", "end"}


class EventFileError(RuntimeError):
    """Raised when a host event file cannot be read or has no usable events."""


def load_events(events_path: Path) -> List[Dict[str, Any]]:
    """Read a JSONL host event file; every line needs a known ``kind``."""
    if not events_path.is_file():
        raise EventFileError(f"Event file not found: {events_path}")
    events: List[Dict[str, Any]] = []
    with events_path.open("r", encoding="utf-8") as handle:
        for number, line in enumerate(handle, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                event = json.loads(line)
            except json.JSONDecodeError as exc:
                raise EventFileError(f"{events_path}:{number}: invalid JSON ({exc.msg})") from exc
            if not isinstance(event, dict) or event.get("kind") not in EVENT_KINDS:
                raise EventFileError(f"{events_path}:{number}: unknown event kind")
            events.append(event)
    if not events:
        raise EventFileError(f"Event file is empty: {events_path}")
    return events


class ReplaySession:
    """Feeds one host event file to a ReportListener backed by a JSONL recording."""

    def __init__(self, settings: ListenerSettings) -> None:
        self.settings = settings
        self.recordings_dir = Path(settings.recordings_dir)
        self.recordings_dir.mkdir(parents=True, exist_ok=True)

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------
    @staticmethod
    def _build_host(events: List[Dict[str, Any]], events_path: Path, run_name: str) -> EventFileHost:
        header = next((event for event in events if event["kind"] == "host"), {})
        report_dir = header.get("report_dir") or events_path.parent
        return EventFileHost(
            top_level_name=header.get("top_level_name") or run_name,
            top_level_description=header.get("top_level_description", ""),
            report_dir=Path(report_dir),
            summary=header.get("system_summary"),
        )

    @staticmethod
    def _image_bytes(event: Dict[str, Any], base_dir: Path) -> Optional[bytes]:
        if event.get("image_base64"):
            try:
                return base64.b64decode(event["image_base64"], validate=True)
            except binascii.Error as exc:
                logger.warning("Cannot decode replay image: %s", exc)
                return None
        image_path = event.get("image_path")
        if image_path:
            path = Path(image_path)
            if not path.is_absolute():
                path = base_dir / path
            try:
                return path.read_bytes()
            except OSError as exc:
                logger.warning("Cannot read replay image %s: %s", path, exc)
        return None

    def _dispatch(self, listener: ReportListener, host: EventFileHost, event: Dict[str, Any], base_dir: Path) -> None:
        kind = event["kind"]
        host.update(event.get("host"))
        if kind == "start":
            listener.start()
        elif kind == "end":
            if event.get("system_summary"):
                host.set_system_summary(event["system_summary"])
            listener.end()
        elif kind == "text":
            listener.log_text(
                event.get("level", "Info"),
                event.get("category", ""),
                event.get("message", ""),
                bool(event.get("escape", False)),
                event.get("meta") or {},
            )
        elif kind == "data":
            listener.log_data(
                event.get("level", "Info"),
                event.get("category", ""),
                event.get("message", ""),
                self._image_bytes(event, base_dir),
                event.get("meta") or {},
            )

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------
    def run(self, session_id: str, events_path: Path | str) -> Dict[str, Any]:
        """Replay the events and return structured results without printing."""
        events_path = Path(events_path)
        events = load_events(events_path)
        host = self._build_host(events, events_path, self.settings.testset)
        client = JsonlRecordingClient(session_id, self.recordings_dir)
        listener = ReportListener.from_settings(self.settings, client, host)

        start_ts = time.time()
        try:
            kinds = [event["kind"] for event in events]
            if "start" not in kinds:
                listener.start()
            for event in events:
                if event["kind"] != "host":
                    self._dispatch(listener, host, event, events_path.parent)
            if "end" not in kinds:
                listener.end()
        finally:
            client.close()

        tree = listener.tree
        balanced = tree is not None and tree.opened_count == tree.closed_count and tree.at_root
        return {
            "session_id": session_id,
            "status": "PASS" if listener.started and balanced else "FAIL",
            "run_id": tree.run_id if tree else None,
            "events": len(events),
            "items_opened": tree.opened_count if tree else 0,
            "items_closed": tree.closed_count if tree else 0,
            "synthesized_suites": tree.synthesized_suites if tree else 0,
            "dropped_events": listener.dropped_events,
            "failed_calls": listener.failed_calls,
            "discarded_logs": listener.router.discarded if listener.router else 0,
            "screenshots": len(listener.harvester.harvested) if listener.harvester else 0,
            "tree": tree.render() if tree else "",
            "recording_path": client.log_path,
            "duration_seconds": time.time() - start_ts,
        }
