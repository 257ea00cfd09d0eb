"""Reporting-backend collaborator interface and recording implementations."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, Set
from uuid import uuid4

from .core.errors import ReportingClientError
from .core.levels import LogLevel
from .core.models import Attribute, ChangedComponent, ItemType, Status, utc_now


class ReportingClient(Protocol):
    """Calls the listener makes on the reporting backend.

    ``start_run`` blocks until the run id is known; every other call may be
    queued by the implementation as long as order is preserved.
    """

    def start_run(
        self,
        name: str,
        description: str,
        attributes: Set[Attribute],
        changed_components: Set[ChangedComponent],
        start_time: datetime,
    ) -> Optional[str]: ...

    def create_item(
        self,
        parent_id: Optional[str],
        item_type: ItemType,
        name: str,
        description: str,
        attributes: Iterable[Attribute],
        start_time: datetime,
    ) -> Optional[str]: ...

    def finish_item(self, item_id: str, status: Status, end_time: datetime) -> None: ...

    def log(self, item_id: str, level: LogLevel, text: str, time: datetime) -> None: ...

    def send_attachment(
        self,
        item_id: str,
        level: LogLevel,
        text: str,
        filename: str,
        mime_type: str,
        data: bytes,
        time: datetime,
    ) -> None: ...

    def update_run(self, run_id: str, description: str, attributes: Set[Attribute]) -> None: ...

    def finish_run(self, run_id: str, end_time: datetime) -> None: ...


def _attributes(attributes: Iterable[Attribute]) -> List[Dict[str, Optional[str]]]:
    return [attr.to_dict() for attr in sorted(attributes, key=lambda a: (a.key, a.value or ""))]


class RecordingClient:
    """
    In-memory ReportingClient that assigns ids and remembers every call.
    Useful as a dry-run backend and in tests.
    """

    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.run_id: Optional[str] = None

    def _record(self, operation: str, time: datetime, **payload: Any) -> Dict[str, Any]:
        record = {
            "operation": operation,
            "timestamp": time.isoformat(timespec="milliseconds"),
            **payload,
        }
        self.calls.append(record)
        return record

    def calls_for(self, operation: str) -> List[Dict[str, Any]]:
        return [call for call in self.calls if call["operation"] == operation]

    def start_run(self, name, description, attributes, changed_components, start_time):
        self.run_id = str(uuid4())
        self._record(
            "start_run",
            start_time,
            run_id=self.run_id,
            name=name,
            description=description,
            attributes=_attributes(attributes),
            changed_components=[
                {"componentName": c.name, "componentVersion": c.version}
                for c in sorted(changed_components, key=lambda c: (c.name, c.version or ""))
            ],
        )
        return self.run_id

    def create_item(self, parent_id, item_type, name, description, attributes, start_time):
        item_id = str(uuid4())
        self._record(
            "create_item",
            start_time,
            item_id=item_id,
            parent_id=parent_id,
            item_type=ItemType(item_type).value,
            name=name,
            description=description,
            attributes=_attributes(attributes),
        )
        return item_id

    def finish_item(self, item_id, status, end_time):
        self._record("finish_item", end_time, item_id=item_id, status=Status(status).value)

    def log(self, item_id, level, text, time):
        self._record("log", time, item_id=item_id, level=LogLevel(level).value, text=text)

    def send_attachment(self, item_id, level, text, filename, mime_type, data, time):
        self._record(
            "send_attachment",
            time,
            item_id=item_id,
            level=LogLevel(level).value,
            text=text,
            filename=filename,
            mime_type=mime_type,
            size=len(data),
        )

    def update_run(self, run_id, description, attributes):
        self._record(
            "update_run",
            utc_now(),
            run_id=run_id,
            description=description,
            attributes=_attributes(attributes),
        )

    def finish_run(self, run_id, end_time):
        self._record("finish_run", end_time, run_id=run_id)


class JsonlRecordingClient(RecordingClient):
    """
    RecordingClient that also writes every call to a JSONL file
    (one JSON object per line) for a given session.
    """

    def __init__(self, session_id: str, output_dir: Path | str) -> None:
        super().__init__()
        self.session_id = session_id
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._log_path = self.output_dir / f"{self.session_id}.jsonl"
        self._fh = self._log_path.open("w", encoding="utf-8")

    @property
    def log_path(self) -> Path:
        """Return the path to the JSONL recording."""
        return self._log_path

    def _record(self, operation: str, time: datetime, **payload: Any) -> Dict[str, Any]:
        record = super()._record(operation, time, **payload)
        record["session_id"] = self.session_id
        try:
            self._fh.write(json.dumps(record, ensure_ascii=False) + "\n")
            self._fh.flush()
        except (OSError, ValueError) as exc:
            raise ReportingClientError(f"Cannot write recording {self._log_path}: {exc}") from exc
        return record

    def close(self) -> None:
        if hasattr(self, "_fh") and not self._fh.closed:
            self._fh.close()
