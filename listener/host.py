"""Read-only view of the automation host, as consumed by the listener."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Protocol, Tuple, Union

from pydantic import BaseModel, Field


class ReportItem(BaseModel):
    """A leaf entry of the host's own report (a log line, maybe with a screenshot)."""

    kind: Literal["item"] = "item"
    level: str = "Info"
    message: str = ""
    screenshot: Optional[str] = None


class ActivityItem(BaseModel):
    """A container entry of the host's report; only its children matter here."""

    kind: Literal["activity"] = "activity"
    name: str = ""
    children: List["ReportNode"] = Field(default_factory=list)


ReportNode = Union[ActivityItem, ReportItem]
ActivityItem.model_rebuild()


class HostContext(Protocol):
    """Questions the listener asks the host about the item that is starting."""

    def is_smart_folder(self) -> bool: ...

    def is_setup_descendant(self) -> bool: ...

    def is_teardown_descendant(self) -> bool: ...

    def module_group(self) -> Optional[str]: ...

    def suite_comment(self) -> str: ...

    def container_comment(self) -> str: ...

    def module_comment(self) -> str: ...

    def top_level_group(self) -> Tuple[str, str]: ...

    def current_report_items(self) -> List[ReportNode]: ...

    def report_directory(self) -> Path: ...

    def system_summary(self) -> Optional[str]: ...


class HostSnapshot(BaseModel):
    """Host state recorded next to a single event in an event file."""

    smart_folder: bool = False
    setup: bool = False
    teardown: bool = False
    module_group: Optional[str] = None
    comment: str = ""
    suite_comment: str = ""
    report_items: List[ReportNode] = Field(default_factory=list)


class EventFileHost:
    """HostContext backed by snapshots stored in a recorded event file.

    The replay loop calls :meth:`update` before handing each event to the
    listener, so the answers always describe the event being processed.
    """

    def __init__(
        self,
        top_level_name: str,
        top_level_description: str = "",
        report_dir: Path | str = ".",
        summary: Optional[str] = None,
    ) -> None:
        self._top_level = (top_level_name, top_level_description)
        self._report_dir = Path(report_dir)
        self._summary = summary
        self._snapshot = HostSnapshot()

    def update(self, snapshot: Optional[Dict[str, Any]]) -> None:
        self._snapshot = HostSnapshot.model_validate(snapshot or {})

    def set_system_summary(self, summary: Optional[str]) -> None:
        self._summary = summary

    def is_smart_folder(self) -> bool:
        return self._snapshot.smart_folder

    def is_setup_descendant(self) -> bool:
        return self._snapshot.setup

    def is_teardown_descendant(self) -> bool:
        return self._snapshot.teardown

    def module_group(self) -> Optional[str]:
        return self._snapshot.module_group

    def suite_comment(self) -> str:
        return self._snapshot.suite_comment or self._snapshot.comment

    def container_comment(self) -> str:
        return self._snapshot.comment

    def module_comment(self) -> str:
        return self._snapshot.comment

    def top_level_group(self) -> Tuple[str, str]:
        return self._top_level

    def current_report_items(self) -> List[ReportNode]:
        return list(self._snapshot.report_items)

    def report_directory(self) -> Path:
        return self._report_dir

    def system_summary(self) -> Optional[str]:
        return self._summary
