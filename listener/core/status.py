"""Finish-result mapping and failure screenshot collection."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Set

from ..host import ActivityItem, ReportItem, ReportNode
from .levels import LogLevel
from .models import Status
from .router import ATTACHMENT_FILE_NAME_KEY, LogRouter

logger = logging.getLogger(__name__)

SCREENSHOT_CATEGORY = "Screenshot"


def resolve_status(result: str) -> Status:
    """Map a host result string onto a finish status (case-insensitive, total)."""
    normalized = (result or "").strip().lower()
    if normalized == "success":
        return Status.PASSED
    if normalized == "ignored":
        return Status.SKIPPED
    return Status.FAILED


class ScreenshotHarvester:
    """
    Walks the host's report items after a failure and sends every screenshot
    that has not been sent before in this run.
    """

    def __init__(self, router: LogRouter) -> None:
        self.router = router
        self.harvested: Set[str] = set()

    def harvest(self, items: Iterable[ReportNode], report_dir: Path) -> int:
        """Send unreported screenshots found under ``items``; returns how many were sent."""
        sent = 0
        for item in items:
            if isinstance(item, ActivityItem):
                sent += self.harvest(item.children, report_dir)
            elif isinstance(item, ReportItem) and item.screenshot and item.screenshot not in self.harvested:
                if self._send(item, report_dir):
                    sent += 1
        return sent

    def _send(self, item: ReportItem, report_dir: Path) -> bool:
        path = Path(report_dir) / item.screenshot
        try:
            data = path.read_bytes()
        except OSError as exc:
            logger.warning("Cannot read screenshot %s: %s", path, exc)
            self.router.route(
                LogLevel.ERROR,
                SCREENSHOT_CATEGORY,
                f"Exception getting screenshot: {exc}\n{type(exc).__name__}: {path}",
            )
            return False

        self.router.route(
            item.level,
            SCREENSHOT_CATEGORY,
            f"{item.message}\nScreenshot file name: {item.screenshot}",
            image=data,
            meta_infos={ATTACHMENT_FILE_NAME_KEY: str(path)},
        )
        self.harvested.add(item.screenshot)
        return True
