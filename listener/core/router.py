"""Route host log lines and images to the active reported item."""

from __future__ import annotations

import logging
import mimetypes
import re
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import TYPE_CHECKING, List, Mapping, Optional, Sequence, Tuple

from .levels import DEFAULT_META_INFO_THRESHOLD, LogLevel, meets_minimum_severity, parse_level
from .models import utc_now
from .tree import RunTree

if TYPE_CHECKING:
    from ..client import ReportingClient

logger = logging.getLogger(__name__)

# Windows drive or dot-relative paths (spaces allowed), then POSIX paths.
FILE_PATH_PATTERN = re.compile(
    r"(?:(?<!\w)[A-Za-z]:|\.{0,2}\\)[^\x08%/|:\n<>\"']*"
    r"|(?<![\w.])\.{0,2}/[^\x08%|:\s<>\"']*"
)
DEFAULT_MIME_TYPE = "application/octet-stream"
DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"
DEFAULT_IMAGE_NAME = "screenshot.jpg"
ATTACHMENT_FILE_NAME_KEY = "attachmentFileName"


def is_absolute_path(path: str) -> bool:
    """True for Windows drive-rooted paths and POSIX absolute paths."""
    return PureWindowsPath(path).is_absolute() or PurePosixPath(path).is_absolute()


def find_attachment_candidate(message: str) -> Optional[str]:
    """Return the first path-looking substring of ``message``; one attachment per line at most."""
    match = FILE_PATH_PATTERN.search(message or "")
    if not match:
        return None
    return match.group(0).strip() or None


def guess_mime_type(filename: str, default: str = DEFAULT_MIME_TYPE) -> str:
    mime_type, _ = mimetypes.guess_type(PureWindowsPath(filename).name)
    return mime_type or default


def format_meta_info(meta_infos: Mapping[str, str]) -> str:
    lines = ["Meta Info:"]
    for key, value in meta_infos.items():
        lines.append(f"\t{key} => {value}")
    return "\n".join(lines) + "\n"


class LogRouter:
    """
    Sends host log lines to the reporting backend against the active item
    of a RunTree.

    Text logs may carry one file attachment, found by scanning the message
    for an absolute path that matches one of ``file_upload_patterns``.
    """

    def __init__(
        self,
        client: ReportingClient,
        tree: RunTree,
        file_upload_patterns: Sequence[str] = (),
        run_level_logs: bool = False,
        meta_info_threshold: LogLevel = DEFAULT_META_INFO_THRESHOLD,
    ) -> None:
        self.client = client
        self.tree = tree
        self.file_upload_patterns: List[re.Pattern[str]] = [re.compile(p) for p in file_upload_patterns]
        self.run_level_logs = run_level_logs
        self.meta_info_threshold = meta_info_threshold
        self.discarded = 0

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _target_id(self, text: str) -> Optional[str]:
        node = self.tree.active_node
        if node.is_root and not self.run_level_logs:
            logger.warning("No item open; discarded message:\n%s", text)
            return None
        if node.backend_id is None:
            logger.warning("Item %r has no backend id; discarded message:\n%s", node.name, text)
            return None
        return node.backend_id

    def _read_attachment(self, message: str) -> Tuple[str, Optional[Tuple[str, str, bytes]]]:
        """
        Look for an uploadable file in the message.
        Returns the (possibly annotated) message and (filename, mime type, bytes) or None.
        """
        if not self.file_upload_patterns:
            return message, None
        candidate = find_attachment_candidate(message)
        if candidate is None or not is_absolute_path(candidate):
            return message, None
        if not any(pattern.search(candidate) for pattern in self.file_upload_patterns):
            return message, None
        try:
            data = Path(candidate).read_bytes()
        except OSError as exc:
            return f"{message}\nFailed to attach {candidate} ({exc.strerror or exc})", None
        return message, (candidate, guess_mime_type(candidate), data)

    def _emit(
        self,
        level: LogLevel,
        category: Optional[str],
        message: str,
        meta_infos: Optional[Mapping[str, str]],
        attachment: Optional[Tuple[str, str, bytes]],
    ) -> bool:
        text = f"[{category or ''}]: {message}"
        item_id = self._target_id(text)
        if item_id is None:
            self.discarded += 1
            return False

        now = utc_now()
        if attachment is not None:
            filename, mime_type, data = attachment
            self.client.send_attachment(item_id, level, text, filename, mime_type, data, now)
        else:
            self.client.log(item_id, level, text, now)

        if meta_infos and meets_minimum_severity(level, self.meta_info_threshold):
            self.client.log(item_id, LogLevel.DEBUG, format_meta_info(meta_infos), now)
        return True

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def route(
        self,
        level: str | LogLevel,
        category: Optional[str],
        message: str,
        image: Optional[bytes] = None,
        meta_infos: Optional[Mapping[str, str]] = None,
    ) -> bool:
        """Send one host log line (and optional image). Returns False when it was discarded."""
        log_level = level if isinstance(level, LogLevel) else parse_level(level)
        message = message or ""
        meta_infos = meta_infos or {}

        if image is not None:
            filename = meta_infos.get(ATTACHMENT_FILE_NAME_KEY) or DEFAULT_IMAGE_NAME
            attachment = (filename, guess_mime_type(filename, DEFAULT_IMAGE_MIME_TYPE), image)
        else:
            message, attachment = self._read_attachment(message)
        return self._emit(log_level, category, message, meta_infos, attachment)
