"""Helpers for loading recorded runs from disk."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

from listener.recording import build_item_tree, find_recording, list_recordings, load_calls

from .config import settings


def recordings_root() -> Path:
    return Path(settings.recordings_dir)


def list_sessions() -> List[str]:
    return list_recordings(recordings_root())


def load_run(session_id: str) -> Optional[Dict[str, Any]]:
    """Return the rebuilt item tree of a session, or None if no recording was found."""
    recording = find_recording(recordings_root(), session_id)
    if recording is None:
        return None
    return build_item_tree(load_calls(recording))
