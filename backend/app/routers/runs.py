"""Endpoints exposing recorded runs."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException, status

from ..run_loader import list_sessions, load_run, recordings_root

router = APIRouter(prefix="/runs", tags=["runs"])
logger = logging.getLogger(__name__)


@router.get("")
def get_runs() -> Dict[str, List[str]]:
    return {"sessions": list_sessions()}


@router.get("/{session_id}")
def get_run(session_id: str) -> Dict[str, Any]:
    run = load_run(session_id)
    if run is None:
        logger.info("No recording for session %s", session_id)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Recording not found under {recordings_root()} for id {session_id}",
        )
    return run
