"""Replay and reporting utilities."""

from .session_runner import EventFileError, ReplaySession, load_events
from .report_generator import generate_markdown_report

__all__ = [
    "EventFileError",
    "ReplaySession",
    "generate_markdown_report",
    "load_events",
]
