"""Exceptions raised by the report listener core."""

from __future__ import annotations

from typing import Iterable


class ListenerError(RuntimeError):
    """Base class for listener failures."""


class MissingConfigurationError(ListenerError):
    """Raised at startup when a required setting is absent."""

    def __init__(self, names: Iterable[str]) -> None:
        self.names = sorted(set(names))
        super().__init__(f"Missing configuration. No value for: {', '.join(self.names)}")


class ProtocolError(ListenerError):
    """Raised when the host event stream does not fit the open-item tree."""


class MissingActiveItemError(ProtocolError):
    """Raised when a finish event arrives while no item is open."""


class ReportingClientError(ListenerError):
    """Raised when the reporting backend rejects or fails a call."""
