"""Changed-component feed attached to a run when it starts."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional, Set

from .models import ChangedComponent

logger = logging.getLogger(__name__)

CHANGED_COMPONENTS_VARIABLE = "LISTENER_CHANGED_COMPONENTS"
CHANGED_COMPONENTS_PATH = Path("changedComponents.json")


def _component_from(element: Any) -> Optional[ChangedComponent]:
    if not isinstance(element, dict):
        return None
    name = element.get("componentName")
    if not isinstance(name, str) or "componentVersion" not in element:
        return None
    version = element["componentVersion"]
    if version is not None and not isinstance(version, str):
        return None
    return ChangedComponent(name, version)


def parse_changed_components(text: str) -> Set[ChangedComponent]:
    """
    Parse a JSON array of ``{"componentName": ..., "componentVersion": ...}``.

    ``componentVersion`` must be present but may be null. Elements of any
    other shape are ignored, as are extra keys. Duplicates collapse.
    """
    data = json.loads(text)
    if not isinstance(data, list):
        logger.warning("Changed components must be a JSON array, got %s", type(data).__name__)
        return set()
    components: Set[ChangedComponent] = set()
    for element in data:
        component = _component_from(element)
        if component is not None:
            components.add(component)
    return components


def load_changed_components(
    variable: str = CHANGED_COMPONENTS_VARIABLE,
    path: Path | str = CHANGED_COMPONENTS_PATH,
    environ: Optional[Mapping[str, str]] = None,
) -> Set[ChangedComponent]:
    """Read the feed from the environment variable, else from the file; empty when neither is set."""
    environ = os.environ if environ is None else environ
    text = environ.get(variable) or ""
    source = f"${variable}"
    if not text:
        file_path = Path(path)
        if file_path.is_file():
            text = file_path.read_text(encoding="utf-8")
            source = str(file_path)
    if not text.strip():
        return set()
    try:
        return parse_changed_components(text)
    except json.JSONDecodeError as exc:
        logger.error("Ignoring changed components from %s: %s", source, exc)
        return set()
