from __future__ import annotations

from typing import Iterable, Optional, Set, Tuple

from .models import Attribute

SYSTEM_SUMMARY_CATEGORY = "System Summary"
DESCRIPTION_KEY = "description"
EXCLUDED_KEY_PARTS = (
    "displays",
    "CPUs",
    "Ranorex version",
    "Memory",
    "Runtime version",
)


def is_system_summary(category: Optional[str]) -> bool:
    return (category or "").strip().lower() == SYSTEM_SUMMARY_CATEGORY.lower()


def _key_allowed(key: str, allowed_keys: Optional[Iterable[str]]) -> bool:
    if allowed_keys:
        return key.lower() in {k.lower() for k in allowed_keys}
    return not any(part in key for part in EXCLUDED_KEY_PARTS)


def parse_system_summary(
    message: str,
    allowed_keys: Optional[Iterable[str]] = None,
) -> Tuple[Set[Attribute], Optional[str]]:
    """
    Split a system summary into run attributes, one ``key: value`` per line.
    Returns the attributes and the ``Description`` value, if any.
    """
    attributes: Set[Attribute] = set()
    description: Optional[str] = None
    for line in (message or "").splitlines():
        key, sep, value = line.partition(": ")
        key = key.strip()
        if not sep or not key or not _key_allowed(key, allowed_keys):
            continue
        value = value.strip()
        attributes.add(Attribute(key, value))
        if key.lower() == DESCRIPTION_KEY:
            description = value
    return attributes, description
