"""Data records shared by the classifier, the run tree and the router."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional

UNNAMED_ITEM = "<unnamed>"
DESCRIPTION_MAX_LENGTH = 1024
ELLIPSIS = "..."


class ItemType(str, Enum):
    RUN = "RUN"
    SUITE = "SUITE"
    TEST = "TEST"
    STEP = "STEP"
    BEFORE_METHOD = "BEFORE_METHOD"
    AFTER_METHOD = "AFTER_METHOD"


STEP_LIKE = frozenset({ItemType.STEP, ItemType.BEFORE_METHOD, ItemType.AFTER_METHOD})

ALLOWED_CHILDREN = {
    ItemType.RUN: frozenset({ItemType.SUITE}),
    ItemType.SUITE: frozenset({ItemType.SUITE, ItemType.TEST}) | STEP_LIKE,
    ItemType.TEST: STEP_LIKE,
    ItemType.STEP: STEP_LIKE,
    ItemType.BEFORE_METHOD: STEP_LIKE,
    ItemType.AFTER_METHOD: STEP_LIKE,
}


class Status(str, Enum):
    PASSED = "PASSED"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"
    STOPPED = "STOPPED"


@dataclass(frozen=True)
class Attribute:
    key: str
    value: Optional[str] = None

    def to_dict(self) -> dict:
        return {"key": self.key, "value": self.value}


@dataclass(frozen=True)
class ChangedComponent:
    name: str
    version: Optional[str] = None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    return name or UNNAMED_ITEM


def truncate_description(description: Optional[str], max_length: int = DESCRIPTION_MAX_LENGTH) -> str:
    """Cut a description to ``max_length`` characters, ending it with an ellipsis when cut."""
    description = description or ""
    if len(description) <= max_length:
        return description
    return description[: max_length - len(ELLIPSIS)] + ELLIPSIS


@dataclass(frozen=True)
class CreationData:
    """Everything needed to open one item on the reporting backend."""

    item_type: ItemType
    name: str
    description: str = ""
    attributes: FrozenSet[Attribute] = frozenset()

    @classmethod
    def build(
        cls,
        item_type: ItemType,
        name: Optional[str],
        description: Optional[str] = None,
        attributes: Iterable[Attribute] = (),
    ) -> "CreationData":
        return cls(
            item_type=item_type,
            name=normalize_name(name),
            description=truncate_description(description),
            attributes=frozenset(attributes),
        )


@dataclass
class TreeNode:
    index: int
    item_type: ItemType
    name: str
    description: str = ""
    attributes: FrozenSet[Attribute] = frozenset()
    backend_id: Optional[str] = None
    parent: Optional[int] = None
    children: List[int] = field(default_factory=list)
    closed: bool = False
    status: Optional[Status] = None

    @property
    def is_root(self) -> bool:
        return self.parent is None
