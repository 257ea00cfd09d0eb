"""Open/close bookkeeping for the items of one reported run."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from ..host import HostContext
from .classifier import ATTR_SUITE
from .errors import MissingActiveItemError, ReportingClientError
from .models import ALLOWED_CHILDREN, CreationData, ItemType, Status, TreeNode, utc_now

if TYPE_CHECKING:
    from ..client import ReportingClient

logger = logging.getLogger(__name__)


class RunTree:
    """
    Arena of reported items rooted at the run, plus the cursor that marks the
    active item. Nodes refer to each other by index; nothing is removed
    before the run ends.

    Every start and finish is forwarded to the reporting client so the tree
    always mirrors what was opened on the backend.
    """

    def __init__(
        self,
        client: ReportingClient,
        host: HostContext,
        run_id: Optional[str],
        run_name: str,
    ) -> None:
        self.client = client
        self.host = host
        root = TreeNode(index=0, item_type=ItemType.RUN, name=run_name, backend_id=run_id)
        self.nodes: List[TreeNode] = [root]
        self._cursor: int = 0
        self.synthesized_suites = 0

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def root(self) -> TreeNode:
        return self.nodes[0]

    @property
    def run_id(self) -> Optional[str]:
        return self.root.backend_id

    @property
    def active_node(self) -> TreeNode:
        return self.nodes[self._cursor]

    @property
    def at_root(self) -> bool:
        return self._cursor == 0

    def open_path(self) -> List[TreeNode]:
        """Open nodes from the root down to the active item."""
        path: List[TreeNode] = []
        index: Optional[int] = self._cursor
        while index is not None:
            node = self.nodes[index]
            path.append(node)
            index = node.parent
        path.reverse()
        return path

    @property
    def inside_test(self) -> bool:
        return any(node.item_type == ItemType.TEST for node in self.open_path())

    @property
    def opened_count(self) -> int:
        return len(self.nodes) - 1

    @property
    def closed_count(self) -> int:
        return sum(1 for node in self.nodes[1:] if node.closed)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def start(self, creation: CreationData, start_time: Optional[datetime] = None) -> TreeNode:
        """Open a child of the active item; adds a top-level suite first when one is missing."""
        start_time = start_time or utc_now()
        if self.at_root and creation.item_type != ItemType.SUITE:
            name, description = self.host.top_level_group()
            suite = CreationData.build(ItemType.SUITE, name, description, [ATTR_SUITE])
            logger.info("No suite open for %s %r; adding suite %r", creation.item_type.value, creation.name, suite.name)
            self._open(suite, start_time)
            self.synthesized_suites += 1
        return self._open(creation, start_time)

    def _open(self, creation: CreationData, start_time: datetime) -> TreeNode:
        parent = self.active_node
        if creation.item_type not in ALLOWED_CHILDREN[parent.item_type]:
            logger.warning(
                "%s %r opened under %s %r",
                creation.item_type.value,
                creation.name,
                parent.item_type.value,
                parent.name,
            )
        parent_id = None if parent.is_root else parent.backend_id
        if not parent.is_root and parent_id is None:
            logger.warning("Parent %r has no backend id; %r is created without a parent", parent.name, creation.name)

        node = TreeNode(
            index=len(self.nodes),
            item_type=creation.item_type,
            name=creation.name,
            description=creation.description,
            attributes=creation.attributes,
            parent=parent.index,
        )
        self.nodes.append(node)
        parent.children.append(node.index)
        self._cursor = node.index

        # The node stays on the stack even if creation fails so its finish still pairs up.
        node.backend_id = self.client.create_item(
            parent_id,
            creation.item_type,
            creation.name,
            creation.description,
            creation.attributes,
            start_time,
        )
        if node.backend_id is None:
            logger.error("Backend returned no id for %s %r", creation.item_type.value, creation.name)
        return node

    def finish(self, status: Status, end_time: Optional[datetime] = None) -> TreeNode:
        """Close the active item and make its parent active."""
        if self.at_root:
            raise MissingActiveItemError(f"No open item to finish with status {status.value}")
        node = self.active_node
        node.closed = True
        node.status = status
        self._cursor = node.parent if node.parent is not None else 0
        if node.backend_id is None:
            logger.warning("Item %r has no backend id; closed locally only", node.name)
        else:
            self.client.finish_item(node.backend_id, status, end_time or utc_now())
        return node

    def finish_run(self, end_time: Optional[datetime] = None) -> None:
        """Stop every item still open, then finish the run itself.

        A failed stop does not keep the run open; the first backend error is
        raised again once the run is finished.
        """
        end_time = end_time or utc_now()
        errors: List[ReportingClientError] = []
        while not self.at_root:
            node = self.active_node
            logger.warning("Item %r still open at run end; stopping it", node.name)
            try:
                self.finish(Status.STOPPED, end_time)
            except ReportingClientError as exc:
                logger.error("Failed to stop item %r: %s", node.name, exc)
                errors.append(exc)
        if self.run_id is not None:
            self.client.finish_run(self.run_id, end_time)
        if errors:
            raise errors[0]

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------
    def render(self) -> str:
        """Indented dump of the tree, one item per line."""
        lines: List[str] = []

        def walk(index: int, depth: int) -> None:
            node = self.nodes[index]
            state = node.status.value if node.status else ("OPEN" if not node.is_root else "")
            lines.append(f"{'  ' * depth}{node.item_type.value} {node.name} {state}".rstrip())
            for child in node.children:
                walk(child, depth + 1)

        walk(0, 0)
        return "\n".join(lines)
