"""Host-facing report listener.

The automation host calls :class:`ReportListener` the way it calls any of its
report loggers: ``start`` and ``end`` around the run, ``log_text`` for every
text line and ``log_data`` for images. Activity starts and finishes are text
lines whose meta-infos carry an ``activity`` tag (plus ``result`` on finish);
those drive the run tree, everything else is routed as a log.

One bad event never stops the stream: protocol and backend failures are
logged and the event is dropped.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterable, Iterator, Mapping, Optional, Set

from ..host import HostContext
from .changed_components import load_changed_components
from .classifier import classify
from .errors import MissingActiveItemError, ProtocolError, ReportingClientError
from .levels import DEFAULT_META_INFO_THRESHOLD, LogLevel
from .models import Attribute, ChangedComponent, Status, TreeNode, utc_now
from .router import LogRouter
from .status import ScreenshotHarvester, resolve_status
from .system_summary import is_system_summary, parse_system_summary
from .tree import RunTree

if TYPE_CHECKING:
    from ..client import ReportingClient

logger = logging.getLogger(__name__)

LISTENER_NAME = "qa-report-listener"
LISTENER_VERSION = "0.1.0"
ACTIVITY_KEY = "activity"
RESULT_KEY = "result"


class ReportListener:
    """Re-projects the host's flat event stream onto the reporting backend."""

    pre_filter_messages = False

    def __init__(
        self,
        client: ReportingClient,
        host: HostContext,
        run_name: str,
        description: str = "",
        attributes: Iterable[Attribute] = (),
        changed_components: Optional[Set[ChangedComponent]] = None,
        file_upload_patterns: Iterable[str] = (),
        run_level_logs: bool = False,
        meta_info_threshold: LogLevel = DEFAULT_META_INFO_THRESHOLD,
        system_summary_keys: Iterable[str] = (),
    ) -> None:
        self.client = client
        self.host = host
        self.run_name = run_name
        self.description = description
        self.attributes: Set[Attribute] = set(attributes)
        self.attributes.add(Attribute("listener", f"{LISTENER_NAME}/{LISTENER_VERSION}"))
        self.changed_components: Set[ChangedComponent] = set(changed_components or ())
        self.file_upload_patterns = list(file_upload_patterns)
        self.run_level_logs = run_level_logs
        self.meta_info_threshold = meta_info_threshold
        self.system_summary_keys = list(system_summary_keys)

        self.tree: Optional[RunTree] = None
        self.router: Optional[LogRouter] = None
        self.harvester: Optional[ScreenshotHarvester] = None
        self.dropped_events = 0
        self.failed_calls = 0

    @classmethod
    def from_settings(cls, settings, client: ReportingClient, host: HostContext) -> "ReportListener":
        """Build a listener from ListenerSettings, loading the changed-component feed."""
        return cls(
            client,
            host,
            run_name=settings.testset,
            description=settings.description,
            attributes=settings.run_attributes,
            changed_components=load_changed_components(
                settings.changed_components_variable,
                settings.changed_components_path,
            ),
            file_upload_patterns=settings.file_upload_patterns,
            run_level_logs=settings.run_level_logs,
            meta_info_threshold=settings.meta_info_threshold,
            system_summary_keys=settings.system_summary_keys,
        )

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------
    @contextmanager
    def _guard(self, event: str) -> Iterator[None]:
        try:
            yield
        except ProtocolError as exc:
            self.dropped_events += 1
            logger.warning("Dropped %s event: %s", event, exc)
        except ReportingClientError as exc:
            self.failed_calls += 1
            logger.error("Reporting backend call failed during %s: %s", event, exc)
        except Exception:  # noqa: BLE001
            # The host must keep delivering events whatever happens here.
            self.dropped_events += 1
            logger.exception("Unexpected error while handling %s event", event)

    @property
    def started(self) -> bool:
        return self.tree is not None

    def _require_tree(self) -> RunTree:
        if self.tree is None:
            raise ProtocolError("The run was not started")
        return self.tree

    def _handle_activity(self, meta_infos: Mapping[str, str]) -> bool:
        """Open or close an item when the meta-infos describe an activity; False otherwise."""
        activity = meta_infos.get(ACTIVITY_KEY)
        if activity is None:
            return False
        if RESULT_KEY in meta_infos:
            self.finish_item(meta_infos[RESULT_KEY])
        else:
            self.start_item(activity, meta_infos)
        return True

    def _update_run_with_system_info(self, message: str) -> None:
        tree = self._require_tree()
        attributes, description = parse_system_summary(message, self.system_summary_keys)
        if description is not None:
            self.description = description
        self.client.update_run(tree.run_id, self.description, attributes)

    # -------------------------------------------------------------------------
    # Tree operations
    # -------------------------------------------------------------------------
    def start_item(self, activity: str, info: Mapping[str, str]) -> TreeNode:
        tree = self._require_tree()
        creation = classify(activity, info, self.host, tree.inside_test)
        return tree.start(creation)

    def finish_item(self, result: str) -> TreeNode:
        tree = self._require_tree()
        if tree.at_root:
            raise MissingActiveItemError(f"Finish with result {result!r} but no item is open")
        status = resolve_status(result)
        if status == Status.FAILED:
            try:
                self.harvester.harvest(self.host.current_report_items(), self.host.report_directory())
            except ReportingClientError as exc:
                self.failed_calls += 1
                logger.error("Screenshot upload failed before finishing %r: %s", tree.active_node.name, exc)
        return tree.finish(status)

    # -------------------------------------------------------------------------
    # Host logger interface
    # -------------------------------------------------------------------------
    def start(self) -> Optional[str]:
        """Start the run on the backend; blocks until the run id is known."""
        run_id: Optional[str] = None
        with self._guard("run start"):
            run_id = self.client.start_run(
                self.run_name,
                self.description,
                self.attributes,
                self.changed_components,
                utc_now(),
            )
        if run_id is None:
            logger.error("Failed to start test run %r; events will be dropped", self.run_name)
            return None

        logger.info("Started test run %r with id %s", self.run_name, run_id)
        self.tree = RunTree(self.client, self.host, run_id, self.run_name)
        self.router = LogRouter(
            self.client,
            self.tree,
            file_upload_patterns=self.file_upload_patterns,
            run_level_logs=self.run_level_logs,
            meta_info_threshold=self.meta_info_threshold,
        )
        self.harvester = ScreenshotHarvester(self.router)
        return run_id

    def end(self) -> None:
        """Forward the host system summary, stop whatever is still open and finish the run."""
        if self.tree is None:
            logger.error("Run end without a started run; nothing to finish")
            return
        summary = self.host.system_summary()
        if summary:
            with self._guard("system summary"):
                self._update_run_with_system_info(summary)
        with self._guard("run end"):
            self.tree.finish_run()
        logger.debug("Reported tree:\n%s", self.tree.render())

    def log_text(
        self,
        level: str,
        category: Optional[str],
        message: str,
        escape: bool = False,
        meta_infos: Optional[Mapping[str, str]] = None,
    ) -> None:
        meta_infos = meta_infos or {}
        with self._guard("text"):
            if is_system_summary(category):
                self._update_run_with_system_info(message)
            elif not self._handle_activity(meta_infos):
                self._require_tree()
                self.router.route(level, category, message, meta_infos=meta_infos)

    def log_data(
        self,
        level: str,
        category: Optional[str],
        message: str,
        data: object,
        meta_infos: Optional[Mapping[str, str]] = None,
    ) -> None:
        # Only image bytes are supported as data.
        if not isinstance(data, (bytes, bytearray)):
            logger.debug("Ignoring log data of type %s", type(data).__name__)
            return
        with self._guard("data"):
            self._require_tree()
            self.router.route(level, category, message, image=bytes(data), meta_infos=meta_infos or {})
