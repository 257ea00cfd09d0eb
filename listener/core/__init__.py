"""Event classification and run-tree state machine."""

from .errors import ListenerError, MissingActiveItemError, MissingConfigurationError, ProtocolError
from .models import Attribute, ChangedComponent, CreationData, ItemType, Status, TreeNode
from .levels import LogLevel, meets_minimum_severity, parse_level
from .classifier import classify
from .tree import RunTree
from .router import LogRouter
from .status import ScreenshotHarvester, resolve_status
from .changed_components import load_changed_components, parse_changed_components
from .listener import ReportListener

__all__ = [
    "Attribute",
    "ChangedComponent",
    "CreationData",
    "ItemType",
    "ListenerError",
    "LogLevel",
    "LogRouter",
    "MissingActiveItemError",
    "MissingConfigurationError",
    "ProtocolError",
    "ReportListener",
    "RunTree",
    "ScreenshotHarvester",
    "Status",
    "TreeNode",
    "classify",
    "load_changed_components",
    "meets_minimum_severity",
    "parse_changed_components",
    "parse_level",
    "resolve_status",
]
