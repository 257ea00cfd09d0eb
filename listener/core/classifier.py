"""Turn host activity records into item creation data.

The host announces every activity it starts with a small key/value record.
The ``activity`` tag decides what kind of reported item the activity becomes;
the remaining keys (module name, container name, iteration counters) and a few
questions asked of the host supply its name, description and attributes.

Classification never touches the run tree or the backend: whether the
activity sits inside a test case is passed in by the caller.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Mapping

from ..host import HostContext
from .models import Attribute, CreationData, ItemType

logger = logging.getLogger(__name__)

TESTSUITE = "testsuite"
TESTCONTAINER = "testcontainer"
SMARTFOLDER_DATAITERATION = "smartfolder_dataiteration"
TESTCASE_DATAITERATION = "testcase_dataiteration"
TESTMODULE = "testmodule"

ATTR_SUITE = Attribute("Suite")
ATTR_SMART_FOLDER = Attribute("Smart folder")
ATTR_TEST_CASE = Attribute("Test Case")
ATTR_MODULE = Attribute("Module")
ATTR_SETUP = Attribute("Setup")
ATTR_TEARDOWN = Attribute("TearDown")
MODULE_GROUP_KEY = "Module Group"

Classifier = Callable[[Mapping[str, str], HostContext, bool], CreationData]


def _iteration_name(info: Mapping[str, str], counter_key: str) -> str:
    return f"{info.get('testcontainername', '')} (data iteration #{info.get(counter_key, '')})"


def _smart_folder_type(inside_test: bool) -> ItemType:
    return ItemType.STEP if inside_test else ItemType.SUITE


def _classify_suite(info: Mapping[str, str], host: HostContext, inside_test: bool) -> CreationData:
    return CreationData.build(
        ItemType.SUITE,
        info.get("modulename"),
        host.suite_comment(),
        [ATTR_SUITE],
    )


def _classify_container(info: Mapping[str, str], host: HostContext, inside_test: bool) -> CreationData:
    if host.is_smart_folder():
        item_type = _smart_folder_type(inside_test)
        attribute = ATTR_SMART_FOLDER
    else:
        item_type = ItemType.TEST
        attribute = ATTR_TEST_CASE
    return CreationData.build(
        item_type,
        info.get("testcontainername"),
        host.container_comment(),
        [attribute],
    )


def _classify_smart_folder_iteration(
    info: Mapping[str, str], host: HostContext, inside_test: bool
) -> CreationData:
    return CreationData.build(
        _smart_folder_type(inside_test),
        _iteration_name(info, "smartfolderdataiteration"),
        host.container_comment(),
        [ATTR_SMART_FOLDER],
    )


def _classify_test_case_iteration(
    info: Mapping[str, str], host: HostContext, inside_test: bool
) -> CreationData:
    return CreationData.build(
        ItemType.TEST,
        _iteration_name(info, "testcasedataiteration"),
        host.container_comment(),
        [ATTR_TEST_CASE],
    )


def _classify_module(info: Mapping[str, str], host: HostContext, inside_test: bool) -> CreationData:
    attributes: List[Attribute] = [ATTR_MODULE]
    group = host.module_group()
    if group:
        attributes.append(Attribute(MODULE_GROUP_KEY, group))

    item_type = ItemType.STEP
    if host.is_setup_descendant():
        item_type = ItemType.BEFORE_METHOD
        attributes.append(ATTR_SETUP)
    elif host.is_teardown_descendant():
        item_type = ItemType.AFTER_METHOD
        attributes.append(ATTR_TEARDOWN)

    return CreationData.build(item_type, info.get("modulename"), host.module_comment(), attributes)


ACTIVITY_CLASSIFIERS: Dict[str, Classifier] = {
    TESTSUITE: _classify_suite,
    TESTCONTAINER: _classify_container,
    SMARTFOLDER_DATAITERATION: _classify_smart_folder_iteration,
    TESTCASE_DATAITERATION: _classify_test_case_iteration,
    TESTMODULE: _classify_module,
}


def classify(
    activity: str,
    info: Mapping[str, str],
    host: HostContext,
    inside_test: bool = False,
) -> CreationData:
    """Return the creation data for an activity start record.

    Unknown tags become an unnamed step rather than an error.
    """
    classifier = ACTIVITY_CLASSIFIERS.get(activity)
    if classifier is None:
        logger.warning("Unknown activity tag %r; reporting it as a step", activity)
        return CreationData.build(ItemType.STEP, "", "")
    return classifier(info, host, inside_test)
