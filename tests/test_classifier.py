from __future__ import annotations

from typing import Any, Dict

from listener.core.classifier import classify
from listener.core.models import DESCRIPTION_MAX_LENGTH, UNNAMED_ITEM, Attribute, ItemType
from listener.host import EventFileHost


def _host(**snapshot: Any) -> EventFileHost:
    host = EventFileHost("Top level suite", "Top level description")
    host.update(snapshot)
    return host


INFO: Dict[str, str] = {
    "modulename": "OpenBrowser",
    "testcontainername": "Login",
    "smartfolderdataiteration": "2",
    "testcasedataiteration": "3",
}


def test_testsuite_becomes_suite_described_by_first_child() -> None:
    data = classify("testsuite", INFO, _host(suite_comment="Nightly regression"))

    assert data.item_type == ItemType.SUITE
    assert data.name == "OpenBrowser"
    assert data.description == "Nightly regression"
    assert data.attributes == frozenset({Attribute("Suite")})


def test_testcontainer_that_is_not_a_smart_folder_is_a_test() -> None:
    data = classify("testcontainer", INFO, _host(comment="Checks login"), inside_test=False)

    assert data.item_type == ItemType.TEST
    assert data.name == "Login"
    assert data.description == "Checks login"
    assert data.attributes == frozenset({Attribute("Test Case")})


def test_smart_folder_is_suite_outside_a_test_and_step_inside() -> None:
    host = _host(smart_folder=True)

    outside = classify("testcontainer", INFO, host, inside_test=False)
    inside = classify("testcontainer", INFO, host, inside_test=True)

    assert outside.item_type == ItemType.SUITE
    assert inside.item_type == ItemType.STEP
    assert outside.attributes == inside.attributes == frozenset({Attribute("Smart folder")})


def test_data_iterations_get_numbered_names() -> None:
    folder = classify("smartfolder_dataiteration", INFO, _host(), inside_test=False)
    folder_in_test = classify("smartfolder_dataiteration", INFO, _host(), inside_test=True)
    case = classify("testcase_dataiteration", INFO, _host(), inside_test=True)

    assert folder.item_type == ItemType.SUITE
    assert folder_in_test.item_type == ItemType.STEP
    assert folder.name == "Login (data iteration #2)"
    assert case.item_type == ItemType.TEST
    assert case.name == "Login (data iteration #3)"
    assert case.attributes == frozenset({Attribute("Test Case")})


def test_testmodule_is_a_step_with_module_attributes() -> None:
    data = classify("testmodule", INFO, _host(module_group="Navigation", comment="Opens the browser"))

    assert data.item_type == ItemType.STEP
    assert data.name == "OpenBrowser"
    assert data.description == "Opens the browser"
    assert data.attributes == frozenset({Attribute("Module"), Attribute("Module Group", "Navigation")})


def test_testmodule_under_setup_or_teardown_becomes_before_or_after_method() -> None:
    setup = classify("testmodule", INFO, _host(setup=True))
    teardown = classify("testmodule", INFO, _host(teardown=True))
    both = classify("testmodule", INFO, _host(setup=True, teardown=True))

    assert setup.item_type == ItemType.BEFORE_METHOD
    assert Attribute("Setup") in setup.attributes
    assert teardown.item_type == ItemType.AFTER_METHOD
    assert Attribute("TearDown") in teardown.attributes
    assert both.item_type == ItemType.BEFORE_METHOD
    assert Attribute("TearDown") not in both.attributes


def test_unknown_activity_falls_back_to_unnamed_step() -> None:
    data = classify("recording", INFO, _host(comment="ignored"))

    assert data.item_type == ItemType.STEP
    assert data.name == UNNAMED_ITEM
    assert data.description == ""
    assert data.attributes == frozenset()


def test_classification_is_repeatable_and_normalizes_names() -> None:
    host = _host(comment="x" * (DESCRIPTION_MAX_LENGTH + 50))

    first = classify("testmodule", {"modulename": "  "}, host)
    second = classify("testmodule", {"modulename": "  "}, host)

    assert first == second
    assert first.name == UNNAMED_ITEM
    assert len(first.description) == DESCRIPTION_MAX_LENGTH
    assert first.description.endswith("...")
