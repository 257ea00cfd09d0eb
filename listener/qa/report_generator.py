# File: listener/qa/report_generator.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import textwrap

from listener.recording import build_item_tree, iter_items, load_calls

STATUS_MARKERS = {
    "PASSED": "PASS",
    "FAILED": "FAIL",
    "SKIPPED": "SKIP",
    "STOPPED": "STOP",
    None: "OPEN",
}


def _format_summary(run: Dict[str, Any]) -> str:
    summary = run.get("summary") or {}
    return textwrap.dedent(
        f"""
        ## Summary

        - Items reported: {summary.get('items', 0)}
        - PASSED: {summary.get('PASSED', 0)}
        - FAILED: {summary.get('FAILED', 0)}
        - SKIPPED: {summary.get('SKIPPED', 0)}
        - STOPPED: {summary.get('STOPPED', 0)}
        """
    ).strip()


def _render_attributes(attributes: List[Dict[str, Any]]) -> str:
    rendered = []
    for attr in attributes:
        value = attr.get("value")
        rendered.append(f"{attr.get('key')}={value}" if value is not None else str(attr.get("key")))
    return ", ".join(rendered)


def _render_run_context(run: Dict[str, Any]) -> str:
    lines = ["## Run Context", ""]
    attributes = run.get("attributes") or []
    lines.append(f"- Attributes: {_render_attributes(attributes) or 'N/A'}")
    components = run.get("changed_components") or []
    if components:
        lines.append("- Changed components:")
        for component in components:
            version = component.get("componentVersion") or "(no version)"
            lines.append(f"  - {component.get('componentName')}: {version}")
    return "\n".join(lines)


def _render_tree(run: Dict[str, Any]) -> str:
    lines = ["## Items", ""]
    items = list(iter_items(run))
    if not items:
        lines.append("No items were reported for this run.")
        return "\n".join(lines)
    for depth, node in items:
        marker = STATUS_MARKERS.get(node.get("status"), str(node.get("status")))
        extras = []
        if node["logs"]:
            extras.append(f"{len(node['logs'])} logs")
        if node["attachments"]:
            extras.append(f"{len(node['attachments'])} attachments")
        suffix = f" ({', '.join(extras)})" if extras else ""
        lines.append(f"{'  ' * depth}- [{marker}] {node['type']}: {node['name']}{suffix}")
    return "\n".join(lines)


def _render_failures(run: Dict[str, Any], limit: int = 10) -> str:
    lines = ["## Failures", ""]
    failed = [node for _, node in iter_items(run) if node.get("status") == "FAILED"]
    if not failed:
        lines.append("No failed items.")
        return "\n".join(lines)
    for node in failed[:limit]:
        lines.append(f"### {node['type']}: {node['name']}")
        errors = [log["text"] for log in node["logs"] if log.get("level") in ("error", "fatal")]
        for text in errors[:3]:
            lines.append(f"```text\n{text}\n```")
        for attachment in node["attachments"]:
            lines.append(f"- Attachment: {attachment.get('filename')} ({attachment.get('mime_type')})")
        lines.append("")
    return "\n".join(lines)


def generate_markdown_report(recording_path: Path, report_path: Path) -> Dict[str, Any]:
    """Write a markdown report for a recorded run and return the rebuilt item tree."""
    run = build_item_tree(load_calls(recording_path))
    summary_lines = [
        f"# Run Report: {run.get('name') or 'Unknown'}",
        "",
        f"**Status:** {run.get('status') or 'UNKNOWN'}",
        f"**Description:** {run.get('description') or 'N/A'}",
        "",
        _format_summary(run),
        "",
        _render_run_context(run),
        "",
        _render_tree(run),
        "",
        _render_failures(run),
        "",
    ]

    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text("\n".join(summary_lines).strip() + "\n", encoding="utf-8")
    return run
