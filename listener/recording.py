"""Helpers for reading recorded reporting-client calls back from disk."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional


def find_recording(recordings_dir: Path, session_id: str) -> Optional[Path]:
    """Return the recording of a session, or None if no file was found."""
    direct_file = recordings_dir / f"{session_id}.jsonl"
    if direct_file.exists() and direct_file.is_file():
        return direct_file
    matches = list(recordings_dir.glob(f"{session_id}*.jsonl"))
    if not matches:
        return None
    matches.sort(key=lambda path: path.stat().st_mtime, reverse=True)
    return matches[0]


def list_recordings(recordings_dir: Path) -> List[str]:
    if not recordings_dir.is_dir():
        return []
    return sorted(path.stem for path in recordings_dir.glob("*.jsonl"))


def load_calls(path: Path) -> List[Dict[str, Any]]:
    calls: List[Dict[str, Any]] = []
    with path.open("r", encoding="utf-8") as handle:
        for line in handle:
            if not line.strip():
                continue
            calls.append(json.loads(line))
    return calls


def _new_node(call: Dict[str, Any], node_type: str, name: str) -> Dict[str, Any]:
    return {
        "id": call.get("item_id") or call.get("run_id"),
        "type": node_type,
        "name": name,
        "description": call.get("description", ""),
        "attributes": call.get("attributes", []),
        "status": None,
        "logs": [],
        "attachments": [],
        "children": [],
    }


def build_item_tree(calls: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Rebuild the reported hierarchy from recorded calls.

    Returns the run node (``type`` RUN) with nested ``children`` and a
    ``summary`` of item counts per status. Items whose parent is unknown are
    attached to the run.
    """
    run: Dict[str, Any] = {
        "id": None,
        "type": "RUN",
        "name": "",
        "description": "",
        "attributes": [],
        "changed_components": [],
        "status": None,
        "logs": [],
        "attachments": [],
        "children": [],
    }
    nodes: Dict[str, Dict[str, Any]] = {}
    summary: Dict[str, int] = {"items": 0}

    for call in calls:
        operation = call.get("operation")
        if operation == "start_run":
            run.update(
                id=call.get("run_id"),
                name=call.get("name", ""),
                description=call.get("description", ""),
                attributes=call.get("attributes", []),
                changed_components=call.get("changed_components", []),
                status="RUNNING",
            )
            if run["id"]:
                nodes[run["id"]] = run
        elif operation == "create_item":
            node = _new_node(call, call.get("item_type", "STEP"), call.get("name", ""))
            parent = nodes.get(call.get("parent_id") or "") or run
            parent["children"].append(node)
            nodes[node["id"]] = node
            summary["items"] += 1
        elif operation == "finish_item":
            node = nodes.get(call.get("item_id") or "")
            if node is not None:
                node["status"] = call.get("status")
                summary[node["status"]] = summary.get(node["status"], 0) + 1
        elif operation == "log":
            node = nodes.get(call.get("item_id") or "")
            if node is not None:
                node["logs"].append({"level": call.get("level"), "text": call.get("text", "")})
        elif operation == "send_attachment":
            node = nodes.get(call.get("item_id") or "")
            if node is not None:
                node["attachments"].append(
                    {
                        "level": call.get("level"),
                        "text": call.get("text", ""),
                        "filename": call.get("filename"),
                        "mime_type": call.get("mime_type"),
                        "size": call.get("size", 0),
                    }
                )
        elif operation == "update_run":
            run["description"] = call.get("description", run["description"])
            known = {(a.get("key"), a.get("value")) for a in run["attributes"]}
            for attr in call.get("attributes", []):
                if (attr.get("key"), attr.get("value")) not in known:
                    run["attributes"].append(attr)
        elif operation == "finish_run":
            run["status"] = "FINISHED"

    run["summary"] = summary
    return run


def iter_items(node: Dict[str, Any], depth: int = 0):
    """Yield (depth, node) for every item below ``node`` in report order."""
    for child in node.get("children", []):
        yield depth, child
        yield from iter_items(child, depth + 1)
