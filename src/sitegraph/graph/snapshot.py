from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from .models import Graph, OwnerNode


log = logging.getLogger(__name__)


def empty_snapshot() -> dict[str, Any]:
    return {"nodes": [], "links": []}


def load_snapshot(path: str | os.PathLike[str]) -> dict[str, Any]:
    """Read a previous graph.json; a missing or broken file reads as empty."""
    p = Path(path)
    if not p.exists():
        log.debug("No previous graph at %s", p)
        return empty_snapshot()

    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        log.warning("Ignoring unreadable graph snapshot %s: %s", p, e)
        return empty_snapshot()

    if not isinstance(data, dict):
        log.warning("Ignoring graph snapshot %s: expected a JSON object", p)
        return empty_snapshot()

    nodes = data.get("nodes")
    links = data.get("links")
    return {
        "nodes": nodes if isinstance(nodes, list) else [],
        "links": links if isinstance(links, list) else [],
    }


def owner_from_snapshot(snapshot: dict[str, Any]) -> OwnerNode | None:
    for n in snapshot.get("nodes") or []:
        if isinstance(n, dict) and n.get("kind") == "owner":
            return OwnerNode(data=dict(n))
    return None


def write_snapshot(path: str | os.PathLike[str], graph: Graph) -> Path:
    """Write the graph as pretty JSON, replacing the old file in one step."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(graph.to_dict(), ensure_ascii=False, indent=2)

    fd, tmp = tempfile.mkstemp(prefix=f".{p.name}.", suffix=".tmp", dir=str(p.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
        os.replace(tmp, p)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise
    return p
