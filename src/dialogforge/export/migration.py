"""Upgrade documents written by older releases to the current schema.

Versions are detected from the fields present, never from a version key:

- 0: the first release stored the raw editor graph under ``creator_data``.
- 1: NPC placement was a bare top-level ``location {x, y, z}``.
- 2: current; placement lives in ``interaction``.

Migration works on plain dicts and returns a new dict; the input is never
mutated. Schema validation of the upgraded dict is left to the loader.
"""

from __future__ import annotations

import copy
from typing import Any

from pydantic import ValidationError

from dialogforge.export.compiler import Compiled, compile_graph
from dialogforge.export.document import DEFAULT_RENDER_DISTANCE, DEFAULT_WORLD, Interaction
from dialogforge.graph.model import (
    DEFAULT_CLOSE_DELAY,
    ENTRY_NODE_ID,
    AnyNode,
    Edge,
    EntryNode,
    make_edge,
    parse_node,
)
from dialogforge.graph.ports import Port
from dialogforge.observability.logging import get_logger

log = get_logger(__name__)

CURRENT_SCHEMA_VERSION = 2

# v0 port names that were renamed since
_LEGACY_PORTS = {"result_trigger": Port.NODE_TRIGGER}


class DocumentFormatError(ValueError):
    """The document cannot be read as any known schema version."""


def detect_schema_version(data: dict[str, Any]) -> int:
    """Return the schema version *data* was written with."""
    if "creator_data" in data:
        return 0
    if "interaction" not in data and "location" in data:
        return 1
    return CURRENT_SCHEMA_VERSION


def migrate_document(data: dict[str, Any]) -> tuple[dict[str, Any], int]:
    """Upgrade *data* to the current schema.

    Returns:
        The upgraded document dict and the version it was detected as.

    Raises:
        DocumentFormatError: If the document cannot be upgraded.
    """
    if not isinstance(data, dict):
        raise DocumentFormatError(f"expected a JSON object, got {type(data).__name__}")

    version = detect_schema_version(data)
    document = copy.deepcopy(data)

    if version == 0:
        document = _upgrade_from_editor_graph(document)
    elif version == 1:
        document = _upgrade_location(document)

    for key in ("actions", "results"):
        if not isinstance(document.get(key), list):
            raise DocumentFormatError(f"document has no '{key}' list")

    document["initial"] = _resolve_initial(document)
    if version != CURRENT_SCHEMA_VERSION:
        log.info("document_migrated", from_version=version, to_version=CURRENT_SCHEMA_VERSION)
    return document, version


# -----------------------------------------------------------------------------
# Version 1: bare location
# -----------------------------------------------------------------------------


def _legacy_interaction(location: Any) -> dict[str, Any]:
    if not isinstance(location, dict):
        raise DocumentFormatError("'location' must be an object with x, y and z")
    return {
        "location": {
            "x": location.get("x", 0),
            "y": location.get("y", 0),
            "z": location.get("z", 0),
            "rotation": 0,
            "world": DEFAULT_WORLD,
        },
        "renderDistance": DEFAULT_RENDER_DISTANCE,
    }


def _upgrade_location(document: dict[str, Any]) -> dict[str, Any]:
    document["interaction"] = _legacy_interaction(document.pop("location"))
    return document


# -----------------------------------------------------------------------------
# Version 0: raw editor graph
# -----------------------------------------------------------------------------


def _upgrade_node(raw: Any) -> tuple[AnyNode, bool]:
    """Parse a v0 editor node; the flag says whether it was the entry result."""
    if not isinstance(raw, dict) or not isinstance(raw.get("data") or {}, dict):
        raise DocumentFormatError(f"editor node is not an object: {raw!r}")
    raw = dict(raw)
    data = dict(raw.get("data") or {})
    is_entry = data.pop("initial", False) is True

    if raw.get("type") == "result":
        preferred = data.pop("preferredId", None)
        data["preferred"] = preferred or None
        data["order"] = data.pop("actionsOrder", None) or []
        enabled = data.pop("closeOnFinish", False)
        delay = data.pop("closeDelay", None)
        data["close"] = {
            "enabled": bool(enabled),
            "delay": DEFAULT_CLOSE_DELAY if delay is None else delay,
        }

    raw["data"] = data
    return parse_node(raw), is_entry


def _upgrade_edge(raw: dict[str, Any]) -> Edge:
    source_handle = raw.get("sourceHandle") or ""
    target_handle = raw.get("targetHandle") or ""
    return make_edge(
        raw["source"],
        _LEGACY_PORTS.get(source_handle, source_handle),
        raw["target"],
        _LEGACY_PORTS.get(target_handle, target_handle),
    )


def _upgrade_from_editor_graph(document: dict[str, Any]) -> dict[str, Any]:
    creator_data = document.get("creator_data")
    if not isinstance(creator_data, dict):
        raise DocumentFormatError("'creator_data' must be an object with nodes and edges")

    nodes: list[AnyNode] = [EntryNode()]
    edges: list[Edge] = []
    try:
        for raw_node in creator_data.get("nodes") or []:
            node, is_entry = _upgrade_node(raw_node)
            nodes.append(node)
            if is_entry and len(edges) == 0:
                edges.append(
                    make_edge(ENTRY_NODE_ID, Port.INITIAL_TARGET, node.id, Port.NODE_TRIGGER)
                )
        edges.extend(_upgrade_edge(raw) for raw in creator_data.get("edges") or [])
    except (ValidationError, KeyError, TypeError, AttributeError) as e:
        raise DocumentFormatError(f"unreadable editor graph: {e}") from e

    interaction = None
    if "location" in document:
        interaction = Interaction.model_validate(_legacy_interaction(document["location"]))

    outcome = compile_graph(nodes, edges, npc=document.get("npc") or "", interaction=interaction)
    if not isinstance(outcome, Compiled):
        raise DocumentFormatError(f"legacy editor graph has no entry: {outcome.reason}")
    return outcome.document.to_json_dict()


# -----------------------------------------------------------------------------
# Entry linkage
# -----------------------------------------------------------------------------


def _resolve_initial(document: dict[str, Any]) -> dict[str, str]:
    """Normalize the entry reference to ``{id, type}``.

    Accepts a top-level ``initial`` (object with ``id`` and optional ``type``,
    or a bare id string) or a row flagged ``initial: true``. A missing type is
    inferred from the list that holds the id.
    """
    row_types: dict[str, str] = {}
    flagged: list[str] = []
    for key, ref_type in (("results", "result"), ("conditions", "condition")):
        rows = document.get(key)
        for row in rows if isinstance(rows, list) else []:
            if not isinstance(row, dict) or not isinstance(row.get("id"), str):
                continue
            row_types[row["id"]] = ref_type
            if row.pop("initial", False) is True:
                flagged.append(row["id"])

    initial = document.get("initial")
    if isinstance(initial, str):
        initial = {"id": initial}
    if not isinstance(initial, dict) or not initial.get("id"):
        if not flagged:
            raise DocumentFormatError("document has no entry reference")
        initial = {"id": flagged[0]}

    entry_id = initial["id"]
    if not isinstance(entry_id, str):
        raise DocumentFormatError(f"entry id must be a string, got {type(entry_id).__name__}")
    entry_type = initial.get("type") or row_types.get(entry_id)
    if entry_type is None:
        raise DocumentFormatError(f"entry '{entry_id}' is not a result or condition")
    return {"id": entry_id, "type": entry_type}
