"""Load an exported dialogue document back into an editable graph.

Loading is the inverse of compilation: every row becomes a node (keeping its
id, position and handle placement) and every reference becomes the edge that
produced it. Older documents are upgraded first (see migration).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from dialogforge.export.document import Document, Interaction
from dialogforge.export.migration import DocumentFormatError, migrate_document
from dialogforge.graph.graph import DialogueGraph
from dialogforge.graph.model import (
    ActionData,
    ActionNode,
    AnyNode,
    ConditionalData,
    ConditionalNode,
    Edge,
    EntryNode,
    ResultData,
    ResultNode,
    make_edge,
)
from dialogforge.graph.ports import Port
from dialogforge.observability.logging import get_logger

log = get_logger(__name__)


@dataclass
class Loaded:
    """An editable graph rebuilt from a document."""

    graph: DialogueGraph
    npc: str = ""
    interaction: Interaction | None = None
    schema_version: int = 2


@dataclass
class MalformedDocument:
    """The input could not be read as a dialogue document."""

    reason: str


LoadResult = Loaded | MalformedDocument


def _format_validation_error(e: ValidationError) -> str:
    first = e.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "document"
    more = f" (+{e.error_count() - 1} more)" if e.error_count() > 1 else ""
    return f"{location}: {first['msg']}{more}"


def load_document(data: Any) -> LoadResult:
    """Rebuild a graph from a parsed document of any known schema version.

    Args:
        data: The parsed JSON document.

    Returns:
        Loaded on success, MalformedDocument when the input is unusable.
    """
    try:
        migrated, version = migrate_document(data)
        document = Document.model_validate(migrated)
    except DocumentFormatError as e:
        return MalformedDocument(str(e))
    except ValidationError as e:
        return MalformedDocument(_format_validation_error(e))

    entry = EntryNode()
    nodes: list[AnyNode] = [entry]
    edges: list[Edge] = []

    def link_entry(row_id: str) -> None:
        if row_id == document.initial.id:
            edges.append(make_edge(entry.id, Port.INITIAL_TARGET, row_id, Port.NODE_TRIGGER))

    for result in document.results:
        nodes.append(
            ResultNode(
                id=result.id,
                position=result.position,
                data=ResultData(
                    message=result.message,
                    preferred=result.preferred,
                    order=[a for a in result.actions if a != result.preferred],
                    close=result.close,
                    executors=result.executors,
                    handle=result.handle,
                ),
            )
        )
        link_entry(result.id)
        edges.extend(
            make_edge(result.id, Port.RESULT_ACTIONS, action_id, Port.ACTION_OWNER)
            for action_id in result.actions
        )

    for condition in document.conditions:
        nodes.append(
            ConditionalNode(
                id=condition.id,
                position=condition.position,
                data=ConditionalData(
                    value=condition.value,
                    condition=condition.condition,
                    objective=condition.objective,
                    handle=condition.handle,
                ),
            )
        )
        link_entry(condition.id)
        edges.append(
            make_edge(condition.id, Port.CONDITION_TRUE, condition.on_true.id, Port.NODE_TRIGGER)
        )
        edges.append(
            make_edge(condition.id, Port.CONDITION_FALSE, condition.on_false.id, Port.NODE_TRIGGER)
        )

    for action in document.actions:
        nodes.append(
            ActionNode(
                id=action.id,
                position=action.position,
                data=ActionData(label=action.label, handle=action.handle),
            )
        )
        if action.target is not None:
            edges.append(
                make_edge(action.id, Port.ACTION_RESULT, action.target.id, Port.NODE_TRIGGER)
            )

    node_ids = {n.id for n in nodes}
    if len(node_ids) != len(nodes):
        return MalformedDocument("document rows share an id")

    kept: list[Edge] = []
    seen: set[str] = set()
    for edge in edges:
        if edge.source not in node_ids or edge.target not in node_ids:
            log.warning(
                "edge_skipped",
                edge=edge.id,
                reason="endpoint missing from document",
            )
            continue
        if edge.id in seen:
            continue
        seen.add(edge.id)
        kept.append(edge)

    if document.initial.id not in node_ids:
        log.warning("entry_target_missing", target=document.initial.id)

    graph = DialogueGraph(nodes, kept)
    log.debug(
        "document_loaded",
        schema_version=version,
        nodes=len(nodes),
        edges=len(kept),
    )
    return Loaded(
        graph=graph,
        npc=document.npc,
        interaction=document.interaction,
        schema_version=version,
    )
