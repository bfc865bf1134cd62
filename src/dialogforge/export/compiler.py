"""Compile an editor graph into an exportable dialogue document.

The compiler trusts its input: connection rules are enforced when edges are
created (see DialogueGraph.connect), so here an edge is only ever looked up,
never validated. When a single-target port carries more than one edge, the
first edge in declaration order wins.

Problems that leave a usable document (an action leading nowhere, a
conditional with a missing branch) become warnings on the result. Only a
graph with no usable entry produces no document at all.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from dialogforge.export.document import (
    ActionRow,
    ConditionRow,
    Document,
    Interaction,
    Ref,
    ResultRow,
)
from dialogforge.graph.model import ActionNode, ConditionalNode, EntryNode, ResultNode
from dialogforge.graph.ports import Port
from dialogforge.graph.validation_types import ValidationCheck

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from dialogforge.graph.model import AnyNode, Edge


@dataclass
class Compiled:
    """A document plus the warnings raised while building it."""

    document: Document
    warnings: list[ValidationCheck] = field(default_factory=list)


@dataclass
class EmptyGraph:
    """The graph has no usable entry, so there is nothing to export."""

    reason: str


CompileResult = Compiled | EmptyGraph


class _EdgeIndex:
    """First-match lookups over an edge list, keyed by (source, port)."""

    def __init__(self, edges: Iterable[Edge]) -> None:
        self._by_port: dict[tuple[str, str], list[str]] = {}
        for edge in edges:
            self._by_port.setdefault((edge.source, edge.source_handle), []).append(edge.target)

    def first(self, source: str, port: Port) -> str | None:
        targets = self._by_port.get((source, port))
        return targets[0] if targets else None

    def all(self, source: str, port: Port) -> list[str]:
        return list(self._by_port.get((source, port), []))


def order_actions(
    connected: Sequence[str], preferred: str | None, order: Sequence[str]
) -> list[str]:
    """Emitted order of a result's actions.

    The preferred action comes first when it is connected. The rest follow
    in the position they hold in *order*; ids missing from *order* keep their
    connection order after all listed ones.

    Example:
        >>> order_actions(["C", "A", "B"], "A", ["B"])
        ['A', 'B', 'C']
    """
    rank: dict[str, float] = {}
    for index, action_id in enumerate(order):
        rank.setdefault(action_id, index)

    rest = sorted(
        (a for a in connected if a != preferred), key=lambda a: rank.get(a, math.inf)
    )
    head = [preferred] if preferred is not None and preferred in connected else []
    return head + rest


def _exportable_conditionals(
    conditionals: list[ConditionalNode],
    nodes: dict[str, AnyNode],
    index: _EdgeIndex,
) -> tuple[set[str], dict[str, str]]:
    """Conditionals whose both branches reach a result or another exportable conditional.

    Starts from every conditional and removes broken ones until nothing
    changes, so a conditional whose branch leads into a dropped conditional
    is dropped as well.

    Returns:
        The exportable ids, and for each dropped id the reason it was dropped.
    """
    exportable = {c.id for c in conditionals}
    dropped: dict[str, str] = {}
    changed = True
    while changed:
        changed = False
        for conditional in conditionals:
            if conditional.id not in exportable:
                continue
            for port in (Port.CONDITION_TRUE, Port.CONDITION_FALSE):
                target_id = index.first(conditional.id, port)
                target = nodes.get(target_id) if target_id is not None else None
                if isinstance(target, ResultNode):
                    continue
                if isinstance(target, ConditionalNode) and target.id in exportable:
                    continue
                if target_id is None:
                    reason = f"'{port}' is not connected"
                elif isinstance(target, ConditionalNode):
                    reason = f"'{port}' leads to dropped condition '{target_id}'"
                else:
                    reason = f"'{port}' does not lead to a result or condition"
                exportable.discard(conditional.id)
                dropped[conditional.id] = reason
                changed = True
                break
    return exportable, dropped


def compile_graph(
    nodes: Iterable[AnyNode],
    edges: Iterable[Edge],
    *,
    npc: str = "",
    interaction: Interaction | None = None,
) -> CompileResult:
    """Compile graph nodes and edges into a :class:`Document`.

    Args:
        nodes: Graph nodes; their order is the row order of the document.
        edges: Graph edges, in declaration order.
        npc: NPC identifier written to the document.
        interaction: NPC placement, omitted from the document when None.

    Returns:
        Compiled on success, EmptyGraph when the entry leads nowhere usable.
    """
    node_list = list(nodes)
    by_id: dict[str, AnyNode] = {n.id: n for n in node_list}
    index = _EdgeIndex(edges)
    warnings: list[ValidationCheck] = []

    actions = [n for n in node_list if isinstance(n, ActionNode)]
    results = [n for n in node_list if isinstance(n, ResultNode)]
    conditionals = [n for n in node_list if isinstance(n, ConditionalNode)]

    exportable, dropped = _exportable_conditionals(conditionals, by_id, index)

    def ref_to(target_id: str | None) -> Ref | None:
        target = by_id.get(target_id) if target_id is not None else None
        if isinstance(target, ResultNode):
            return Ref(id=target.id, type="result")
        if isinstance(target, ConditionalNode) and target.id in exportable:
            return Ref(id=target.id, type="condition")
        return None

    # Entry
    entry = next((n for n in node_list if isinstance(n, EntryNode)), None)
    if entry is None:
        return EmptyGraph("graph has no entry node")
    entry_target = index.first(entry.id, Port.INITIAL_TARGET)
    if entry_target is None:
        return EmptyGraph("entry node is not connected")
    initial = ref_to(entry_target)
    if initial is None:
        return EmptyGraph(
            f"entry node leads to '{entry_target}', which is not an exportable result or condition"
        )

    # Actions
    action_rows: list[ActionRow] = []
    for action in actions:
        target_id = index.first(action.id, Port.ACTION_RESULT)
        target = ref_to(target_id)
        if target is None:
            if target_id is None:
                detail = "has no result"
            else:
                detail = f"leads to unusable node '{target_id}'"
            warnings.append(
                ValidationCheck.warn("dangling_action", f"Action '{action.id}' {detail}", action.id)
            )
        action_rows.append(
            ActionRow(
                id=action.id,
                label=action.data.label,
                target=target,
                position=action.position,
                handle=action.data.handle,
            )
        )

    # Results
    result_rows: list[ResultRow] = []
    for result in results:
        connected: list[str] = []
        for target_id in index.all(result.id, Port.RESULT_ACTIONS):
            if target_id in connected:
                continue
            if not isinstance(by_id.get(target_id), ActionNode):
                warnings.append(
                    ValidationCheck.warn(
                        "non_action_target",
                        f"Result '{result.id}' offers '{target_id}', which is not an action",
                        result.id,
                    )
                )
                continue
            connected.append(target_id)

        payload = result.data
        result_rows.append(
            ResultRow(
                id=result.id,
                message=payload.message,
                preferred=payload.preferred,
                actions=order_actions(connected, payload.preferred, payload.order),
                close=payload.close,
                executors=payload.executors,
                position=result.position,
                handle=payload.handle,
            )
        )

    # Conditions
    condition_rows: list[ConditionRow] = []
    for conditional in conditionals:
        if conditional.id in dropped:
            warnings.append(
                ValidationCheck.warn(
                    "dropped_condition",
                    f"Condition '{conditional.id}' was left out: {dropped[conditional.id]}",
                    conditional.id,
                )
            )
            continue
        on_true = ref_to(index.first(conditional.id, Port.CONDITION_TRUE))
        on_false = ref_to(index.first(conditional.id, Port.CONDITION_FALSE))
        assert on_true is not None and on_false is not None
        branch = conditional.data
        condition_rows.append(
            ConditionRow(
                id=conditional.id,
                value=branch.value,
                condition=branch.condition,
                objective=branch.objective,
                on_true=on_true,
                on_false=on_false,
                position=conditional.position,
                handle=branch.handle,
            )
        )

    document = Document(
        npc=npc,
        interaction=interaction,
        actions=action_rows,
        results=result_rows,
        conditions=condition_rows,
        initial=initial,
    )
    return Compiled(document=document, warnings=warnings)
