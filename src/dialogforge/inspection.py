"""Dialogue graph inspection.

Structural review of a graph before export: the problems the compiler
silently works around (dangling actions, conditionals it has to drop) and
authoring slips it cannot see (unreachable nodes, a preferred action that
is not offered). Pure graph analysis, nothing is written.
"""

from __future__ import annotations

from collections import Counter, deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from dialogforge.graph.model import ActionNode, ConditionalNode, ResultNode
from dialogforge.graph.ports import Port
from dialogforge.graph.validation_types import ValidationCheck, ValidationReport
from dialogforge.observability.logging import get_logger

if TYPE_CHECKING:
    from dialogforge.graph.graph import DialogueGraph

log = get_logger(__name__)


@dataclass
class GraphSummary:
    """High-level graph statistics."""

    total_nodes: int
    total_edges: int
    node_counts: dict[str, int] = field(default_factory=dict)


@dataclass
class InspectionReport:
    """Complete graph inspection report."""

    summary: GraphSummary
    validation: ValidationReport = field(default_factory=ValidationReport)


def inspect_graph(graph: DialogueGraph) -> InspectionReport:
    """Run all inspection checks on *graph*."""
    counts = Counter(str(node.type) for node in graph.nodes)
    summary = GraphSummary(
        total_nodes=len(graph.nodes),
        total_edges=len(graph.edges),
        node_counts=dict(counts),
    )

    report = ValidationReport()
    _check_integrity(graph, report)
    _check_entry(graph, report)
    _check_actions(graph, report)
    _check_conditionals(graph, report)
    _check_results(graph, report)
    _check_reachability(graph, report)

    log.info(
        "inspection_complete",
        nodes=summary.total_nodes,
        edges=summary.total_edges,
        result=report.summary,
    )
    return InspectionReport(summary=summary, validation=report)


def _check_integrity(graph: DialogueGraph, report: ValidationReport) -> None:
    violations = graph.validate_invariants()
    for violation in violations:
        report.add(ValidationCheck.fail("graph_integrity", violation))
    if not violations:
        report.passed("graph_integrity", "All edges join existing nodes on matching ports")


def _check_entry(graph: DialogueGraph, report: ValidationReport) -> None:
    if graph.edges_from(graph.entry.id, Port.INITIAL_TARGET):
        report.passed("entry_connected", "Entry node leads into the dialogue")
    else:
        report.add(
            ValidationCheck.fail(
                "entry_connected", "Entry node is not connected; nothing can be exported"
            )
        )


def _check_actions(graph: DialogueGraph, report: ValidationReport) -> None:
    dangling = [
        node
        for node in graph.nodes_of_kind("action")
        if isinstance(node, ActionNode) and not graph.edges_from(node.id, Port.ACTION_RESULT)
    ]
    for node in dangling:
        label = node.data.label or node.id
        report.add(
            ValidationCheck.warn("dangling_action", f"Action '{label}' leads nowhere", node.id)
        )
    if not dangling:
        report.passed("dangling_action", "Every action leads to a result or condition")


def _check_conditionals(graph: DialogueGraph, report: ValidationReport) -> None:
    unwired = 0
    for node in graph.nodes_of_kind("conditional"):
        if not isinstance(node, ConditionalNode):
            continue
        missing = [
            port
            for port in (Port.CONDITION_TRUE, Port.CONDITION_FALSE)
            if not graph.edges_from(node.id, port)
        ]
        if missing:
            unwired += 1
            report.add(
                ValidationCheck.warn(
                    "unwired_conditional",
                    f"Condition on '{node.data.value or node.id}' has no "
                    f"{' or '.join(str(p) for p in missing)} branch and will not be exported",
                    node.id,
                )
            )
    if not unwired:
        report.passed("unwired_conditional", "Every condition has both branches")


def _check_results(graph: DialogueGraph, report: ValidationReport) -> None:
    problems = 0
    for node in graph.nodes_of_kind("result"):
        if not isinstance(node, ResultNode):
            continue
        connected = graph.connected_actions(node.id)
        preferred = node.data.preferred
        if preferred is not None and preferred not in connected:
            problems += 1
            report.add(
                ValidationCheck.warn(
                    "preferred_not_connected",
                    f"Result '{node.id}' prefers '{preferred}', which it does not offer",
                    node.id,
                )
            )
        if node.data.close.enabled and connected:
            problems += 1
            report.add(
                ValidationCheck.warn(
                    "close_with_actions",
                    f"Result '{node.id}' closes the dialogue but still offers "
                    f"{len(connected)} action(s)",
                    node.id,
                )
            )
    if not problems:
        report.passed("results", "Result choices and close settings are consistent")


def _check_reachability(graph: DialogueGraph, report: ValidationReport) -> None:
    reached = {graph.entry.id}
    queue = deque([graph.entry.id])
    while queue:
        current = queue.popleft()
        for edge in graph.edges_from(current):
            if edge.target not in reached:
                reached.add(edge.target)
                queue.append(edge.target)

    unreachable = [node for node in graph.nodes if node.id not in reached]
    for node in unreachable:
        report.add(
            ValidationCheck.warn(
                "unreachable_node",
                f"{node.type} node '{node.id}' cannot be reached from the entry",
                node.id,
            )
        )
    if not unreachable:
        report.passed("unreachable_node", "Every node is reachable from the entry")
