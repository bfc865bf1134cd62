"""Port names and the connection rules between them.

Port names encode a role, not geometry. Each kind owns a fixed set of ports;
a connection is legal when the source port is one its owner exposes as an
output, the target port is one its owner exposes as an input, and the pair
appears in :data:`ALLOWED_TARGETS`.
"""

from __future__ import annotations

from enum import StrEnum

from dialogforge.graph.model import NodeKind


class Port(StrEnum):
    INITIAL_TARGET = "initial_target"
    ACTION_OWNER = "action_owner"
    ACTION_RESULT = "action_result"
    NODE_TRIGGER = "node_trigger"
    RESULT_ACTIONS = "result_actions"
    CONDITION_TRUE = "condition_true"
    CONDITION_FALSE = "condition_false"


SOURCE_PORTS: dict[NodeKind, frozenset[Port]] = {
    NodeKind.ENTRY: frozenset({Port.INITIAL_TARGET}),
    NodeKind.ACTION: frozenset({Port.ACTION_RESULT}),
    NodeKind.RESULT: frozenset({Port.RESULT_ACTIONS}),
    NodeKind.CONDITIONAL: frozenset({Port.CONDITION_TRUE, Port.CONDITION_FALSE}),
}

TARGET_PORTS: dict[NodeKind, frozenset[Port]] = {
    NodeKind.ENTRY: frozenset(),
    NodeKind.ACTION: frozenset({Port.ACTION_OWNER}),
    NodeKind.RESULT: frozenset({Port.NODE_TRIGGER}),
    NodeKind.CONDITIONAL: frozenset({Port.NODE_TRIGGER}),
}

# source port -> target ports it may connect to
ALLOWED_TARGETS: dict[Port, frozenset[Port]] = {
    Port.INITIAL_TARGET: frozenset({Port.NODE_TRIGGER}),
    Port.ACTION_RESULT: frozenset({Port.NODE_TRIGGER}),
    Port.RESULT_ACTIONS: frozenset({Port.ACTION_OWNER}),
    Port.CONDITION_TRUE: frozenset({Port.NODE_TRIGGER}),
    Port.CONDITION_FALSE: frozenset({Port.NODE_TRIGGER}),
}

# Source ports that hold at most one edge in a well-formed graph.
SINGLE_TARGET_PORTS = frozenset(
    {Port.INITIAL_TARGET, Port.ACTION_RESULT, Port.CONDITION_TRUE, Port.CONDITION_FALSE}
)


def connection_problem(
    source_kind: NodeKind,
    source_handle: str,
    target_kind: NodeKind,
    target_handle: str,
) -> str | None:
    """Explain why a connection is illegal, or return None if it is allowed."""
    if source_handle not in SOURCE_PORTS[source_kind]:
        return f"{source_kind.value} node has no output port '{source_handle}'"
    if target_handle not in TARGET_PORTS[target_kind]:
        return f"{target_kind.value} node has no input port '{target_handle}'"
    if target_handle not in ALLOWED_TARGETS[Port(source_handle)]:
        return f"'{source_handle}' cannot connect to '{target_handle}'"
    return None
