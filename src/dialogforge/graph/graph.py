"""Editable dialogue graph.

DialogueGraph is the live node/edge set an editing surface works on. It
enforces the rules the editor applies at edit time, much like foreign keys
and check constraints in a database:

- Node creation is explicit (add_node fails if the id exists)
- The entry node always exists, exactly once, and cannot be moved or deleted
- Deleting a node cascades to every edge touching it
- Edges validate that both endpoints exist and that the ports fit together

The compiler does not re-validate any of this; it trusts a graph built here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from dialogforge.graph.errors import (
    EdgeEndpointError,
    GraphIntegrityError,
    InvalidConnectionError,
    NodeExistsError,
    NodeNotFoundError,
    ProtectedNodeError,
)
from dialogforge.graph.factory import create_executor, create_node
from dialogforge.graph.model import (
    Edge,
    EntryNode,
    NodeKind,
    Position,
    ResultNode,
    make_edge,
    parse_node,
)
from dialogforge.graph.ports import SINGLE_TARGET_PORTS, Port, connection_problem

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from dialogforge.codec import Scalar
    from dialogforge.graph.drafts import DraftStore
    from dialogforge.graph.model import AnyExecutor, AnyNode, ExecutorType


class DialogueGraph:
    """Live dialogue graph: nodes keyed by id (insertion-ordered) plus an edge list.

    Attributes:
        on_change: Optional callback run after every mutation (autosave hook).
    """

    def __init__(
        self,
        nodes: Iterable[AnyNode] = (),
        edges: Iterable[Edge] = (),
        *,
        on_change: Callable[[DialogueGraph], None] | None = None,
    ) -> None:
        """Initialize graph from nodes and edges.

        A missing entry node is synthesized; edges are taken as given (use
        validate_invariants() to audit a graph from an untrusted source).

        Raises:
            NodeExistsError: If two nodes share an id.
            GraphIntegrityError: If more than one entry node is given.
        """
        nodes = list(nodes)
        self._nodes: dict[str, AnyNode] = {}
        entries = [n for n in nodes if isinstance(n, EntryNode)]
        if len(entries) > 1:
            raise GraphIntegrityError(
                f"Graph has {len(entries)} entry nodes; exactly one is allowed"
            )
        self._entry_id = entries[0].id if entries else EntryNode().id
        if not entries:
            self._nodes[self._entry_id] = create_node(NodeKind.ENTRY)

        for node in nodes:
            if node.id in self._nodes:
                raise NodeExistsError(node.id)
            self._nodes[node.id] = node

        self._edges: list[Edge] = list(edges)
        self.on_change = on_change

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def empty(cls) -> DialogueGraph:
        """Create a graph holding only the entry node."""
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DialogueGraph:
        """Create graph from the editor JSON shape ``{nodes: [...], edges: [...]}``.

        Raises:
            pydantic.ValidationError: If a node or edge does not fit its model.
        """
        nodes = [parse_node(raw) for raw in data.get("nodes", [])]
        edges = [Edge.model_validate(raw) for raw in data.get("edges", [])]
        return cls(nodes, edges)

    @classmethod
    def from_store(cls, store: DraftStore) -> DialogueGraph:
        """Load the saved draft from *store*, or start empty."""
        data = store.load()
        return cls.empty() if data is None else cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the editor JSON shape (fresh dicts, safe to mutate)."""
        return {
            "nodes": [n.model_dump(mode="json", by_alias=True) for n in self._nodes.values()],
            "edges": [e.model_dump(mode="json", by_alias=True) for e in self._edges],
        }

    # -------------------------------------------------------------------------
    # Node Operations
    # -------------------------------------------------------------------------

    @property
    def nodes(self) -> list[AnyNode]:
        return list(self._nodes.values())

    @property
    def edges(self) -> list[Edge]:
        return list(self._edges)

    @property
    def entry(self) -> EntryNode:
        node = self._nodes[self._entry_id]
        assert isinstance(node, EntryNode)
        return node

    def get_node(self, node_id: str) -> AnyNode | None:
        return self._nodes.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def nodes_of_kind(self, kind: NodeKind | str) -> list[AnyNode]:
        kind = NodeKind(kind)
        return [n for n in self._nodes.values() if n.type == kind]

    def _require(self, node_id: str, context: str) -> AnyNode:
        node = self._nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(node_id, available=list(self._nodes), context=context)
        return node

    def add_node(self, node: AnyNode) -> None:
        """Insert a node built elsewhere (e.g. by the factory).

        Raises:
            NodeExistsError: If the id is taken.
            GraphIntegrityError: If *node* is a second entry node.
        """
        if node.id in self._nodes:
            raise NodeExistsError(node.id)
        if isinstance(node, EntryNode):
            raise GraphIntegrityError("Graph already has an entry node")
        self._nodes[node.id] = node
        self._changed()

    def create_node(
        self,
        kind: NodeKind | str,
        position: Position | tuple[float, float] | None = None,
        node_id: str | None = None,
    ) -> AnyNode:
        """Create a node with default data and insert it. Returns the node."""
        if NodeKind(kind) is NodeKind.ENTRY:
            raise GraphIntegrityError("Graph already has an entry node")
        node = create_node(kind, position, node_id)
        self.add_node(node)
        return node

    def update_node_data(self, node_id: str, **fields: Any) -> AnyNode:
        """Replace fields of a node's data payload, validating the result.

        Raises:
            NodeNotFoundError: If the node doesn't exist.
            ProtectedNodeError: If the node is the entry node.
            ValueError: If a field is unknown or a value doesn't validate.
        """
        node = self._require(node_id, "update_node_data")
        if isinstance(node, EntryNode):
            raise ProtectedNodeError(node_id, "change")

        payload_cls = type(node.data)
        unknown = set(fields) - set(payload_cls.model_fields)
        if unknown:
            raise ValueError(
                f"Unknown {node.type} field(s): {', '.join(sorted(unknown))}. "
                f"Known: {', '.join(payload_cls.model_fields)}"
            )

        data = payload_cls.model_validate({**node.data.model_dump(), **fields})
        updated = node.model_copy(update={"data": data})
        self._nodes[node_id] = updated
        self._changed()
        return updated

    def move_node(self, node_id: str, position: Position | tuple[float, float]) -> None:
        """Reposition a node. The entry node is pinned to the origin."""
        node = self._require(node_id, "move_node")
        if isinstance(node, EntryNode):
            raise ProtectedNodeError(node_id, "move")
        if isinstance(position, tuple):
            position = Position(x=position[0], y=position[1])
        self._nodes[node_id] = node.model_copy(update={"position": position})
        self._changed()

    def delete_node(self, node_id: str) -> list[Edge]:
        """Delete a node and every edge incident to it.

        Returns:
            The removed edges, in their original order.

        Raises:
            NodeNotFoundError: If the node doesn't exist.
            ProtectedNodeError: If the node is the entry node.
        """
        node = self._require(node_id, "delete_node")
        if isinstance(node, EntryNode):
            raise ProtectedNodeError(node_id, "delete")

        removed = [e for e in self._edges if node_id in (e.source, e.target)]
        self._edges = [e for e in self._edges if node_id not in (e.source, e.target)]
        del self._nodes[node_id]
        self._changed()
        return removed

    def reset(self) -> None:
        """Drop every node but the entry node, and every edge."""
        entry = self.entry
        self._nodes = {entry.id: entry}
        self._edges = []
        self._changed()

    def duplicate_nodes(self, node_ids: Iterable[str], offset: float = 10) -> list[AnyNode]:
        """Copy nodes under fresh ids, shifted by *offset* on both axes.

        Data is deep-copied; edges are not. The entry node is skipped.

        Returns:
            The new nodes, in the order of *node_ids*.
        """
        sources = [self._require(nid, "duplicate_nodes") for nid in node_ids]
        copies: list[AnyNode] = []
        for source in sources:
            if isinstance(source, EntryNode):
                continue
            fresh = create_node(source.type)
            copy = source.model_copy(
                update={
                    "id": fresh.id,
                    "position": Position(
                        x=source.position.x + offset, y=source.position.y + offset
                    ),
                },
                deep=True,
            )
            self._nodes[copy.id] = copy
            copies.append(copy)
        if copies:
            self._changed()
        return copies

    # -------------------------------------------------------------------------
    # Result helpers
    # -------------------------------------------------------------------------

    def _require_result(self, result_id: str, context: str) -> ResultNode:
        node = self._require(result_id, context)
        if not isinstance(node, ResultNode):
            raise ValueError(f"Node '{result_id}' is a {node.type} node, not a result")
        return node

    def connected_actions(self, result_id: str) -> list[str]:
        """Action ids reachable from a result's actions port, in edge order."""
        seen: dict[str, None] = {}
        for edge in self.edges_from(result_id, Port.RESULT_ACTIONS):
            seen.setdefault(edge.target)
        return list(seen)

    def sync_preferred(self, result_id: str) -> str | None:
        """Point ``preferred`` at a connected action.

        Keeps the current choice when it is connected; otherwise picks the
        first connected action. Nothing changes when no action is connected.

        Returns:
            The preferred action id after syncing.
        """
        node = self._require_result(result_id, "sync_preferred")
        connected = self.connected_actions(result_id)
        if not connected or node.data.preferred in connected:
            return node.data.preferred
        self.update_node_data(result_id, preferred=connected[0])
        return connected[0]

    def add_executor(
        self,
        result_id: str,
        executor_type: ExecutorType | str,
        value: Scalar | dict[str, Scalar] = None,
    ) -> AnyExecutor:
        """Append an executor to a result; *value* None keeps the type's default."""
        node = self._require_result(result_id, "add_executor")
        executor = create_executor(executor_type)
        if value is not None:
            executor = type(executor).model_validate({"type": executor.type, "value": value})
        executors = [*node.data.executors, executor]
        self.update_node_data(result_id, executors=[e.model_dump() for e in executors])
        return executor

    def remove_executor(self, result_id: str, index: int) -> None:
        """Remove the executor at *index* from a result.

        Raises:
            IndexError: If there is no executor at *index*.
        """
        node = self._require_result(result_id, "remove_executor")
        executors = list(node.data.executors)
        del executors[index]
        self.update_node_data(result_id, executors=[e.model_dump() for e in executors])

    # -------------------------------------------------------------------------
    # Edge Operations
    # -------------------------------------------------------------------------

    def connect(
        self,
        source: str,
        source_handle: str,
        target: str,
        target_handle: str,
    ) -> Edge:
        """Connect two ports. Connecting an already-connected pair is a no-op.

        Returns:
            The (new or existing) edge.

        Raises:
            EdgeEndpointError: If either endpoint doesn't exist.
            InvalidConnectionError: If the ports don't fit, the edge would
                loop on one node, or a single-target port is already in use.
        """
        source_node = self._nodes.get(source)
        target_node = self._nodes.get(target)
        if source_node is None or target_node is None:
            if source_node is None and target_node is None:
                missing = "both"
            elif source_node is None:
                missing = "source"
            else:
                missing = "target"
            raise EdgeEndpointError(
                source=source, target=target, missing=missing, available=list(self._nodes)
            )

        def _reject(reason: str) -> InvalidConnectionError:
            return InvalidConnectionError(source, source_handle, target, target_handle, reason)

        if source == target:
            raise _reject("a node cannot connect to itself")
        problem = connection_problem(
            NodeKind(source_node.type), source_handle, NodeKind(target_node.type), target_handle
        )
        if problem:
            raise _reject(problem)

        edge = make_edge(source, source_handle, target, target_handle)
        for existing in self._edges:
            if existing.id == edge.id:
                return existing

        if source_handle in SINGLE_TARGET_PORTS and self.edges_from(source, source_handle):
            raise _reject(f"'{source_handle}' already has a connection")

        self._edges.append(edge)
        self._changed()
        return edge

    def disconnect(self, edge_id: str) -> bool:
        """Remove an edge by id. Returns False if no such edge exists."""
        for i, edge in enumerate(self._edges):
            if edge.id == edge_id:
                self._edges.pop(i)
                self._changed()
                return True
        return False

    def edges_from(self, node_id: str, handle: str | None = None) -> list[Edge]:
        """Outbound edges of a node, optionally restricted to one port."""
        return [
            e
            for e in self._edges
            if e.source == node_id and (handle is None or e.source_handle == handle)
        ]

    def edges_to(self, node_id: str, handle: str | None = None) -> list[Edge]:
        """Inbound edges of a node, optionally restricted to one port."""
        return [
            e
            for e in self._edges
            if e.target == node_id and (handle is None or e.target_handle == handle)
        ]

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate_invariants(self) -> list[str]:
        """Check graph invariants and return any violations.

        Invariants checked:
        1. All edge endpoints exist (referential integrity)
        2. Every edge joins ports that may be connected

        Returns:
            List of violation messages (empty if valid).
        """
        violations: list[str] = []
        for i, edge in enumerate(self._edges):
            source_node = self._nodes.get(edge.source)
            target_node = self._nodes.get(edge.target)
            if source_node is None:
                violations.append(f"Edge {i} ({edge.id}): source '{edge.source}' does not exist")
            if target_node is None:
                violations.append(f"Edge {i} ({edge.id}): target '{edge.target}' does not exist")
            if source_node is None or target_node is None:
                continue
            problem = connection_problem(
                NodeKind(source_node.type),
                edge.source_handle,
                NodeKind(target_node.type),
                edge.target_handle,
            )
            if problem:
                violations.append(f"Edge {i} ({edge.id}): {problem}")
        return violations

    # -------------------------------------------------------------------------
    # Utility
    # -------------------------------------------------------------------------

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change(self)

    def __repr__(self) -> str:
        return f"DialogueGraph(nodes={len(self._nodes)}, edges={len(self._edges)})"
