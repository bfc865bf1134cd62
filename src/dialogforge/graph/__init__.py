"""Graph package - the editable dialogue graph.

Nodes and edges are pydantic models (model), port names and connection
rules live in ports, and DialogueGraph applies edits the way the editor
does, raising GraphIntegrityError subclasses on bad edits.
"""

from dialogforge.graph.drafts import DraftStore, JsonFileDraftStore, MemoryDraftStore, autosave
from dialogforge.graph.errors import (
    EdgeEndpointError,
    GraphIntegrityError,
    InvalidConnectionError,
    NodeExistsError,
    NodeNotFoundError,
    ProtectedNodeError,
)
from dialogforge.graph.factory import create_executor, create_node, new_node_id
from dialogforge.graph.graph import DialogueGraph
from dialogforge.graph.model import (
    ENTRY_NODE_ID,
    ActionNode,
    ConditionalNode,
    Edge,
    EntryNode,
    ExecutorType,
    NodeKind,
    Operator,
    Position,
    ResultNode,
    Side,
    edge_id,
    make_edge,
)
from dialogforge.graph.ports import Port, connection_problem
from dialogforge.graph.validation_types import ValidationCheck, ValidationReport

__all__ = [
    "ENTRY_NODE_ID",
    "ActionNode",
    "ConditionalNode",
    "DialogueGraph",
    "DraftStore",
    "Edge",
    "EdgeEndpointError",
    "EntryNode",
    "ExecutorType",
    "GraphIntegrityError",
    "InvalidConnectionError",
    "JsonFileDraftStore",
    "MemoryDraftStore",
    "NodeExistsError",
    "NodeKind",
    "NodeNotFoundError",
    "Operator",
    "Port",
    "Position",
    "ProtectedNodeError",
    "ResultNode",
    "Side",
    "ValidationCheck",
    "ValidationReport",
    "autosave",
    "connection_problem",
    "create_executor",
    "create_node",
    "edge_id",
    "make_edge",
    "new_node_id",
]
