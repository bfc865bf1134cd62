"""Pydantic models for the editable dialogue graph.

Nodes are a closed union discriminated on ``type``; each kind carries its
own payload model. The JSON shape matches what the graph editor stores
(``sourceHandle``/``targetHandle`` in camelCase), so a graph can be dumped
with ``by_alias=True`` and handed straight back to the editor.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from dialogforge.codec import Scalar

ENTRY_NODE_ID = "initial"
DEFAULT_CLOSE_DELAY = 1000


class NodeKind(StrEnum):
    """Node kinds. ``ENTRY`` keeps the editor's historical ``initial`` tag."""

    ENTRY = "initial"
    ACTION = "action"
    RESULT = "result"
    CONDITIONAL = "conditional"


class Side(StrEnum):
    """Which side of a node a port is drawn on."""

    LEFT = "left"
    RIGHT = "right"


class Operator(StrEnum):
    """Comparison applied by a conditional node."""

    EQUAL = "equal"
    NOT_EQUAL = "not_equal"
    GREATER_THAN = "greater_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN = "less_than"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"


class ExecutorType(StrEnum):
    """Side effects a result node can trigger in the game runtime."""

    COMMAND = "command"
    DIALOG_STORE = "dialog_store"
    SET_COINS = "set_coins"
    SET_GEMS = "set_gems"
    OPEN_MARKET = "open_market"


class Position(BaseModel):
    """Canvas coordinates of a node."""

    x: float = 0.0
    y: float = 0.0


# -----------------------------------------------------------------------------
# Executors
# -----------------------------------------------------------------------------


class StoreEntry(BaseModel):
    """Keyed value written to the runtime's dialog store."""

    key: str = ""
    value: Scalar = ""


class CommandExecutor(BaseModel):
    type: Literal["command"] = "command"
    value: str = Field(default="", description="Command line run by the game server")


class DialogStoreExecutor(BaseModel):
    type: Literal["dialog_store"] = "dialog_store"
    value: StoreEntry = Field(default_factory=StoreEntry)


class SetCoinsExecutor(BaseModel):
    type: Literal["set_coins"] = "set_coins"
    value: Scalar = Field(default="", description="Coin amount")


class SetGemsExecutor(BaseModel):
    type: Literal["set_gems"] = "set_gems"
    value: Scalar = Field(default="", description="Gem amount")


class OpenMarketExecutor(BaseModel):
    type: Literal["open_market"] = "open_market"
    value: str = Field(default="", description="Shop id")


AnyExecutor: TypeAlias = (
    CommandExecutor | DialogStoreExecutor | SetCoinsExecutor | SetGemsExecutor | OpenMarketExecutor
)
Executor: TypeAlias = Annotated[AnyExecutor, Field(discriminator="type")]


# -----------------------------------------------------------------------------
# Port placements
# -----------------------------------------------------------------------------


class ActionHandles(BaseModel):
    owner: Side = Side.LEFT
    result: Side = Side.RIGHT


class ResultHandles(BaseModel):
    trigger: Side = Side.LEFT
    actions: Side = Side.RIGHT


class ConditionalHandles(BaseModel):
    trigger: Side = Side.LEFT
    true: Side = Side.RIGHT
    false: Side = Side.RIGHT


class CloseBehavior(BaseModel):
    """Whether the dialogue closes after this result, and after how long (ms)."""

    enabled: bool = False
    delay: int = Field(default=DEFAULT_CLOSE_DELAY, ge=0)


# -----------------------------------------------------------------------------
# Node payloads
# -----------------------------------------------------------------------------


class EntryData(BaseModel):
    """The entry node carries no data."""


class ActionData(BaseModel):
    """A player-choosable option."""

    label: str = ""
    handle: ActionHandles = Field(default_factory=ActionHandles)


class ResultData(BaseModel):
    """An NPC reply, its side effects and the options offered next."""

    message: str = ""
    preferred: str | None = Field(
        default=None, description="Action shown first (the default choice)"
    )
    order: list[str] = Field(
        default_factory=list, description="Explicit order of the non-preferred actions"
    )
    close: CloseBehavior = Field(default_factory=CloseBehavior)
    executors: list[Executor] = Field(default_factory=list)
    handle: ResultHandles = Field(default_factory=ResultHandles)


class ConditionalData(BaseModel):
    """A boolean branch: ``value <condition> objective``."""

    value: str = Field(default="", description="Left-hand value reference")
    condition: Operator = Operator.EQUAL
    objective: Scalar = Field(default="", description="Right-hand typed value")
    handle: ConditionalHandles = Field(default_factory=ConditionalHandles)


# -----------------------------------------------------------------------------
# Nodes and edges
# -----------------------------------------------------------------------------


class _NodeBase(BaseModel):
    id: str = Field(min_length=1)
    position: Position = Field(default_factory=Position)


class EntryNode(_NodeBase):
    id: str = ENTRY_NODE_ID
    type: Literal["initial"] = "initial"
    data: EntryData = Field(default_factory=EntryData)
    draggable: bool = False
    deletable: bool = False


class ActionNode(_NodeBase):
    type: Literal["action"] = "action"
    data: ActionData = Field(default_factory=ActionData)


class ResultNode(_NodeBase):
    type: Literal["result"] = "result"
    data: ResultData = Field(default_factory=ResultData)


class ConditionalNode(_NodeBase):
    type: Literal["conditional"] = "conditional"
    data: ConditionalData = Field(default_factory=ConditionalData)


AnyNode: TypeAlias = EntryNode | ActionNode | ResultNode | ConditionalNode
Node: TypeAlias = Annotated[AnyNode, Field(discriminator="type")]


class Edge(BaseModel):
    """A directed connection between two named ports."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    source: str
    source_handle: str = Field(alias="sourceHandle")
    target: str
    target_handle: str = Field(alias="targetHandle")


def edge_id(source: str, source_handle: str, target: str, target_handle: str) -> str:
    """Deterministic edge id, identical to the editor's own scheme."""
    return f"xy-edge__{source}{source_handle}-{target}{target_handle}"


def make_edge(source: str, source_handle: str, target: str, target_handle: str) -> Edge:
    """Build an edge with its derived id."""
    return Edge(
        id=edge_id(source, source_handle, target, target_handle),
        source=source,
        source_handle=source_handle,
        target=target,
        target_handle=target_handle,
    )


_NODE_ADAPTER: TypeAdapter[Node] = TypeAdapter(Node)
_EXECUTOR_ADAPTER: TypeAdapter[Executor] = TypeAdapter(Executor)


def parse_node(data: Any) -> AnyNode:
    """Validate a node dict (editor JSON) into its kind-specific model."""
    return _NODE_ADAPTER.validate_python(data)


def parse_executor(data: Any) -> AnyExecutor:
    """Validate an executor dict ``{type, value}``."""
    return _EXECUTOR_ADAPTER.validate_python(data)
