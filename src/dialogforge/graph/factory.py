"""Node and executor factories.

Produces new nodes with the editor's default data. Nothing here touches a
graph: inserting the node is the caller's job.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from dialogforge.graph.model import (
    ENTRY_NODE_ID,
    ActionNode,
    CommandExecutor,
    ConditionalNode,
    DialogStoreExecutor,
    EntryNode,
    ExecutorType,
    NodeKind,
    OpenMarketExecutor,
    Position,
    ResultNode,
    SetCoinsExecutor,
    SetGemsExecutor,
)

if TYPE_CHECKING:
    from dialogforge.graph.model import AnyExecutor, AnyNode


def new_node_id() -> str:
    """Allocate a fresh, globally unique node id."""
    return str(uuid.uuid4())


def create_node(
    kind: NodeKind | str,
    position: Position | tuple[float, float] | None = None,
    node_id: str | None = None,
) -> AnyNode:
    """Create a node of the requested kind with default data.

    Args:
        kind: Node kind (``action``, ``result``, ``conditional`` or the entry
            kind ``initial``).
        position: Canvas position; a plain ``(x, y)`` tuple is accepted.
        node_id: Caller-supplied id. A UUID4 is generated when omitted.

    Returns:
        The new node. The entry kind always yields the fixed entry node
        (id ``initial`` at the origin) and ignores *position* and *node_id*.

    Raises:
        ValueError: If *kind* is not a known node kind.
    """
    kind = NodeKind(kind)
    if kind is NodeKind.ENTRY:
        return EntryNode(id=ENTRY_NODE_ID)

    if position is None:
        position = Position()
    elif isinstance(position, tuple):
        position = Position(x=position[0], y=position[1])

    node_id = node_id or new_node_id()

    if kind is NodeKind.ACTION:
        return ActionNode(id=node_id, position=position)
    if kind is NodeKind.RESULT:
        return ResultNode(id=node_id, position=position)
    return ConditionalNode(id=node_id, position=position)


def create_executor(executor_type: ExecutorType | str) -> AnyExecutor:
    """Create an executor of *executor_type* holding its default value.

    Raises:
        ValueError: If *executor_type* is not a known executor type.
    """
    executor_type = ExecutorType(executor_type)
    factories = {
        ExecutorType.COMMAND: CommandExecutor,
        ExecutorType.DIALOG_STORE: DialogStoreExecutor,
        ExecutorType.SET_COINS: SetCoinsExecutor,
        ExecutorType.SET_GEMS: SetGemsExecutor,
        ExecutorType.OPEN_MARKET: OpenMarketExecutor,
    }
    executor: AnyExecutor = factories[executor_type]()
    return executor
