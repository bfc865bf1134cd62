"""Tests for node and executor factories."""

from __future__ import annotations

import uuid

import pytest

from dialogforge.graph.factory import create_executor, create_node
from dialogforge.graph.model import (
    ActionNode,
    ConditionalNode,
    DialogStoreExecutor,
    EntryNode,
    ExecutorType,
    NodeKind,
    Operator,
    Position,
    ResultNode,
    Side,
)


class TestCreateNode:
    """Test default node construction."""

    def test_generated_id_is_uuid4(self) -> None:
        node = create_node(NodeKind.ACTION)
        assert uuid.UUID(node.id).version == 4

    def test_generated_ids_are_distinct(self) -> None:
        assert create_node("action").id != create_node("action").id

    def test_explicit_id_and_tuple_position(self) -> None:
        node = create_node("action", (10, 20), node_id="greet")
        assert node.id == "greet"
        assert node.position == Position(x=10, y=20)

    def test_action_defaults(self) -> None:
        node = create_node("action")
        assert isinstance(node, ActionNode)
        assert node.data.label == ""
        assert node.data.handle.owner == Side.LEFT
        assert node.data.handle.result == Side.RIGHT

    def test_result_defaults(self) -> None:
        node = create_node("result", Position(x=5, y=5))
        assert isinstance(node, ResultNode)
        data = node.data
        assert data.message == ""
        assert data.preferred is None
        assert data.order == []
        assert data.close.enabled is False
        assert data.close.delay == 1000
        assert data.executors == []
        assert data.handle.trigger == Side.LEFT
        assert data.handle.actions == Side.RIGHT

    def test_conditional_defaults(self) -> None:
        node = create_node("conditional")
        assert isinstance(node, ConditionalNode)
        assert node.data.value == ""
        assert node.data.condition == Operator.EQUAL
        assert node.data.objective == ""
        assert node.data.handle.true == Side.RIGHT
        assert node.data.handle.false == Side.RIGHT

    def test_entry_is_fixed(self) -> None:
        """The entry kind ignores id and position."""
        node = create_node("initial", (50, 50), node_id="other")
        assert isinstance(node, EntryNode)
        assert node.id == "initial"
        assert node.position == Position(x=0, y=0)
        assert node.draggable is False

    def test_unknown_kind(self) -> None:
        with pytest.raises(ValueError):
            create_node("speech")


class TestCreateExecutor:
    """Test default executor construction."""

    @pytest.mark.parametrize("executor_type", list(ExecutorType))
    def test_type_matches(self, executor_type: ExecutorType) -> None:
        assert create_executor(executor_type).type == executor_type

    def test_dialog_store_default(self) -> None:
        executor = create_executor("dialog_store")
        assert isinstance(executor, DialogStoreExecutor)
        assert executor.value.key == ""
        assert executor.value.value == ""

    def test_scalar_defaults_are_empty(self) -> None:
        assert create_executor("set_coins").value == ""
        assert create_executor("command").value == ""

    def test_unknown_type(self) -> None:
        with pytest.raises(ValueError):
            create_executor("teleport")
