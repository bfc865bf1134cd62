"""Tests for the editable dialogue graph."""

from __future__ import annotations

import pytest

from dialogforge.graph import DialogueGraph
from dialogforge.graph.errors import (
    EdgeEndpointError,
    GraphIntegrityError,
    InvalidConnectionError,
    NodeExistsError,
    NodeNotFoundError,
    ProtectedNodeError,
)
from dialogforge.graph.model import (
    ActionNode,
    EntryNode,
    NodeKind,
    Position,
    ResultNode,
    Side,
    make_edge,
)
from dialogforge.graph.ports import Port


def _result_with_actions(graph: DialogueGraph, result_id: str, *action_ids: str) -> None:
    graph.create_node(NodeKind.RESULT, node_id=result_id)
    for action_id in action_ids:
        graph.create_node(NodeKind.ACTION, node_id=action_id)
        graph.connect(result_id, Port.RESULT_ACTIONS, action_id, Port.ACTION_OWNER)


class TestGraphBasics:
    """Test basic DialogueGraph operations."""

    def test_empty_graph_has_entry(self) -> None:
        """Empty graph holds only the entry node."""
        graph = DialogueGraph.empty()

        assert [n.id for n in graph.nodes] == ["initial"]
        assert graph.edges == []
        assert isinstance(graph.entry, EntryNode)

    def test_repr(self) -> None:
        graph = DialogueGraph.empty()
        assert "nodes=1" in repr(graph)
        assert "edges=0" in repr(graph)

    def test_duplicate_node_ids_rejected(self) -> None:
        nodes = [ActionNode(id="a"), ActionNode(id="a")]
        with pytest.raises(NodeExistsError):
            DialogueGraph(nodes)

    def test_second_entry_rejected(self) -> None:
        with pytest.raises(GraphIntegrityError, match="entry"):
            DialogueGraph([EntryNode(), EntryNode(id="start")])

    def test_dict_round_trip(self, shop_graph: DialogueGraph) -> None:
        """to_dict/from_dict preserves nodes and edges."""
        data = shop_graph.to_dict()
        assert DialogueGraph.from_dict(data).to_dict() == data

    def test_to_dict_uses_editor_field_names(self, shop_graph: DialogueGraph) -> None:
        edge = shop_graph.to_dict()["edges"][0]
        assert set(edge) == {"id", "source", "sourceHandle", "target", "targetHandle"}

    def test_from_dict_adds_missing_entry(self) -> None:
        graph = DialogueGraph.from_dict(
            {"nodes": [{"id": "a", "type": "action", "data": {"label": "Hi"}}], "edges": []}
        )
        assert graph.has_node("initial")
        assert graph.has_node("a")

    def test_nodes_of_kind(self, shop_graph: DialogueGraph) -> None:
        ids = [n.id for n in shop_graph.nodes_of_kind("result")]
        assert ids == ["r_greet", "r_shop", "r_poor", "r_bye"]


class TestNodeOperations:
    """Test node create/update/move/delete."""

    def test_create_node(self) -> None:
        graph = DialogueGraph.empty()
        node = graph.create_node(NodeKind.RESULT, (10, 20), "r1")

        assert graph.get_node("r1") is node
        assert node.position == Position(x=10, y=20)

    def test_create_node_generates_id(self) -> None:
        graph = DialogueGraph.empty()
        node = graph.create_node("action")
        assert graph.has_node(node.id)

    def test_create_entry_rejected(self) -> None:
        graph = DialogueGraph.empty()
        with pytest.raises(GraphIntegrityError):
            graph.create_node(NodeKind.ENTRY)

    def test_add_existing_id_rejected(self) -> None:
        graph = DialogueGraph.empty()
        graph.add_node(ActionNode(id="a"))
        with pytest.raises(NodeExistsError):
            graph.add_node(ResultNode(id="a"))

    def test_add_second_entry_rejected(self) -> None:
        graph = DialogueGraph.empty()
        with pytest.raises(GraphIntegrityError):
            graph.add_node(EntryNode(id="start"))

    def test_update_node_data(self) -> None:
        graph = DialogueGraph.empty()
        graph.create_node("action", node_id="a")

        updated = graph.update_node_data("a", label="Hello")

        assert isinstance(updated, ActionNode)
        assert updated.data.label == "Hello"
        assert graph.get_node("a") == updated

    def test_update_handle_side(self) -> None:
        graph = DialogueGraph.empty()
        graph.create_node("action", node_id="a")
        node = graph.update_node_data("a", handle={"owner": "right", "result": "left"})
        assert isinstance(node, ActionNode)
        assert node.data.handle.owner == Side.RIGHT

    def test_update_unknown_field(self) -> None:
        graph = DialogueGraph.empty()
        graph.create_node("action", node_id="a")
        with pytest.raises(ValueError, match="Unknown action field"):
            graph.update_node_data("a", message="wrong kind")

    def test_update_invalid_value(self) -> None:
        graph = DialogueGraph.empty()
        graph.create_node("conditional", node_id="c")
        with pytest.raises(ValueError):
            graph.update_node_data("c", condition="roughly")

    def test_update_entry_protected(self) -> None:
        graph = DialogueGraph.empty()
        with pytest.raises(ProtectedNodeError):
            graph.update_node_data("initial", label="x")

    def test_update_missing_node_suggests_ids(self) -> None:
        graph = DialogueGraph.empty()
        graph.create_node("result", node_id="greeting")

        with pytest.raises(NodeNotFoundError) as exc_info:
            graph.update_node_data("greting", message="Hi")

        assert "greeting" in exc_info.value.suggestions()
        assert "Did you mean: greeting?" in exc_info.value.describe()

    def test_move_node(self) -> None:
        graph = DialogueGraph.empty()
        graph.create_node("action", node_id="a")
        graph.move_node("a", (30, 40))
        node = graph.get_node("a")
        assert node is not None
        assert node.position == Position(x=30, y=40)

    def test_move_entry_protected(self) -> None:
        graph = DialogueGraph.empty()
        with pytest.raises(ProtectedNodeError):
            graph.move_node("initial", (1, 1))

    def test_delete_removes_exactly_incident_edges(self, shop_graph: DialogueGraph) -> None:
        """Deleting a node removes its edges and no others."""
        before = {e.id for e in shop_graph.edges}

        removed = shop_graph.delete_node("a_buy")

        assert {(e.source, e.target) for e in removed} == {
            ("r_greet", "a_buy"),
            ("a_buy", "c_coins"),
        }
        assert {e.id for e in shop_graph.edges} == before - {e.id for e in removed}
        assert not shop_graph.has_node("a_buy")

    def test_delete_entry_protected(self, shop_graph: DialogueGraph) -> None:
        with pytest.raises(ProtectedNodeError) as exc_info:
            shop_graph.delete_node("initial")
        assert "cannot be deleted" in exc_info.value.describe()

    def test_delete_missing_node(self) -> None:
        graph = DialogueGraph.empty()
        with pytest.raises(NodeNotFoundError):
            graph.delete_node("ghost")

    def test_reset_keeps_only_entry(self, shop_graph: DialogueGraph) -> None:
        shop_graph.reset()
        assert [n.id for n in shop_graph.nodes] == ["initial"]
        assert shop_graph.edges == []


class TestEdgeOperations:
    """Test connect/disconnect and edge queries."""

    def test_connect_returns_edge(self) -> None:
        graph = DialogueGraph.empty()
        graph.create_node("result", node_id="r")

        edge = graph.connect("initial", Port.INITIAL_TARGET, "r", Port.NODE_TRIGGER)

        assert edge.id == "xy-edge__initialinitial_target-rnode_trigger"
        assert graph.edges == [edge]

    def test_connect_same_pair_is_noop(self) -> None:
        graph = DialogueGraph.empty()
        _result_with_actions(graph, "r", "a")

        edge = graph.connect("r", Port.RESULT_ACTIONS, "a", Port.ACTION_OWNER)

        assert len(graph.edges) == 1
        assert edge == graph.edges[0]

    def test_connect_missing_target(self) -> None:
        graph = DialogueGraph.empty()
        with pytest.raises(EdgeEndpointError) as exc_info:
            graph.connect("initial", Port.INITIAL_TARGET, "ghost", Port.NODE_TRIGGER)
        assert exc_info.value.missing == "target"

    def test_connect_missing_both(self) -> None:
        graph = DialogueGraph.empty()
        with pytest.raises(EdgeEndpointError) as exc_info:
            graph.connect("a", Port.ACTION_RESULT, "b", Port.NODE_TRIGGER)
        assert exc_info.value.missing == "both"

    def test_connect_incompatible_ports(self) -> None:
        """An action cannot lead straight to another action."""
        graph = DialogueGraph.empty()
        graph.create_node("action", node_id="a1")
        graph.create_node("action", node_id="a2")

        with pytest.raises(InvalidConnectionError, match="cannot connect"):
            graph.connect("a1", Port.ACTION_RESULT, "a2", Port.ACTION_OWNER)

    def test_connect_port_of_wrong_kind(self) -> None:
        graph = DialogueGraph.empty()
        graph.create_node("result", node_id="r1")
        graph.create_node("result", node_id="r2")

        with pytest.raises(InvalidConnectionError, match="no output port"):
            graph.connect("r1", Port.ACTION_RESULT, "r2", Port.NODE_TRIGGER)

    def test_connect_self_loop_rejected(self) -> None:
        graph = DialogueGraph.empty()
        graph.create_node("conditional", node_id="c")
        with pytest.raises(InvalidConnectionError):
            graph.connect("c", Port.CONDITION_TRUE, "c", Port.NODE_TRIGGER)

    def test_entry_accepts_one_edge(self) -> None:
        graph = DialogueGraph.empty()
        graph.create_node("result", node_id="r1")
        graph.create_node("result", node_id="r2")
        graph.connect("initial", Port.INITIAL_TARGET, "r1", Port.NODE_TRIGGER)

        with pytest.raises(InvalidConnectionError, match="already has a connection"):
            graph.connect("initial", Port.INITIAL_TARGET, "r2", Port.NODE_TRIGGER)

    def test_action_leads_to_one_node(self) -> None:
        graph = DialogueGraph.empty()
        graph.create_node("action", node_id="a")
        graph.create_node("result", node_id="r1")
        graph.create_node("result", node_id="r2")
        graph.connect("a", Port.ACTION_RESULT, "r1", Port.NODE_TRIGGER)

        with pytest.raises(InvalidConnectionError):
            graph.connect("a", Port.ACTION_RESULT, "r2", Port.NODE_TRIGGER)

    def test_result_offers_many_actions(self) -> None:
        graph = DialogueGraph.empty()
        _result_with_actions(graph, "r", "a1", "a2", "a3")
        assert graph.connected_actions("r") == ["a1", "a2", "a3"]

    def test_disconnect(self, shop_graph: DialogueGraph) -> None:
        edge = shop_graph.edges_from("a_bye")[0]

        assert shop_graph.disconnect(edge.id) is True
        assert shop_graph.edges_from("a_bye") == []
        assert shop_graph.disconnect(edge.id) is False

    def test_edges_from_filters_by_port(self, shop_graph: DialogueGraph) -> None:
        true_edges = shop_graph.edges_from("c_coins", Port.CONDITION_TRUE)
        assert [e.target for e in true_edges] == ["r_shop"]
        assert len(shop_graph.edges_from("c_coins")) == 2

    def test_edges_to(self, shop_graph: DialogueGraph) -> None:
        assert [e.source for e in shop_graph.edges_to("c_coins")] == ["a_buy"]
        assert shop_graph.edges_to("c_coins", Port.ACTION_OWNER) == []


class TestDuplicateNodes:
    """Test copy/paste of nodes."""

    def test_duplicates_get_fresh_ids_and_offset(self, shop_graph: DialogueGraph) -> None:
        edge_count = len(shop_graph.edges)

        copies = shop_graph.duplicate_nodes(["r_shop", "a_bye"])

        assert len(copies) == 2
        assert all(c.id not in ("r_shop", "a_bye") for c in copies)
        assert copies[0].position == Position(x=810, y=-90)
        assert copies[0].data == shop_graph.get_node("r_shop").data  # type: ignore[union-attr]
        assert len(shop_graph.edges) == edge_count

    def test_entry_is_never_duplicated(self, shop_graph: DialogueGraph) -> None:
        assert shop_graph.duplicate_nodes(["initial"]) == []
        assert len(shop_graph.nodes_of_kind(NodeKind.ENTRY)) == 1

    def test_copy_data_is_independent(self, shop_graph: DialogueGraph) -> None:
        (copy,) = shop_graph.duplicate_nodes(["r_shop"])
        shop_graph.update_node_data(copy.id, message="Changed")

        original = shop_graph.get_node("r_shop")
        assert isinstance(original, ResultNode)
        assert original.data.message == "Take a look."

    def test_custom_offset(self) -> None:
        graph = DialogueGraph.empty()
        graph.create_node("action", (0, 0), "a")
        (copy,) = graph.duplicate_nodes(["a"], offset=50)
        assert copy.position == Position(x=50, y=50)


class TestResultHelpers:
    """Test preferred-action syncing and executors."""

    def test_sync_picks_first_connected(self) -> None:
        graph = DialogueGraph.empty()
        _result_with_actions(graph, "r", "a1", "a2")

        assert graph.sync_preferred("r") == "a1"
        node = graph.get_node("r")
        assert isinstance(node, ResultNode)
        assert node.data.preferred == "a1"

    def test_sync_keeps_connected_choice(self) -> None:
        graph = DialogueGraph.empty()
        _result_with_actions(graph, "r", "a1", "a2")
        graph.update_node_data("r", preferred="a2")

        assert graph.sync_preferred("r") == "a2"

    def test_sync_without_actions_is_noop(self) -> None:
        graph = DialogueGraph.empty()
        graph.create_node("result", node_id="r")
        graph.update_node_data("r", preferred="gone")

        assert graph.sync_preferred("r") == "gone"

    def test_sync_rejects_non_result(self) -> None:
        graph = DialogueGraph.empty()
        graph.create_node("action", node_id="a")
        with pytest.raises(ValueError, match="not a result"):
            graph.sync_preferred("a")

    def test_add_and_remove_executor(self) -> None:
        graph = DialogueGraph.empty()
        graph.create_node("result", node_id="r")

        executor = graph.add_executor("r", "set_coins", 5)
        graph.add_executor("r", "dialog_store", {"key": "met", "value": True})

        node = graph.get_node("r")
        assert isinstance(node, ResultNode)
        assert executor.value == 5
        assert [e.type for e in node.data.executors] == ["set_coins", "dialog_store"]

        graph.remove_executor("r", 0)
        node = graph.get_node("r")
        assert isinstance(node, ResultNode)
        assert [e.type for e in node.data.executors] == ["dialog_store"]

    def test_remove_missing_executor(self) -> None:
        graph = DialogueGraph.empty()
        graph.create_node("result", node_id="r")
        with pytest.raises(IndexError):
            graph.remove_executor("r", 0)


class TestChangeNotification:
    """Test the on_change hook."""

    def test_called_after_each_mutation(self) -> None:
        calls: list[int] = []
        graph = DialogueGraph.empty()
        graph.on_change = lambda g: calls.append(len(g.nodes))

        graph.create_node("result", node_id="r")
        graph.update_node_data("r", message="Hi")
        graph.connect("initial", Port.INITIAL_TARGET, "r", Port.NODE_TRIGGER)
        graph.delete_node("r")

        assert calls == [2, 2, 2, 1]

    def test_not_called_for_noop_connect(self) -> None:
        graph = DialogueGraph.empty()
        graph.create_node("result", node_id="r")
        graph.connect("initial", Port.INITIAL_TARGET, "r", Port.NODE_TRIGGER)
        calls: list[DialogueGraph] = []
        graph.on_change = calls.append

        graph.connect("initial", Port.INITIAL_TARGET, "r", Port.NODE_TRIGGER)

        assert calls == []


class TestValidateInvariants:
    """Test invariant auditing of untrusted graphs."""

    def test_valid_graph(self, shop_graph: DialogueGraph) -> None:
        assert shop_graph.validate_invariants() == []

    def test_dangling_edge_detected(self) -> None:
        graph = DialogueGraph(
            [ResultNode(id="r")],
            [make_edge("initial", Port.INITIAL_TARGET, "ghost", Port.NODE_TRIGGER)],
        )
        violations = graph.validate_invariants()
        assert len(violations) == 1
        assert "'ghost' does not exist" in violations[0]

    def test_illegal_port_pair_detected(self) -> None:
        graph = DialogueGraph(
            [ActionNode(id="a1"), ActionNode(id="a2")],
            [make_edge("a1", Port.ACTION_RESULT, "a2", Port.ACTION_OWNER)],
        )
        assert len(graph.validate_invariants()) == 1
