"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from dialogforge.graph import DialogueGraph, ExecutorType, NodeKind, Port


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def shop_graph() -> DialogueGraph:
    """A small, fully wired shopkeeper dialogue.

    entry -> r_greet offers a_buy and a_bye.
    a_buy -> c_coins (coins >= 10): true -> r_shop, false -> r_poor.
    a_bye -> r_bye.
    """
    graph = DialogueGraph.empty()

    graph.create_node(NodeKind.RESULT, (200, 0), "r_greet")
    graph.update_node_data("r_greet", message="Welcome to my forge!")
    graph.create_node(NodeKind.ACTION, (400, -50), "a_buy")
    graph.update_node_data("a_buy", label="I want to buy something")
    graph.create_node(NodeKind.ACTION, (400, 50), "a_bye")
    graph.update_node_data("a_bye", label="Goodbye")
    graph.create_node(NodeKind.CONDITIONAL, (600, -50), "c_coins")
    graph.update_node_data(
        "c_coins", value="%player_coins%", condition="greater_than_or_equal", objective=10
    )
    graph.create_node(NodeKind.RESULT, (800, -100), "r_shop")
    graph.update_node_data("r_shop", message="Take a look.")
    graph.add_executor("r_shop", ExecutorType.OPEN_MARKET, "blacksmith")
    graph.create_node(NodeKind.RESULT, (800, 0), "r_poor")
    graph.update_node_data(
        "r_poor", message="Come back with more coins.", close={"enabled": True, "delay": 1500}
    )
    graph.create_node(NodeKind.RESULT, (600, 50), "r_bye")
    graph.update_node_data("r_bye", message="Farewell!", close={"enabled": True, "delay": 1000})

    graph.connect("initial", Port.INITIAL_TARGET, "r_greet", Port.NODE_TRIGGER)
    graph.connect("r_greet", Port.RESULT_ACTIONS, "a_buy", Port.ACTION_OWNER)
    graph.connect("r_greet", Port.RESULT_ACTIONS, "a_bye", Port.ACTION_OWNER)
    graph.connect("a_buy", Port.ACTION_RESULT, "c_coins", Port.NODE_TRIGGER)
    graph.connect("c_coins", Port.CONDITION_TRUE, "r_shop", Port.NODE_TRIGGER)
    graph.connect("c_coins", Port.CONDITION_FALSE, "r_poor", Port.NODE_TRIGGER)
    graph.connect("a_bye", Port.ACTION_RESULT, "r_bye", Port.NODE_TRIGGER)
    return graph
