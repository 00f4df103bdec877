from __future__ import annotations

from faulttrainer.circuit.graph import (
    ALREADY_EXISTS,
    BREAKER,
    HOT,
    INVALID,
    NEUTRAL,
    NOT_FOUND,
    OUTLET,
    PANEL,
    CircuitGraph,
)


def _graph() -> CircuitGraph:
    graph = CircuitGraph()
    graph.add_node("panel", PANEL)
    graph.add_node("breaker", BREAKER, "brk-1")
    graph.add_node("outlet", OUTLET)
    graph.add_edge("panel", "breaker")
    graph.add_edge("breaker", "outlet")
    return graph


def test_add_node_rejects_duplicates_and_empty_ids():
    graph = _graph()

    duplicate = graph.add_node("panel", OUTLET)
    assert duplicate.status == ALREADY_EXISTS
    assert duplicate.value is graph.get_node("panel")
    assert graph.get_node("panel").kind == PANEL

    assert graph.add_node("", OUTLET).status == INVALID
    assert graph.node_count == 3


def test_unknown_kind_is_accepted():
    graph = CircuitGraph()
    result = graph.add_node("mystery", "smart-plug")
    assert result.ok
    assert graph.nodes_of_kind("smart-plug") == [result.value]


def test_add_edge_requires_known_endpoints_and_detects_duplicates():
    graph = _graph()

    missing = graph.add_edge("panel", "nowhere")
    assert missing.not_found
    assert "nowhere" in missing.detail

    duplicate = graph.add_edge("panel", "breaker")
    assert duplicate.already_exists
    assert duplicate.value is graph.edges[0]

    # Same endpoints on a different conductor is a distinct edge.
    assert graph.add_edge("panel", "breaker", NEUTRAL).ok
    assert graph.edge_count == 3


def test_remove_node_cascades_edges():
    graph = _graph()

    assert graph.remove_node("breaker").ok
    assert graph.edge_count == 0
    assert all(not edge.touches("breaker") for edge in graph.edges)
    assert graph.neighbors("panel") == []
    assert graph.remove_node("breaker").status == NOT_FOUND


def test_remove_edge_is_directional():
    graph = _graph()

    assert graph.remove_edge("breaker", "panel").not_found
    removed = graph.remove_edge("panel", "breaker")
    assert removed.ok
    assert len(removed.value) == 1
    assert graph.edges_of("panel") == []


def test_remove_edge_drops_every_conductor():
    graph = _graph()
    graph.add_edge("panel", "breaker", NEUTRAL)

    removed = graph.remove_edge("panel", "breaker")
    assert [edge.wire for edge in removed.value] == [HOT, NEUTRAL]
    assert graph.edge_count == 1
    assert graph.neighbors("breaker") == ["outlet"]


def test_disconnect_keeps_topology_and_hides_neighbors():
    graph = _graph()

    result = graph.disconnect_edge("breaker", "panel")
    assert result.ok
    assert graph.edge_count == 2
    assert graph.neighbors("panel") == []
    assert graph.neighbors("panel", connected_only=False) == ["breaker"]

    assert graph.reconnect_edge("panel", "breaker").ok
    assert graph.neighbors("panel") == ["breaker"]


def test_disconnect_unknown_pair_is_not_found():
    graph = _graph()
    assert graph.disconnect_edge("panel", "outlet").not_found
    assert graph.disconnect_edge("panel", "ghost").not_found


def test_neighbors_follow_edge_insertion_order():
    graph = _graph()
    graph.add_node("outlet-2", OUTLET)
    graph.add_edge("outlet-2", "breaker")

    assert graph.neighbors("breaker") == ["panel", "outlet", "outlet-2"]


def test_edges_of_unknown_node_is_empty():
    graph = _graph()
    assert graph.edges_of("ghost") == []


def test_clear_empties_graph():
    graph = _graph()
    graph.clear()
    assert graph.node_count == 0
    assert graph.edge_count == 0
    assert "panel" not in graph


def test_connected_view_hides_disconnected_edges():
    graph = _graph()
    graph.disconnect_edge("outlet", "breaker")

    view = graph.connected_view()
    assert sorted(view.neighbors("breaker")) == ["panel"]
    assert list(view.neighbors("outlet")) == []
    assert graph.edge_count == 2


def test_self_loop_is_listed_once():
    graph = _graph()
    assert graph.add_edge("outlet", "outlet").ok
    assert graph.neighbors("outlet") == ["breaker", "outlet"]
    assert graph.disconnect_edge("outlet", "outlet").ok
    assert graph.neighbors("outlet") == ["breaker"]
