"""Wiring graph primitives for the circuit simulation.

The topology lives in a :class:`networkx.MultiDiGraph` keyed by wire kind, so
the same pair of nodes may be joined once per conductor.  Edges remember the
order they were added in so that traversals over a fixed graph are
reproducible.  Mutations never raise for a missing or duplicate id: they
return a :class:`GraphResult` whose ``status`` tells the caller what happened.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import networkx as nx

__all__ = [
    "ALREADY_EXISTS",
    "BREAKER",
    "FIXTURE",
    "GFCI",
    "GROUND",
    "HOT",
    "INVALID",
    "JUNCTION",
    "NEUTRAL",
    "NODE_KINDS",
    "NOT_FOUND",
    "OK",
    "OUTLET",
    "PANEL",
    "SWITCH",
    "WIRE_KINDS",
    "CircuitGraph",
    "Edge",
    "GraphResult",
    "Node",
]

logger = logging.getLogger(__name__)

PANEL = "panel"
BREAKER = "breaker"
OUTLET = "outlet"
SWITCH = "switch"
JUNCTION = "junction"
FIXTURE = "fixture"
GFCI = "gfci"
NODE_KINDS = frozenset({PANEL, BREAKER, OUTLET, SWITCH, JUNCTION, FIXTURE, GFCI})

HOT = "hot"
NEUTRAL = "neutral"
GROUND = "ground"
WIRE_KINDS = frozenset({HOT, NEUTRAL, GROUND})

OK = "ok"
NOT_FOUND = "not_found"
ALREADY_EXISTS = "already_exists"
INVALID = "invalid"

T = TypeVar("T")


@dataclass
class Node:
    id: str
    kind: str
    device_id: str | None = None
    energized: bool = False


@dataclass
class Edge:
    source: str
    target: str
    wire: str = HOT
    connected: bool = True

    def touches(self, node_id: str) -> bool:
        return self.source == node_id or self.target == node_id

    def other(self, node_id: str) -> str:
        return self.target if self.source == node_id else self.source


@dataclass(frozen=True)
class GraphResult(Generic[T]):
    """Outcome of a graph mutation.

    ``value`` carries the created entity, or the pre-existing one when
    ``status`` is ``already_exists``.
    """

    status: str
    value: T | None = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.status == OK

    @property
    def not_found(self) -> bool:
        return self.status == NOT_FOUND

    @property
    def already_exists(self) -> bool:
        return self.status == ALREADY_EXISTS


class CircuitGraph:
    """Nodes and typed wire connections of a residential circuit."""

    def __init__(self) -> None:
        self._graph = nx.MultiDiGraph()
        self._seq = 0

    # ------------------------------------------------------------------ nodes
    def add_node(self, node_id: str, kind: str, device_id: str | None = None) -> GraphResult[Node]:
        if not node_id:
            logger.warning("Cannot add node with an empty id")
            return GraphResult(INVALID, detail="empty node id")
        existing = self.get_node(node_id)
        if existing is not None:
            logger.warning("Node '%s' already exists", node_id)
            return GraphResult(ALREADY_EXISTS, existing, f"node '{node_id}' already exists")
        if kind not in NODE_KINDS:
            logger.debug("Node '%s' has unrecognised kind '%s'", node_id, kind)
        node = Node(id=node_id, kind=kind, device_id=device_id)
        self._graph.add_node(node_id, node=node)
        logger.debug("Added node %s (kind=%s)", node_id, kind)
        return GraphResult(OK, node)

    def remove_node(self, node_id: str) -> GraphResult[Node]:
        node = self.get_node(node_id)
        if node is None:
            logger.warning("Cannot remove node '%s': not found", node_id)
            return GraphResult(NOT_FOUND, detail=f"node '{node_id}' not found")
        dropped = len(self._incident(node_id))
        self._graph.remove_node(node_id)
        logger.debug("Removed node %s and %d edge(s)", node_id, dropped)
        return GraphResult(OK, node)

    def get_node(self, node_id: str) -> Node | None:
        if node_id not in self._graph:
            return None
        return self._graph.nodes[node_id]["node"]

    def has_node(self, node_id: str) -> bool:
        return node_id in self._graph

    def nodes_of_kind(self, kind: str) -> list[Node]:
        return [node for node in self.nodes if node.kind == kind]

    @property
    def nodes(self) -> list[Node]:
        return [node for _, node in self._graph.nodes(data="node")]

    @property
    def node_count(self) -> int:
        return self._graph.number_of_nodes()

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._graph

    # ------------------------------------------------------------------ edges
    def add_edge(self, source: str, target: str, wire: str = HOT) -> GraphResult[Edge]:
        missing = self._missing(source, target)
        if missing:
            logger.warning("Cannot add edge %s -> %s: node '%s' not found", source, target, missing)
            return GraphResult(NOT_FOUND, detail=f"node '{missing}' not found")
        if self._graph.has_edge(source, target, key=wire):
            logger.warning("Edge %s -> %s (%s) already exists", source, target, wire)
            return GraphResult(ALREADY_EXISTS, self._graph[source][target][wire]["edge"], "edge already exists")
        edge = Edge(source=source, target=target, wire=wire)
        self._graph.add_edge(source, target, key=wire, edge=edge, seq=self._seq)
        self._seq += 1
        logger.debug("Added edge %s -> %s (%s)", source, target, wire)
        return GraphResult(OK, edge)

    def remove_edge(self, source: str, target: str) -> GraphResult[list[Edge]]:
        missing = self._missing(source, target)
        if missing:
            logger.warning("Cannot remove edge %s -> %s: node '%s' not found", source, target, missing)
            return GraphResult(NOT_FOUND, detail=f"node '{missing}' not found")
        removed = self._between(source, target)
        if not removed:
            logger.warning("No edge found from '%s' to '%s'", source, target)
            return GraphResult(NOT_FOUND, detail="edge not found")
        self._graph.remove_edges_from([(source, target, edge.wire) for edge in removed])
        logger.debug("Removed %d edge(s) %s -> %s", len(removed), source, target)
        return GraphResult(OK, removed)

    def disconnect_edge(self, a: str, b: str) -> GraphResult[list[Edge]]:
        return self._set_connected(a, b, False)

    def reconnect_edge(self, a: str, b: str) -> GraphResult[list[Edge]]:
        return self._set_connected(a, b, True)

    def edges_of(self, node_id: str) -> list[Edge]:
        if node_id not in self._graph:
            logger.warning("Cannot list edges of '%s': not found", node_id)
            return []
        return self._incident(node_id)

    def neighbors(self, node_id: str, *, connected_only: bool = True) -> list[str]:
        """Ids adjacent to ``node_id`` in edge insertion order, edges read both ways."""

        return [
            edge.other(node_id)
            for edge in self._incident(node_id)
            if edge.connected or not connected_only
        ]

    def connected_view(self) -> nx.MultiGraph:
        """Undirected read-only view of the topology with disconnected edges hidden."""

        live = nx.subgraph_view(self._graph, filter_edge=self._is_connected)
        return live.to_undirected(as_view=True)

    @property
    def edges(self) -> list[Edge]:
        return self._ordered(self._graph.edges(data=True))

    @property
    def edge_count(self) -> int:
        return self._graph.number_of_edges()

    def clear(self) -> None:
        self._graph.clear()
        logger.debug("Circuit graph cleared")

    # ---------------------------------------------------------------- helpers
    def _missing(self, *node_ids: str) -> str | None:
        for node_id in node_ids:
            if node_id not in self._graph:
                return node_id
        return None

    def _is_connected(self, source: str, target: str, wire: str) -> bool:
        return self._graph[source][target][wire]["edge"].connected

    @staticmethod
    def _ordered(triples: Iterable[tuple[str, str, dict[str, Any]]]) -> list[Edge]:
        by_seq = {data["seq"]: data["edge"] for _, _, data in triples}
        return [by_seq[seq] for seq in sorted(by_seq)]

    def _incident(self, node_id: str) -> list[Edge]:
        if node_id not in self._graph:
            return []
        outgoing = self._graph.out_edges(node_id, data=True)
        incoming = self._graph.in_edges(node_id, data=True)
        return self._ordered([*outgoing, *incoming])

    def _between(self, source: str, target: str) -> list[Edge]:
        keyed = self._graph.get_edge_data(source, target, default={})
        return self._ordered((source, target, data) for data in keyed.values())

    def _set_connected(self, a: str, b: str, connected: bool) -> GraphResult[list[Edge]]:
        missing = self._missing(a, b)
        if missing:
            logger.warning("Cannot toggle edge %s <-> %s: node '%s' not found", a, b, missing)
            return GraphResult(NOT_FOUND, detail=f"node '{missing}' not found")
        touched = self._ordered(
            (u, v, data) for u, v in ((a, b), (b, a)) for data in self._graph.get_edge_data(u, v, default={}).values()
        )
        if not touched:
            logger.warning("No edge joins '%s' and '%s'", a, b)
            return GraphResult(NOT_FOUND, detail="edge not found")
        for edge in touched:
            edge.connected = connected
        logger.debug("Edge %s <-> %s %s", a, b, "reconnected" if connected else "disconnected")
        return GraphResult(OK, touched)
