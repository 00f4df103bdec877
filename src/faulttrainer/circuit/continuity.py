from __future__ import annotations

import logging

import networkx as nx

from .graph import CircuitGraph

__all__ = ["ContinuityTester"]

logger = logging.getLogger(__name__)


class ContinuityTester:
    """Test for an unbroken wire path, regardless of breaker or switch state."""

    def __init__(self, graph: CircuitGraph) -> None:
        self.graph = graph

    def has_continuity(self, a: str, b: str) -> bool:
        for node_id in (a, b):
            if not self.graph.has_node(node_id):
                logger.warning("Node '%s' not found for continuity check", node_id)
                return False
        return nx.has_path(self.graph.connected_view(), a, b)
