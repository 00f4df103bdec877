from __future__ import annotations

import logging
from collections import deque

from .devices import DeviceStateProvider
from .graph import BREAKER, GFCI, PANEL, SWITCH, CircuitGraph, Node

__all__ = ["NOMINAL_VOLTAGE", "EnergyPropagator"]

logger = logging.getLogger(__name__)

NOMINAL_VOLTAGE = 120.0


class EnergyPropagator:
    """Breadth-first energisation from every panel node.

    Each call to :meth:`propagate` starts from scratch; nothing is carried over
    between runs except the per-node ``energized`` flags it writes.
    """

    def __init__(
        self,
        graph: CircuitGraph,
        devices: DeviceStateProvider | None = None,
        *,
        nominal_voltage: float = NOMINAL_VOLTAGE,
    ) -> None:
        self.graph = graph
        self.devices = devices
        self.nominal_voltage = nominal_voltage
        self._has_run = False

    @property
    def has_run(self) -> bool:
        return self._has_run

    def propagate(self) -> set[str]:
        for node in self.graph:
            node.energized = False

        queue: deque[str] = deque()
        visited: set[str] = set()
        for panel in self.graph.nodes_of_kind(PANEL):
            panel.energized = True
            visited.add(panel.id)
            queue.append(panel.id)

        while queue:
            current = queue.popleft()
            for neighbor_id in self.graph.neighbors(current):
                if neighbor_id in visited:
                    continue
                neighbor = self.graph.get_node(neighbor_id)
                if neighbor is None or not self.passes(neighbor):
                    continue
                neighbor.energized = True
                visited.add(neighbor_id)
                queue.append(neighbor_id)

        self._has_run = True
        logger.debug(
            "Energy propagation complete",
            extra={"energized": len(visited), "nodes": self.graph.node_count},
        )
        return visited

    def passes(self, node: Node) -> bool:
        """Return True when energy can flow into and through ``node``."""

        if node.kind == PANEL:
            return True
        if node.device_id is None or self.devices is None:
            return True
        if node.kind == BREAKER:
            return self.devices.is_breaker_on(node.device_id)
        if node.kind == SWITCH:
            return self.devices.is_switch_on(node.device_id)
        if node.kind == GFCI:
            return not self.devices.is_gfci_tripped(node.device_id)
        # junctions, outlets, fixtures and unknown kinds never gate
        return True

    def is_energized(self, node_id: str) -> bool:
        node = self.graph.get_node(node_id)
        if node is None:
            logger.warning("Node '%s' not found for energisation query", node_id)
            return False
        return node.energized

    def voltage(self, node_id: str) -> float:
        return self.nominal_voltage if self.is_energized(node_id) else 0.0

    def energized_count(self) -> int:
        return sum(1 for node in self.graph if node.energized)

    def energized_ids(self) -> list[str]:
        return [node.id for node in self.graph if node.energized]
