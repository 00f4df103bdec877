"""Convenience wrapper bundling the wiring graph with its queries.

Callers still decide when to re-run :meth:`CircuitSimulator.propagate`; the
simulator never refreshes energisation on its own after a mutation.
"""

from __future__ import annotations

from .continuity import ContinuityTester
from .devices import DeviceRegistry
from .graph import CircuitGraph
from .propagation import NOMINAL_VOLTAGE, EnergyPropagator

__all__ = ["CircuitSimulator"]


class CircuitSimulator:
    def __init__(
        self,
        graph: CircuitGraph | None = None,
        devices: DeviceRegistry | None = None,
        *,
        nominal_voltage: float = NOMINAL_VOLTAGE,
    ) -> None:
        self.graph = graph if graph is not None else CircuitGraph()
        self.devices = devices if devices is not None else DeviceRegistry()
        self.propagator = EnergyPropagator(self.graph, self.devices, nominal_voltage=nominal_voltage)
        self.tester = ContinuityTester(self.graph)

    def propagate(self) -> set[str]:
        return self.propagator.propagate()

    def is_energized(self, node_id: str) -> bool:
        return self.propagator.is_energized(node_id)

    def voltage(self, node_id: str) -> float:
        return self.propagator.voltage(node_id)

    def has_continuity(self, a: str, b: str) -> bool:
        return self.tester.has_continuity(a, b)

    def energized_count(self) -> int:
        return self.propagator.energized_count()

    def debug_summary(self) -> str:
        lines = [f"=== Circuit: {self.graph.node_count} nodes, {self.graph.edge_count} edges ===", "", "Nodes:"]
        for node in self.graph:
            device = node.device_id or "-"
            lines.append(f"  [{node.id}] kind={node.kind}, energized={node.energized}, device={device}")
        lines.extend(["", "Edges:"])
        for edge in self.graph.edges:
            lines.append(f"  {edge.source} -> {edge.target} ({edge.wire}) connected={edge.connected}")
        return "\n".join(lines)
