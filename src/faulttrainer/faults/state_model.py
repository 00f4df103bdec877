"""Simplified node-state graph used by troubleshooting exercises.

This model is deliberately separate from :mod:`faulttrainer.circuit`: nodes
carry a discrete fault state and a voltage derived from it, and nothing is
propagated.  Voltages for every node are recomputed whenever any state
changes.
"""

from __future__ import annotations

import logging
import random
from enum import Enum

import networkx as nx

__all__ = ["NodeState", "FaultStateModel", "SOURCE_VOLTAGE"]

logger = logging.getLogger(__name__)

SOURCE_VOLTAGE = 120.0

HIGH_RESISTANCE_FACTOR = 0.7
OVERLOADED_FACTOR = 0.85
INTERMITTENT_RANGE = (0.3, 1.0)


class NodeState(str, Enum):
    ENERGIZED = "energized"
    DE_ENERGIZED = "de-energized"
    OPEN = "open"
    HIGH_RESISTANCE = "high-resistance"
    INTERMITTENT = "intermittent"
    OVERLOADED = "overloaded"


_LIVE_STATES = frozenset({NodeState.ENERGIZED, NodeState.HIGH_RESISTANCE, NodeState.OVERLOADED})


class FaultStateModel:
    def __init__(self, *, source_voltage: float = SOURCE_VOLTAGE, rng: random.Random | None = None) -> None:
        self.source_voltage = source_voltage
        self.rng = rng if rng is not None else random.Random()
        self._states: dict[str, NodeState] = {}
        self._voltages: dict[str, float] = {}
        self._graph = nx.Graph()

    # ------------------------------------------------------------- topology
    def add_node(self, node_id: str, state: NodeState = NodeState.ENERGIZED) -> None:
        self._states[node_id] = state
        self._graph.add_node(node_id)
        self._recalculate()

    def connect(self, a: str, b: str) -> bool:
        for node_id in (a, b):
            if node_id not in self._states:
                logger.warning("Cannot connect %s <-> %s: node '%s' not found", a, b, node_id)
                return False
        self._graph.add_edge(a, b)
        return True

    def has_node(self, node_id: str) -> bool:
        return node_id in self._states

    @property
    def node_ids(self) -> list[str]:
        return list(self._states)

    def neighbors(self, node_id: str) -> list[str]:
        if node_id not in self._graph:
            return []
        return list(self._graph.neighbors(node_id))

    # ---------------------------------------------------------------- state
    def set_state(self, node_id: str, state: NodeState) -> bool:
        if node_id not in self._states:
            logger.warning("Cannot set state of '%s': not found", node_id)
            return False
        self._states[node_id] = state
        self._recalculate()
        return True

    def state_of(self, node_id: str) -> NodeState:
        return self._states.get(node_id, NodeState.DE_ENERGIZED)

    def measure_voltage(self, node_id: str) -> float:
        return self._voltages.get(node_id, 0.0)

    def is_energized(self, node_id: str) -> bool:
        return self.state_of(node_id) in _LIVE_STATES

    def reset(self) -> None:
        for node_id in self._states:
            self._states[node_id] = NodeState.ENERGIZED
        self._recalculate()

    def snapshot(self) -> dict[str, tuple[NodeState, float]]:
        return {node_id: (state, self._voltages.get(node_id, 0.0)) for node_id, state in self._states.items()}

    # ----------------------------------------------------------- continuity
    def check_continuity(self, a: str, b: str) -> bool:
        """Return whether a path from ``a`` to ``b`` crosses no open node.

        Only the target is exempt from the open check: a check that starts on
        an open node finds nothing.
        """

        if a not in self._states or b not in self._states:
            return False
        if a == b:
            return True
        if self._states[a] is NodeState.OPEN:
            return False
        passable = nx.subgraph_view(
            self._graph,
            filter_node=lambda node_id: node_id == b or self._states[node_id] is not NodeState.OPEN,
        )
        return nx.has_path(passable, a, b)

    # -------------------------------------------------------------- helpers
    def _voltage_for(self, state: NodeState) -> float:
        if state is NodeState.ENERGIZED:
            return self.source_voltage
        if state is NodeState.HIGH_RESISTANCE:
            return self.source_voltage * HIGH_RESISTANCE_FACTOR
        if state is NodeState.INTERMITTENT:
            low, high = INTERMITTENT_RANGE
            return self.source_voltage * self.rng.uniform(low, high)
        if state is NodeState.OVERLOADED:
            return self.source_voltage * OVERLOADED_FACTOR
        return 0.0

    def _recalculate(self) -> None:
        self._voltages = {node_id: self._voltage_for(state) for node_id, state in self._states.items()}
