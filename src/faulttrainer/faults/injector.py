"""Fault injection and the identify/repair lifecycle.

A fault moves ``active -> identified -> repaired``.  Wrong guesses and
premature repairs simply fail; any penalty for them belongs to the scoring
policy, not to the injector.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from .state_model import FaultStateModel, NodeState

__all__ = [
    "FAULT_STATES",
    "FaultInjector",
    "FaultKind",
    "InjectedFault",
    "parse_fault_kind",
]

logger = logging.getLogger(__name__)


class FaultKind(str, Enum):
    LOOSE_CONNECTION = "loose-connection"
    BAD_SPLICE = "bad-splice"
    TRIPPED_GFCI = "tripped-gfci"
    TRIPPED_BREAKER = "tripped-breaker"
    BROKEN_WIRE = "broken-wire"
    OVERLOADED_CIRCUIT = "overloaded-circuit"


FAULT_STATES: dict[FaultKind, NodeState] = {
    FaultKind.LOOSE_CONNECTION: NodeState.INTERMITTENT,
    FaultKind.BAD_SPLICE: NodeState.HIGH_RESISTANCE,
    FaultKind.TRIPPED_GFCI: NodeState.OPEN,
    FaultKind.TRIPPED_BREAKER: NodeState.OPEN,
    FaultKind.BROKEN_WIRE: NodeState.OPEN,
    FaultKind.OVERLOADED_CIRCUIT: NodeState.OVERLOADED,
}


def parse_fault_kind(raw: str | FaultKind) -> FaultKind:
    """Map a scenario name such as ``"bad-splice"`` to a :class:`FaultKind`.

    Enum member names (``"BAD_SPLICE"``) are accepted as well; anything else
    falls back to a loose connection.
    """

    if isinstance(raw, FaultKind):
        return raw
    token = (raw or "").strip().lower().replace("_", "-")
    try:
        return FaultKind(token)
    except ValueError:
        logger.warning("Unknown fault kind %r; using loose-connection", raw)
        return FaultKind.LOOSE_CONNECTION


@dataclass
class InjectedFault:
    kind: FaultKind
    target: str
    is_active: bool = True
    is_identified: bool = False
    is_repaired: bool = False

    @property
    def status(self) -> str:
        if self.is_repaired:
            return "repaired"
        if self.is_identified:
            return "identified"
        return "active"


class FaultInjector:
    def __init__(self, model: FaultStateModel | None = None) -> None:
        self.model = model
        self._faults: list[InjectedFault] = []

    @property
    def faults(self) -> list[InjectedFault]:
        return list(self._faults)

    def active_faults(self) -> list[InjectedFault]:
        return [fault for fault in self._faults if fault.is_active]

    def fault_at(self, target: str) -> InjectedFault | None:
        return next((fault for fault in self._faults if fault.target == target), None)

    def inject_fault(self, kind: FaultKind, target: str) -> InjectedFault:
        fault = InjectedFault(kind=kind, target=target)
        self._faults.append(fault)
        if self.model is not None and not self.model.set_state(target, FAULT_STATES[kind]):
            logger.warning("Fault %s injected at '%s' which is not in the fault-state model", kind.value, target)
        logger.info("Injected fault", extra={"fault_kind": kind.value, "target": target})
        return fault

    def inject_random_fault(
        self,
        rng: random.Random,
        candidates: Sequence[str],
        kinds: Sequence[FaultKind] | None = None,
    ) -> InjectedFault:
        if not candidates:
            raise ValueError("at least one candidate node is required")
        pool = list(kinds) if kinds else list(FaultKind)
        kind = rng.choice(pool)
        target = rng.choice(list(candidates))
        return self.inject_fault(kind, target)

    def identify_fault(self, target: str, guessed: FaultKind) -> bool:
        for fault in self._faults:
            if fault.is_active and fault.target == target and fault.kind is guessed:
                fault.is_identified = True
                logger.info("Fault identified", extra={"fault_kind": guessed.value, "target": target})
                return True
        logger.info("Incorrect fault identification", extra={"fault_kind": guessed.value, "target": target})
        return False

    def repair_fault(self, target: str) -> bool:
        for fault in self._faults:
            if fault.target == target and fault.is_identified and not fault.is_repaired:
                fault.is_repaired = True
                fault.is_active = False
                if self.model is not None:
                    self.model.set_state(target, NodeState.ENERGIZED)
                logger.info("Fault repaired", extra={"fault_kind": fault.kind.value, "target": target})
                return True
        logger.info("Repair rejected at '%s'; no identified fault pending", target)
        return False

    def all_identified(self) -> bool:
        return bool(self._faults) and all(fault.is_identified for fault in self._faults)

    def all_repaired(self) -> bool:
        return bool(self._faults) and all(fault.is_repaired for fault in self._faults)

    def clear(self) -> None:
        self._faults.clear()
