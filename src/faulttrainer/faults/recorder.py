from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from .injector import FaultInjector, FaultKind

__all__ = [
    "CHECK_CONTINUITY",
    "MEASURE_VOLTAGE",
    "VISUAL_INSPECT",
    "DiagnosticRecorder",
    "DiagnosticStep",
]

logger = logging.getLogger(__name__)

MEASURE_VOLTAGE = "measure-voltage"
CHECK_CONTINUITY = "check-continuity"
VISUAL_INSPECT = "visual-inspect"


@dataclass(frozen=True)
class DiagnosticStep:
    action: str
    target_node: str
    reading: str
    timestamp: float


class DiagnosticRecorder:
    """Append-only trail of a player's diagnostic actions."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._steps: list[DiagnosticStep] = []
        self.fault_correctly_identified = False
        self.identified_node: str | None = None
        self.identified_kind: FaultKind | None = None

    @property
    def steps(self) -> tuple[DiagnosticStep, ...]:
        return tuple(self._steps)

    @property
    def step_count(self) -> int:
        return len(self._steps)

    def record_step(self, action: str, target_node: str, reading: str) -> DiagnosticStep:
        step = DiagnosticStep(action=action, target_node=target_node, reading=reading, timestamp=self._clock())
        self._steps.append(step)
        logger.debug("Diagnostic step recorded: %s at '%s' = %s", action, target_node, reading)
        return step

    def attempt_identification(self, node_id: str, kind: FaultKind, injector: FaultInjector) -> bool:
        correct = injector.identify_fault(node_id, kind)
        if correct and not self.fault_correctly_identified:
            self.fault_correctly_identified = True
            self.identified_node = node_id
            self.identified_kind = kind
        return correct

    def actions(self) -> set[str]:
        return {step.action for step in self._steps}

    def summary(self) -> str:
        lines = [
            f"Diagnostic Steps: {len(self._steps)}",
            f"Fault Identified: {'Yes' if self.fault_correctly_identified else 'No'}",
        ]
        if self.fault_correctly_identified and self.identified_kind is not None:
            lines.append(f"Fault: {self.identified_kind.value} at {self.identified_node}")
        return "\n".join(lines)
