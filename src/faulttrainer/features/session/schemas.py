from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

__all__ = [
    "CircuitNodePayload",
    "CircuitPayload",
    "DialogueChoiceResult",
    "DialoguePayload",
    "FaultPayload",
    "IdentificationResult",
    "ReadingPayload",
    "RepairResult",
    "SessionSnapshot",
    "SummaryPayload",
]


class _APIModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class DialoguePayload(_APIModel):
    complete: bool
    score: int
    max_score: int
    node_id: str | None = None
    speaker: str | None = None
    text: str | None = None
    choices: list[str] = []


class FaultPayload(_APIModel):
    kind: str
    target: str
    status: str


class SessionSnapshot(_APIModel):
    session: str
    scenario: str
    title: str
    complaint: str
    mode: str
    nodes: list[str]
    dialogue: DialoguePayload
    faults_remaining: int
    steps: int
    milestones: list[str]


class DialogueChoiceResult(_APIModel):
    response: str
    dialogue: DialoguePayload


class ReadingPayload(_APIModel):
    action: str
    target: str
    reading: str
    voltage: float | None = None
    continuity: bool | None = None


class IdentificationResult(_APIModel):
    correct: bool
    node: str
    kind: str


class RepairResult(_APIModel):
    repaired: bool
    node: str
    all_repaired: bool


class CircuitNodePayload(_APIModel):
    id: str
    kind: str
    energized: bool
    voltage: float
    device: str | None = None
    device_state: str | None = None


class CircuitPayload(_APIModel):
    nodes: list[CircuitNodePayload]
    energized_count: int


class SummaryPayload(_APIModel):
    score: float
    passed: bool
    grade: str
    diagnostic_points: int
    max_diagnostic_points: int
    diagnostic_ratio: float
    fault_identified: bool
    fault_repaired: bool
    milestones_completed: int
    total_milestones: int
    time_used: float
    time_bonus: float
    steps: int
    faults: list[FaultPayload]
