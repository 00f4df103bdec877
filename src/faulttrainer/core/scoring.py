from __future__ import annotations

import math
from dataclasses import dataclass

__all__ = [
    "LEARN",
    "PASSING_THRESHOLD",
    "PRACTICE",
    "TEST",
    "TroubleshootingScore",
    "calculate_troubleshooting_score",
    "grade_for_score",
]

LEARN = "learn"
PRACTICE = "practice"
TEST = "test"
MODES = (LEARN, PRACTICE, TEST)

PASSING_THRESHOLD = 80.0

# Component weights (points out of 100).
DIAGNOSTIC_WEIGHT = 30.0
IDENTIFY_WEIGHT = 25.0
REPAIR_WEIGHT = 25.0
MILESTONE_WEIGHT = 10.0

# Test-mode time bonus bands, as a fraction of the time limit.
FAST_TIME_RATIO = 0.5
FAST_TIME_BONUS = 10.0
STEADY_TIME_RATIO = 0.75
STEADY_TIME_BONUS = 5.0

_GRADES = (
    (95.0, "A+"),
    (90.0, "A"),
    (85.0, "B+"),
    (80.0, "B"),
    (75.0, "C+"),
    (70.0, "C"),
    (60.0, "D"),
)


@dataclass(frozen=True)
class TroubleshootingScore:
    score: float
    passed: bool
    grade: str
    diagnostic_points: int
    max_diagnostic_points: int
    diagnostic_score: float
    fault_identified: bool
    fault_repaired: bool
    milestones_completed: int
    total_milestones: int
    milestone_score: float
    time_used: float
    time_bonus: float
    mode: str


def _ratio(part: float, whole: float) -> float:
    if whole <= 0:
        return 0.0
    return max(0.0, min(1.0, part / whole))


def time_bonus(time_used: float, time_limit: float, mode: str) -> float:
    if mode != TEST or not math.isfinite(time_limit) or time_limit <= 0 or not math.isfinite(time_used):
        return 0.0
    ratio = time_used / time_limit
    if ratio < FAST_TIME_RATIO:
        return FAST_TIME_BONUS
    if ratio < STEADY_TIME_RATIO:
        return STEADY_TIME_BONUS
    return 0.0


def calculate_troubleshooting_score(
    *,
    diagnostic_points: int,
    max_diagnostic_points: int,
    fault_identified: bool,
    fault_repaired: bool,
    milestones_completed: int = 0,
    total_milestones: int = 0,
    time_used: float = 0.0,
    time_limit: float = 0.0,
    mode: str = PRACTICE,
) -> TroubleshootingScore:
    """Blend interview, diagnosis, repair, milestones and speed into 0-100."""

    diagnostic_score = _ratio(diagnostic_points, max_diagnostic_points) * DIAGNOSTIC_WEIGHT
    identify_score = IDENTIFY_WEIGHT if fault_identified else 0.0
    repair_score = REPAIR_WEIGHT if fault_repaired else 0.0
    milestone_score = _ratio(milestones_completed, total_milestones) * MILESTONE_WEIGHT
    bonus = time_bonus(time_used, time_limit, mode)

    raw = diagnostic_score + identify_score + repair_score + milestone_score + bonus
    score = max(0.0, min(100.0, raw))
    return TroubleshootingScore(
        score=score,
        passed=score >= PASSING_THRESHOLD,
        grade=grade_for_score(score),
        diagnostic_points=diagnostic_points,
        max_diagnostic_points=max_diagnostic_points,
        diagnostic_score=diagnostic_score,
        fault_identified=fault_identified,
        fault_repaired=fault_repaired,
        milestones_completed=milestones_completed,
        total_milestones=total_milestones,
        milestone_score=milestone_score,
        time_used=time_used,
        time_bonus=bonus,
        mode=mode,
    )


def grade_for_score(score: float) -> str:
    for floor, grade in _GRADES:
        if score >= floor:
            return grade
    return "F"
