from __future__ import annotations

import logging
import math
import random
import secrets
import string
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from ...circuit.devices import Breaker, Device, LightSwitch, describe_state
from ...circuit.simulator import CircuitSimulator
from ...core.scoring import MODES, PRACTICE, calculate_troubleshooting_score
from ...data.scenario_loader import DEFAULT_SCENARIO, Scenario, ScenarioRepository
from ...dialogue.runner import DialogueRunner
from ...dialogue.tree import DialogueTree
from ...faults.injector import FaultInjector, FaultKind
from ...faults.recorder import CHECK_CONTINUITY, MEASURE_VOLTAGE, DiagnosticRecorder
from ...faults.state_model import FaultStateModel
from .concurrency import run_blocking
from .schemas import (
    CircuitNodePayload,
    CircuitPayload,
    DialogueChoiceResult,
    DialoguePayload,
    FaultPayload,
    IdentificationResult,
    ReadingPayload,
    RepairResult,
    SessionSnapshot,
    SummaryPayload,
)

__all__ = [
    "MILESTONES",
    "SessionConfig",
    "SessionManager",
    "SessionState",
    "parse_guess",
]

logger = logging.getLogger(__name__)

INTERVIEW = "interview"
MEASURE = "measure"
IDENTIFY = "identify"
REPAIR = "repair"
VERIFY = "verify"
MILESTONES = (INTERVIEW, MEASURE, IDENTIFY, REPAIR, VERIFY)


@dataclass(frozen=True)
class SessionConfig:
    """Configuration for a troubleshooting session."""

    scenario: str = DEFAULT_SCENARIO
    seed: int | None = None
    mode: str = PRACTICE
    time_limit_seconds: float = 0.0
    randomize_fault: bool = False


@dataclass
class SessionState:
    config: SessionConfig
    scenario: Scenario
    rng: random.Random
    model: FaultStateModel
    injector: FaultInjector
    recorder: DiagnosticRecorder
    tree: DialogueTree
    runner: DialogueRunner
    circuit: CircuitSimulator
    started_at: float
    milestones: set[str] = field(default_factory=set)


class SessionManager:
    """Owns troubleshooting sessions independent of the presentation layer."""

    def __init__(
        self,
        scenarios: ScenarioRepository | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._scenarios = scenarios if scenarios is not None else ScenarioRepository()
        self._clock = clock
        self._sessions: dict[str, SessionState] = {}
        self._lock = threading.Lock()

    # -------------------------------------------------------------- lifecycle
    def create_session(self, config: SessionConfig) -> str:
        seed = config.seed if config.seed is not None else secrets.SystemRandom().getrandbits(32)
        scenario_id = config.scenario if config.scenario in self._scenarios else DEFAULT_SCENARIO
        if scenario_id != config.scenario:
            logger.warning("Unknown scenario %r; using %s", config.scenario, scenario_id)
        mode = (config.mode or PRACTICE).strip().lower()
        if mode not in MODES:
            mode = PRACTICE
        time_limit = float(config.time_limit_seconds)
        if not math.isfinite(time_limit) or time_limit < 0:
            time_limit = 0.0
        normalized = SessionConfig(
            scenario=scenario_id,
            seed=seed,
            mode=mode,
            time_limit_seconds=time_limit,
            randomize_fault=config.randomize_fault,
        )
        state = self._build_state(normalized)
        session_id = _sid()
        with self._lock:
            self._sessions[session_id] = state
        logger.info("Session created", extra={"session_id": session_id, "scenario": scenario_id, "seed": seed})
        return session_id

    async def create_session_async(self, config: SessionConfig) -> str:
        return await run_blocking(self.create_session, config)

    def reset_session(self, session_id: str) -> SessionSnapshot:
        with self._lock:
            state = self._require_session(session_id)
            fresh = self._build_state(state.config)
            self._sessions[session_id] = fresh
            return _snapshot(session_id, fresh)

    async def reset_session_async(self, session_id: str) -> SessionSnapshot:
        return await run_blocking(self.reset_session, session_id)

    def snapshot(self, session_id: str) -> SessionSnapshot:
        with self._lock:
            return _snapshot(session_id, self._require_session(session_id))

    async def snapshot_async(self, session_id: str) -> SessionSnapshot:
        return await run_blocking(self.snapshot, session_id)

    # --------------------------------------------------------------- dialogue
    def dialogue(self, session_id: str) -> DialoguePayload:
        with self._lock:
            return _dialogue_payload(self._require_session(session_id).runner)

    async def dialogue_async(self, session_id: str) -> DialoguePayload:
        return await run_blocking(self.dialogue, session_id)

    def choose(self, session_id: str, choice_index: int) -> DialogueChoiceResult:
        with self._lock:
            state = self._require_session(session_id)
            if state.runner.is_complete:
                raise ValueError("dialogue already complete")
            response = state.runner.select_choice(choice_index)
            if response is None:
                raise ValueError("choice index out of range")
            if state.runner.is_complete or state.runner.score > 0:
                state.milestones.add(INTERVIEW)
            return DialogueChoiceResult(response=response, dialogue=_dialogue_payload(state.runner))

    async def choose_async(self, session_id: str, choice_index: int) -> DialogueChoiceResult:
        return await run_blocking(self.choose, session_id, choice_index)

    def advance(self, session_id: str) -> DialoguePayload:
        with self._lock:
            state = self._require_session(session_id)
            if state.runner.is_complete:
                raise ValueError("dialogue already complete")
            state.runner.advance_to_next()
            if state.runner.is_complete:
                state.milestones.add(INTERVIEW)
            return _dialogue_payload(state.runner)

    async def advance_async(self, session_id: str) -> DialoguePayload:
        return await run_blocking(self.advance, session_id)

    # ------------------------------------------------------------ diagnostics
    def measure_voltage(self, session_id: str, node_id: str) -> ReadingPayload:
        with self._lock:
            state = self._require_session(session_id)
            voltage = state.model.measure_voltage(node_id)
            reading = f"{voltage:.1f}V"
            state.recorder.record_step(MEASURE_VOLTAGE, node_id, reading)
            _note_measurement(state)
            return ReadingPayload(action=MEASURE_VOLTAGE, target=node_id, reading=reading, voltage=voltage)

    async def measure_voltage_async(self, session_id: str, node_id: str) -> ReadingPayload:
        return await run_blocking(self.measure_voltage, session_id, node_id)

    def check_continuity(self, session_id: str, node_a: str, node_b: str) -> ReadingPayload:
        with self._lock:
            state = self._require_session(session_id)
            continuity = state.model.check_continuity(node_a, node_b)
            target = f"{node_a}-to-{node_b}"
            reading = "CONTINUOUS" if continuity else "OPEN"
            state.recorder.record_step(CHECK_CONTINUITY, target, reading)
            _note_measurement(state)
            return ReadingPayload(action=CHECK_CONTINUITY, target=target, reading=reading, continuity=continuity)

    async def check_continuity_async(self, session_id: str, node_a: str, node_b: str) -> ReadingPayload:
        return await run_blocking(self.check_continuity, session_id, node_a, node_b)

    def identify(self, session_id: str, node_id: str, kind: str) -> IdentificationResult:
        guess = parse_guess(kind)
        with self._lock:
            state = self._require_session(session_id)
            correct = state.recorder.attempt_identification(node_id, guess, state.injector)
            if correct:
                state.milestones.add(IDENTIFY)
            return IdentificationResult(correct=correct, node=node_id, kind=guess.value)

    async def identify_async(self, session_id: str, node_id: str, kind: str) -> IdentificationResult:
        return await run_blocking(self.identify, session_id, node_id, kind)

    def repair(self, session_id: str, node_id: str) -> RepairResult:
        with self._lock:
            state = self._require_session(session_id)
            repaired = state.injector.repair_fault(node_id)
            if repaired:
                state.milestones.add(REPAIR)
            return RepairResult(repaired=repaired, node=node_id, all_repaired=state.injector.all_repaired())

    async def repair_async(self, session_id: str, node_id: str) -> RepairResult:
        return await run_blocking(self.repair, session_id, node_id)

    # ----------------------------------------------------------------- wiring
    def circuit(self, session_id: str) -> CircuitPayload:
        with self._lock:
            state = self._require_session(session_id)
            state.circuit.propagate()
            return _circuit_payload(state.circuit)

    async def circuit_async(self, session_id: str) -> CircuitPayload:
        return await run_blocking(self.circuit, session_id)

    def operate_device(self, session_id: str, device_id: str, action: str) -> CircuitPayload:
        with self._lock:
            state = self._require_session(session_id)
            device = state.circuit.devices.get(device_id)
            if device is None:
                raise KeyError(f"device '{device_id}' not found")
            _apply_device_action(device, (action or "").strip().lower())
            state.circuit.propagate()
            return _circuit_payload(state.circuit)

    async def operate_device_async(self, session_id: str, device_id: str, action: str) -> CircuitPayload:
        return await run_blocking(self.operate_device, session_id, device_id, action)

    # ---------------------------------------------------------------- summary
    def summary(self, session_id: str) -> SummaryPayload:
        with self._lock:
            state = self._require_session(session_id)
            return _summary_payload(state, self._clock() - state.started_at)

    async def summary_async(self, session_id: str) -> SummaryPayload:
        return await run_blocking(self.summary, session_id)

    # ---------------------------------------------------------------- helpers
    def _build_state(self, config: SessionConfig) -> SessionState:
        scenario = self._scenarios.get(config.scenario)
        rng = random.Random(config.seed)
        model = scenario.build_fault_model(rng)
        injector = FaultInjector(model)
        scenario.inject_faults(injector, rng, randomize=config.randomize_fault)
        tree = scenario.build_dialogue()
        runner = DialogueRunner()
        runner.initialize(tree)
        circuit = scenario.build_circuit()
        circuit.propagate()
        return SessionState(
            config=config,
            scenario=scenario,
            rng=rng,
            model=model,
            injector=injector,
            recorder=DiagnosticRecorder(clock=self._clock),
            tree=tree,
            runner=runner,
            circuit=circuit,
            started_at=self._clock(),
        )

    def _require_session(self, session_id: str) -> SessionState:
        state = self._sessions.get(session_id)
        if state is None:
            raise KeyError(f"session '{session_id}' not found")
        return state


def _sid(length: int = 10) -> str:
    alphabet = string.ascii_lowercase + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))


def parse_guess(raw: str) -> FaultKind:
    """Strict counterpart of ``parse_fault_kind`` for player input."""

    token = (raw or "").strip().lower().replace("_", "-")
    try:
        return FaultKind(token)
    except ValueError as exc:
        raise ValueError(f"unknown fault kind '{raw}'") from exc


def _note_measurement(state: SessionState) -> None:
    state.milestones.add(MEASURE)
    if state.injector.all_repaired():
        state.milestones.add(VERIFY)


def _apply_device_action(device: Device, action: str) -> None:
    if isinstance(device, Breaker):
        handlers = {"on": device.turn_on, "off": device.turn_off, "toggle": device.toggle, "trip": device.trip}
    elif isinstance(device, LightSwitch):
        handlers = {"on": device.turn_on, "off": device.turn_off, "toggle": device.toggle}
    else:
        handlers = {"test": device.test, "reset": device.reset}
    handler = handlers.get(action)
    if handler is None:
        raise ValueError(f"action '{action}' not supported for {type(device).__name__}")
    handler()


def _circuit_payload(circuit: CircuitSimulator) -> CircuitPayload:
    nodes = [
        CircuitNodePayload(
            id=node.id,
            kind=node.kind,
            energized=node.energized,
            voltage=circuit.voltage(node.id),
            device=node.device_id,
            device_state=describe_state(circuit.devices.get(node.device_id)) if node.device_id else None,
        )
        for node in circuit.graph
    ]
    return CircuitPayload(nodes=nodes, energized_count=circuit.energized_count())


def _dialogue_payload(runner: DialogueRunner) -> DialoguePayload:
    node = runner.current_node()
    if node is None:
        return DialoguePayload(complete=True, score=runner.score, max_score=runner.max_score)
    return DialoguePayload(
        complete=False,
        score=runner.score,
        max_score=runner.max_score,
        node_id=node.id,
        speaker=node.speaker,
        text=node.text,
        choices=runner.choice_texts(),
    )


def _fault_payloads(injector: FaultInjector) -> list[FaultPayload]:
    return [FaultPayload(kind=fault.kind.value, target=fault.target, status=fault.status) for fault in injector.faults]


def _snapshot(session_id: str, state: SessionState) -> SessionSnapshot:
    return SessionSnapshot(
        session=session_id,
        scenario=state.scenario.id,
        title=state.scenario.title,
        complaint=state.scenario.complaint,
        mode=state.config.mode,
        nodes=state.model.node_ids,
        dialogue=_dialogue_payload(state.runner),
        faults_remaining=len(state.injector.active_faults()),
        steps=state.recorder.step_count,
        milestones=[name for name in MILESTONES if name in state.milestones],
    )


def _summary_payload(state: SessionState, time_used: float) -> SummaryPayload:
    runner = state.runner
    result = calculate_troubleshooting_score(
        diagnostic_points=runner.score,
        max_diagnostic_points=runner.max_score,
        fault_identified=state.injector.all_identified(),
        fault_repaired=state.injector.all_repaired(),
        milestones_completed=len(state.milestones),
        total_milestones=len(MILESTONES),
        time_used=time_used,
        time_limit=state.config.time_limit_seconds,
        mode=state.config.mode,
    )
    return SummaryPayload(
        score=result.score,
        passed=result.passed,
        grade=result.grade,
        diagnostic_points=result.diagnostic_points,
        max_diagnostic_points=result.max_diagnostic_points,
        diagnostic_ratio=runner.diagnostic_ratio(),
        fault_identified=result.fault_identified,
        fault_repaired=result.fault_repaired,
        milestones_completed=result.milestones_completed,
        total_milestones=result.total_milestones,
        time_used=result.time_used,
        time_bonus=result.time_bonus,
        steps=state.recorder.step_count,
        faults=_fault_payloads(state.injector),
    )
