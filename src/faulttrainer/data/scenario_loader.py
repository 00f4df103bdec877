from __future__ import annotations

import json
import logging
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..circuit.devices import Breaker, BreakerState, Device, GfciOutlet, LightSwitch
from ..circuit.graph import HOT
from ..circuit.simulator import CircuitSimulator
from ..dialogue.tree import Choice, DialogueNode, DialogueTree
from ..faults.injector import FaultInjector, FaultKind, parse_fault_kind
from ..faults.state_model import FaultStateModel

__all__ = [
    "DEFAULT_SCENARIO",
    "DeviceSpec",
    "FaultSpec",
    "RandomFaultSpec",
    "Scenario",
    "ScenarioLoaderConfig",
    "ScenarioRepository",
    "parse_scenario",
]

logger = logging.getLogger(__name__)

DEFAULT_SCENARIO = "living-room-outlet"

BREAKER_DEVICE = "breaker"
SWITCH_DEVICE = "switch"
GFCI_DEVICE = "gfci"

WiringNode = tuple[str, str, str | None]
WiringEdge = tuple[str, str, str]


@dataclass(frozen=True)
class FaultSpec:
    kind: FaultKind
    target: str


@dataclass(frozen=True)
class RandomFaultSpec:
    candidates: tuple[str, ...]
    kinds: tuple[FaultKind, ...]


@dataclass(frozen=True)
class DeviceSpec:
    id: str
    type: str
    settings: dict[str, Any]


@dataclass(frozen=True)
class Scenario:
    """One troubleshooting service call loaded from a JSON resource."""

    id: str
    title: str
    complaint: str
    nodes: tuple[str, ...]
    connections: tuple[tuple[str, str], ...]
    faults: tuple[FaultSpec, ...]
    random_fault: RandomFaultSpec | None
    dialogue: tuple[DialogueNode, ...]
    wiring_nodes: tuple[WiringNode, ...]
    wiring_edges: tuple[WiringEdge, ...]
    devices: tuple[DeviceSpec, ...]

    def build_fault_model(self, rng: random.Random) -> FaultStateModel:
        model = FaultStateModel(rng=rng)
        for node_id in self.nodes:
            model.add_node(node_id)
        for a, b in self.connections:
            model.connect(a, b)
        return model

    def inject_faults(self, injector: FaultInjector, rng: random.Random, *, randomize: bool = False) -> None:
        if randomize and self.random_fault is not None:
            injector.inject_random_fault(rng, self.random_fault.candidates, self.random_fault.kinds)
            return
        for spec in self.faults:
            injector.inject_fault(spec.kind, spec.target)

    def build_circuit(self) -> CircuitSimulator:
        simulator = CircuitSimulator()
        for spec in self.devices:
            simulator.devices.register(spec.id, _build_device(spec))
        results = [simulator.graph.add_node(node_id, kind, device_id) for node_id, kind, device_id in self.wiring_nodes]
        results += [simulator.graph.add_edge(source, target, wire) for source, target, wire in self.wiring_edges]
        failed = [result.detail for result in results if not result.ok]
        if failed:
            raise ValueError(f"scenario '{self.id}' wiring is invalid: {'; '.join(failed)}")
        return simulator

    def build_dialogue(self) -> DialogueTree:
        return DialogueTree.build(self.dialogue)


def _build_device(spec: DeviceSpec) -> Device:
    settings = spec.settings
    if spec.type == BREAKER_DEVICE:
        return Breaker(amps=int(settings.get("amps", 20)), state=BreakerState(settings.get("state", "on")))
    if spec.type == SWITCH_DEVICE:
        return LightSwitch(is_on=bool(settings.get("on", True)))
    if spec.type == GFCI_DEVICE:
        return GfciOutlet(tripped=bool(settings.get("tripped", False)), faulty=bool(settings.get("faulty", False)))
    raise ValueError(f"unknown device type '{spec.type}' for device '{spec.id}'")


def _require(data: dict[str, Any], key: str, kind: type, where: str = "scenario") -> Any:
    value = data.get(key)
    if not isinstance(value, kind):
        raise ValueError(f"{where} field '{key}' must be a {kind.__name__}")
    return value


def _entries(data: dict[str, Any], key: str, where: str = "scenario") -> list[dict[str, Any]]:
    raw = data.get(key) or []
    if not isinstance(raw, list) or not all(isinstance(entry, dict) for entry in raw):
        raise ValueError(f"{where} field '{key}' must be a list of objects")
    return raw


def _parse_dialogue(raw: list[Any]) -> tuple[DialogueNode, ...]:
    nodes: list[DialogueNode] = []
    for entry in raw:
        if not isinstance(entry, dict) or not entry.get("id"):
            raise ValueError("dialogue nodes need an id")
        choices = tuple(
            Choice(
                text=str(choice.get("text", "")),
                response=str(choice.get("response", "")),
                next_id=choice.get("next") or None,
                diagnostic_points=int(choice.get("points", 0)),
            )
            for choice in _entries(entry, "choices", "dialogue node")
        )
        nodes.append(
            DialogueNode(
                id=str(entry["id"]),
                speaker=str(entry.get("speaker", "Customer")),
                text=str(entry.get("text", "")),
                choices=choices,
                next_id=entry.get("next") or None,
            )
        )
    return tuple(nodes)


def _parse_faults(data: dict[str, Any], known: set[str]) -> tuple[FaultSpec, ...]:
    faults: list[FaultSpec] = []
    for entry in _entries(data, "faults"):
        kind = _require(entry, "kind", str, "fault")
        target = _require(entry, "target", str, "fault")
        if target not in known:
            raise ValueError(f"fault target '{target}' is not a declared node")
        faults.append(FaultSpec(kind=parse_fault_kind(kind), target=target))
    return tuple(faults)


def _parse_random_fault(raw: Any, known: set[str]) -> RandomFaultSpec | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValueError("random_fault must be an object")
    candidates = tuple(str(node) for node in raw.get("candidates") or ())
    if not candidates:
        raise ValueError("random_fault needs at least one candidate node")
    unknown = [node for node in candidates if node not in known]
    if unknown:
        raise ValueError(f"random_fault candidates {unknown} are not declared nodes")
    kinds = tuple(parse_fault_kind(str(kind)) for kind in raw.get("kinds") or ())
    return RandomFaultSpec(candidates=candidates, kinds=kinds)


def _parse_wiring(raw: Any) -> tuple[tuple[WiringNode, ...], tuple[WiringEdge, ...], tuple[DeviceSpec, ...]]:
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError("wiring must be an object")

    nodes: list[WiringNode] = []
    declared: set[str] = set()
    for entry in _entries(raw, "nodes", "wiring"):
        node_id = _require(entry, "id", str, "wiring node")
        kind = _require(entry, "kind", str, "wiring node")
        if node_id in declared:
            raise ValueError(f"wiring node '{node_id}' is declared twice")
        declared.add(node_id)
        device = entry.get("device")
        nodes.append((node_id, kind, str(device) if device else None))

    edges: list[WiringEdge] = []
    for entry in _entries(raw, "edges", "wiring"):
        source = _require(entry, "from", str, "wiring edge")
        target = _require(entry, "to", str, "wiring edge")
        for endpoint in (source, target):
            if endpoint not in declared:
                raise ValueError(f"wiring edge {source} -> {target} references unknown node '{endpoint}'")
        edges.append((source, target, str(entry.get("wire", HOT))))

    devices = tuple(
        DeviceSpec(
            id=_require(entry, "id", str, "device"),
            type=_require(entry, "type", str, "device"),
            settings={key: value for key, value in entry.items() if key not in ("id", "type")},
        )
        for entry in _entries(raw, "devices", "wiring")
    )
    return tuple(nodes), tuple(edges), devices


def parse_scenario(data: Any) -> Scenario:
    if not isinstance(data, dict):
        raise ValueError("Invalid scenario payload")
    scenario_id = _require(data, "id", str)
    nodes = tuple(str(node) for node in _require(data, "nodes", list))
    known = set(nodes)

    connections: list[tuple[str, str]] = []
    for pair in data.get("connections", []):
        if not isinstance(pair, list) or len(pair) != 2:
            raise ValueError(f"connection {pair!r} must be a pair of node ids")
        a, b = str(pair[0]), str(pair[1])
        if a not in known or b not in known:
            raise ValueError(f"connection {a} <-> {b} references an unknown node")
        connections.append((a, b))

    faults = _parse_faults(data, known)
    random_fault = _parse_random_fault(data.get("random_fault"), known)
    if not faults and random_fault is None:
        raise ValueError(f"scenario '{scenario_id}' defines no faults")

    wiring_nodes, wiring_edges, devices = _parse_wiring(data.get("wiring"))

    return Scenario(
        id=scenario_id,
        title=str(data.get("title", scenario_id)),
        complaint=str(data.get("complaint", "")),
        nodes=nodes,
        connections=tuple(connections),
        faults=faults,
        random_fault=random_fault,
        dialogue=_parse_dialogue(_require(data, "dialogue", list)),
        wiring_nodes=wiring_nodes,
        wiring_edges=wiring_edges,
        devices=devices,
    )


@dataclass(slots=True)
class ScenarioLoaderConfig:
    directory: Path


class ScenarioRepository:
    """Load the troubleshooting scenarios shipped as JSON resources."""

    def __init__(self, config: ScenarioLoaderConfig | None = None) -> None:
        directory = config.directory if config else Path(__file__).with_name("scenarios")
        self._config = ScenarioLoaderConfig(directory=directory)
        self._scenarios = self._load_directory(directory)

    @staticmethod
    def _load_resource(path: Path) -> Scenario:
        with path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
        return parse_scenario(data)

    @classmethod
    def _load_directory(cls, directory: Path) -> dict[str, Scenario]:
        scenarios: dict[str, Scenario] = {}
        for path in sorted(directory.glob("*.json")):
            scenario = cls._load_resource(path)
            if scenario.id in scenarios:
                raise ValueError(f"duplicate scenario id '{scenario.id}' in {path.name}")
            scenarios[scenario.id] = scenario
        logger.debug("Loaded %d scenario(s) from %s", len(scenarios), directory)
        return scenarios

    def ids(self) -> list[str]:
        return list(self._scenarios)

    def get(self, scenario_id: str) -> Scenario:
        scenario = self._scenarios.get(scenario_id)
        if scenario is None:
            raise KeyError(f"scenario '{scenario_id}' not found")
        return scenario

    def __contains__(self, scenario_id: object) -> bool:
        return scenario_id in self._scenarios
