from __future__ import annotations

import json
import random
from pathlib import Path

import pytest

from faulttrainer.data.scenario_loader import (
    DEFAULT_SCENARIO,
    ScenarioLoaderConfig,
    ScenarioRepository,
    parse_scenario,
)
from faulttrainer.dialogue.runner import DialogueRunner
from faulttrainer.faults.injector import FaultInjector, FaultKind
from faulttrainer.faults.state_model import NodeState


def _minimal() -> dict[str, object]:
    return {
        "id": "tiny",
        "nodes": ["a", "b"],
        "connections": [["a", "b"]],
        "faults": [{"kind": "bad-splice", "target": "b"}],
        "dialogue": [{"id": "hello", "speaker": "Customer", "text": "Hi"}],
    }


def test_shipped_scenarios_load():
    repository = ScenarioRepository()
    assert DEFAULT_SCENARIO in repository
    assert "kitchen-gfci" in repository.ids()


def test_default_scenario_builds_every_model():
    scenario = ScenarioRepository().get(DEFAULT_SCENARIO)
    rng = random.Random(3)

    model = scenario.build_fault_model(rng)
    injector = FaultInjector(model)
    scenario.inject_faults(injector, rng)
    assert model.state_of("junction-box-1") is NodeState.INTERMITTENT
    assert [fault.kind for fault in injector.faults] == [FaultKind.LOOSE_CONNECTION]

    circuit = scenario.build_circuit()
    circuit.propagate()
    assert circuit.is_energized("outlet-couch")
    assert circuit.is_energized("light-hall")

    runner = DialogueRunner()
    runner.initialize(scenario.build_dialogue())
    assert runner.max_score == 6


def test_kitchen_scenario_gfci_gates_outlets():
    scenario = ScenarioRepository().get("kitchen-gfci")
    circuit = scenario.build_circuit()
    gfci = circuit.devices.get("gfci-counter")
    gfci.test()
    circuit.propagate()
    assert not circuit.is_energized("outlet-kettle")
    assert circuit.is_energized("breaker-20")


def test_randomized_faults_use_candidates():
    scenario = ScenarioRepository().get(DEFAULT_SCENARIO)
    rng = random.Random(11)
    injector = FaultInjector(scenario.build_fault_model(rng))
    scenario.inject_faults(injector, rng, randomize=True)

    (fault,) = injector.faults
    assert fault.target in scenario.random_fault.candidates
    assert fault.kind in scenario.random_fault.kinds


def test_unknown_repository_id_raises_key_error():
    with pytest.raises(KeyError):
        ScenarioRepository().get("attic-fan")


def test_parse_minimal_scenario():
    scenario = parse_scenario(_minimal())
    assert scenario.title == "tiny"
    assert scenario.random_fault is None
    assert scenario.build_circuit().graph.node_count == 0


@pytest.mark.parametrize(
    "mutate",
    [
        lambda data: data.pop("id"),
        lambda data: data.update(connections=[["a", "zzz"]]),
        lambda data: data.update(faults=[]),
        lambda data: data.update(dialogue=[{"speaker": "Customer"}]),
        lambda data: data.update(random_fault={"candidates": []}),
        lambda data: data.update(wiring={"devices": [{"id": "x", "type": "dimmer"}]}),
        lambda data: data.update(faults=["bad-splice"]),
        lambda data: data.update(faults=[{"kind": "bad-splice"}]),
        lambda data: data.update(faults=[{"kind": "bad-splice", "target": "zzz"}]),
        lambda data: data.update(random_fault={"candidates": ["zzz"]}),
        lambda data: data.update(random_fault=["a"]),
        lambda data: data.update(dialogue=[{"id": "hello", "choices": ["Hi?"]}]),
        lambda data: data.update(wiring=["panel"]),
        lambda data: data.update(wiring={"nodes": [{"id": "p"}]}),
        lambda data: data.update(wiring={"nodes": [{"id": "p", "kind": "panel"}, {"id": "p", "kind": "outlet"}]}),
        lambda data: data.update(wiring={"nodes": [{"id": "p", "kind": "panel"}], "edges": [{"from": "p"}]}),
        lambda data: data.update(
            wiring={"nodes": [{"id": "p", "kind": "panel"}], "edges": [{"from": "p", "to": "ghost"}]}
        ),
        lambda data: data.update(wiring={"devices": [{"type": "breaker"}]}),
    ],
)
def test_malformed_scenarios_raise_value_error(mutate):
    data = _minimal()
    mutate(data)
    with pytest.raises(ValueError):
        scenario = parse_scenario(data)
        scenario.build_circuit()


def test_repository_reads_custom_directory(tmp_path: Path):
    (tmp_path / "tiny.json").write_text(json.dumps(_minimal()), encoding="utf-8")
    repository = ScenarioRepository(ScenarioLoaderConfig(directory=tmp_path))
    assert repository.ids() == ["tiny"]


def test_repository_rejects_duplicate_ids(tmp_path: Path):
    for name in ("one.json", "two.json"):
        (tmp_path / name).write_text(json.dumps(_minimal()), encoding="utf-8")
    with pytest.raises(ValueError):
        ScenarioRepository(ScenarioLoaderConfig(directory=tmp_path))


def test_duplicate_wiring_edge_fails_circuit_build():
    data = _minimal()
    data["wiring"] = {
        "nodes": [{"id": "p", "kind": "panel"}, {"id": "o", "kind": "outlet"}],
        "edges": [{"from": "p", "to": "o"}, {"from": "p", "to": "o"}],
    }
    scenario = parse_scenario(data)
    with pytest.raises(ValueError, match="edge already exists"):
        scenario.build_circuit()
