from __future__ import annotations

from faulttrainer.circuit.devices import Breaker, BreakerState, DeviceRegistry, GfciOutlet, LightSwitch
from faulttrainer.circuit.graph import BREAKER, FIXTURE, GFCI, OUTLET, PANEL, SWITCH, CircuitGraph
from faulttrainer.circuit.propagation import NOMINAL_VOLTAGE, EnergyPropagator
from faulttrainer.circuit.simulator import CircuitSimulator


def _simple_circuit() -> tuple[CircuitSimulator, Breaker]:
    sim = CircuitSimulator()
    breaker = sim.devices.register("brk-1", Breaker())
    sim.graph.add_node("panel", PANEL)
    sim.graph.add_node("breaker", BREAKER, "brk-1")
    sim.graph.add_node("outlet", OUTLET)
    sim.graph.add_edge("panel", "breaker")
    sim.graph.add_edge("breaker", "outlet")
    return sim, breaker


def test_nodes_read_dead_before_first_propagation():
    graph = CircuitGraph()
    graph.add_node("panel", PANEL)
    graph.add_node("outlet", OUTLET)
    graph.add_edge("panel", "outlet")
    propagator = EnergyPropagator(graph)

    assert propagator.has_run is False
    assert propagator.is_energized("panel") is False
    assert propagator.voltage("panel") == 0.0
    assert propagator.voltage("outlet") == 0.0
    assert propagator.energized_count() == 0

    propagator.propagate()
    assert propagator.is_energized("panel") is True
    assert propagator.voltage("outlet") == NOMINAL_VOLTAGE


def test_breaker_off_de_energizes_downstream():
    sim, breaker = _simple_circuit()

    sim.propagate()
    assert sim.is_energized("outlet")
    assert sim.voltage("outlet") == NOMINAL_VOLTAGE

    breaker.turn_off()
    sim.propagate()
    assert not sim.is_energized("outlet")
    assert not sim.is_energized("breaker")
    assert sim.is_energized("panel")
    assert sim.voltage("outlet") == 0.0


def test_tripped_breaker_blocks_and_toggle_restores():
    sim, breaker = _simple_circuit()
    breaker.trip()
    sim.propagate()
    assert not sim.is_energized("outlet")

    breaker.toggle()
    assert breaker.state is BreakerState.ON
    sim.propagate()
    assert sim.is_energized("outlet")


def test_propagate_is_idempotent():
    sim, _ = _simple_circuit()
    first = sim.propagate()
    second = sim.propagate()
    assert first == second
    assert sim.energized_count() == 3


def test_energized_nodes_are_reachable_from_panel():
    sim, _ = _simple_circuit()
    sim.graph.add_node("island", OUTLET)
    energized = sim.propagate()

    assert "island" not in energized
    for node_id in energized:
        assert sim.has_continuity("panel", node_id)


def test_disconnected_edge_stops_energy():
    sim, _ = _simple_circuit()
    sim.graph.disconnect_edge("breaker", "outlet")
    sim.propagate()
    assert not sim.is_energized("outlet")


def test_energy_flows_against_edge_direction():
    sim = CircuitSimulator()
    sim.graph.add_node("panel", PANEL)
    sim.graph.add_node("outlet", OUTLET)
    sim.graph.add_edge("outlet", "panel")
    sim.propagate()
    assert sim.is_energized("outlet")


def test_switch_and_gfci_gate_energy():
    graph = CircuitGraph()
    devices = DeviceRegistry()
    switch = devices.register("sw", LightSwitch())
    gfci = devices.register("gf", GfciOutlet())
    graph.add_node("panel", PANEL)
    graph.add_node("switch", SWITCH, "sw")
    graph.add_node("light", FIXTURE)
    graph.add_node("gfci", GFCI, "gf")
    graph.add_node("outlet", OUTLET)
    graph.add_edge("panel", "switch")
    graph.add_edge("switch", "light")
    graph.add_edge("panel", "gfci")
    graph.add_edge("gfci", "outlet")
    propagator = EnergyPropagator(graph, devices)

    assert propagator.propagate() == {"panel", "switch", "light", "gfci", "outlet"}

    switch.toggle()
    assert gfci.test() is True
    assert propagator.propagate() == {"panel"}

    assert gfci.reset() is True
    switch.turn_on()
    assert propagator.propagate() == {"panel", "switch", "light", "gfci", "outlet"}


def test_faulty_gfci_cannot_be_tested_or_reset():
    gfci = GfciOutlet(tripped=True, faulty=True)
    assert gfci.reset() is False
    assert gfci.tripped
    assert gfci.test() is False


def test_nodes_without_devices_pass():
    graph = CircuitGraph()
    graph.add_node("panel", PANEL)
    graph.add_node("breaker", BREAKER)
    graph.add_node("switch", SWITCH, "sw-missing")
    graph.add_edge("panel", "breaker")
    graph.add_edge("breaker", "switch")

    assert EnergyPropagator(graph).propagate() == {"panel", "breaker", "switch"}
    assert EnergyPropagator(graph, DeviceRegistry()).propagate() == {"panel", "breaker", "switch"}


def test_graph_without_panel_has_no_energy():
    graph = CircuitGraph()
    graph.add_node("outlet", OUTLET)
    propagator = EnergyPropagator(graph)
    assert propagator.propagate() == set()
    assert propagator.has_run
    assert propagator.is_energized("ghost") is False


def test_debug_summary_lists_nodes_and_edges():
    sim, _ = _simple_circuit()
    sim.propagate()
    text = sim.debug_summary()
    assert "3 nodes, 2 edges" in text
    assert "[outlet] kind=outlet, energized=True" in text
    assert "panel -> breaker (hot) connected=True" in text
