from __future__ import annotations

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..circuit.devices import describe_state
from ..circuit.simulator import CircuitSimulator
from ..data.scenario_loader import Scenario
from ..dialogue.tree import DialogueTree
from ..faults.injector import FaultInjector
from ..faults.state_model import FaultStateModel, NodeState

_STATE_STYLE = {
    NodeState.ENERGIZED: "green",
    NodeState.DE_ENERGIZED: "dim",
    NodeState.OPEN: "bold red",
    NodeState.HIGH_RESISTANCE: "yellow",
    NodeState.INTERMITTENT: "magenta",
    NodeState.OVERLOADED: "red",
}


class RichPresenter:
    def __init__(self, *, no_color: bool = False, console: Console | None = None):
        # Colour is forced on unless no_color is set.
        if console is not None:
            self.console = console
        elif no_color:
            self.console = Console(force_terminal=False, color_system=None)
        else:
            self.console = Console(force_terminal=True, color_system="auto")

    def show_scenario(self, scenario: Scenario, seed: int) -> None:
        body = f"[bold]{scenario.title}[/]\n{scenario.complaint}\n\nSeed: {seed}"
        self.console.print(Panel(body, title=scenario.id, border_style="bold cyan", expand=False))
        self.console.print()

    def show_circuit(self, circuit: CircuitSimulator) -> None:
        table = Table(title="Wiring", box=box.SIMPLE_HEAVY)
        table.add_column("Node")
        table.add_column("Kind")
        table.add_column("Device")
        table.add_column("State")
        table.add_column("Voltage", justify="right")
        for node in circuit.graph:
            device_state = describe_state(circuit.devices.get(node.device_id)) if node.device_id else None
            voltage = circuit.voltage(node.id)
            style = "green" if node.energized else "dim"
            table.add_row(
                node.id,
                node.kind,
                node.device_id or "-",
                device_state or "-",
                f"[{style}]{voltage:.1f}V[/]",
            )
        self.console.print(table)
        self.console.print(f"Energized nodes: {circuit.energized_count()}/{circuit.graph.node_count}")
        self.console.print()

    def show_fault_model(self, model: FaultStateModel, injector: FaultInjector) -> None:
        table = Table(title="Troubleshooting readings", box=box.SIMPLE_HEAVY)
        table.add_column("Node")
        table.add_column("State")
        table.add_column("Voltage", justify="right")
        table.add_column("Fault")
        for node_id, (state, voltage) in model.snapshot().items():
            fault = injector.fault_at(node_id)
            style = _STATE_STYLE.get(state, "white")
            table.add_row(
                node_id,
                f"[{style}]{state.value}[/]",
                f"{voltage:.1f}V",
                f"{fault.kind.value} ({fault.status})" if fault else "-",
            )
        self.console.print(table)
        self.console.print()

    def show_dialogue(self, tree: DialogueTree, max_score: int) -> None:
        table = Table(title=f"Customer interview (max {max_score} pts)", box=box.SIMPLE)
        table.add_column("Node")
        table.add_column("Choice")
        table.add_column("Pts", justify="right")
        table.add_column("Next")
        for node in tree:
            if not node.choices:
                table.add_row(node.id, "[dim]end of conversation[/]", "", node.next_id or "-")
                continue
            for choice in node.choices:
                table.add_row(node.id, choice.text, str(choice.diagnostic_points), choice.next_id or node.next_id or "-")
        self.console.print(table)
