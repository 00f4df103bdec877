from __future__ import annotations

import argparse
import logging
import random
import secrets
import sys

from .data.scenario_loader import DEFAULT_SCENARIO, ScenarioRepository
from .dialogue.runner import DialogueRunner
from .faults.injector import FaultInjector
from .ui.presenters import RichPresenter


def _add_inspect_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--scenario", type=str, default=DEFAULT_SCENARIO, help="Scenario id to inspect")
    p.add_argument("--seed", type=int, default=None, help="RNG seed (random if omitted)")
    p.add_argument("--randomize", action="store_true", help="Place the fault at a random candidate node")
    p.add_argument("--no-color", action="store_true", help="Disable colored output (default is colored)")


def _add_serve_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--host", type=str, default=None, help="Bind address (defaults to $BIND or 0.0.0.0)")
    p.add_argument("--port", type=int, default=None, help="Listen port (defaults to $PORT or 8000)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="faulttrainer", description="Residential circuit troubleshooting trainer")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")
    _add_inspect_args(sub.add_parser("inspect", help="Show a scenario's wiring and fault readings"))
    _add_serve_args(sub.add_parser("serve", help="Run the HTTP API"))
    sub.add_parser("list", help="List available scenarios")
    return parser


def run_inspect(
    *,
    scenario_id: str = DEFAULT_SCENARIO,
    seed: int | None = None,
    randomize: bool = False,
    no_color: bool = False,
    presenter: RichPresenter | None = None,
) -> int:
    repository = ScenarioRepository()
    presenter = presenter or RichPresenter(no_color=no_color)
    if scenario_id not in repository:
        presenter.console.print(f"[red]Unknown scenario[/] '{scenario_id}'. Available: {', '.join(repository.ids())}")
        return 2
    scenario = repository.get(scenario_id)
    seed = seed if seed is not None else secrets.SystemRandom().getrandbits(32)
    rng = random.Random(seed)

    model = scenario.build_fault_model(rng)
    injector = FaultInjector(model)
    scenario.inject_faults(injector, rng, randomize=randomize)
    circuit = scenario.build_circuit()
    circuit.propagate()
    tree = scenario.build_dialogue()
    runner = DialogueRunner()
    runner.initialize(tree)

    presenter.show_scenario(scenario, seed)
    presenter.show_circuit(circuit)
    presenter.show_fault_model(model, injector)
    presenter.show_dialogue(tree, runner.max_score)
    return 0


def run_list(*, presenter: RichPresenter | None = None) -> int:
    repository = ScenarioRepository()
    presenter = presenter or RichPresenter()
    for scenario_id in repository.ids():
        presenter.console.print(f"{scenario_id}: {repository.get(scenario_id).title}")
    return 0


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        from .web.app import main as serve

        serve(host=args.host, port=args.port)
        return
    if args.command == "list":
        raise SystemExit(run_list())
    if args.command == "inspect":
        raise SystemExit(
            run_inspect(scenario_id=args.scenario, seed=args.seed, randomize=args.randomize, no_color=args.no_color)
        )
    parser.print_help()


if __name__ == "__main__":
    main()
