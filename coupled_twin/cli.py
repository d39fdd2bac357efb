"""
Coupled Twin - Command Line
===========================

Run a coupled simulation from a YAML description and export the results.

Usage:
------
coupled-twin run --steps 500 --format csv --output results.csv
coupled-twin run --config bench.yaml --format matlab --output plot.m

Config File:
------------
Besides the simulation sections (physics, electrical, thermal, mechanical,
failure, history) the file may describe what to simulate:

components:
  electrical:
    - {id: V1, type: voltage_source, value: 12.0, node_a: n1, node_b: ground}
    - {id: R1, type: resistor, value: 100.0, node_a: n1, node_b: ground,
       position: [0, 0, 0], properties: {rated_voltage: 12}}
  physics:
    - {id: board, position: [0, 0, 0], properties: {mass: 0.1, material: copper}}
scenarios:
  - {name: overvoltage_test, parameters: {voltage: 18, duration: 5, componentId: R1}}

Without a components section a small demo circuit is simulated.

Author: Coupled Twin Team
Date: October 17, 2026
"""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .pipeline.manager import SimulationManager
from .pipeline.results import EXPORT_FORMATS
from .utils.config import ConfigError, SimulationConfig, load_config
from .utils.logging import (
    setup_logging,
    get_logger,
    log_error,
    log_statistics,
    create_diagnostic_report,
)


DEMO_COMPONENTS = {
    "electrical": [
        {"id": "V1", "type": "voltage_source", "value": 12.0, "node_a": "n1", "node_b": "ground"},
        {"id": "R1", "type": "resistor", "value": 10.0, "node_a": "n1", "node_b": "n2",
         "position": [0.0, 0.0, 0.0]},
        {"id": "R2", "type": "resistor", "value": 20.0, "node_a": "n2", "node_b": "ground",
         "position": [0.5, 0.0, 0.0]},
    ],
    "physics": [
        {"id": "heatsink", "position": [0.2, 0.0, 0.0],
         "properties": {"mass": 0.05, "material": "aluminum", "fixed": True}},
    ],
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="coupled-twin",
        description="Coupled multi-physics twin simulator",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Run a simulation and export results")
    run.add_argument("--config", help="YAML configuration (and components) file")
    run.add_argument("--steps", type=int, default=1000, help="Number of time steps")
    run.add_argument("--format", choices=EXPORT_FORMATS, default="json", help="Export format")
    run.add_argument("-o", "--output", help="Output file (default: stdout)")
    run.add_argument("--log-dir", default="logs", help="Log directory")
    run.add_argument("--log-level", default="INFO",
                     choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    run.add_argument("--no-log-file", action="store_true", help="Console logging only")
    return parser


def register_components(manager: SimulationManager, components: Dict[str, List[Dict[str, Any]]]):
    """Register the parts of a `components:` section with the manager."""
    for part in components.get("physics", []) or []:
        manager.add_physics_component(
            part["id"],
            part.get("position", [0.0, 0.0, 0.0]),
            part.get("rotation"),
            part.get("properties"),
            part.get("geometry"),
        )

    for part in components.get("electrical", []) or []:
        manager.add_electrical_component(
            part["id"],
            part["type"],
            part.get("value", 0.0),
            part["node_a"],
            part["node_b"],
            part.get("position"),
            part.get("properties"),
        )


def run_command(args: argparse.Namespace) -> int:
    logger = get_logger(__name__)

    raw = load_config(args.config)
    manager = SimulationManager(SimulationConfig.from_dict(raw))

    components = raw.get("components")
    if not components:
        logger.info("No components section, using demo circuit")
        components = DEMO_COMPONENTS
    register_components(manager, components)

    for scenario in raw.get("scenarios", []) or []:
        manager.run_scenario(scenario["name"], scenario.get("parameters"))

    manager.run(args.steps)
    manager.stop()

    history = [r.to_dict() for r in manager.get_results()]
    state = manager.get_state()
    stats = {
        "steps": state["step_count"],
        "simulated_time": state["current_time"],
        "system_reliability": manager.failure.get_system_reliability(),
        "failure_events": len(manager.failure.get_failure_events()),
    }
    log_statistics(stats)
    logger.debug("\n" + create_diagnostic_report(history, stats))

    text = manager.export_results(args.format)
    if args.output:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text, encoding="utf-8")
        logger.info(f"Wrote {args.format} results to {output}")
    else:
        sys.stdout.write(text)
        if not text.endswith("\n"):
            sys.stdout.write("\n")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_dir, level=args.log_level, file_output=not args.no_log_file)

    try:
        return run_command(args)
    except ConfigError as e:
        log_error(e, context="Invalid configuration")
        return 2
    except (KeyError, TypeError) as e:
        log_error(e, context="Invalid components section")
        return 2


if __name__ == "__main__":
    sys.exit(main())
