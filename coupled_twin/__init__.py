"""
Coupled Multi-Physics Twin
==========================

Coupled simulation engine: rigid-body physics, DC circuits, lumped thermal
networks, finite-element stress and component failure, stepped together by
one manager.

Modules:
--------
- config: Packaged default configuration (default.yaml)
- core: Linear solvers and health constraints
- physics: Per-domain simulators
- pipeline: Manager, couplings, scenarios and results export
- utils: Configuration & logging utilities
- cli: Command-line runner

Features:
---------
✅ Modified Nodal Analysis circuit solver
✅ Explicit Euler thermal network with conduction/convection/radiation
✅ Bar and membrane finite-element stress analysis
✅ Stress-accelerated degradation with cascading failures
✅ Rigid bodies, motors, gears, springs and breakable joints
✅ Timed test scenarios on simulated time
✅ JSON / CSV / MATLAB export

Quick Start:
-----------
from coupled_twin.utils import load_config, setup_logging
from coupled_twin.pipeline import SimulationManager

setup_logging("logs/")
manager = SimulationManager(load_config("bench.yaml"))

manager.add_electrical_component("V1", "voltage_source", 12.0, "n1", "ground")
manager.add_electrical_component("R1", "resistor", 100.0, "n1", "ground")
manager.run(1000)

print(manager.export_results("csv"))

Version: 1.0.0
Author: Coupled Twin Team
Date: October 17, 2026
License: MIT
"""

__version__ = "1.0.0"
__author__ = "Coupled Twin Team"
__date__ = "2026-10-17"
__all__ = [
    "config",
    "core",
    "physics",
    "pipeline",
    "utils",
]
