"""
Coupled Twin Pipeline Module - Initialization
=============================================

Orchestration of the coupled loop: manager, couplings, scenarios and
results export.

Components:
-----------
1. manager.py   - SimulationManager (state machine and step order)
2. coupling.py  - Pure domain-to-domain coupling functions
3. scenarios.py - Simulated-time scenario scheduler
4. results.py   - CoupledResults, bounded history, json/csv/matlab export

Usage:
------
from coupled_twin.pipeline import SimulationManager

manager = SimulationManager()
manager.add_electrical_component("V1", "voltage_source", 12.0, "n1", "ground")
manager.add_electrical_component("R1", "resistor", 100.0, "n1", "ground")
manager.run_scenario("overvoltage_test", {"voltage": 18, "duration": 5, "componentId": "R1"})
manager.run(200)
csv_text = manager.export_results("csv")

Version: 1.0.0
Author: Coupled Twin Team
Date: October 17, 2026
"""

from .manager import (
    SimulationManager,
    SimulationStatus,
)

from .coupling import (
    CouplingDelta,
    HeatSourceUpdate,
    StressFactorUpdate,
    LoadCaseUpdate,
    electrical_to_thermal,
    electrical_to_failure,
    thermal_to_mechanical,
    thermal_to_failure,
    mechanical_to_failure,
)

from .scenarios import (
    ScenarioScheduler,
    ScheduledAction,
    SCENARIOS,
)

from .results import (
    CoupledResults,
    ResultsBuffer,
    export_results,
    export_json,
    export_csv,
    export_matlab,
    load_results_json,
)

__all__ = [
    # Manager
    "SimulationManager",
    "SimulationStatus",
    # Coupling
    "CouplingDelta",
    "HeatSourceUpdate",
    "StressFactorUpdate",
    "LoadCaseUpdate",
    "electrical_to_thermal",
    "electrical_to_failure",
    "thermal_to_mechanical",
    "thermal_to_failure",
    "mechanical_to_failure",
    # Scenarios
    "ScenarioScheduler",
    "ScheduledAction",
    "SCENARIOS",
    # Results
    "CoupledResults",
    "ResultsBuffer",
    "export_results",
    "export_json",
    "export_csv",
    "export_matlab",
    "load_results_json",
]

__version__ = "1.0.0"
__author__ = "Coupled Twin Team"
__date__ = "2026-10-17"
