"""
Coupled Twin Pipeline - Simulation Manager
==========================================

Owns the five domain simulators and runs the coupled loop.

Step Order:
-----------
0. Scenarios:   run due scenario actions
1. Physics:     rigid bodies and mechanisms
2. Electrical:  DC solve → heat sources, power/voltage stress factors
3. Thermal:     explicit Euler step → expansion loads, temperature factors
4. Mechanical:  static solve, periodic (every solve_interval of simulated
                time, first at t = 0) → stress, yield and vibration factors
5. Failure:     degradation and failure draws
6. Snapshot:    CoupledResults appended to the bounded history

State Machine:
--------------
    STOPPED --start--> RUNNING --pause--> PAUSED --resume--> RUNNING
    any --stop/reset--> STOPPED

start() resets simulated time and clears the history. reset() rebuilds every
simulator from the configuration, dropping all registered entities; callers
must register their components again.

Example:
--------
>>> manager = SimulationManager()
>>> manager.add_electrical_component("V1", "voltage_source", 12.0, "n1", "ground")
>>> manager.add_electrical_component("R1", "resistor", 100.0, "n1", "ground")
>>> manager.run(100)
>>> manager.get_latest_results().electrical["total_power"]
1.44

Author: Coupled Twin Team
Date: October 17, 2026
"""

import time
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union
import logging

from ..core.linalg import LinearSolver
from ..physics.materials import MaterialsDatabase, DEFAULT_MATERIAL
from ..physics.electrical import ElectricalSimulator
from ..physics.thermal import ThermalSimulator
from ..physics.mechanical import MechanicalSimulator
from ..physics.failure import FailureSimulator
from ..physics.rigid_body import PhysicsSimulator, PhysicsProperties
from ..utils.config import SimulationConfig, merge_configs
from ..utils.logging import log_results
from .coupling import (
    electrical_to_thermal,
    electrical_to_failure,
    thermal_to_mechanical,
    thermal_to_failure,
    mechanical_to_failure,
)
from .results import (
    CoupledResults,
    ResultsBuffer,
    export_results,
    load_results_json,
)
from .scenarios import ScenarioScheduler, run_scenario

logger = logging.getLogger(__name__)


DOMAINS = ("physics", "electrical", "thermal", "mechanical", "failure")
MECHANICAL_ANALYSIS_ID = "current"

DEFAULT_TOLERANCE = 0.05
DEFAULT_CAPACITOR_VOLTAGE = 25.0  # V
DEFAULT_INDUCTOR_CURRENT = 10.0  # A
DEFAULT_RATED_VOLTAGE = 12.0  # V
DEFAULT_RATED_CURRENT = 1.0  # A


class SimulationStatus(Enum):
    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"


class SimulationManager:
    """
    Coupled multi-physics simulation manager.

    Args:
        config: SimulationConfig, a (partial) config dictionary merged over
            the defaults, or None for the packaged defaults

    Raises:
        ConfigError: If the configuration is invalid
    """

    def __init__(self, config: Union[SimulationConfig, Dict[str, Any], None] = None):
        if config is None:
            config = SimulationConfig.default()
        elif isinstance(config, dict):
            config = SimulationConfig.from_dict(config)
        self.config = config

        self.status = SimulationStatus.STOPPED
        self.current_time = 0.0
        self.step_count = 0
        self.timings: Dict[str, float] = {domain: 0.0 for domain in DOMAINS}
        self.fps = 0.0

        self.results = ResultsBuffer(capacity=config.history.capacity)
        self._build_simulators()

        logger.info(f"SimulationManager initialized (dt={self.time_step}s)")

    def _build_simulators(self):
        cfg = self.config
        self.materials = MaterialsDatabase()

        self.physics = PhysicsSimulator(gravity=cfg.physics.gravity,
                                        substeps=cfg.physics.substeps)
        self.electrical = ElectricalSimulator(
            solver=LinearSolver(method=cfg.electrical.solver),
            gmin=cfg.electrical.gmin,
        )
        self.thermal = ThermalSimulator(
            ambient_temperature=cfg.thermal.ambient_temperature,
            convection_enabled=cfg.thermal.convection_enabled,
            radiation_enabled=cfg.thermal.radiation_enabled,
            ambient_loss_coefficient=cfg.thermal.ambient_loss_coefficient,
            materials=self.materials,
        )
        self.mechanical = MechanicalSimulator(
            solver=LinearSolver(method=cfg.mechanical.solver),
            materials=self.materials,
            mesh_density=cfg.mechanical.mesh_density,
        )
        self.failure = FailureSimulator(
            probability_scale=cfg.failure.probability_scale,
            acceleration_factor=cfg.failure.acceleration_factor,
            seed=cfg.failure.seed,
        )

        self.scheduler = ScenarioScheduler()
        self.next_mechanical_time = 0.0

    @property
    def time_step(self) -> float:
        return self.config.physics.time_step

    @property
    def is_running(self) -> bool:
        return self.status is SimulationStatus.RUNNING

    @property
    def is_paused(self) -> bool:
        return self.status is SimulationStatus.PAUSED

    # ========================================================================
    # STATE CONTROL
    # ========================================================================

    def start(self):
        """
        Enter RUNNING from zero time with an empty history.

        Pending scenario actions keep their delay relative to the old clock.
        """
        if self.is_running:
            return
        self.scheduler.shift(-self.current_time)
        self.current_time = 0.0
        self.step_count = 0
        self.next_mechanical_time = 0.0
        self.results.clear()
        self.status = SimulationStatus.RUNNING
        logger.info("Simulation started")

    def stop(self):
        if self.status is not SimulationStatus.STOPPED:
            logger.info(f"Simulation stopped at t={self.current_time:.3f}s")
        self.status = SimulationStatus.STOPPED

    def pause(self):
        if self.is_running:
            self.status = SimulationStatus.PAUSED
            logger.info(f"Simulation paused at t={self.current_time:.3f}s")

    def resume(self):
        if self.is_paused:
            self.status = SimulationStatus.RUNNING
            logger.info(f"Simulation resumed at t={self.current_time:.3f}s")

    def reset(self):
        """
        Stop and rebuild every simulator.

        All registered components, nodes, loads and scenarios are lost.
        """
        self.stop()
        self.current_time = 0.0
        self.step_count = 0
        self.results.clear()
        self.timings = {domain: 0.0 for domain in DOMAINS}
        self.fps = 0.0
        self._build_simulators()
        logger.info("Simulation reset, simulators rebuilt")

    # ========================================================================
    # STEPPING
    # ========================================================================

    def tick(self) -> Optional[CoupledResults]:
        """Per-frame callback: one fixed time step while RUNNING."""
        if not self.is_running:
            return None

        frame_start = time.perf_counter()
        record = self.perform_coupled_step(self.time_step)
        frame_ms = (time.perf_counter() - frame_start) * 1000.0
        if frame_ms > 0:
            self.fps = 1000.0 / frame_ms
        return record

    def run(self, steps: int) -> List[CoupledResults]:
        """Start if stopped, then tick `steps` times."""
        if self.status is SimulationStatus.STOPPED:
            self.start()

        records = []
        for _ in range(steps):
            record = self.tick()
            if record is not None:
                records.append(record)
        return records

    def has_components(self) -> bool:
        return bool(self.physics.bodies or self.electrical.components
                    or self.thermal.nodes or self.mechanical.nodes
                    or self.failure.components)

    def perform_coupled_step(self, dt: float) -> Optional[CoupledResults]:
        """
        Advance every enabled domain by dt and couple them.

        Returns:
            The step snapshot, or None when nothing is registered
        """
        if not self.has_components():
            logger.debug("No components registered, step skipped")
            return None

        cfg = self.config
        now = self.current_time
        record = CoupledResults(timestamp=now)

        self.scheduler.run_due(now)

        # 1. Physics
        if cfg.physics.enabled:
            start = time.perf_counter()
            self.physics.step(dt)
            record.physics = self.physics.get_state()
            self._record_timing("physics", start)

        # 2. Electrical
        if cfg.electrical.enabled and self.electrical.components:
            start = time.perf_counter()
            state = self.electrical.solve_circuit()
            record.electrical = state.to_dict()

            delta = electrical_to_thermal(state, self.electrical.components)
            delta.apply(thermal=self._target("thermal", self.thermal))
            record.interactions["electrical_to_thermal"] = delta.interaction_strength

            electrical_to_failure(state, self.electrical.components).apply(
                failure=self._target("failure", self.failure))
            self._record_timing("electrical", start)

        # 3. Thermal
        if cfg.thermal.enabled and self.thermal.nodes:
            start = time.perf_counter()
            self.thermal.step(dt)
            state = self.thermal.get_state()
            record.thermal = state.to_dict()

            positions = {node_id: node.position for node_id, node in self.thermal.nodes.items()}
            delta = thermal_to_mechanical(state.node_temperatures, positions, state.thermal_stresses)
            delta.apply(mechanical=self._target("mechanical", self.mechanical))
            record.interactions["thermal_to_mechanical"] = delta.interaction_strength

            thermal_to_failure(state.node_temperatures).apply(
                failure=self._target("failure", self.failure))
            self._record_timing("thermal", start)

        # 4. Mechanical (periodic)
        if cfg.mechanical.enabled and self.mechanical.nodes and now >= self.next_mechanical_time:
            start = time.perf_counter()
            result = self.mechanical.analyze(MECHANICAL_ANALYSIS_ID, cfg.mechanical.analysis_type)
            record.mechanical = result.to_dict()

            stresses = self.mechanical.get_component_stresses()
            yields = {owner: self.mechanical.get_yield_strength(owner) for owner in stresses}
            delta = mechanical_to_failure(result, stresses, yields, list(self.failure.components))
            delta.apply(failure=self._target("failure", self.failure))
            record.interactions["mechanical_to_failure"] = delta.interaction_strength

            while self.next_mechanical_time <= now:
                self.next_mechanical_time += cfg.mechanical.solve_interval
            self._record_timing("mechanical", start)

        # 5. Failure
        if cfg.failure.enabled and self.failure.components:
            start = time.perf_counter()
            events = self.failure.step(dt)
            snapshot = self.failure.get_state()
            snapshot["failures"] = [event.to_dict() for event in events]
            record.failure = snapshot
            self._record_timing("failure", start)

        self.current_time += dt
        self.step_count += 1
        self.results.append(record)
        log_results(record.to_dict(), self.step_count)
        return record

    def _target(self, domain: str, simulator):
        """Simulator to apply a coupling to, or None if its domain is disabled."""
        return simulator if getattr(self.config, domain).enabled else None

    def _record_timing(self, domain: str, start: float):
        self.timings[domain] = (time.perf_counter() - start) * 1000.0

    # ========================================================================
    # REGISTRATION
    # ========================================================================

    def add_physics_component(self,
                              component_id: str,
                              position: Sequence[float],
                              rotation: Optional[Sequence[float]] = None,
                              properties: Optional[Dict[str, Any]] = None,
                              geometry: Optional[Dict[str, Any]] = None):
        """
        Register a mechanical part with physics, thermal, mechanical and
        failure domains.

        Args:
            component_id: Part id
            position: Position [m]
            rotation: Quaternion (x, y, z, w)
            properties: mass, material, component_type, fixed and damping
                keys (camelCase componentType is accepted)
            geometry: Optional {"vertices": (N, 3), "faces": (M, 3)} surface
                meshed into the mechanical domain
        """
        properties = dict(properties or {})
        material = properties.get("material", DEFAULT_MATERIAL)
        component_type = properties.get("component_type",
                                        properties.get("componentType", "mechanical"))
        physics_props = PhysicsProperties.from_dict(properties)

        self.physics.create_rigid_body(component_id, position, rotation, physics_props,
                                       fixed=bool(properties.get("fixed", False)))
        self.thermal.add_thermal_node(component_id, position, physics_props.mass, material)
        if geometry and geometry.get("vertices") is not None:
            self.mechanical.generate_mesh(geometry["vertices"], geometry.get("faces", []),
                                          material, prefix=component_id)
        self.failure.add_component(component_id, component_type, position=position)

        logger.debug(f"Added physics component {component_id} ({material})")

    def add_electrical_component(self,
                                 component_id: str,
                                 component_type: str,
                                 value: float,
                                 node_a: str,
                                 node_b: str,
                                 position: Optional[Sequence[float]] = None,
                                 properties: Optional[Dict[str, Any]] = None):
        """
        Register a circuit element with the electrical and failure domains.

        Unsupported types are skipped by the circuit but still tracked for
        health.
        """
        properties = dict(properties or {})
        sim = self.electrical

        if component_type == "resistor":
            sim.add_resistor(component_id, value,
                             properties.get("tolerance", DEFAULT_TOLERANCE),
                             node_a, node_b, position)
        elif component_type == "capacitor":
            sim.add_capacitor(component_id, value,
                              properties.get("voltage", DEFAULT_CAPACITOR_VOLTAGE),
                              node_a, node_b, position)
        elif component_type == "inductor":
            sim.add_inductor(component_id, value,
                             properties.get("current", DEFAULT_INDUCTOR_CURRENT),
                             node_a, node_b, position)
        elif component_type == "voltage_source":
            sim.add_voltage_source(component_id, value, node_a, node_b, position)
        elif component_type == "current_source":
            sim.add_current_source(component_id, value, node_a, node_b, position)
        else:
            sim.add_component(component_id, component_type, value, node_a, node_b,
                              position, properties=properties)

        self.failure.add_component(component_id, component_type, position=position)
        self.failure.update_stress_factor(
            component_id, "rated_voltage",
            properties.get("rated_voltage", properties.get("ratedVoltage", DEFAULT_RATED_VOLTAGE)))
        self.failure.update_stress_factor(
            component_id, "rated_current",
            properties.get("rated_current", properties.get("ratedCurrent", DEFAULT_RATED_CURRENT)))

    # ========================================================================
    # QUERIES
    # ========================================================================

    def get_state(self) -> Dict[str, Any]:
        return {
            "is_running": self.is_running,
            "is_paused": self.is_paused,
            "status": self.status.value,
            "current_time": self.current_time,
            "time_step": self.time_step,
            "step_count": self.step_count,
            "performance": {
                "fps": self.fps,
                **{f"{domain}_time": ms for domain, ms in self.timings.items()},
            },
        }

    def get_latest_results(self) -> Optional[CoupledResults]:
        return self.results.latest()

    def get_results(self) -> List[CoupledResults]:
        return self.results.to_list()

    def get_config(self) -> SimulationConfig:
        return self.config

    def update_config(self, overrides: Dict[str, Any]) -> SimulationConfig:
        """
        Deep-merge overrides into the configuration.

        Ambient temperature and the failure acceleration factor take effect
        immediately; solver and structural settings apply on the next reset().

        Raises:
            ConfigError: If the merged configuration is invalid
        """
        self.config = SimulationConfig.from_dict(merge_configs(self.config.to_dict(), overrides))
        self.thermal.set_ambient_temperature(self.config.thermal.ambient_temperature)
        self.failure.acceleration_factor = self.config.failure.acceleration_factor
        logger.info(f"Configuration updated: {sorted(overrides)}")
        return self.config

    def set_acceleration_factor(self, factor: float):
        self.config.failure.acceleration_factor = factor
        self.failure.acceleration_factor = factor

    # ========================================================================
    # SCENARIOS & EXPORT
    # ========================================================================

    def run_scenario(self, name: str, parameters: Optional[Dict[str, Any]] = None) -> bool:
        """
        Schedule a built-in scenario at the current simulated time.

        Returns:
            False if the scenario name is unknown
        """
        return run_scenario(self, self.scheduler, name, parameters, self.current_time)

    def export_results(self, fmt: str = "json") -> str:
        return export_results(self.results, fmt)

    @staticmethod
    def load_results_json(text: str) -> List[CoupledResults]:
        return load_results_json(text)
