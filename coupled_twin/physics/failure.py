"""
Coupled Twin Physics - Failure and Degradation
==============================================

Per-component health state machine driven by accumulated stress factors.

Degradation Rate:
-----------------
Recomputed whenever a stress factor or environmental factor changes:

    rate = 1e-8 · f_T · f_V · f_σ · f_vib · f_hum · f_cascade

    f_T       = exp((T − 25) / 10)            (10 °C rule, Arrhenius-style)
    f_V       = (V / V_rated)²                (only when a voltage is known)
    f_σ       = 1 + (σ / σ_yield)³
    f_vib     = 1 + 10 · vibration
    f_hum     = 1 + (humidity − 50) / 100
    f_cascade = 1 + cascade_stress

Until the first stress factor arrives, the rate is the wear rate of the
component type's degradation model.

Step:
-----
1. health −= rate · dt · acceleration_factor, clamped at 0
2. For each failure mode: p = p_base · (1 − health) · stress_factor
   (stress_factor capped at 10). A uniform draw below
   p · FAILURE_PROBABILITY_SCALE emits a FailureEvent, costs 0.5 health and
   adds 0.5 cascade stress to every component in the mode's cascade list.

Health never increases outside perform_maintenance(); every change goes
through a ConstraintComposer (bounds + monotonic degradation).

Example:
--------
>>> sim = FailureSimulator(seed=0)
>>> sim.add_component("R1", "resistor")
>>> sim.update_stress_factor("R1", "rated_voltage", 12.0)
>>> sim.simulate_overvoltage("R1", 18.0, 5.0)
>>> sim.get_component("R1").health_score
0.75

Author: Coupled Twin Team
Date: October 17, 2026
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging

from ..core.constraints import (
    ConstraintComposer,
    HealthBoundsEnforcer,
    MonotonicHealthConstraint,
)

logger = logging.getLogger(__name__)

# Scales the per-step failure draw. No derivation is known; tune per study.
FAILURE_PROBABILITY_SCALE = 1e-3

BASE_DEGRADATION_RATE = 1e-8  # 1/s
FAILURE_PENALTY = 0.5
CASCADE_STRESS_INCREMENT = 0.5
MAX_STRESS_FACTOR = 10.0
DEFAULT_YIELD_STRENGTH = 1e9  # Pa

REPAIR_TIME = {"low": 3600.0, "medium": 14400.0, "high": 28800.0, "critical": 86400.0}
REPAIR_COST = {"low": 100.0, "medium": 500.0, "high": 2000.0, "critical": 10000.0}
MAINTENANCE_COST = {"inspection": 50.0, "repair": 500.0, "replacement": 2000.0, "calibration": 200.0}

FAILURE_EFFECTS = {
    "electrical": ("circuit_interruption", "voltage_fluctuation"),
    "thermal": ("heat_generation", "thermal_damage"),
    "mechanical": ("vibration_increase", "noise_increase", "performance_degradation"),
    "wear": ("tolerance_drift", "efficiency_loss"),
    "chemical": ("contamination", "corrosion_spread"),
}

DEFAULT_ENVIRONMENT = {
    "temperature": 25.0,   # °C
    "humidity": 50.0,      # %
    "vibration": 0.1,      # g
    "contamination": 0.1,  # 0-1
    "radiation": 0.0,      # Gy/h
}


@dataclass(frozen=True)
class DegradationModel:
    component_type: str
    wear_rate: float
    fatigue_coefficient: float
    corrosion_rate: float
    thermal_degradation: float
    electrical_degradation: float


DEGRADATION_MODELS = {
    "resistor": DegradationModel("resistor", 1e-8, 0.0, 1e-9, 1e-6, 1e-7),
    "capacitor": DegradationModel("capacitor", 1e-7, 0.0, 1e-8, 1e-5, 1e-6),
    "semiconductor": DegradationModel("semiconductor", 1e-9, 0.0, 1e-10, 1e-4, 1e-5),
    "bearing": DegradationModel("bearing", 1e-6, 1e-8, 1e-9, 1e-7, 0.0),
    "gear": DegradationModel("gear", 1e-7, 1e-9, 1e-10, 1e-8, 0.0),
    "spring": DegradationModel("spring", 1e-8, 1e-6, 1e-9, 1e-7, 0.0),
    "mechanical": DegradationModel("mechanical", 1e-8, 1e-8, 1e-9, 1e-7, 0.0),
}


@dataclass(frozen=True)
class FailureMode:
    id: str
    category: str
    severity: str
    probability: float
    time_to_failure: float
    cascade_effects: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category,
            "severity": self.severity,
            "probability": self.probability,
            "time_to_failure": self.time_to_failure,
            "cascade_effects": list(self.cascade_effects),
        }


FAILURE_MODE_CATALOG: Dict[str, Tuple[FailureMode, ...]] = {
    "resistor": (
        FailureMode("thermal_runaway", "thermal", "high", 0.01, 3600.0),
        FailureMode("drift", "electrical", "medium", 0.05, 86400.0),
    ),
    "capacitor": (
        FailureMode("electrolyte_dry", "chemical", "high", 0.02, 7200.0),
        FailureMode("dielectric_breakdown", "electrical", "critical", 0.001, 1800.0,
                    ("power_supply_failure",)),
    ),
    "bearing": (
        FailureMode("wear", "wear", "medium", 0.1, 172800.0, ("shaft_misalignment",)),
        FailureMode("fatigue", "mechanical", "high", 0.05, 86400.0, ("catastrophic_failure",)),
    ),
    "gear": (
        FailureMode("tooth_wear", "wear", "medium", 0.08, 259200.0, ("backlash_increase",)),
        FailureMode("tooth_fracture", "mechanical", "critical", 0.01, 43200.0, ("gearbox_failure",)),
    ),
}


@dataclass(frozen=True)
class FailureEvent:
    id: str
    component_id: str
    mode: FailureMode
    timestamp: float
    cause: str
    effects: Tuple[str, ...]
    repair_time: float
    repair_cost: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "component_id": self.component_id,
            "mode": self.mode.to_dict(),
            "timestamp": self.timestamp,
            "cause": self.cause,
            "effects": list(self.effects),
            "repair_time": self.repair_time,
            "repair_cost": self.repair_cost,
        }


@dataclass
class MaintenanceRecord:
    timestamp: float
    kind: str
    description: str
    cost: float
    effectiveness: float


@dataclass
class ComponentHealth:
    id: str
    component_type: str
    health_score: float = 1.0
    degradation_rate: float = BASE_DEGRADATION_RATE
    stress_factors: Dict[str, float] = field(default_factory=dict)
    failure_modes: List[FailureMode] = field(default_factory=list)
    maintenance_history: List[MaintenanceRecord] = field(default_factory=list)
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))


class FailureSimulator:
    """
    Health, degradation and failure-event simulator.

    Args:
        probability_scale: Multiplier on failure-draw probabilities
        acceleration_factor: Multiplier on degradation per step
        seed: Seed for the numpy random Generator
    """

    def __init__(self,
                 probability_scale: float = FAILURE_PROBABILITY_SCALE,
                 acceleration_factor: float = 1.0,
                 seed: Optional[int] = None):
        self.probability_scale = probability_scale
        self.acceleration_factor = acceleration_factor
        self.rng = np.random.default_rng(seed)

        self.components: Dict[str, ComponentHealth] = {}
        self.failure_events: List[FailureEvent] = []
        self.environmental_factors: Dict[str, float] = dict(DEFAULT_ENVIRONMENT)
        self.current_time = 0.0
        self._event_counter = 0

        self.health_constraints = ConstraintComposer([
            HealthBoundsEnforcer(),
            MonotonicHealthConstraint(),
        ])

    # ------------------------------------------------------------------
    # Registration and factors
    # ------------------------------------------------------------------

    def add_component(self,
                      component_id: str,
                      component_type: str = "resistor",
                      initial_health: float = 1.0,
                      position: Optional[Sequence[float]] = None) -> ComponentHealth:
        model = DEGRADATION_MODELS.get(component_type, DEGRADATION_MODELS["resistor"])
        component = ComponentHealth(
            id=component_id,
            component_type=component_type,
            health_score=float(np.clip(initial_health, 0.0, 1.0)),
            degradation_rate=model.wear_rate,
            failure_modes=list(FAILURE_MODE_CATALOG.get(component_type, ())),
            position=np.zeros(3) if position is None else np.asarray(position, dtype=np.float64),
        )
        self.components[component_id] = component
        return component

    def update_stress_factor(self, component_id: str, factor: str, value: float):
        component = self.components.get(component_id)
        if component is None:
            logger.debug(f"Stress factor '{factor}' for unknown component {component_id} ignored")
            return
        component.stress_factors[factor] = float(value)
        self._update_degradation_rate(component)

    def add_failure_mode(self, component_id: str, mode: FailureMode) -> bool:
        """
        Attach a failure mode to a registered component.

        Cascade targets in mode.cascade_effects that name registered
        components receive cascade stress when the mode fires.

        Returns:
            False if the component is unknown
        """
        component = self.components.get(component_id)
        if component is None:
            logger.debug(f"Failure mode '{mode.id}' for unknown component {component_id} ignored")
            return False
        component.failure_modes.append(mode)
        return True

    def set_environmental_factor(self, factor: str, value: float):
        self.environmental_factors[factor] = float(value)
        for component in self.components.values():
            if component.stress_factors:
                self._update_degradation_rate(component)

    def degradation_rate(self, component: ComponentHealth) -> float:
        """Stress-accelerated degradation rate [1/s]."""
        factors = component.stress_factors

        acceleration = np.exp((factors.get("temperature", 25.0) - 25.0) / 10.0)

        if "voltage" in factors:
            rated = factors.get("rated_voltage", 1.0) or 1.0
            acceleration *= (factors["voltage"] / rated) ** 2

        yield_strength = factors.get("yield_strength") or DEFAULT_YIELD_STRENGTH
        acceleration *= 1 + (factors.get("mechanical_stress", 0.0) / yield_strength) ** 3

        acceleration *= 1 + 10 * factors.get("vibration", 0.0)

        humidity = self.environmental_factors.get("humidity", 50.0)
        acceleration *= 1 + (humidity - 50.0) / 100.0

        acceleration *= 1 + factors.get("cascade_stress", 0.0)

        return BASE_DEGRADATION_RATE * float(acceleration)

    def _update_degradation_rate(self, component: ComponentHealth):
        component.degradation_rate = self.degradation_rate(component)

    def _set_health(self, component: ComponentHealth, value: float, maintenance: bool = False):
        component.health_score = self.health_constraints.enforce(
            value, previous=component.health_score, maintenance=maintenance)

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------

    def step(self, dt: float) -> List[FailureEvent]:
        """
        Degrade every component and draw failures.

        Returns:
            Failure events emitted this step
        """
        self.current_time += dt
        new_events: List[FailureEvent] = []

        for component in self.components.values():
            decay = component.degradation_rate * dt * self.acceleration_factor
            self._set_health(component, component.health_score - decay)

            events = self._check_for_failures(component)
            for event in events:
                self._process_cascade(event)
            new_events.extend(events)

        self.failure_events.extend(new_events)
        return new_events

    def stress_factor(self, component: ComponentHealth) -> float:
        """Aggregate stress multiplier for failure draws, capped at 10."""
        factors = component.stress_factors
        total = 1.0
        if "temperature" in factors:
            total *= max(1.0, (factors["temperature"] - 25.0) / 25.0)
        if "voltage" in factors:
            rated = factors.get("rated_voltage", 1.0) or 1.0
            total *= max(1.0, factors["voltage"] / rated)
        if "mechanical_stress" in factors:
            yield_strength = factors.get("yield_strength") or DEFAULT_YIELD_STRENGTH
            total *= max(1.0, factors["mechanical_stress"] / yield_strength)
        return min(total, MAX_STRESS_FACTOR)

    def _check_for_failures(self, component: ComponentHealth) -> List[FailureEvent]:
        events = []
        stress = self.stress_factor(component)
        for mode in component.failure_modes:
            probability = mode.probability * (1.0 - component.health_score) * stress
            if self.rng.random() < probability * self.probability_scale:
                event = self._make_event(
                    component.id,
                    mode,
                    cause=self._primary_cause(component),
                    effects=FAILURE_EFFECTS.get(mode.category, ()),
                    repair_time=REPAIR_TIME[mode.severity],
                    repair_cost=REPAIR_COST[mode.severity],
                )
                self._set_health(component, component.health_score - FAILURE_PENALTY)
                events.append(event)
        return events

    def _primary_cause(self, component: ComponentHealth) -> str:
        cause, peak = "normal_wear", 0.0
        for factor, value in component.stress_factors.items():
            if value > peak:
                cause, peak = factor, value
        return cause

    def _make_event(self, component_id: str, mode: FailureMode, cause: str,
                    effects: Sequence[str], repair_time: float, repair_cost: float) -> FailureEvent:
        self._event_counter += 1
        event = FailureEvent(
            id=f"{mode.id}_{self._event_counter}",
            component_id=component_id,
            mode=mode,
            timestamp=self.current_time,
            cause=cause,
            effects=tuple(effects),
            repair_time=repair_time,
            repair_cost=repair_cost,
        )
        logger.warning(
            f"Failure event {event.id}: {component_id} {mode.id} "
            f"({mode.severity}) caused by {cause} at t={self.current_time:.3f}s"
        )
        return event

    def _process_cascade(self, event: FailureEvent):
        for target_id in event.mode.cascade_effects:
            target = self.components.get(target_id)
            if target is None:
                continue
            current = target.stress_factors.get("cascade_stress", 0.0)
            self.update_stress_factor(target_id, "cascade_stress", current + CASCADE_STRESS_INCREMENT)

    # ------------------------------------------------------------------
    # Scenario helpers
    # ------------------------------------------------------------------

    def simulate_overvoltage(self, component_id: str, voltage: float,
                             duration: float) -> Optional[FailureEvent]:
        """
        One-shot overvoltage damage.

        Ratios above 1.2 cost min(0.5, (r − 1)·duration/10) health; ratios
        above 2.0 also record a critical failure event.
        """
        component = self.components.get(component_id)
        if component is None:
            return None

        rated = component.stress_factors.get("rated_voltage") or 12.0
        ratio = voltage / rated
        if ratio <= 1.2:
            return None

        damage = min(0.5, (ratio - 1.0) * duration / 10.0)
        self._set_health(component, component.health_score - damage)
        logger.info(f"Overvoltage on {component_id}: ratio {ratio:.2f}, damage {damage:.3f}")

        if ratio > 2.0:
            mode = FailureMode("overvoltage_failure", "electrical", "critical", 1.0, 0.0)
            event = self._make_event(component_id, mode, "overvoltage",
                                     ("component_destruction", "fire_risk"), 86400.0, 5000.0)
            self.failure_events.append(event)
            return event
        return None

    def simulate_overcurrent(self, component_id: str, current: float, duration: float):
        component = self.components.get(component_id)
        if component is None:
            return

        rated = component.stress_factors.get("rated_current") or 1.0
        ratio = current / rated
        if ratio <= 1.1:
            return

        damage = min(0.3, (ratio - 1.0) * duration / 5.0)
        self._set_health(component, component.health_score - damage)
        temperature = component.stress_factors.get("temperature", 25.0)
        self.update_stress_factor(component_id, "temperature", temperature + (ratio - 1.0) * 50.0)

    def simulate_thermal_runaway(self, component_id: str) -> Optional[FailureEvent]:
        component = self.components.get(component_id)
        if component is None:
            return None

        temperature = component.stress_factors.get("temperature", 25.0) * 1.5
        self.update_stress_factor(component_id, "temperature", temperature)
        self._set_health(component, component.health_score - 0.1)

        if temperature > 150.0:
            mode = FailureMode("thermal_runaway", "thermal", "critical", 1.0, 0.0,
                               ("fire_spread", "adjacent_component_damage"))
            event = self._make_event(component_id, mode, "thermal_runaway",
                                     ("fire", "toxic_fumes", "system_shutdown"), 172800.0, 20000.0)
            self.failure_events.append(event)
            return event
        return None

    def simulate_wear_degradation(self, component_id: str, cycle_count: float):
        """Miner's-rule fatigue damage plus surface wear depth."""
        component = self.components.get(component_id)
        if component is None:
            return

        stress = component.stress_factors.get("mechanical_stress", 0.0)
        yield_strength = component.stress_factors.get("yield_strength") or DEFAULT_YIELD_STRENGTH
        ratio = stress / yield_strength

        if ratio > 0:
            fatigue_life = 10 ** (6 - 3 * np.log10(ratio))
            self._set_health(component, component.health_score - cycle_count / fatigue_life)

        component.stress_factors["wear_depth"] = 1e-6 * cycle_count

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def perform_maintenance(self, component_id: str, kind: str,
                            effectiveness: float = 0.8) -> Optional[MaintenanceRecord]:
        component = self.components.get(component_id)
        if component is None:
            return None

        record = MaintenanceRecord(
            timestamp=self.current_time,
            kind=kind,
            description=f"{kind} performed",
            cost=MAINTENANCE_COST.get(kind, 100.0),
            effectiveness=effectiveness,
        )
        component.maintenance_history.append(record)

        if kind == "repair":
            self._set_health(component, component.health_score + 0.3 * effectiveness, maintenance=True)
        elif kind == "replacement":
            self._set_health(component, 1.0, maintenance=True)
            component.stress_factors.clear()
            model = DEGRADATION_MODELS.get(component.component_type, DEGRADATION_MODELS["resistor"])
            component.degradation_rate = model.wear_rate
        elif kind == "calibration":
            self._set_health(component, component.health_score + 0.1 * effectiveness, maintenance=True)

        logger.info(f"Maintenance '{kind}' on {component_id}: health {component.health_score:.3f}")
        return record

    # ------------------------------------------------------------------
    # Reliability
    # ------------------------------------------------------------------

    def calculate_mtbf(self, component_id: str) -> float:
        """Mean time between failures [h]."""
        component = self.components.get(component_id)
        if component is None:
            return 0.0
        hourly = component.degradation_rate * 3600.0
        return 1.0 / hourly if hourly > 0 else float("inf")

    def calculate_reliability(self, component_id: str, time: float) -> float:
        mtbf = self.calculate_mtbf(component_id)
        if mtbf <= 0:
            return 0.0
        return float(np.exp(-time / mtbf))

    def estimate_time_to_failure(self, component_id: str) -> float:
        component = self.components.get(component_id)
        if component is None or component.health_score <= 0:
            return 0.0
        if component.degradation_rate <= 0:
            return float("inf")
        return component.health_score / component.degradation_rate

    def get_system_reliability(self) -> float:
        return float(np.prod([c.health_score for c in self.components.values()])) \
            if self.components else 1.0

    def get_failure_visualization(self) -> List[Dict[str, Any]]:
        return [
            {
                "component_id": c.id,
                "health_score": c.health_score,
                "risk_level": 1.0 - c.health_score,
                "failure_modes": [m.id for m in c.failure_modes],
                "time_to_failure": self.estimate_time_to_failure(c.id),
            }
            for c in self.components.values()
        ]

    # ------------------------------------------------------------------
    # Getters
    # ------------------------------------------------------------------

    def get_component(self, component_id: str) -> Optional[ComponentHealth]:
        return self.components.get(component_id)

    def get_failure_events(self) -> List[FailureEvent]:
        return list(self.failure_events)

    def get_state(self) -> Dict[str, Any]:
        return {
            "component_health": {c.id: c.health_score for c in self.components.values()},
            "degradation_rates": {c.id: c.degradation_rate for c in self.components.values()},
            "system_reliability": self.get_system_reliability(),
            "failure_count": len(self.failure_events),
        }
