"""
Coupled Twin Pipeline - Scenarios
=================================

Timed perturbations layered on top of the coupled loop.

Scenario actions are scheduled against simulated time, not wall-clock
time: the manager calls ScenarioScheduler.run_due(now) at the start of
every step, and each due action may return the time it wants to run
again.

Built-in Scenarios:
-------------------
1. overvoltage_test   {voltage, duration, component_id}
                      One-shot overvoltage damage after a 1 s delay
2. thermal_cycling    {min_temp, max_temp, cycle_time, cycles}
                      Ambient toggled max → min every half cycle
3. vibration_test     {frequency, amplitude, duration}
                      Load "vibration_test" = A·(2πf)²·sin(2πft) along +y,
                      refreshed every step, removed at the end
4. accelerated_aging  {acceleration_factor, duration}
                      Failure acceleration factor raised, then restored

Parameters may be given in snake_case or camelCase (componentId, minTemp,
cycleTime, accelerationFactor, ...).

Example:
--------
>>> manager.run_scenario("overvoltage_test",
...                      {"voltage": 18, "duration": 5, "componentId": "R1"})
>>> manager.run(100)   # fires at t = 1 s

Author: Coupled Twin Team
Date: October 17, 2026
"""

import heapq
import itertools
import re
import numpy as np
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


OVERVOLTAGE_DELAY = 1.0  # s
VIBRATION_LOAD_ID = "vibration_test"
VIBRATION_DIRECTION = (0.0, 1.0, 0.0)
VIBRATION_POSITION = (0.0, 0.0, 0.0)

# next due time, or None when finished
ScenarioCallback = Callable[[float], Optional[float]]


@dataclass(order=True)
class ScheduledAction:
    due_time: float
    seq: int
    name: str = field(compare=False)
    callback: ScenarioCallback = field(compare=False)


def normalize_parameters(parameters: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """camelCase keys → snake_case keys."""
    normalized = {}
    for key, value in (parameters or {}).items():
        normalized[re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()] = value
    return normalized


# ============================================================================
# SCHEDULER
# ============================================================================

class ScenarioScheduler:
    """
    Min-heap of actions keyed by simulated due time.

    Actions scheduled for the same time run in scheduling order.
    """

    def __init__(self):
        self._queue: List[ScheduledAction] = []
        self._counter = itertools.count()

    def __len__(self) -> int:
        return len(self._queue)

    def schedule(self, due_time: float, name: str, callback: ScenarioCallback) -> ScheduledAction:
        action = ScheduledAction(float(due_time), next(self._counter), name, callback)
        heapq.heappush(self._queue, action)
        return action

    def pending(self) -> List[str]:
        return [action.name for action in sorted(self._queue)]

    def next_due_time(self) -> Optional[float]:
        return self._queue[0].due_time if self._queue else None

    def run_due(self, now: float) -> int:
        """
        Execute every action due at or before `now`.

        Due actions are collected before any runs, so an action that
        reschedules itself for `now` waits until the next call.

        Returns:
            Number of actions executed
        """
        due = []
        while self._queue and self._queue[0].due_time <= now:
            due.append(heapq.heappop(self._queue))

        for action in due:
            next_time = action.callback(now)
            if next_time is not None:
                self.schedule(next_time, action.name, action.callback)
            else:
                logger.debug(f"Scenario action '{action.name}' finished at t={now:.3f}s")

        return len(due)

    def shift(self, offset: float):
        """Move every pending due time by `offset` seconds."""
        for action in self._queue:
            action.due_time += offset

    def clear(self):
        self._queue.clear()


# ============================================================================
# BUILT-IN SCENARIOS
# ============================================================================

def overvoltage_test(manager, params: Dict[str, Any], now: float, scheduler: ScenarioScheduler):
    component_id = params.get("component_id", "test_component")
    voltage = float(params.get("voltage", 18.0))
    duration = float(params.get("duration", 5.0))
    delay = float(params.get("delay", OVERVOLTAGE_DELAY))

    def fire(t: float) -> Optional[float]:
        manager.failure.simulate_overvoltage(component_id, voltage, duration)
        return None

    scheduler.schedule(now + delay, "overvoltage_test", fire)


def thermal_cycling(manager, params: Dict[str, Any], now: float, scheduler: ScenarioScheduler):
    min_temp = float(params.get("min_temp", -20.0))
    max_temp = float(params.get("max_temp", 80.0))
    cycle_time = float(params.get("cycle_time", 60.0))
    cycles = int(params.get("cycles", 10))
    half = cycle_time / 2.0
    state = {"phase": 0}

    def toggle(t: float) -> Optional[float]:
        if state["phase"] >= 2 * cycles:
            return None
        heating = state["phase"] % 2 == 0
        manager.thermal.set_ambient_temperature(max_temp if heating else min_temp)
        state["phase"] += 1
        return t + half

    scheduler.schedule(now, "thermal_cycling", toggle)


def vibration_test(manager, params: Dict[str, Any], now: float, scheduler: ScenarioScheduler):
    frequency = float(params.get("frequency", 50.0))
    amplitude = float(params.get("amplitude", 0.5))
    duration = float(params.get("duration", 30.0))
    peak_force = amplitude * (2 * np.pi * frequency) ** 2
    state = {"done": False}

    def shake(t: float) -> Optional[float]:
        if state["done"]:
            return None
        force = peak_force * np.sin(2 * np.pi * frequency * t)
        manager.mechanical.add_load_case(VIBRATION_LOAD_ID, "force", force,
                                         VIBRATION_DIRECTION, VIBRATION_POSITION)
        return t + manager.time_step

    def finish(t: float) -> Optional[float]:
        state["done"] = True
        manager.mechanical.remove_load_case(VIBRATION_LOAD_ID)
        return None

    scheduler.schedule(now, "vibration_test", shake)
    scheduler.schedule(now + duration, "vibration_test", finish)


def accelerated_aging(manager, params: Dict[str, Any], now: float, scheduler: ScenarioScheduler):
    factor = float(params.get("acceleration_factor", 100.0))
    duration = float(params.get("duration", 60.0))
    previous = manager.failure.acceleration_factor

    manager.set_acceleration_factor(factor)

    def restore(t: float) -> Optional[float]:
        manager.set_acceleration_factor(previous)
        return None

    scheduler.schedule(now + duration, "accelerated_aging", restore)


SCENARIOS = {
    "overvoltage_test": overvoltage_test,
    "thermal_cycling": thermal_cycling,
    "vibration_test": vibration_test,
    "accelerated_aging": accelerated_aging,
}


def run_scenario(manager,
                 scheduler: ScenarioScheduler,
                 name: str,
                 parameters: Optional[Dict[str, Any]],
                 now: float) -> bool:
    """
    Dispatch a named scenario.

    Returns:
        False (after logging) for an unknown scenario name
    """
    scenario = SCENARIOS.get(name)
    if scenario is None:
        logger.warning(f"Unknown scenario '{name}' ignored")
        return False

    params = normalize_parameters(parameters)
    scenario(manager, params, now, scheduler)
    logger.info(f"Scenario '{name}' scheduled at t={now:.3f}s with {params}")
    return True
