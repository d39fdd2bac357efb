"""
Coupled Twin Tests - Failure Simulator
======================================

Unit tests for health, degradation and failure events:
- Health never increases without maintenance
- System reliability is the product of component health
- Stress-accelerated degradation rates
- Overvoltage / overcurrent / thermal runaway scenarios
- Maintenance and cascades

Author: Coupled Twin Team
Date: October 17, 2026
"""

import unittest
import numpy as np
import logging

from coupled_twin.physics import FailureSimulator, FailureMode
from coupled_twin.physics.failure import BASE_DEGRADATION_RATE, CASCADE_STRESS_INCREMENT

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class TestHealthEvolution(unittest.TestCase):

    def setUp(self):
        self.sim = FailureSimulator(probability_scale=1.0, seed=42)
        self.sim.add_component("R1", "resistor")
        self.sim.add_component("C1", "capacitor")
        self.sim.add_component("M1", "mechanical")

        self.sim.update_stress_factor("R1", "temperature", 120.0)
        self.sim.update_stress_factor("R1", "voltage", 15.0)
        self.sim.update_stress_factor("R1", "rated_voltage", 12.0)
        self.sim.update_stress_factor("M1", "mechanical_stress", 2e8)
        self.sim.update_stress_factor("M1", "yield_strength", 250e6)
        self.sim.update_stress_factor("C1", "vibration", 0.5)

    def test_health_non_increasing(self):
        previous = {cid: c.health_score for cid, c in self.sim.components.items()}
        for _ in range(300):
            self.sim.step(10.0)
            for cid, component in self.sim.components.items():
                self.assertLessEqual(component.health_score, previous[cid])
                self.assertGreaterEqual(component.health_score, 0.0)
                previous[cid] = component.health_score

    def test_system_reliability_is_product(self):
        for _ in range(50):
            self.sim.step(100.0)

        product = np.prod([c.health_score for c in self.sim.components.values()])
        self.assertAlmostEqual(self.sim.get_system_reliability(), product, places=12)
        self.assertAlmostEqual(self.sim.get_state()["system_reliability"], product, places=12)

    def test_empty_system_reliability(self):
        self.assertEqual(FailureSimulator().get_system_reliability(), 1.0)

    def test_failure_events_are_recorded(self):
        events = []
        for _ in range(200):
            events.extend(self.sim.step(1000.0))

        self.assertEqual(len(self.sim.get_failure_events()), len(events))
        for event in events:
            self.assertIn(event.component_id, self.sim.components)
            self.assertIn("mode", event.to_dict())

    def test_seeded_runs_repeat(self):
        other = FailureSimulator(probability_scale=1.0, seed=42)
        for cid, component in self.sim.components.items():
            other.add_component(cid, component.component_type)
            for factor, value in component.stress_factors.items():
                other.update_stress_factor(cid, factor, value)

        for _ in range(100):
            self.sim.step(1000.0)
            other.step(1000.0)

        for cid in self.sim.components:
            self.assertEqual(self.sim.get_component(cid).health_score,
                             other.get_component(cid).health_score)


class TestDegradationRate(unittest.TestCase):

    def setUp(self):
        self.sim = FailureSimulator(seed=0)
        self.component = self.sim.add_component("R1", "resistor")

    def test_hotter_degrades_faster(self):
        self.sim.update_stress_factor("R1", "temperature", 25.0)
        cool = self.component.degradation_rate
        self.sim.update_stress_factor("R1", "temperature", 85.0)
        hot = self.component.degradation_rate

        self.assertAlmostEqual(hot / cool, np.exp(6.0), places=6)

    def test_voltage_factor_needs_voltage(self):
        self.sim.update_stress_factor("R1", "rated_voltage", 12.0)
        self.assertEqual(self.sim.degradation_rate(self.component), BASE_DEGRADATION_RATE)

        self.sim.update_stress_factor("R1", "voltage", 24.0)
        self.assertAlmostEqual(self.component.degradation_rate / BASE_DEGRADATION_RATE, 4.0)

    def test_acceleration_factor_scales_decay(self):
        slow = FailureSimulator(acceleration_factor=1.0, probability_scale=0.0)
        fast = FailureSimulator(acceleration_factor=100.0, probability_scale=0.0)
        for sim in (slow, fast):
            sim.add_component("R1", "resistor")
            sim.update_stress_factor("R1", "temperature", 25.0)
            sim.step(3600.0)

        slow_loss = 1.0 - slow.get_component("R1").health_score
        fast_loss = 1.0 - fast.get_component("R1").health_score
        self.assertAlmostEqual(fast_loss / slow_loss, 100.0, places=6)

    def test_unknown_component_ignored(self):
        self.sim.update_stress_factor("ghost", "temperature", 100.0)
        self.assertNotIn("ghost", self.sim.components)

    def test_humidity_raises_rate(self):
        self.sim.update_stress_factor("R1", "temperature", 25.0)
        self.assertEqual(self.component.degradation_rate, BASE_DEGRADATION_RATE)

        self.sim.set_environmental_factor("humidity", 80.0)
        self.assertAlmostEqual(self.component.degradation_rate / BASE_DEGRADATION_RATE, 1.3)

    def test_wear_degradation(self):
        """σ/σ_yield = 0.1: fatigue life 10^9 cycles, so 10^7 cycles cost 0.01."""
        self.sim.update_stress_factor("R1", "mechanical_stress", 1e8)
        self.sim.update_stress_factor("R1", "yield_strength", 1e9)
        self.sim.simulate_wear_degradation("R1", 1e7)

        self.assertAlmostEqual(self.component.health_score, 0.99)
        self.assertAlmostEqual(self.component.stress_factors["wear_depth"], 10.0)

    def test_wear_without_stress_only_records_depth(self):
        self.sim.simulate_wear_degradation("R1", 1e6)
        self.assertEqual(self.component.health_score, 1.0)
        self.assertAlmostEqual(self.component.stress_factors["wear_depth"], 1.0)


class TestCascades(unittest.TestCase):

    def setUp(self):
        self.sim = FailureSimulator(probability_scale=1.0, seed=3)
        self.sim.add_component("psu", "mechanical", initial_health=0.0)
        self.sim.add_component("load", "mechanical")
        self.sim.update_stress_factor("load", "temperature", 25.0)
        self.mode = FailureMode("short", "electrical", "high", 1.0, 0.0, ("load", "missing"))

    def test_failure_mode_registration(self):
        self.assertTrue(self.sim.add_failure_mode("psu", self.mode))
        self.assertFalse(self.sim.add_failure_mode("ghost", self.mode))
        self.assertIn(self.mode, self.sim.get_component("psu").failure_modes)

    def test_cascade_stresses_target(self):
        self.sim.add_failure_mode("psu", self.mode)
        events = self.sim.step(0.0)

        self.assertEqual([e.mode.id for e in events], ["short"])
        target = self.sim.get_component("load")
        self.assertEqual(target.stress_factors["cascade_stress"], CASCADE_STRESS_INCREMENT)
        self.assertAlmostEqual(target.degradation_rate / BASE_DEGRADATION_RATE,
                               1.0 + CASCADE_STRESS_INCREMENT)

    def test_cascade_stress_accumulates(self):
        self.sim.add_failure_mode("psu", self.mode)
        self.sim.step(0.0)
        self.sim.step(0.0)
        self.assertEqual(self.sim.get_component("load").stress_factors["cascade_stress"],
                         2 * CASCADE_STRESS_INCREMENT)


class TestScenarioDamage(unittest.TestCase):

    def setUp(self):
        self.sim = FailureSimulator(seed=1)
        self.sim.add_component("R1", "resistor")
        self.sim.update_stress_factor("R1", "rated_voltage", 12.0)
        self.sim.update_stress_factor("R1", "rated_current", 1.0)

    def test_overvoltage_damage(self):
        """18 V on a 12 V part for 5 s: ratio 1.5, damage 0.25."""
        event = self.sim.simulate_overvoltage("R1", 18.0, 5.0)
        self.assertIsNone(event)
        self.assertAlmostEqual(self.sim.get_component("R1").health_score, 0.75)

    def test_overvoltage_below_threshold_is_noop(self):
        self.sim.simulate_overvoltage("R1", 14.0, 5.0)
        self.assertEqual(self.sim.get_component("R1").health_score, 1.0)

    def test_severe_overvoltage_fails(self):
        event = self.sim.simulate_overvoltage("R1", 30.0, 5.0)
        self.assertIsNotNone(event)
        self.assertEqual(event.mode.severity, "critical")
        self.assertAlmostEqual(self.sim.get_component("R1").health_score, 0.5)

    def test_overcurrent_heats_component(self):
        self.sim.simulate_overcurrent("R1", 2.0, 1.0)
        component = self.sim.get_component("R1")
        self.assertAlmostEqual(component.health_score, 0.8)
        self.assertAlmostEqual(component.stress_factors["temperature"], 75.0)

    def test_thermal_runaway(self):
        self.sim.update_stress_factor("R1", "temperature", 120.0)
        event = self.sim.simulate_thermal_runaway("R1")
        self.assertIsNotNone(event)
        self.assertEqual(event.mode.id, "thermal_runaway")

    def test_unknown_component(self):
        self.assertIsNone(self.sim.simulate_overvoltage("ghost", 30.0, 5.0))


class TestMaintenance(unittest.TestCase):

    def setUp(self):
        self.sim = FailureSimulator(seed=2)
        self.sim.add_component("R1", "resistor", initial_health=0.5)

    def test_repair_restores_health(self):
        record = self.sim.perform_maintenance("R1", "repair", effectiveness=1.0)
        self.assertAlmostEqual(self.sim.get_component("R1").health_score, 0.8)
        self.assertEqual(record.cost, 500.0)

    def test_replacement_resets(self):
        self.sim.update_stress_factor("R1", "temperature", 150.0)
        self.sim.perform_maintenance("R1", "replacement")

        component = self.sim.get_component("R1")
        self.assertEqual(component.health_score, 1.0)
        self.assertEqual(component.stress_factors, {})
        self.assertEqual(len(component.maintenance_history), 1)

    def test_time_to_failure(self):
        component = self.sim.get_component("R1")
        expected = component.health_score / component.degradation_rate
        self.assertAlmostEqual(self.sim.estimate_time_to_failure("R1"), expected)
        self.assertGreater(self.sim.calculate_mtbf("R1"), 0.0)

        reliability = self.sim.calculate_reliability("R1", 3600.0)
        self.assertGreater(reliability, 0.0)
        self.assertLessEqual(reliability, 1.0)


if __name__ == "__main__":
    unittest.main()
