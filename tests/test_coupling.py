"""
Coupled Twin Tests - Domain Coupling
====================================

Unit tests for the pure coupling functions and CouplingDelta.apply().

Author: Coupled Twin Team
Date: October 17, 2026
"""

import unittest
import numpy as np
import logging

from coupled_twin.physics import (
    ElectricalSimulator,
    ThermalSimulator,
    MechanicalSimulator,
    FailureSimulator,
    AnalysisResult,
)
from coupled_twin.pipeline import (
    CouplingDelta,
    electrical_to_thermal,
    electrical_to_failure,
    thermal_to_mechanical,
    thermal_to_failure,
    mechanical_to_failure,
)
from coupled_twin.pipeline.coupling import thermal_expansion_force

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class TestElectricalCoupling(unittest.TestCase):

    def setUp(self):
        self.circuit = ElectricalSimulator()
        self.circuit.add_voltage_source("V1", 12.0, "n1", "ground")
        self.circuit.add_resistor("R1", 100.0, 0.05, "n1", "ground", (1, 2, 3))
        self.circuit.add_resistor("R2", 10000.0, 0.05, "n1", "ground")
        self.state = self.circuit.solve_circuit()

    def test_only_dissipating_elements_above_threshold(self):
        delta = electrical_to_thermal(self.state, self.circuit.components)

        ids = [u.source_id for u in delta.heat_sources]
        self.assertEqual(ids, ["electrical_R1"])
        self.assertAlmostEqual(delta.interaction_strength, 1.44, places=6)
        np.testing.assert_allclose(delta.heat_sources[0].position, [1, 2, 3])

    def test_lower_threshold_couples_more(self):
        delta = electrical_to_thermal(self.state, self.circuit.components, threshold=0.0)
        self.assertEqual(len(delta.heat_sources), 2)

    def test_singular_state_couples_nothing(self):
        circuit = ElectricalSimulator()
        circuit.add_voltage_source("V1", 12.0, "n1", "ground")
        circuit.add_voltage_source("V2", 5.0, "n1", "ground")
        state = circuit.solve_circuit()

        self.assertFalse(electrical_to_thermal(state, circuit.components))
        self.assertFalse(electrical_to_failure(state, circuit.components))

    def test_failure_factors(self):
        delta = electrical_to_failure(self.state, self.circuit.components)
        factors = {(u.component_id, u.factor): u.value for u in delta.stress_factors}

        self.assertAlmostEqual(factors[("R1", "voltage")], 12.0, places=9)
        self.assertAlmostEqual(factors[("R1", "electrical_power")], 1.44, places=6)

    def test_apply_sets_heat_sources(self):
        thermal = ThermalSimulator()
        electrical_to_thermal(self.state, self.circuit.components).apply(thermal=thermal)
        self.assertAlmostEqual(thermal.get_heat_source("electrical_R1").power, 1.44, places=6)

    def test_apply_routes_only_to_given_targets(self):
        thermal = ThermalSimulator()
        failure = FailureSimulator()
        failure.add_component("R1")

        electrical_to_failure(self.state, self.circuit.components).apply(thermal=thermal)
        self.assertEqual(failure.get_component("R1").stress_factors, {})

        electrical_to_failure(self.state, self.circuit.components).apply(failure=failure)
        self.assertAlmostEqual(failure.get_component("R1").stress_factors["voltage"], 12.0, places=9)


class TestThermalCoupling(unittest.TestCase):

    def test_expansion_force(self):
        # 80 K over reference: 80 · 12e-6 · 200e9 · 1e-3
        self.assertAlmostEqual(thermal_expansion_force(100.0), 192000.0, places=3)
        self.assertEqual(thermal_expansion_force(20.0), 0.0)

    def test_hot_nodes_become_loads(self):
        temperatures = {"hot": 100.0, "warm": 45.0}
        positions = {"hot": np.array([1.0, 0, 0]), "warm": np.zeros(3)}
        stresses = {"hot": 1.9e8, "warm": 6e7}

        delta = thermal_to_mechanical(temperatures, positions, stresses)
        self.assertEqual([u.load_id for u in delta.load_cases], ["thermal_hot"])
        self.assertEqual(delta.interaction_strength, 1.9e8)

        mechanical = MechanicalSimulator()
        delta.apply(mechanical=mechanical)
        self.assertIn("thermal_hot", mechanical.load_cases)

    def test_temperature_factor_for_every_node(self):
        delta = thermal_to_failure({"a": 30.0, "b": 90.0})
        failure = FailureSimulator()
        failure.add_component("a")
        failure.add_component("b")
        delta.apply(failure=failure)

        self.assertEqual(failure.get_component("a").stress_factors["temperature"], 30.0)
        self.assertEqual(failure.get_component("b").stress_factors["temperature"], 90.0)


class TestMechanicalCoupling(unittest.TestCase):

    def test_stress_and_yield_per_owner(self):
        delta = mechanical_to_failure(None, {"bar": 1e7}, {"bar": 250e6}, ["bar"])
        factors = {(u.component_id, u.factor): u.value for u in delta.stress_factors}

        self.assertEqual(factors[("bar", "mechanical_stress")], 1e7)
        self.assertEqual(factors[("bar", "yield_strength")], 250e6)
        self.assertEqual(delta.interaction_strength, 0.0)

    def test_lowest_mode_sets_vibration(self):
        result = AnalysisResult(max_stress=5e6,
                                natural_frequencies=[80.0, 40.0, 250.0])
        delta = mechanical_to_failure(result, {}, {}, ["R1", "M1"])

        vibration = {u.component_id: u.value for u in delta.stress_factors if u.factor == "vibration"}
        self.assertEqual(vibration, {"R1": 0.4, "M1": 0.4})
        self.assertEqual(delta.interaction_strength, 5e6)

    def test_high_modes_ignored(self):
        result = AnalysisResult(natural_frequencies=[150.0])
        delta = mechanical_to_failure(result, {}, {}, ["R1"])
        self.assertFalse(delta)


class TestCouplingDelta(unittest.TestCase):

    def test_empty_is_falsy(self):
        self.assertFalse(CouplingDelta())


if __name__ == "__main__":
    unittest.main()
