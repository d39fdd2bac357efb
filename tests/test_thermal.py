"""
Coupled Twin Tests - Thermal Simulator
======================================

Unit tests for the lumped thermal network:
- Energy conservation in a closed network
- Heat sources and ambient exchange
- Convection / radiation toggles
- Thermal stress bookkeeping

Author: Coupled Twin Team
Date: October 17, 2026
"""

import unittest
import numpy as np
import logging

from coupled_twin.physics import ThermalSimulator

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class TestEnergyConservation(unittest.TestCase):
    """Closed system: no sources, no ambient losses."""

    def setUp(self):
        self.thermal = ThermalSimulator(ambient_temperature=20.0,
                                        convection_enabled=False,
                                        radiation_enabled=False)
        self.thermal.add_thermal_node("hot", (0, 0, 0), mass=0.5, material="copper",
                                      initial_temperature=120.0)
        self.thermal.add_thermal_node("mid", (5, 0, 0), mass=1.0, material="aluminum",
                                      initial_temperature=40.0)
        self.thermal.add_thermal_node("cold", (10, 0, 0), mass=2.0, material="steel",
                                      initial_temperature=0.0)
        self.thermal.add_thermal_connection("hot", "mid", "copper", area=1e-3, length=0.05)
        self.thermal.add_thermal_connection("mid", "cold", "aluminum", area=1e-3, length=0.05)

    def test_total_energy_constant(self):
        initial = self.thermal.total_energy()
        for _ in range(500):
            self.thermal.step(0.1)

        self.assertAlmostEqual(self.thermal.total_energy(), initial,
                               delta=1e-9 * abs(initial))

    def test_heat_flows_from_hot_to_cold(self):
        self.thermal.step(0.1)
        hot = self.thermal.get_node("hot").temperature
        cold = self.thermal.get_node("cold").temperature
        self.assertLess(hot, 120.0)
        self.assertGreater(cold, 0.0)

    def test_approaches_equilibrium(self):
        for _ in range(4000):
            self.thermal.step(2.0)
        temperatures = list(self.thermal.get_state().node_temperatures.values())
        self.assertLess(max(temperatures) - min(temperatures), 1.0)

    def test_state_energy_tracks_total(self):
        self.thermal.step(0.1)
        self.assertAlmostEqual(self.thermal.get_state().total_energy,
                               self.thermal.total_energy())


class TestSourcesAndAmbient(unittest.TestCase):
    """Heat input and losses to ambient."""

    def test_heat_source_warms_nearby_node(self):
        thermal = ThermalSimulator(ambient_temperature=20.0)
        thermal.add_thermal_node("R1", (0, 0, 0), mass=0.01, material="copper")
        thermal.add_electrical_heat_generation("R1", 2.0, (0, 0, 0))

        for _ in range(10):
            thermal.step(0.016)

        self.assertGreater(thermal.get_node("R1").temperature, 20.0)
        self.assertIsNotNone(thermal.get_heat_source("electrical_R1"))
        self.assertAlmostEqual(thermal.get_state().total_heat_generation, 2.0)

    def test_distant_source_has_no_effect(self):
        thermal = ThermalSimulator(ambient_temperature=20.0)
        thermal.add_thermal_node("far", (10, 0, 0), mass=0.01)
        thermal.add_heat_source("src", (0, 0, 0), 100.0)
        thermal.step(0.1)
        self.assertAlmostEqual(thermal.get_node("far").temperature, 20.0)

    def test_relaxes_towards_ambient(self):
        thermal = ThermalSimulator(ambient_temperature=20.0)
        thermal.add_thermal_node("n", (0, 0, 0), mass=0.1, initial_temperature=80.0)

        for _ in range(1000):
            thermal.step(0.1)

        temperature = thermal.get_node("n").temperature
        self.assertLess(temperature, 80.0)
        self.assertGreaterEqual(temperature, 20.0)

    def test_convection_disabled_removes_ambient_loss(self):
        thermal = ThermalSimulator(ambient_temperature=20.0, convection_enabled=False)
        self.assertEqual(thermal.effective_ambient_loss, 0.0)

        thermal.add_thermal_node("n", (0, 0, 0), mass=0.1, initial_temperature=80.0)
        thermal.step(1.0)
        self.assertAlmostEqual(thermal.get_node("n").temperature, 80.0)

    def test_set_heat_source_replaces_in_place(self):
        thermal = ThermalSimulator()
        thermal.add_thermal_node("n", (0, 0, 0), mass=1.0)
        thermal.add_electrical_heat_generation("R1", 1.0, (0, 0, 0))
        thermal.add_electrical_heat_generation("R1", 3.0, (0, 0, 0))

        self.assertEqual(len(thermal.heat_sources), 1)
        self.assertEqual(thermal.get_heat_source("electrical_R1").power, 3.0)
        self.assertTrue(thermal.remove_heat_source("electrical_R1"))
        self.assertFalse(thermal.remove_heat_source("electrical_R1"))


class TestConnections(unittest.TestCase):

    def setUp(self):
        self.thermal = ThermalSimulator(ambient_temperature=20.0)
        self.thermal.add_thermal_node("a", (0, 0, 0), mass=1.0, initial_temperature=100.0)
        self.thermal.add_thermal_node("b", (1, 0, 0), mass=1.0)

    def test_unknown_node_skipped(self):
        self.assertIsNone(
            self.thermal.add_thermal_connection("a", "ghost", "steel", 1e-4, 0.01))

    def test_radiation_toggle(self):
        connection = self.thermal.add_thermal_connection("a", "b", "steel", 1.0, 0.01,
                                                         mode="radiation")
        self.thermal.step(0.01)
        self.assertIn(connection.id, self.thermal.get_state().heat_flows)

        self.thermal.radiation_enabled = False
        self.thermal.step(0.01)
        self.assertNotIn(connection.id, self.thermal.get_state().heat_flows)

    def test_reconnect_replaces_connection(self):
        self.thermal.add_thermal_connection("a", "b", "steel", 1e-4, 0.01)
        self.thermal.add_thermal_connection("a", "b", "copper", 1e-4, 0.01)
        self.assertEqual(len(self.thermal.connections), 1)
        self.assertEqual(len(self.thermal.get_node("a").connections), 1)

    def test_thermal_stress(self):
        self.thermal.step(0.01)
        stresses = self.thermal.get_state().thermal_stresses
        self.assertGreater(stresses["a"], stresses["b"])

        hot_spots = {s["node_id"] for s in self.thermal.get_thermal_stress_map(threshold=1e6)}
        self.assertIn("a", hot_spots)


if __name__ == "__main__":
    unittest.main()
