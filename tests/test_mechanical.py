"""
Coupled Twin Tests - Mechanical Simulator
=========================================

Unit tests for the finite-element stress solver:
- Axial bar against the closed-form solution
- Safety factor below 1 when yield is exceeded
- Membrane meshes and stress recovery
- Singular / empty meshes
- Tolerance stack-up

Author: Coupled Twin Team
Date: October 17, 2026
"""

import unittest
import numpy as np
import logging

from coupled_twin.physics import MechanicalSimulator
from coupled_twin.physics.mechanical import von_mises, plane_stress_matrix

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def build_bar(force: float, section_area: float = 1e-4) -> MechanicalSimulator:
    """1 m steel bar along x, fixed at the origin, pulled at the free end."""
    sim = MechanicalSimulator()
    sim.add_node("a", (0, 0, 0), owner="bar")
    sim.add_node("b", (1, 0, 0), owner="bar")
    sim.add_element("bar", ["a", "b"], "steel", section_area=section_area)
    sim.add_constraint("root", "fixed", (0, 0, 0))
    sim.add_load_case("pull", "force", force, (1, 0, 0), (1, 0, 0))
    return sim


class TestAxialBar(unittest.TestCase):
    """Closed-form checks: σ = F/A, δ = F·L/(E·A)."""

    def test_stress_and_displacement(self):
        sim = build_bar(force=1e3)
        result = sim.perform_stress_analysis()

        self.assertTrue(result.solved)
        self.assertAlmostEqual(result.max_stress / 1e7, 1.0, places=6)
        self.assertAlmostEqual(result.max_displacement / 5e-5, 1.0, places=6)
        self.assertAlmostEqual(sim.get_node("b").displacement[0], 5e-5, places=12)

    def test_below_yield_is_safe(self):
        result = build_bar(force=1e3).perform_stress_analysis()
        self.assertGreater(result.safety_factor, 1.0)
        self.assertEqual(result.fatigue_life, float("inf"))

    def test_over_yield_safety_factor_below_one(self):
        """1e9 Pa in steel (yield 250 MPa) predicts yielding."""
        result = build_bar(force=1e5).perform_stress_analysis()

        self.assertGreater(result.max_stress, 250e6)
        self.assertLess(result.safety_factor, 1.0)
        self.assertAlmostEqual(result.safety_factor, 0.25, places=6)
        self.assertLess(result.fatigue_life, 1e6)

    def test_component_stresses_by_owner(self):
        sim = build_bar(force=1e3)
        sim.perform_stress_analysis()

        stresses = sim.get_component_stresses()
        self.assertIn("bar", stresses)
        self.assertAlmostEqual(stresses["bar"] / 1e7, 1.0, places=6)
        self.assertEqual(sim.get_yield_strength("bar"), 250e6)

    def test_results_stored_by_id(self):
        sim = build_bar(force=1e3)
        result = sim.perform_stress_analysis("run_1")
        self.assertIs(sim.get_analysis_result("run_1"), result)
        self.assertIs(sim.last_result, result)

    def test_removed_load_gives_zero_stress(self):
        sim = build_bar(force=1e3)
        self.assertTrue(sim.remove_load_case("pull"))
        result = sim.perform_stress_analysis()
        self.assertEqual(result.max_stress, 0.0)
        self.assertEqual(result.safety_factor, float("inf"))


class TestMembrane(unittest.TestCase):
    """Plane-stress triangles generated from a surface."""

    def setUp(self):
        self.sim = MechanicalSimulator()
        vertices = [(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)]
        faces = [(0, 1, 2), (0, 2, 3)]
        self.created = self.sim.generate_mesh(vertices, faces, "aluminum", prefix="plate")
        self.sim.add_constraint("left_low", "fixed", (0, 0, 0))
        self.sim.add_constraint("left_high", "fixed", (0, 1, 0))

    def test_mesh_ids(self):
        self.assertEqual(self.created, ["plate:element_0", "plate:element_1"])
        self.assertIn("plate:node_2", self.sim.nodes)
        self.assertEqual(self.sim.get_node("plate:node_2").owner, "plate")

    def test_tension_stress(self):
        self.sim.add_load_case("p1", "force", 500.0, (1, 0, 0), (1, 0, 0))
        self.sim.add_load_case("p2", "force", 500.0, (1, 0, 0), (1, 1, 0))

        result = self.sim.perform_stress_analysis()
        self.assertTrue(result.solved)
        self.assertGreater(result.max_stress, 0.0)
        self.assertGreater(self.sim.get_node("plate:node_1").displacement[0], 0.0)

        hot = {s["node_id"] for s in self.sim.get_stress_map(threshold=0.0)}
        self.assertIn("plate:node_1", hot)

    def test_invalid_faces_skipped(self):
        created = self.sim.generate_mesh([(0, 0, 0), (1, 0, 0)], [(0, 1, 5)], prefix="bad")
        self.assertEqual(created, [])


class TestDegenerateMeshes(unittest.TestCase):

    def test_empty_mesh(self):
        result = MechanicalSimulator().perform_stress_analysis()
        self.assertFalse(result.solved)
        self.assertEqual(result.max_stress, 0.0)

    def test_unconstrained_bar_is_singular(self):
        sim = MechanicalSimulator()
        sim.add_node("a", (0, 0, 0))
        sim.add_node("b", (1, 0, 0))
        sim.add_element("bar", ["a", "b"])
        sim.add_load_case("pull", "force", 1e3, (1, 0, 0), (1, 0, 0))

        result = sim.perform_stress_analysis()
        self.assertFalse(result.solved)
        self.assertEqual(result.safety_factor, float("inf"))

    def test_element_with_unknown_node(self):
        sim = MechanicalSimulator()
        sim.add_node("a", (0, 0, 0))
        self.assertIsNone(sim.add_element("e", ["a", "ghost"]))

    def test_unknown_load_kind(self):
        self.assertIsNone(MechanicalSimulator().add_load_case("x", "torque", 1.0, (1, 0, 0), (0, 0, 0)))


class TestAnalysisModes(unittest.TestCase):

    def test_modal_analysis_placeholder(self):
        sim = build_bar(force=1e3)
        result = sim.analyze("modal_run", "modal")
        self.assertEqual(result.natural_frequencies[0], 100.0)
        self.assertEqual(len(result.mode_shapes), 5)

    def test_tolerance_analysis(self):
        sim = MechanicalSimulator()
        report = sim.perform_tolerance_analysis({"a": 0.1, "b": 0.2}, iterations=2000, seed=3)

        self.assertAlmostEqual(report["worst_case_stack"], 0.3)
        # 3σ of a sum of uniforms: 3·sqrt(Σ t²/3)
        self.assertAlmostEqual(report["statistical_stack"], 3 * np.sqrt(0.05 / 3), delta=0.02)
        self.assertGreater(report["yield_prediction"], 99.0)
        self.assertLessEqual(report["yield_prediction"], 100.0)


class TestStressHelpers(unittest.TestCase):

    def test_von_mises_uniaxial(self):
        self.assertAlmostEqual(von_mises(np.array([100.0, 0.0, 0.0])), 100.0)

    def test_von_mises_pure_shear(self):
        self.assertAlmostEqual(von_mises(np.array([0.0, 0.0, 10.0])), 10.0 * np.sqrt(3))

    def test_plane_stress_matrix_symmetric(self):
        D = plane_stress_matrix(200e9, 0.3)
        np.testing.assert_allclose(D, D.T)


if __name__ == "__main__":
    unittest.main()
