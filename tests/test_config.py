"""
Coupled Twin Tests - Configuration
==================================

Unit tests for YAML loading, validation and the typed view.

Author: Coupled Twin Team
Date: October 17, 2026
"""

import os
import shutil
import tempfile
import unittest
from pathlib import Path
import logging

from coupled_twin.utils import (
    load_config,
    load_default_config,
    validate_config,
    merge_configs,
    get_config_value,
    set_config_value,
    save_config,
    ConfigError,
    SimulationConfig,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class TestLoading(unittest.TestCase):

    def setUp(self):
        self.tmp = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.tmp)
        os.environ.pop("COUPLED_TWIN_TEST_AMBIENT", None)

    def write(self, text: str) -> str:
        path = self.tmp / "bench.yaml"
        path.write_text(text)
        return str(path)

    def test_defaults(self):
        config = load_default_config()
        self.assertTrue(validate_config(config))
        self.assertEqual(config["physics"]["time_step"], 0.016)
        self.assertEqual(config["history"]["capacity"], 1000)

    def test_user_file_merged_over_defaults(self):
        config = load_config(self.write("thermal:\n  ambient_temperature: 30.0\n"))
        self.assertEqual(config["thermal"]["ambient_temperature"], 30.0)
        self.assertTrue(config["thermal"]["convection_enabled"])

    def test_env_substitution_keeps_type(self):
        os.environ["COUPLED_TWIN_TEST_AMBIENT"] = "42.5"
        config = load_config(self.write(
            "thermal:\n  ambient_temperature: ${COUPLED_TWIN_TEST_AMBIENT:20.0}\n"))
        self.assertEqual(config["thermal"]["ambient_temperature"], 42.5)

    def test_env_default(self):
        config = load_config(self.write(
            "thermal:\n  ambient_temperature: ${COUPLED_TWIN_TEST_AMBIENT:18.0}\n"))
        self.assertEqual(config["thermal"]["ambient_temperature"], 18.0)

    def test_missing_file(self):
        with self.assertRaises(ConfigError):
            load_config(str(self.tmp / "missing.yaml"))

    def test_invalid_yaml(self):
        with self.assertRaises(ConfigError):
            load_config(self.write("physics: [unclosed\n"))

    def test_save_and_reload(self):
        path = self.tmp / "out" / "saved.yaml"
        save_config(load_default_config(), str(path))
        self.assertEqual(load_config(str(path)), load_default_config())


class TestValidation(unittest.TestCase):

    def setUp(self):
        self.config = load_default_config()

    def test_missing_section(self):
        del self.config["thermal"]
        with self.assertRaises(ConfigError):
            validate_config(self.config)

    def test_bad_solver(self):
        self.config["electrical"]["solver"] = "iterative"
        with self.assertRaises(ConfigError):
            validate_config(self.config)

    def test_non_positive_time_step(self):
        self.config["physics"]["time_step"] = 0
        with self.assertRaises(ConfigError):
            validate_config(self.config)

    def test_boolean_is_not_numeric(self):
        self.config["mechanical"]["solve_interval"] = True
        with self.assertRaises(ConfigError):
            validate_config(self.config)

    def test_gravity_shape(self):
        self.config["physics"]["gravity"] = [0.0, -9.81]
        with self.assertRaises(ConfigError):
            validate_config(self.config)


class TestHelpers(unittest.TestCase):

    def test_merge_is_deep(self):
        merged = merge_configs({"a": 1, "b": {"c": 2}}, {"b": {"d": 3}})
        self.assertEqual(merged, {"a": 1, "b": {"c": 2, "d": 3}})

    def test_dot_paths(self):
        config = {}
        set_config_value(config, "thermal.ambient_temperature", 22.0)
        self.assertEqual(get_config_value(config, "thermal.ambient_temperature"), 22.0)
        self.assertEqual(get_config_value(config, "thermal.missing", "x"), "x")


class TestSimulationConfig(unittest.TestCase):

    def test_default_matches_file(self):
        config = SimulationConfig.default()
        self.assertEqual(config.physics.time_step, 0.016)
        self.assertEqual(config.mechanical.solve_interval, 1.0)
        self.assertIsNone(config.failure.seed)

    def test_round_trip(self):
        config = SimulationConfig.from_dict({"failure": {"seed": 7}})
        again = SimulationConfig.from_dict(config.to_dict())
        self.assertEqual(again, config)
        self.assertEqual(again.failure.seed, 7)

    def test_unknown_keys_ignored(self):
        config = SimulationConfig.from_dict({"thermal": {"colour": "blue"}})
        self.assertFalse(hasattr(config.thermal, "colour"))

    def test_invalid_raises(self):
        with self.assertRaises(ConfigError):
            SimulationConfig.from_dict({"history": {"capacity": 0}})


if __name__ == "__main__":
    unittest.main()
