"""
Coupled Twin Tests - Results & Export
=====================================

Unit tests for CoupledResults, the bounded history and exporters.

Author: Coupled Twin Team
Date: October 17, 2026
"""

import unittest
import logging

from coupled_twin.pipeline import (
    CoupledResults,
    ResultsBuffer,
    export_results,
    export_json,
    export_csv,
    export_matlab,
    load_results_json,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def sample_records():
    return [
        CoupledResults(timestamp=0.0),
        CoupledResults(
            timestamp=0.016,
            electrical={"total_power": 1.44},
            thermal={"max_temperature": 21.5},
            mechanical={"max_stress": 1e7, "safety_factor": float("inf")},
            failure={"system_reliability": 0.99, "failures": []},
            interactions={"electrical_to_thermal": 1.44,
                          "thermal_to_mechanical": 0.0,
                          "mechanical_to_failure": 1e7},
        ),
    ]


class TestCoupledResults(unittest.TestCase):

    def test_metric_defaults(self):
        record = CoupledResults(timestamp=0.0)
        self.assertEqual(record.max_stress, 0.0)
        self.assertEqual(record.max_temperature, 0.0)
        self.assertEqual(record.total_power, 0.0)
        self.assertEqual(record.system_reliability, 1.0)

    def test_interactions_default_to_zero(self):
        record = CoupledResults(timestamp=0.0)
        self.assertEqual(set(record.interactions),
                         {"electrical_to_thermal", "thermal_to_mechanical", "mechanical_to_failure"})
        self.assertTrue(all(v == 0.0 for v in record.interactions.values()))

    def test_json_round_trip_keeps_infinity(self):
        records = sample_records()
        loaded = load_results_json(export_json(records))

        self.assertEqual(len(loaded), 2)
        self.assertEqual(loaded[1].mechanical["safety_factor"], float("inf"))
        self.assertEqual(loaded[1].to_dict(), records[1].to_dict())
        self.assertIsNone(loaded[0].electrical)


class TestResultsBuffer(unittest.TestCase):

    def test_oldest_evicted(self):
        buffer = ResultsBuffer(capacity=3)
        for i in range(5):
            buffer.append(CoupledResults(timestamp=float(i)))

        self.assertEqual(len(buffer), 3)
        self.assertEqual([r.timestamp for r in buffer], [2.0, 3.0, 4.0])
        self.assertEqual(buffer.latest().timestamp, 4.0)

    def test_empty(self):
        buffer = ResultsBuffer()
        self.assertIsNone(buffer.latest())
        self.assertEqual(buffer.to_list(), [])


class TestExporters(unittest.TestCase):

    def test_csv_rows(self):
        lines = export_csv(sample_records()).strip().split("\n")
        self.assertEqual(lines[0], "timestamp,max_stress,max_temperature,total_power,system_reliability")
        self.assertEqual(lines[1], "0.0,0.0,0.0,0.0,1.0")
        self.assertEqual(lines[2], "0.016,10000000.0,21.5,1.44,0.99")

    def test_matlab_vectors(self):
        script = export_matlab(sample_records())
        self.assertIn("time = [0.0, 0.016];", script)
        self.assertIn("stress = [0.0, 10000000.0];", script)
        self.assertIn("temperature = [0.0, 21.5];", script)
        self.assertIn("title('Temperature vs Time');", script)

    def test_dispatch(self):
        records = sample_records()
        self.assertEqual(export_results(records, "csv"), export_csv(records))
        self.assertEqual(export_results(records, "matlab"), export_matlab(records))
        self.assertEqual(export_results(records), export_json(records))

    def test_unknown_format_is_compact_json(self):
        text = export_results(sample_records(), "yaml")
        self.assertNotIn("\n", text)
        self.assertEqual(len(load_results_json(text)), 2)

    def test_empty_history(self):
        self.assertEqual(export_json([]), "[]")
        self.assertEqual(export_csv([]).strip(),
                         "timestamp,max_stress,max_temperature,total_power,system_reliability")


if __name__ == "__main__":
    unittest.main()
