"""
Coupled Twin Pipeline - Results & Export
========================================

Per-step result records, the bounded results history and exporters.

Record:
-------
CoupledResults holds the simulated timestamp, one plain-dict snapshot per
domain (None when the domain did not run that step) and the interaction
strengths of the three primary couplings:

    electrical_to_thermal   [W]   total coupled dissipated power
    thermal_to_mechanical   [Pa]  peak thermal stress
    mechanical_to_failure   [Pa]  peak mechanical stress

Export Formats:
---------------
json    Indented list of records; re-parsed by load_results_json()
csv     timestamp,max_stress,max_temperature,total_power,system_reliability
matlab  Plain MATLAB script plotting stress and temperature against time

Example:
--------
>>> buffer = ResultsBuffer(capacity=1000)
>>> buffer.append(CoupledResults(timestamp=0.016))
>>> text = export_json(buffer)
>>> load_results_json(text)[0].timestamp
0.016

Author: Coupled Twin Team
Date: October 17, 2026
"""

import csv
import io
import json
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional
import logging

logger = logging.getLogger(__name__)


DOMAINS = ("physics", "electrical", "thermal", "mechanical", "failure")
INTERACTIONS = ("electrical_to_thermal", "thermal_to_mechanical", "mechanical_to_failure")
CSV_COLUMNS = ("timestamp", "max_stress", "max_temperature", "total_power", "system_reliability")
EXPORT_FORMATS = ("json", "csv", "matlab")


@dataclass
class CoupledResults:
    """One coupled-step snapshot."""
    timestamp: float
    physics: Optional[Dict[str, Any]] = None
    electrical: Optional[Dict[str, Any]] = None
    thermal: Optional[Dict[str, Any]] = None
    mechanical: Optional[Dict[str, Any]] = None
    failure: Optional[Dict[str, Any]] = None
    interactions: Dict[str, float] = field(
        default_factory=lambda: {name: 0.0 for name in INTERACTIONS}
    )

    def to_dict(self) -> Dict[str, Any]:
        record = {"timestamp": self.timestamp}
        for domain in DOMAINS:
            record[domain] = getattr(self, domain)
        record["interactions"] = dict(self.interactions)
        return record

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CoupledResults":
        return cls(
            timestamp=data["timestamp"],
            interactions=dict(data.get("interactions") or {}),
            **{domain: data.get(domain) for domain in DOMAINS},
        )

    # Scalar metrics shared by the csv and matlab exports

    def metric(self, domain: str, key: str, default: float) -> float:
        snapshot = getattr(self, domain)
        if not snapshot:
            return default
        value = snapshot.get(key)
        return default if value is None else value

    @property
    def max_stress(self) -> float:
        return self.metric("mechanical", "max_stress", 0.0)

    @property
    def max_temperature(self) -> float:
        return self.metric("thermal", "max_temperature", 0.0)

    @property
    def total_power(self) -> float:
        return self.metric("electrical", "total_power", 0.0)

    @property
    def system_reliability(self) -> float:
        return self.metric("failure", "system_reliability", 1.0)


class ResultsBuffer:
    """
    Bounded FIFO history of CoupledResults.

    Appending to a full buffer evicts the oldest record.
    """

    def __init__(self, capacity: int = 1000):
        self.capacity = capacity
        self._records = deque(maxlen=capacity)

    def append(self, record: CoupledResults):
        self._records.append(record)

    def latest(self) -> Optional[CoupledResults]:
        return self._records[-1] if self._records else None

    def to_list(self) -> List[CoupledResults]:
        return list(self._records)

    def clear(self):
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[CoupledResults]:
        return iter(self._records)


# ============================================================================
# EXPORTERS
# ============================================================================

def export_json(results: Iterable[CoupledResults], indent: Optional[int] = 2) -> str:
    return json.dumps([r.to_dict() for r in results], indent=indent)


def load_results_json(text: str) -> List[CoupledResults]:
    """Parse an export_json() document back into records."""
    return [CoupledResults.from_dict(item) for item in json.loads(text)]


def export_csv(results: Iterable[CoupledResults]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for r in results:
        writer.writerow([r.timestamp, r.max_stress, r.max_temperature,
                         r.total_power, r.system_reliability])
    return buffer.getvalue()


def export_matlab(results: Iterable[CoupledResults]) -> str:
    """
    MATLAB plotting script.

    Returns:
        Script text defining time, stress and temperature vectors followed
        by a two-panel plot
    """
    results = list(results)

    def vector(values) -> str:
        return "[" + ", ".join(repr(float(v)) for v in values) + "]"

    lines = [
        "% Simulation Results",
        "clear; clc;",
        "",
        f"time = {vector(r.timestamp for r in results)};",
        f"stress = {vector(r.max_stress for r in results)};",
        f"temperature = {vector(r.max_temperature for r in results)};",
        "",
        "% Plotting",
        "figure;",
        "subplot(2,1,1);",
        "plot(time, stress);",
        "xlabel('Time (s)');",
        "ylabel('Max Stress (Pa)');",
        "title('Stress vs Time');",
        "subplot(2,1,2);",
        "plot(time, temperature);",
        "xlabel('Time (s)');",
        "ylabel('Max Temperature (°C)');",
        "title('Temperature vs Time');",
    ]
    return "\n".join(lines) + "\n"


def export_results(results: Iterable[CoupledResults], fmt: str = "json") -> str:
    """
    Export records in one of EXPORT_FORMATS.

    Unknown formats fall back to compact JSON.
    """
    if fmt == "json":
        return export_json(results)
    if fmt == "csv":
        return export_csv(results)
    if fmt == "matlab":
        return export_matlab(results)

    logger.warning(f"Unknown export format '{fmt}', using compact JSON")
    return export_json(results, indent=None)
