"""
Coupled Twin Core - Health Constraints
======================================

Constraint enforcement for component health scores.

Key Constraints:
----------------
1. BOUNDS: health ∈ [0, 1] (1 = pristine, 0 = failed)
2. MONOTONIC DEGRADATION: health never increases between steps unless a
   maintenance action was recorded in between

Violations are projected back onto the feasible value and counted so that
drift in degradation models shows up in diagnostics instead of silently
corrupting reliability figures.

Example:
--------
>>> composer = ConstraintComposer([
...     HealthBoundsEnforcer(),
...     MonotonicHealthConstraint(),
... ])
>>> health = composer.enforce(1.2, previous=0.9)
>>> health
0.9

Author: Coupled Twin Team
Date: October 17, 2026
"""

import numpy as np
from typing import Dict, List, Optional
from abc import ABC, abstractmethod
import logging

logger = logging.getLogger(__name__)


class ConstraintBase(ABC):
    """Base class for health constraints."""

    def __init__(self, name: str):
        """
        Initialize constraint.

        Args:
            name: Constraint name for logging
        """
        self.name = name
        self.violation_count = 0
        self.violation_magnitude: List[float] = []

    @abstractmethod
    def enforce(self, value: float, **kwargs) -> float:
        """
        Enforce constraint on a health value.

        Args:
            value: Proposed health score
            **kwargs: Constraint-specific context

        Returns:
            Constrained health score
        """
        pass

    def _record(self, magnitude: float):
        self.violation_count += 1
        self.violation_magnitude.append(float(magnitude))

    def get_violations(self) -> Dict:
        """Get constraint violation statistics."""
        return {
            "count": self.violation_count,
            "mean_violation": float(np.mean(self.violation_magnitude)) if self.violation_magnitude else 0.0,
            "max_violation": float(np.max(self.violation_magnitude)) if self.violation_magnitude else 0.0,
        }

    def reset(self):
        """Reset violation statistics."""
        self.violation_count = 0
        self.violation_magnitude = []


class HealthBoundsEnforcer(ConstraintBase):
    """
    Clamp health into [min_health, max_health].

    Example:
    --------
    >>> HealthBoundsEnforcer().enforce(-0.2)
    0.0
    """

    def __init__(self, min_health: float = 0.0, max_health: float = 1.0):
        super().__init__("HealthBounds")
        self.min_health = min_health
        self.max_health = max_health

    def enforce(self, value: float, **kwargs) -> float:
        if value < self.min_health:
            self._record(self.min_health - value)
            return self.min_health
        if value > self.max_health:
            self._record(value - self.max_health)
            return self.max_health
        return value


class MonotonicHealthConstraint(ConstraintBase):
    """
    Enforce non-increasing health outside maintenance.

    If the proposed value exceeds the previous one by more than the
    tolerance, it is projected back to the previous value.

    Example:
    --------
    >>> constraint = MonotonicHealthConstraint()
    >>> constraint.enforce(0.95, previous=0.9)
    0.9
    >>> constraint.enforce(0.95, previous=0.9, maintenance=True)
    0.95
    """

    def __init__(self, tolerance: float = 1e-12):
        super().__init__("MonotonicHealth")
        self.tolerance = tolerance

    def enforce(self,
                value: float,
                previous: Optional[float] = None,
                maintenance: bool = False,
                **kwargs) -> float:
        if previous is None or maintenance:
            return value

        if value > previous + self.tolerance:
            self._record(value - previous)
            logger.debug(
                f"Health increase without maintenance: "
                f"{previous:.6f} -> {value:.6f}, projected back"
            )
            return previous

        return value


class ConstraintComposer:
    """
    Apply several health constraints in order.

    Example:
    --------
    >>> composer = ConstraintComposer([HealthBoundsEnforcer(), MonotonicHealthConstraint()])
    >>> composer.enforce(0.4, previous=0.5)
    0.4
    """

    def __init__(self, constraints: Optional[List[ConstraintBase]] = None):
        self.constraints = constraints or []

    def add_constraint(self, constraint: ConstraintBase):
        """Add a constraint to the pipeline."""
        self.constraints.append(constraint)

    def enforce(self, value: float, **kwargs) -> float:
        for constraint in self.constraints:
            value = constraint.enforce(value, **kwargs)
        return value

    def get_violation_report(self) -> Dict:
        """Get violation report from all constraints."""
        return {c.name: c.get_violations() for c in self.constraints}
