"""
Coupled Twin Core Module - Initialization
=========================================

Numerical foundations shared by the physics domains.

Components:
-----------
1. linalg.py      - Dense/sparse direct solvers, index tables, singularity errors
2. constraints.py - Health constraints (bounds, monotonic degradation)

Usage:
------
from coupled_twin.core import LinearSolver, SingularSystemError

solver = LinearSolver(method="auto")
try:
    x = solver.solve(A, b)
except SingularSystemError:
    ...

Version: 1.0.0
Author: Coupled Twin Team
Date: October 17, 2026
"""

from .linalg import (
    LinearSolver,
    IndexTable,
    SingularSystemError,
    gaussian_elimination,
)

from .constraints import (
    ConstraintBase,
    HealthBoundsEnforcer,
    MonotonicHealthConstraint,
    ConstraintComposer,
)

__all__ = [
    # Linear algebra
    "LinearSolver",
    "IndexTable",
    "SingularSystemError",
    "gaussian_elimination",
    # Constraints
    "ConstraintBase",
    "HealthBoundsEnforcer",
    "MonotonicHealthConstraint",
    "ConstraintComposer",
]

__version__ = "1.0.0"
