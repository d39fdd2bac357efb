"""
Coupled Twin Tests Module - Initialization
==========================================

Unit and integration tests for the coupled multi-physics twin.

Test Organization:
------------------
1. test_linalg.py     - Direct solvers, index tables, health constraints
2. test_electrical.py - Modified Nodal Analysis circuit solver
3. test_thermal.py    - Lumped thermal network
4. test_mechanical.py - Bar/membrane finite-element stress solver
5. test_failure.py    - Degradation, failure events, maintenance
6. test_rigid_body.py - Rigid bodies and mechanisms
7. test_coupling.py   - Domain coupling functions
8. test_results.py    - Results history and exporters
9. test_manager.py    - Coupled loop, state machine, scenarios
10. test_config.py    - YAML loading, validation, typed config
11. test_cli.py       - `coupled-twin run` end to end

Test Categories:
----------------
Unit Tests:
- Closed-form checks (divider voltages, σ = F/A, energy conservation)
- Edge cases: empty and singular systems, unknown ids

Integration Tests:
- Step order and periodic mechanical analysis
- Scenarios on simulated time
- Export round trips

Example Test Run:
-----------------
>>> import unittest
>>> from tests import test_electrical, test_manager
>>>
>>> loader = unittest.TestLoader()
>>> suite = unittest.TestSuite()
>>> suite.addTests(loader.loadTestsFromModule(test_electrical))
>>> suite.addTests(loader.loadTestsFromModule(test_manager))
>>>
>>> runner = unittest.TextTestRunner(verbosity=2)
>>> result = runner.run(suite)

Version: 1.0.0
Author: Coupled Twin Team
Date: October 17, 2026
"""

import unittest
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Import test modules
from . import test_linalg
from . import test_electrical
from . import test_thermal
from . import test_mechanical
from . import test_failure
from . import test_rigid_body
from . import test_coupling
from . import test_results
from . import test_manager
from . import test_config
from . import test_cli

__all__ = [
    "test_linalg",
    "test_electrical",
    "test_thermal",
    "test_mechanical",
    "test_failure",
    "test_rigid_body",
    "test_coupling",
    "test_results",
    "test_manager",
    "test_config",
    "test_cli",
]

__version__ = "1.0.0"
__author__ = "Coupled Twin Team"
__date__ = "2026-10-17"


def create_test_suite():
    """
    Create the full test suite.

    Returns:
        unittest.TestSuite with all tests
    """
    loader = unittest.TestLoader()
    suite = unittest.TestSuite()

    for module in (test_linalg, test_electrical, test_thermal, test_mechanical,
                   test_failure, test_rigid_body, test_coupling, test_results,
                   test_manager, test_config, test_cli):
        suite.addTests(loader.loadTestsFromModule(module))

    return suite


def run_tests(verbosity: int = 2):
    """
    Run all tests.

    Args:
        verbosity: Output verbosity level

    Returns:
        unittest.TestResult
    """
    suite = create_test_suite()
    runner = unittest.TextTestRunner(verbosity=verbosity)
    return runner.run(suite)


if __name__ == "__main__":
    result = run_tests()
    sys.exit(0 if result.wasSuccessful() else 1)
