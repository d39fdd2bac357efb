"""
Coupled Twin Utils Module - Initialization
==========================================

Utility functions and helpers for the coupled twin.

Submodules:
-----------
1. config.py  - Configuration loading, validation and typed view
2. logging.py - Logging setup and diagnostics

Usage:
------
from coupled_twin.utils import load_config, setup_logging, SimulationConfig

setup_logging("logs/", level="INFO")
config = SimulationConfig.from_dict(load_config("bench.yaml"))

Version: 1.0.0
Author: Coupled Twin Team
Date: October 17, 2026
"""

from .config import (
    load_config,
    load_default_config,
    validate_config,
    merge_configs,
    get_config_value,
    set_config_value,
    save_config,
    ConfigError,
    SimulationConfig,
    PhysicsConfig,
    ElectricalConfig,
    ThermalConfig,
    MechanicalConfig,
    FailureConfig,
    HistoryConfig,
)

from .logging import (
    setup_logging,
    get_logger,
    log_results,
    log_statistics,
    log_error,
    create_diagnostic_report,
    save_diagnostic_report,
)

__all__ = [
    # Config functions
    "load_config",
    "load_default_config",
    "validate_config",
    "merge_configs",
    "get_config_value",
    "set_config_value",
    "save_config",
    "ConfigError",
    # Typed config
    "SimulationConfig",
    "PhysicsConfig",
    "ElectricalConfig",
    "ThermalConfig",
    "MechanicalConfig",
    "FailureConfig",
    "HistoryConfig",
    # Logging functions
    "setup_logging",
    "get_logger",
    "log_results",
    "log_statistics",
    "log_error",
    "create_diagnostic_report",
    "save_diagnostic_report",
]

__version__ = "1.0.0"
__author__ = "Coupled Twin Team"
__date__ = "2026-10-17"
