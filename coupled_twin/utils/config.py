"""
Coupled Twin Utils - Configuration Management
=============================================

Configuration loading, validation, merging and a typed view.

Features:
---------
1. YAML Loading
   - Built-in defaults from coupled_twin/config/default.yaml
   - User files deep-merged over the defaults
   - Environment variable substitution: ${VAR:default}

2. Validation
   - Required sections
   - Enumerated choices (solver, analysis type, mesh density)
   - Bounds (positive time step, acceleration factor, capacity)

3. Typed View
   - SimulationConfig.from_dict() / to_dict()

Configuration Structure:
-----------------------
physics:    {enabled, gravity, time_step, substeps}
electrical: {enabled, frequency, solver_tolerance, max_iterations, solver, gmin}
thermal:    {enabled, ambient_temperature, convection_enabled, radiation_enabled,
             ambient_loss_coefficient}
mechanical: {enabled, analysis_type, mesh_density, solve_interval, solver}
failure:    {enabled, acceleration_factor, maintenance_schedule, probability_scale, seed}
history:    {capacity}

Example:
--------
>>> from coupled_twin.utils import load_config, validate_config
>>>
>>> config = load_config("bench.yaml")      # merged over defaults
>>> validate_config(config)
True
>>> sim_config = SimulationConfig.from_dict(config)
>>> sim_config.physics.time_step
0.016

Author: Coupled Twin Team
Date: October 17, 2026
"""

import yaml
import os
import re
import copy
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Dict, Any, Optional, List
import logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "default.yaml"

REQUIRED_SECTIONS = ["physics", "electrical", "thermal", "mechanical", "failure"]
VALID_SOLVERS = ["auto", "dense", "sparse"]
VALID_ANALYSIS_TYPES = ["static", "dynamic", "modal"]
VALID_MESH_DENSITIES = ["coarse", "medium", "fine"]


class ConfigError(Exception):
    """Configuration error."""
    pass


def _read_yaml(config_path: Path) -> Dict[str, Any]:
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}")
    except OSError as e:
        raise ConfigError(f"Error loading config: {e}")

    if config is None:
        raise ConfigError(f"Empty config file: {config_path}")
    if not isinstance(config, dict):
        raise ConfigError(f"Config root must be a mapping: {config_path}")

    return _substitute_env_vars(config)


def load_default_config() -> Dict[str, Any]:
    """Load the packaged default configuration."""
    return _read_yaml(DEFAULT_CONFIG_PATH)


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML, merged over the defaults.

    Args:
        config_path: Path to YAML config file (None: defaults only)

    Returns:
        Configuration dictionary

    Raises:
        ConfigError: If file not found or invalid YAML

    Example:
        >>> config = load_config("bench.yaml")
        >>> config["thermal"]["ambient_temperature"]
        25.0
    """
    config = load_default_config()

    if config_path is not None:
        user = _read_yaml(Path(config_path))
        config = merge_configs(config, user)
        logger.info(f"Loaded config from {config_path}")

    return config


def _substitute_env_vars(obj: Any) -> Any:
    """
    Recursively substitute environment variables in config.

    Supports format: ${VAR_NAME:default_value}. A string that is entirely a
    substitution is re-parsed as YAML so numbers and booleans keep their type.
    """
    if isinstance(obj, dict):
        return {k: _substitute_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_substitute_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        pattern = r'\$\{(\w+)(?::([^}]*))?\}'

        def replace_var(match):
            var_name = match.group(1)
            default = match.group(2) or ""
            return os.environ.get(var_name, default)

        substituted = re.sub(pattern, replace_var, obj)
        if substituted != obj and re.fullmatch(pattern, obj):
            return yaml.safe_load(substituted) if substituted else None
        return substituted
    else:
        return obj


def validate_config(config: Dict[str, Any]) -> bool:
    """
    Validate configuration structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        True if valid

    Raises:
        ConfigError: If validation fails
    """
    for key in REQUIRED_SECTIONS:
        if key not in config:
            raise ConfigError(f"Missing required key: {key}")
        if not isinstance(config[key], dict):
            raise ConfigError(f"{key} config must be a dictionary")

    _validate_physics(config["physics"])
    _validate_electrical(config["electrical"])
    _validate_mechanical(config["mechanical"])
    _validate_failure(config["failure"])
    _validate_history(config.get("history", {}))

    logger.debug("Configuration validation passed")
    return True


def _number(section: str, key: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{section}.{key} must be numeric, got {value!r}")
    return float(value)


def _validate_physics(physics: Dict[str, Any]) -> None:
    if _number("physics", "time_step", physics.get("time_step", 0.016)) <= 0:
        raise ConfigError("physics.time_step must be positive")
    if int(_number("physics", "substeps", physics.get("substeps", 1))) < 1:
        raise ConfigError("physics.substeps must be at least 1")
    gravity = physics.get("gravity", [0.0, -9.81, 0.0])
    if not isinstance(gravity, (list, tuple)) or len(gravity) != 3:
        raise ConfigError("physics.gravity must be a 3-vector")
    for g in gravity:
        _number("physics", "gravity", g)


def _validate_electrical(electrical: Dict[str, Any]) -> None:
    solver = electrical.get("solver", "auto")
    if solver not in VALID_SOLVERS:
        raise ConfigError(f"Invalid electrical solver: {solver}. Must be one of {VALID_SOLVERS}")
    if _number("electrical", "gmin", electrical.get("gmin", 1e-12)) < 0:
        raise ConfigError("electrical.gmin must be non-negative")


def _validate_mechanical(mechanical: Dict[str, Any]) -> None:
    analysis = mechanical.get("analysis_type", "static")
    if analysis not in VALID_ANALYSIS_TYPES:
        raise ConfigError(
            f"Invalid analysis type: {analysis}. Must be one of {VALID_ANALYSIS_TYPES}"
        )
    density = mechanical.get("mesh_density", "medium")
    if density not in VALID_MESH_DENSITIES:
        raise ConfigError(
            f"Invalid mesh density: {density}. Must be one of {VALID_MESH_DENSITIES}"
        )
    if mechanical.get("solver", "auto") not in VALID_SOLVERS:
        raise ConfigError(f"Invalid mechanical solver. Must be one of {VALID_SOLVERS}")
    if _number("mechanical", "solve_interval", mechanical.get("solve_interval", 1.0)) <= 0:
        raise ConfigError("mechanical.solve_interval must be positive")


def _validate_failure(failure: Dict[str, Any]) -> None:
    if _number("failure", "acceleration_factor", failure.get("acceleration_factor", 1.0)) < 0:
        raise ConfigError("failure.acceleration_factor must be non-negative")
    scale = _number("failure", "probability_scale", failure.get("probability_scale", 1e-3))
    if scale < 0:
        raise ConfigError("failure.probability_scale must be non-negative")
    if scale > 1:
        logger.warning(f"failure.probability_scale {scale} exceeds 1")


def _validate_history(history: Dict[str, Any]) -> None:
    if not history:
        return
    if int(_number("history", "capacity", history.get("capacity", 1000))) < 1:
        raise ConfigError("history.capacity must be at least 1")


def merge_configs(base: Dict[str, Any],
                  override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge override config into base config.

    Example:
        >>> merge_configs({"a": 1, "b": {"c": 2}}, {"b": {"d": 3}})
        {'a': 1, 'b': {'c': 2, 'd': 3}}
    """
    result = copy.deepcopy(base)

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = copy.deepcopy(value)

    return result


def get_config_value(config: Dict[str, Any],
                     key_path: str,
                     default: Any = None) -> Any:
    """
    Get nested config value using dot notation.

    Example:
        >>> get_config_value({"thermal": {"ambient_temperature": 20.0}}, "thermal.ambient_temperature")
        20.0
    """
    value = config
    for key in key_path.split("."):
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default
    return value


def set_config_value(config: Dict[str, Any],
                     key_path: str,
                     value: Any) -> Dict[str, Any]:
    """Set nested config value using dot notation."""
    keys = key_path.split(".")
    current = config

    for key in keys[:-1]:
        if key not in current:
            current[key] = {}
        current = current[key]

    current[keys[-1]] = value
    return config


def save_config(config: Dict[str, Any],
                output_path: str) -> None:
    """Save configuration to YAML file."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w') as f:
        yaml.safe_dump(config, f, default_flow_style=False)

    logger.info(f"Saved config to {output_path}")


# ============================================================================
# Typed view
# ============================================================================

@dataclass
class PhysicsConfig:
    enabled: bool = True
    gravity: List[float] = field(default_factory=lambda: [0.0, -9.81, 0.0])
    time_step: float = 0.016
    substeps: int = 1


@dataclass
class ElectricalConfig:
    enabled: bool = True
    frequency: float = 0.0
    solver_tolerance: float = 1e-12
    max_iterations: int = 100
    solver: str = "auto"
    gmin: float = 1e-12


@dataclass
class ThermalConfig:
    enabled: bool = True
    ambient_temperature: float = 20.0
    convection_enabled: bool = True
    radiation_enabled: bool = True
    ambient_loss_coefficient: float = 10.0


@dataclass
class MechanicalConfig:
    enabled: bool = True
    analysis_type: str = "static"
    mesh_density: str = "medium"
    solve_interval: float = 1.0
    solver: str = "auto"


@dataclass
class FailureConfig:
    enabled: bool = True
    acceleration_factor: float = 1.0
    maintenance_schedule: bool = False
    probability_scale: float = 1e-3
    seed: Optional[int] = None


@dataclass
class HistoryConfig:
    capacity: int = 1000


def _section(cls, data: Optional[Dict[str, Any]]):
    known = cls.__dataclass_fields__
    values = {k: v for k, v in (data or {}).items() if k in known}
    unknown = set(data or {}) - set(known)
    if unknown:
        logger.debug(f"Ignoring unknown {cls.__name__} keys: {sorted(unknown)}")
    return cls(**values)


@dataclass
class SimulationConfig:
    """Typed configuration for SimulationManager."""
    physics: PhysicsConfig = field(default_factory=PhysicsConfig)
    electrical: ElectricalConfig = field(default_factory=ElectricalConfig)
    thermal: ThermalConfig = field(default_factory=ThermalConfig)
    mechanical: MechanicalConfig = field(default_factory=MechanicalConfig)
    failure: FailureConfig = field(default_factory=FailureConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "SimulationConfig":
        """
        Build a typed config from a (validated) dictionary.

        Raises:
            ConfigError: If validation fails
        """
        merged = merge_configs(cls().to_dict(), config or {})
        validate_config(merged)
        return cls(
            physics=_section(PhysicsConfig, merged.get("physics")),
            electrical=_section(ElectricalConfig, merged.get("electrical")),
            thermal=_section(ThermalConfig, merged.get("thermal")),
            mechanical=_section(MechanicalConfig, merged.get("mechanical")),
            failure=_section(FailureConfig, merged.get("failure")),
            history=_section(HistoryConfig, merged.get("history")),
        )

    @classmethod
    def default(cls) -> "SimulationConfig":
        return cls.from_dict(load_default_config())

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
