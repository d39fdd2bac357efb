"""
Coupled Twin Physics - Materials Database
=========================================

Thermal and mechanical property tables for the materials parts are salvaged
from. Unknown material names fall back to steel in both tables.

Thermal Properties:
-------------------
- thermal_conductivity  k  [W/m·K]
- heat_capacity         c  [J/kg·K]
- density               ρ  [kg/m³]
- emissivity            ε  [0-1]
- convection_coefficient h [W/m²·K]

Mechanical Properties:
----------------------
- youngs_modulus  E   [Pa]
- poissons_ratio  ν
- yield_strength  σ_y [Pa]
- fatigue_limit   σ_f [Pa]

Author: Coupled Twin Team
Date: October 17, 2026
"""

from dataclasses import dataclass
from typing import Dict
import logging

logger = logging.getLogger(__name__)

STEFAN_BOLTZMANN = 5.67e-8  # W/m²·K⁴
CELSIUS_TO_KELVIN = 273.15

# Reference material for simplified thermal stress (steel)
STEEL_YOUNGS_MODULUS = 200e9  # Pa
STEEL_EXPANSION_COEFF = 12e-6  # 1/K

DEFAULT_MATERIAL = "steel"


@dataclass(frozen=True)
class ThermalProperties:
    thermal_conductivity: float
    heat_capacity: float
    density: float
    emissivity: float
    absorptivity: float
    convection_coefficient: float


@dataclass(frozen=True)
class MechanicalProperties:
    youngs_modulus: float
    poissons_ratio: float
    density: float
    yield_strength: float
    ultimate_strength: float
    fatigue_limit: float
    hardness: float


THERMAL_MATERIALS: Dict[str, ThermalProperties] = {
    "aluminum": ThermalProperties(237.0, 900.0, 2700.0, 0.05, 0.05, 25.0),
    "copper": ThermalProperties(401.0, 385.0, 8960.0, 0.04, 0.04, 25.0),
    "steel": ThermalProperties(50.0, 500.0, 7850.0, 0.8, 0.8, 20.0),
    "plastic": ThermalProperties(0.2, 1500.0, 1200.0, 0.9, 0.9, 10.0),
    "silicon": ThermalProperties(148.0, 700.0, 2330.0, 0.6, 0.6, 15.0),
}

MECHANICAL_MATERIALS: Dict[str, MechanicalProperties] = {
    "steel": MechanicalProperties(200e9, 0.3, 7850.0, 250e6, 400e6, 200e6, 200.0),
    "aluminum": MechanicalProperties(70e9, 0.33, 2700.0, 276e6, 310e6, 130e6, 95.0),
    "titanium": MechanicalProperties(116e9, 0.32, 4500.0, 880e6, 950e6, 500e6, 334.0),
    "plastic_abs": MechanicalProperties(2.3e9, 0.35, 1050.0, 40e6, 45e6, 20e6, 20.0),
}


class MaterialsDatabase:
    """
    Lookup of thermal and mechanical properties by material name.

    Each simulator owns its own database so custom registrations never leak
    between simulator instances.

    Example:
    --------
    >>> db = MaterialsDatabase()
    >>> db.thermal("copper").heat_capacity
    385.0
    >>> db.mechanical("unobtainium").yield_strength  # steel fallback
    250000000.0
    """

    def __init__(self):
        self._thermal = dict(THERMAL_MATERIALS)
        self._mechanical = dict(MECHANICAL_MATERIALS)

    def thermal(self, name: str) -> ThermalProperties:
        props = self._thermal.get(name)
        if props is None:
            logger.debug(f"Unknown thermal material '{name}', using {DEFAULT_MATERIAL}")
            props = self._thermal[DEFAULT_MATERIAL]
        return props

    def mechanical(self, name: str) -> MechanicalProperties:
        props = self._mechanical.get(name)
        if props is None:
            logger.debug(f"Unknown mechanical material '{name}', using {DEFAULT_MATERIAL}")
            props = self._mechanical[DEFAULT_MATERIAL]
        return props

    def register_thermal(self, name: str, props: ThermalProperties):
        self._thermal[name] = props

    def register_mechanical(self, name: str, props: MechanicalProperties):
        self._mechanical[name] = props

    def has_mechanical(self, name: str) -> bool:
        return name in self._mechanical
