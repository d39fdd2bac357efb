"""
Coupled Twin Physics Module - Initialization
============================================

Per-domain solvers of the coupled multi-physics twin.

Components:
-----------
1. materials.py  - Thermal and mechanical material tables
2. electrical.py - DC circuit solver (Modified Nodal Analysis)
3. thermal.py    - Lumped thermal network, explicit Euler
4. mechanical.py - Bar/membrane finite-element stress solver
5. failure.py    - Health, degradation and failure events
6. rigid_body.py - Rigid bodies, motors, gears, springs, joints

Domain Couplings:
-----------------
- Electrical power dissipation → thermal heat sources
- Node temperatures → mechanical thermal loads, failure temperature factor
- Mechanical stress → failure mechanical_stress factor

Usage:
------
from coupled_twin.physics import ElectricalSimulator, ThermalSimulator

circuit = ElectricalSimulator()
circuit.add_voltage_source("V1", 12.0, "n1", "ground")
circuit.add_resistor("R1", 100.0, 0.05, "n1", "ground")
state = circuit.solve_circuit()

thermal = ThermalSimulator(ambient_temperature=20.0)
thermal.add_thermal_node("R1", (0, 0, 0), mass=0.01, material="copper")
thermal.add_electrical_heat_generation("R1", state.component_powers["R1"], (0, 0, 0))
thermal.step(0.016)

Version: 1.0.0
Author: Coupled Twin Team
Date: October 17, 2026
"""

from .materials import (
    MaterialsDatabase,
    ThermalProperties,
    MechanicalProperties,
)

from .electrical import (
    ElectricalSimulator,
    ElectricalState,
    Component,
    CircuitNode,
)

from .thermal import (
    ThermalSimulator,
    ThermalState,
    ThermalNode,
    ThermalConnection,
    HeatSource,
)

from .mechanical import (
    MechanicalSimulator,
    AnalysisResult,
    MeshNode,
    MeshElement,
    LoadCase,
    Constraint,
)

from .failure import (
    FailureSimulator,
    ComponentHealth,
    FailureMode,
    FailureEvent,
    MaintenanceRecord,
    FAILURE_PROBABILITY_SCALE,
)

from .rigid_body import (
    PhysicsSimulator,
    PhysicsProperties,
    RigidBody,
    RigidBodyWorld,
    Gear,
    GearTrain,
    Motor,
    MotorProperties,
    SpringDamper,
    SpringDamperProperties,
    BreakableJoint,
    BreakableJointProperties,
    ParticleSystem,
    SoftBody,
)

__all__ = [
    # Materials
    "MaterialsDatabase",
    "ThermalProperties",
    "MechanicalProperties",
    # Electrical
    "ElectricalSimulator",
    "ElectricalState",
    "Component",
    "CircuitNode",
    # Thermal
    "ThermalSimulator",
    "ThermalState",
    "ThermalNode",
    "ThermalConnection",
    "HeatSource",
    # Mechanical
    "MechanicalSimulator",
    "AnalysisResult",
    "MeshNode",
    "MeshElement",
    "LoadCase",
    "Constraint",
    # Failure
    "FailureSimulator",
    "ComponentHealth",
    "FailureMode",
    "FailureEvent",
    "MaintenanceRecord",
    "FAILURE_PROBABILITY_SCALE",
    # Rigid bodies
    "PhysicsSimulator",
    "PhysicsProperties",
    "RigidBody",
    "RigidBodyWorld",
    "Gear",
    "GearTrain",
    "Motor",
    "MotorProperties",
    "SpringDamper",
    "SpringDamperProperties",
    "BreakableJoint",
    "BreakableJointProperties",
    "ParticleSystem",
    "SoftBody",
]

__version__ = "1.0.0"
__author__ = "Coupled Twin Team"
__date__ = "2026-10-17"
