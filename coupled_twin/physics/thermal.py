"""
Coupled Twin Physics - Thermal Network
======================================

Lumped thermal-network model: point thermal masses joined by conductances,
heated by point sources and integrated with explicit Euler.

Physics:
--------
Per node with thermal mass C = m·c:

    C · dT/dt = Q_sources + Σ Q_in − Σ Q_out − h_amb·(T − T_amb)

Connection fluxes (flux leaves node a and enters node b):
- conduction:  Q = G·(T_a − T_b),            G = k·A/L
- convection:  Q = G·(T_a − T_amb),          G = h·A  (lost to ambient)
- radiation:   Q = G·(T_a,K⁴ − T_b,K⁴),      G = ε·σ·A

Heat sources inject P·exp(−d) into every node closer than 1 m.

Explicit Euler is only stable for dt well below min(C/ΣG); no adaptive
step control is applied.

Thermal Stress:
---------------
σ = E·α·|T − T_amb| using steel constants for every node
(E = 200 GPa, α = 12e-6 1/K).

Example:
--------
>>> sim = ThermalSimulator(ambient_temperature=20.0)
>>> sim.add_thermal_node("a", (0, 0, 0), mass=0.1, material="copper")
>>> sim.add_heat_source("h", (0, 0, 0), power=5.0)
>>> sim.step(0.01)
>>> sim.get_state().max_temperature > 20.0
True

Author: Coupled Twin Team
Date: October 17, 2026
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence
import logging

from .materials import (
    MaterialsDatabase,
    STEFAN_BOLTZMANN,
    CELSIUS_TO_KELVIN,
    STEEL_YOUNGS_MODULUS,
    STEEL_EXPANSION_COEFF,
)

logger = logging.getLogger(__name__)

CONNECTION_MODES = ("conduction", "convection", "radiation")
SOURCE_KINDS = ("point", "surface", "volume")

HEAT_SOURCE_RADIUS = 1.0  # m
DEFAULT_AMBIENT_LOSS = 10.0  # W/K


def _vec3(value: Optional[Sequence[float]]) -> np.ndarray:
    if value is None:
        return np.zeros(3)
    return np.asarray(value, dtype=np.float64).reshape(3)


@dataclass
class ThermalConnection:
    node_a: str
    node_b: str
    conductance: float  # W/K
    mode: str = "conduction"

    @property
    def id(self) -> str:
        return f"{self.node_a}-{self.node_b}"


@dataclass
class ThermalNode:
    id: str
    position: np.ndarray
    temperature: float
    mass: float
    heat_capacity: float
    connections: List[ThermalConnection] = field(default_factory=list)

    @property
    def thermal_mass(self) -> float:
        return self.mass * self.heat_capacity


@dataclass
class HeatSource:
    id: str
    position: np.ndarray
    power: float
    kind: str = "point"
    temperature: float = 20.0


@dataclass
class ThermalState:
    node_temperatures: Dict[str, float] = field(default_factory=dict)
    heat_flows: Dict[str, float] = field(default_factory=dict)
    total_heat_generation: float = 0.0
    average_temperature: float = 0.0
    max_temperature: float = 0.0
    thermal_stresses: Dict[str, float] = field(default_factory=dict)
    total_energy: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_temperatures": dict(self.node_temperatures),
            "heat_flows": dict(self.heat_flows),
            "total_heat_generation": self.total_heat_generation,
            "average_temperature": self.average_temperature,
            "max_temperature": self.max_temperature,
            "thermal_stresses": dict(self.thermal_stresses),
            "total_energy": self.total_energy,
        }


class ThermalSimulator:
    """
    Explicit-Euler lumped thermal network.

    Args:
        ambient_temperature: Ambient baseline [°C]
        convection_enabled: Apply convection connections and ambient loss
        radiation_enabled: Apply radiation connections
        ambient_loss_coefficient: Node → ambient loss h_amb [W/K]
        materials: Materials database (a fresh one per simulator by default)
    """

    def __init__(self,
                 ambient_temperature: float = 20.0,
                 convection_enabled: bool = True,
                 radiation_enabled: bool = True,
                 ambient_loss_coefficient: float = DEFAULT_AMBIENT_LOSS,
                 materials: Optional[MaterialsDatabase] = None):
        self.ambient_temperature = ambient_temperature
        self.convection_enabled = convection_enabled
        self.radiation_enabled = radiation_enabled
        self.ambient_loss_coefficient = ambient_loss_coefficient
        self.materials = materials or MaterialsDatabase()

        self.nodes: Dict[str, ThermalNode] = {}
        self.heat_sources: Dict[str, HeatSource] = {}
        self.connections: Dict[str, ThermalConnection] = {}
        self.state = ThermalState(
            average_temperature=ambient_temperature,
            max_temperature=ambient_temperature,
        )

    @property
    def effective_ambient_loss(self) -> float:
        """Ambient loss coefficient, zero while convection is disabled."""
        return self.ambient_loss_coefficient if self.convection_enabled else 0.0

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def add_thermal_node(self,
                         node_id: str,
                         position: Optional[Sequence[float]],
                         mass: float,
                         material: str = "steel",
                         initial_temperature: Optional[float] = None) -> ThermalNode:
        """
        Add a thermal mass.

        Args:
            node_id: Node id
            position: 3D position [m]
            mass: Mass [kg]
            material: Material name (steel fallback)
            initial_temperature: Starting temperature [°C] (default: ambient)

        Returns:
            The new node
        """
        if initial_temperature is None:
            initial_temperature = self.ambient_temperature
        props = self.materials.thermal(material)

        if mass <= 0:
            logger.warning(f"Thermal node {node_id} has non-positive mass {mass}, using 1e-6 kg")
            mass = 1e-6

        node = ThermalNode(
            id=node_id,
            position=_vec3(position),
            temperature=float(initial_temperature),
            mass=float(mass),
            heat_capacity=props.heat_capacity,
        )
        self.nodes[node_id] = node
        self.state.node_temperatures[node_id] = node.temperature
        return node

    def add_heat_source(self,
                        source_id: str,
                        position: Optional[Sequence[float]],
                        power: float,
                        kind: str = "point") -> HeatSource:
        if kind not in SOURCE_KINDS:
            logger.debug(f"Unknown heat source kind '{kind}', using point")
            kind = "point"
        source = HeatSource(
            id=source_id,
            position=_vec3(position),
            power=float(power),
            kind=kind,
            temperature=self.ambient_temperature,
        )
        self.heat_sources[source_id] = source
        return source

    def set_heat_source(self,
                        source_id: str,
                        position: Optional[Sequence[float]],
                        power: float,
                        kind: str = "point") -> HeatSource:
        """Replace a heat source in place, keeping its last temperature."""
        previous = self.heat_sources.get(source_id)
        source = self.add_heat_source(source_id, position, power, kind)
        if previous is not None:
            source.temperature = previous.temperature
        return source

    def remove_heat_source(self, source_id: str) -> bool:
        return self.heat_sources.pop(source_id, None) is not None

    def add_thermal_connection(self,
                               node_a: str,
                               node_b: str,
                               material: str,
                               area: float,
                               length: float,
                               mode: str = "conduction") -> Optional[ThermalConnection]:
        """
        Connect two nodes.

        Args:
            node_a: Upstream node id (positive flux leaves it)
            node_b: Downstream node id
            material: Material name for k, h, ε
            area: Cross-section or exchange area [m²]
            length: Conduction length [m]
            mode: conduction, convection or radiation

        Returns:
            The connection, or None if either node is unknown
        """
        if node_a not in self.nodes or node_b not in self.nodes:
            logger.debug(f"Connection {node_a}-{node_b} references unknown node, skipped")
            return None

        props = self.materials.thermal(material)
        if mode == "conduction":
            conductance = props.thermal_conductivity * area / max(length, 1e-9)
        elif mode == "convection":
            conductance = props.convection_coefficient * area
        elif mode == "radiation":
            conductance = props.emissivity * STEFAN_BOLTZMANN * area
        else:
            logger.warning(f"Unknown connection mode '{mode}', using conductance 1 W/K")
            mode = "conduction"
            conductance = 1.0

        connection = ThermalConnection(node_a, node_b, conductance, mode)
        if connection.id in self.connections:
            old = self.connections[connection.id]
            for node in (self.nodes[node_a], self.nodes[node_b]):
                if old in node.connections:
                    node.connections.remove(old)

        self.connections[connection.id] = connection
        self.nodes[node_a].connections.append(connection)
        self.nodes[node_b].connections.append(connection)
        return connection

    def add_electrical_heat_generation(self,
                                       component_id: str,
                                       power: float,
                                       position: Optional[Sequence[float]]) -> HeatSource:
        return self.set_heat_source(f"electrical_{component_id}", position, power, "point")

    def set_ambient_temperature(self, temperature: float):
        self.ambient_temperature = float(temperature)

    # ------------------------------------------------------------------
    # Integration
    # ------------------------------------------------------------------

    def step(self, dt: float):
        """Advance every node temperature by one explicit Euler step."""
        self._calculate_heat_flows()
        self._update_node_temperatures(dt)
        self._update_heat_source_temperatures()
        self._calculate_thermal_stresses()
        self._update_state_metrics()

    def _connection_flux(self, connection: ThermalConnection) -> Optional[float]:
        t_a = self.nodes[connection.node_a].temperature
        t_b = self.nodes[connection.node_b].temperature

        if connection.mode == "conduction":
            return connection.conductance * (t_a - t_b)

        if connection.mode == "convection":
            if not self.convection_enabled:
                return None
            return connection.conductance * (t_a - self.ambient_temperature)

        if connection.mode == "radiation":
            if not self.radiation_enabled:
                return None
            t_a_k = t_a + CELSIUS_TO_KELVIN
            t_b_k = t_b + CELSIUS_TO_KELVIN
            return connection.conductance * (t_a_k ** 4 - t_b_k ** 4)

        return None

    def _calculate_heat_flows(self):
        flows: Dict[str, float] = {}
        for connection_id, connection in self.connections.items():
            flux = self._connection_flux(connection)
            if flux is not None:
                flows[connection_id] = flux

        for source in self.heat_sources.values():
            flows[f"source_{source.id}"] = source.power

        self.state.heat_flows = flows

    def _source_input(self, node: ThermalNode) -> float:
        total = 0.0
        for source in self.heat_sources.values():
            distance = float(np.linalg.norm(node.position - source.position))
            if distance < HEAT_SOURCE_RADIUS:
                total += source.power * np.exp(-distance)
        return total

    def _update_node_temperatures(self, dt: float):
        flows = self.state.heat_flows
        h_amb = self.effective_ambient_loss
        new_temperatures: Dict[str, float] = {}

        for node in self.nodes.values():
            net = self._source_input(node)

            for connection in node.connections:
                flux = flows.get(connection.id)
                if flux is None:
                    continue
                if connection.node_a == node.id:
                    net -= flux
                elif connection.node_b == node.id and connection.mode != "convection":
                    # Convection flux is lost to ambient, not received by node b
                    net += flux

            net -= h_amb * (node.temperature - self.ambient_temperature)

            new_temperatures[node.id] = node.temperature + net * dt / node.thermal_mass

        for node_id, temperature in new_temperatures.items():
            self.nodes[node_id].temperature = temperature
            self.state.node_temperatures[node_id] = temperature

    def _update_heat_source_temperatures(self):
        if not self.nodes:
            return
        for source in self.heat_sources.values():
            nearest = min(
                self.nodes.values(),
                key=lambda n: float(np.linalg.norm(n.position - source.position)),
            )
            source.temperature = nearest.temperature

    def _calculate_thermal_stresses(self):
        self.state.thermal_stresses = {
            node.id: STEEL_YOUNGS_MODULUS * STEEL_EXPANSION_COEFF
            * abs(node.temperature - self.ambient_temperature)
            for node in self.nodes.values()
        }

    def _update_state_metrics(self):
        temperatures = [node.temperature for node in self.nodes.values()]
        self.state.total_heat_generation = sum(s.power for s in self.heat_sources.values())
        if temperatures:
            self.state.average_temperature = float(np.mean(temperatures))
            self.state.max_temperature = float(np.max(temperatures))
        else:
            self.state.average_temperature = self.ambient_temperature
            self.state.max_temperature = self.ambient_temperature
        self.state.total_energy = self.total_energy()

    def total_energy(self) -> float:
        """Stored thermal energy Σ m·c·T [J, relative to 0 °C]."""
        return float(sum(node.thermal_mass * node.temperature for node in self.nodes.values()))

    # ------------------------------------------------------------------
    # Visualization data
    # ------------------------------------------------------------------

    def get_temperature_gradient(self) -> List[Dict[str, Any]]:
        return [
            {"node_id": n.id, "position": n.position.tolist(), "temperature": n.temperature}
            for n in self.nodes.values()
        ]

    def get_heat_flow_visualization(self, threshold: float = 0.1) -> List[Dict[str, Any]]:
        data = []
        for connection_id, connection in self.connections.items():
            flux = self.state.heat_flows.get(connection_id, 0.0)
            if abs(flux) <= threshold:
                continue
            data.append({
                "connection_id": connection_id,
                "start_position": self.nodes[connection.node_a].position.tolist(),
                "end_position": self.nodes[connection.node_b].position.tolist(),
                "heat_flow": flux,
                "intensity": abs(flux) / 100,
            })
        return data

    def get_thermal_stress_map(self, threshold: float = 1e6) -> List[Dict[str, Any]]:
        """Nodes whose thermal stress exceeds threshold [Pa]."""
        data = []
        for node_id, stress in self.state.thermal_stresses.items():
            if stress > threshold:
                data.append({
                    "node_id": node_id,
                    "position": self.nodes[node_id].position.tolist(),
                    "stress": stress,
                    "intensity": min(stress / 100e6, 1.0),
                })
        return data

    # ------------------------------------------------------------------
    # Getters
    # ------------------------------------------------------------------

    def get_state(self) -> ThermalState:
        return self.state

    def get_node(self, node_id: str) -> Optional[ThermalNode]:
        return self.nodes.get(node_id)

    def get_heat_source(self, source_id: str) -> Optional[HeatSource]:
        return self.heat_sources.get(source_id)
