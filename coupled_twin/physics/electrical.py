"""
Coupled Twin Physics - Electrical Circuit Solver
================================================

DC steady-state circuit analysis by Modified Nodal Analysis (MNA).

MNA Formulation:
----------------
For n non-ground nodes and m auxiliary branches the unknown vector is

    x = [V_1 ... V_n, I_1 ... I_m]

and the system [G B; Bᵀ 0] x = [I_inj; E] is assembled by stamping:

- Resistor R between a, b:      G[a,a] += 1/R, G[b,b] += 1/R, G[a,b] -= 1/R, ...
- Current source I from a to b: I_inj[a] += I, I_inj[b] -= I
- Voltage source E (a → b):     auxiliary row enforcing V_a − V_b = E
- Inductor (DC short):          auxiliary row enforcing V_a − V_b = 0
- Capacitor (DC open):          no stamp

The auxiliary unknowns are the branch currents through voltage sources and
inductors. A small gmin shunt from every node to ground keeps nodes that are
only reached through capacitors solvable.

Outputs:
--------
- Node voltages (ground fixed at 0 V)
- Branch current per component
- Power per component P = |ΔV|·|I|
- Efficiency = dissipated power / source power

Example:
--------
>>> sim = ElectricalSimulator()
>>> sim.add_voltage_source("V1", 12.0, "n1", "ground", (0, 0, 0))
>>> sim.add_resistor("R1", 100.0, 0.05, "n1", "n2", (1, 0, 0))
>>> sim.add_resistor("R2", 200.0, 0.05, "n2", "ground", (2, 0, 0))
>>> state = sim.solve_circuit()
>>> round(state.node_voltages["n2"], 3)
8.0

Author: Coupled Twin Team
Date: October 17, 2026
"""

import numpy as np
from scipy import sparse
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging

from ..core.linalg import IndexTable, LinearSolver, SingularSystemError

logger = logging.getLogger(__name__)

GROUND = "ground"
GROUND_ALIASES = frozenset({"ground", "gnd", "GND", "0"})

RESISTIVE_KINDS = ("resistor",)
SOURCE_KINDS = ("voltage_source", "current_source")
COMPONENT_KINDS = (
    "resistor",
    "capacitor",
    "inductor",
    "voltage_source",
    "current_source",
    "semiconductor",
)
SEMICONDUCTOR_ALIASES = ("diode", "transistor", "semiconductor")

MIN_RESISTANCE = 1e-6  # Ω
DEFAULT_GMIN = 1e-12  # S


def _vec3(value: Optional[Sequence[float]]) -> np.ndarray:
    if value is None:
        return np.zeros(3)
    return np.asarray(value, dtype=np.float64).reshape(3)


@dataclass
class Component:
    """Two-terminal circuit element."""
    id: str
    kind: str
    value: float
    nodes: Tuple[str, str]
    position: np.ndarray
    tolerance: float = 0.0
    properties: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CircuitNode:
    """Circuit node; voltage is written by every solve."""
    id: str
    position: np.ndarray
    voltage: float = 0.0
    component_ids: List[str] = field(default_factory=list)


@dataclass
class ElectricalState:
    """Result of one DC solve."""
    node_voltages: Dict[str, float] = field(default_factory=dict)
    component_currents: Dict[str, float] = field(default_factory=dict)
    component_powers: Dict[str, float] = field(default_factory=dict)
    total_power: float = 0.0
    source_power: float = 0.0
    efficiency: float = 0.0
    singular: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_voltages": dict(self.node_voltages),
            "component_currents": dict(self.component_currents),
            "component_powers": dict(self.component_powers),
            "total_power": self.total_power,
            "source_power": self.source_power,
            "efficiency": self.efficiency,
            "singular": self.singular,
        }


class ElectricalSimulator:
    """
    DC circuit simulator using Modified Nodal Analysis.

    Components are registered with the add_* methods; nodes they reference
    are registered with them. solve_circuit() never raises: a singular
    system yields a state with singular=True and empty result maps.
    """

    def __init__(self,
                 solver: Optional[LinearSolver] = None,
                 gmin: float = DEFAULT_GMIN):
        """
        Initialize electrical simulator.

        Args:
            solver: Linear solver (default: LinearSolver("auto"))
            gmin: Shunt conductance from each node to ground [S]
        """
        self.solver = solver or LinearSolver(method="auto")
        self.gmin = gmin
        self.components: Dict[str, Component] = {}
        self.nodes: Dict[str, CircuitNode] = {}
        self.state = ElectricalState()
        self.solve_count = 0

    # ------------------------------------------------------------------
    # Component registration
    # ------------------------------------------------------------------

    def add_component(self,
                      component_id: str,
                      kind: str,
                      value: float,
                      node_a: str,
                      node_b: str,
                      position: Optional[Sequence[float]] = None,
                      tolerance: float = 0.0,
                      properties: Optional[Dict[str, Any]] = None) -> Optional[Component]:
        """
        Register a component of any supported kind.

        Args:
            component_id: Unique component id
            kind: One of COMPONENT_KINDS (diode/transistor map to semiconductor)
            value: Ω, F, H, V or A depending on kind
            node_a: First terminal node id
            node_b: Second terminal node id
            position: 3D position
            tolerance: Relative tolerance of value
            properties: Free-form property map

        Returns:
            The registered component, or None for an unsupported kind
        """
        properties = dict(properties or {})
        if kind in SEMICONDUCTOR_ALIASES:
            properties.setdefault("device", kind)
            kind = "semiconductor"

        if kind not in COMPONENT_KINDS:
            logger.warning(f"Unsupported component kind '{kind}' for {component_id}, skipped")
            return None

        node_a = self._canonical(node_a)
        node_b = self._canonical(node_b)
        pos = _vec3(position)

        component = Component(
            id=component_id,
            kind=kind,
            value=float(value),
            nodes=(node_a, node_b),
            position=pos,
            tolerance=tolerance,
            properties=properties,
        )

        if component_id in self.components:
            self._detach(self.components[component_id])

        self.components[component_id] = component
        for node_id in (node_a, node_b):
            self._register_node(node_id, pos, component_id)

        logger.debug(f"Added {kind} {component_id} ({value}) between {node_a} and {node_b}")
        return component

    def add_resistor(self, component_id: str, value: float, tolerance: float,
                     node_a: str, node_b: str, position=None) -> Component:
        return self.add_component(component_id, "resistor", value, node_a, node_b,
                                  position, tolerance, {"tolerance": tolerance})

    def add_capacitor(self, component_id: str, value: float, max_voltage: float,
                      node_a: str, node_b: str, position=None) -> Component:
        return self.add_component(component_id, "capacitor", value, node_a, node_b, position,
                                  properties={"max_voltage": max_voltage, "charge": 0.0, "energy": 0.0})

    def add_inductor(self, component_id: str, value: float, max_current: float,
                     node_a: str, node_b: str, position=None) -> Component:
        return self.add_component(component_id, "inductor", value, node_a, node_b, position,
                                  properties={"max_current": max_current, "flux": 0.0, "energy": 0.0})

    def add_voltage_source(self, component_id: str, voltage: float,
                           node_a: str, node_b: str, position=None) -> Component:
        return self.add_component(component_id, "voltage_source", voltage, node_a, node_b, position,
                                  properties={"internal_resistance": 0.01})

    def add_current_source(self, component_id: str, current: float,
                           node_a: str, node_b: str, position=None) -> Component:
        return self.add_component(component_id, "current_source", current, node_a, node_b, position)

    def add_semiconductor(self, component_id: str, device: str, params: Dict[str, Any],
                          node_a: str, node_b: str, position=None) -> Component:
        properties = dict(params or {})
        properties["device"] = device
        properties["operating_point"] = {"voltage": 0.0, "current": 0.0}
        return self.add_component(component_id, "semiconductor", 0.0, node_a, node_b,
                                  position, properties=properties)

    def set_property(self, component_id: str, key: str, value: Any):
        """Update a component property (the only mutable part of a component)."""
        component = self.components.get(component_id)
        if component is not None:
            component.properties[key] = value

    def _canonical(self, node_id: str) -> str:
        return GROUND if str(node_id) in GROUND_ALIASES else str(node_id)

    def _register_node(self, node_id: str, position: np.ndarray, component_id: str):
        node = self.nodes.get(node_id)
        if node is None:
            node = CircuitNode(id=node_id, position=position.copy())
            self.nodes[node_id] = node
        if component_id not in node.component_ids:
            node.component_ids.append(component_id)

    def _detach(self, component: Component):
        for node_id in component.nodes:
            node = self.nodes.get(node_id)
            if node is not None and component.id in node.component_ids:
                node.component_ids.remove(component.id)

    # ------------------------------------------------------------------
    # MNA solve
    # ------------------------------------------------------------------

    def _conductance(self, component: Component) -> Optional[float]:
        """Conductance of a resistive element, None if it does not conduct."""
        if component.kind == "resistor":
            return 1.0 / max(abs(component.value), MIN_RESISTANCE)
        if component.kind == "semiconductor":
            r_on = component.properties.get("on_resistance")
            if r_on is not None:
                return 1.0 / max(abs(float(r_on)), MIN_RESISTANCE)
        return None

    def _build_system(self, node_table: IndexTable, aux: List[Component]):
        n = len(node_table)
        size = n + len(aux)

        rows: List[int] = []
        cols: List[int] = []
        vals: List[float] = []
        rhs = np.zeros(size)

        def stamp(i: Optional[int], j: Optional[int], v: float):
            if i is not None and j is not None:
                rows.append(i)
                cols.append(j)
                vals.append(v)

        for component in self.components.values():
            ia = node_table.get(component.nodes[0])
            ib = node_table.get(component.nodes[1])

            g = self._conductance(component)
            if g is not None:
                stamp(ia, ia, g)
                stamp(ib, ib, g)
                stamp(ia, ib, -g)
                stamp(ib, ia, -g)
            elif component.kind == "current_source":
                if ia is not None:
                    rhs[ia] += component.value
                if ib is not None:
                    rhs[ib] -= component.value

        if self.gmin > 0:
            for i in range(n):
                stamp(i, i, self.gmin)

        for k, component in enumerate(aux):
            row = n + k
            ia = node_table.get(component.nodes[0])
            ib = node_table.get(component.nodes[1])
            if ia is not None:
                stamp(ia, row, 1.0)
                stamp(row, ia, 1.0)
            if ib is not None:
                stamp(ib, row, -1.0)
                stamp(row, ib, -1.0)
            rhs[row] = component.value if component.kind == "voltage_source" else 0.0

        G = sparse.csr_matrix((vals, (rows, cols)), shape=(size, size))
        return G, rhs

    def solve_circuit(self) -> ElectricalState:
        """
        Assemble and solve the MNA system.

        Returns:
            ElectricalState (singular=True if the system could not be solved)
        """
        node_table = IndexTable(n for n in self.nodes if n != GROUND)
        aux = [c for c in self.components.values()
               if c.kind in ("voltage_source", "inductor")]

        state = ElectricalState()
        if len(node_table) + len(aux) == 0:
            self.state = state
            return state

        G, rhs = self._build_system(node_table, aux)

        try:
            solution = self.solver.solve(G, rhs)
        except SingularSystemError as e:
            logger.warning(f"Circuit is singular ({e}); solve skipped")
            state.singular = True
            self.state = state
            return state

        n = len(node_table)
        state.node_voltages[GROUND] = 0.0
        for node_id in node_table.keys():
            voltage = float(solution[node_table.index(node_id)])
            state.node_voltages[node_id] = voltage
            self.nodes[node_id].voltage = voltage
        if GROUND in self.nodes:
            self.nodes[GROUND].voltage = 0.0

        aux_currents = {c.id: float(solution[n + k]) for k, c in enumerate(aux)}

        for component in self.components.values():
            current = self._component_current(component, state.node_voltages, aux_currents)
            state.component_currents[component.id] = current
            state.component_powers[component.id] = self._component_power(
                component, current, state.node_voltages)

        self._system_metrics(state)

        self.solve_count += 1
        self.state = state
        return state

    def _component_current(self,
                           component: Component,
                           voltages: Dict[str, float],
                           aux_currents: Dict[str, float]) -> float:
        v_a = voltages.get(component.nodes[0], 0.0)
        v_b = voltages.get(component.nodes[1], 0.0)

        if component.id in aux_currents:
            return aux_currents[component.id]

        if component.kind == "current_source":
            return component.value

        g = self._conductance(component)
        if g is not None:
            return (v_a - v_b) * g

        # Capacitors and non-conducting semiconductors are open in DC
        return 0.0

    def _component_power(self,
                         component: Component,
                         current: float,
                         voltages: Dict[str, float]) -> float:
        v_a = voltages.get(component.nodes[0], 0.0)
        v_b = voltages.get(component.nodes[1], 0.0)
        return abs(v_a - v_b) * abs(current)

    def _system_metrics(self, state: ElectricalState):
        dissipated = 0.0
        supplied = 0.0
        for component in self.components.values():
            power = state.component_powers.get(component.id, 0.0)
            if component.kind in SOURCE_KINDS:
                supplied += power
            else:
                dissipated += power

        state.total_power = dissipated
        state.source_power = supplied
        state.efficiency = dissipated / supplied if supplied > 0 else 0.0

    # ------------------------------------------------------------------
    # Visualization data
    # ------------------------------------------------------------------

    def get_current_flow(self, threshold: float = 1e-3) -> List[Dict[str, Any]]:
        """Components carrying more than threshold amps."""
        flow = []
        for component in self.components.values():
            current = self.state.component_currents.get(component.id, 0.0)
            if abs(current) > threshold:
                flow.append({
                    "component_id": component.id,
                    "current": current,
                    "direction": 1 if current > 0 else -1,
                    "speed": abs(current) * 10,
                })
        return flow

    def get_voltage_gradient(self) -> List[Dict[str, Any]]:
        return [
            {
                "node_id": node.id,
                "voltage": self.state.node_voltages.get(node.id, 0.0),
                "position": node.position.tolist(),
            }
            for node in self.nodes.values()
        ]

    def get_power_dissipation(self, threshold: float = 1e-3) -> List[Dict[str, Any]]:
        data = []
        for component in self.components.values():
            power = self.state.component_powers.get(component.id, 0.0)
            if power > threshold:
                data.append({
                    "component_id": component.id,
                    "power": power,
                    "position": component.position.tolist(),
                    "heat_intensity": power / 10,
                })
        return data

    def get_magnetic_fields(self) -> List[Dict[str, Any]]:
        """Field strength |I|·L around each inductor."""
        fields = []
        for component in self.components.values():
            if component.kind != "inductor":
                continue
            current = self.state.component_currents.get(component.id, 0.0)
            fields.append({
                "component_id": component.id,
                "field_strength": abs(current) * component.value,
                "position": component.position.tolist(),
            })
        return fields

    # ------------------------------------------------------------------
    # Getters
    # ------------------------------------------------------------------

    def get_state(self) -> ElectricalState:
        return self.state

    def get_component(self, component_id: str) -> Optional[Component]:
        return self.components.get(component_id)

    def get_node(self, node_id: str) -> Optional[CircuitNode]:
        return self.nodes.get(self._canonical(node_id))
