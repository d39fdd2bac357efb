"""
Coupled Twin Physics - Mechanical Stress Solver
===============================================

Simplified linear-elastic finite-element stress analysis over a mesh of
axial bars and constant-strain membrane triangles. This is not an
industrial FE package: stresses are averaged onto nodes and modal analysis
returns placeholder frequencies.

Elements:
---------
1. Bar (2 nodes):      k = E·A/L along the bar axis e
                       K_e = k · [[eeᵀ, −eeᵀ], [−eeᵀ, eeᵀ]]
2. Triangle (3 nodes): constant-strain membrane in the element plane

                       K_e = Tᵀ · Bᵀ D B · V · T

   where T (6×9) projects global DOFs onto the in-plane axes, B is the
   shape-function strain-displacement matrix and D is the plane Lamé
   matrix E/((1+ν)(1−2ν)) · [[1−ν, ν, 0], [ν, 1−ν, 0], [0, 0, (1−2ν)/2]].

Solve:
------
    K u = F

K is assembled sparsely over an explicit DOF index table (3 DOFs per
node). Constrained and prescribed DOFs are eliminated with the identity-row
technique; DOFs without any stiffness are locked at zero.

Post-processing:
----------------
- Safety factor = min(σ_yield / σ_vm) over stressed nodes
- Fatigue life  = 10⁶ · σ_f / σ_max cycles when σ_max ≥ σ_f, else ∞

Example:
--------
>>> sim = MechanicalSimulator()
>>> sim.add_node("a", (0, 0, 0))
>>> sim.add_node("b", (1, 0, 0))
>>> sim.add_element("bar", ["a", "b"], "steel", section_area=1e-4)
>>> sim.add_constraint("fix", "fixed", (0, 0, 0))
>>> sim.add_load_case("pull", "force", 1e5, (1, 0, 0), (1, 0, 0))
>>> result = sim.perform_stress_analysis("static")
>>> result.safety_factor < 1
True

Author: Coupled Twin Team
Date: October 17, 2026
"""

import numpy as np
from scipy import sparse
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence
import logging

from ..core.linalg import IndexTable, LinearSolver, SingularSystemError
from .materials import MaterialsDatabase, MechanicalProperties

logger = logging.getLogger(__name__)

DOF_PER_NODE = 3
MEMBRANE_THICKNESS = 0.001  # m
DEFAULT_SECTION_AREA = 1e-4  # m²

LOAD_KINDS = ("force", "pressure", "displacement", "acceleration")
CONSTRAINT_KINDS = ("fixed", "pinned", "roller", "spring")
ANALYSIS_TYPES = ("static", "dynamic", "modal")

MODAL_PLACEHOLDER_FREQUENCIES = (100.0, 250.0, 400.0, 600.0, 800.0)  # Hz
FATIGUE_REFERENCE_CYCLES = 1e6

# Relative diagonal magnitude below which a DOF is treated as unsupported
ZERO_STIFFNESS_RTOL = 1e-12


def _vec3(value: Optional[Sequence[float]], default=(0.0, 0.0, 0.0)) -> np.ndarray:
    if value is None:
        value = default
    return np.asarray(value, dtype=np.float64).reshape(3)


def _unit(value: Optional[Sequence[float]], default=(0.0, -1.0, 0.0)) -> np.ndarray:
    v = _vec3(value, default)
    norm = np.linalg.norm(v)
    if norm < 1e-12:
        return _vec3(default)
    return v / norm


def plane_stress_matrix(E: float, nu: float) -> np.ndarray:
    """Plane Lamé constitutive matrix D (3×3)."""
    factor = E / ((1 + nu) * (1 - 2 * nu))
    return factor * np.array([
        [1 - nu, nu, 0.0],
        [nu, 1 - nu, 0.0],
        [0.0, 0.0, (1 - 2 * nu) / 2],
    ])


def von_mises(stress: np.ndarray) -> float:
    """Plane von Mises stress from (σ_1, σ_2, τ_12)."""
    s1, s2, tau = stress
    return float(np.sqrt(max(s1 * s1 - s1 * s2 + s2 * s2 + 3 * tau * tau, 0.0)))


@dataclass
class MeshNode:
    id: str
    position: np.ndarray
    owner: Optional[str] = None
    material: str = "steel"
    displacement: np.ndarray = field(default_factory=lambda: np.zeros(3))
    stress: np.ndarray = field(default_factory=lambda: np.zeros(3))
    strain: np.ndarray = field(default_factory=lambda: np.zeros(3))

    @property
    def stress_magnitude(self) -> float:
        return von_mises(self.stress)


@dataclass
class MeshElement:
    id: str
    node_ids: List[str]
    material: str
    volume: float
    thickness: float = MEMBRANE_THICKNESS
    section_area: float = DEFAULT_SECTION_AREA

    @property
    def kind(self) -> str:
        return "bar" if len(self.node_ids) == 2 else "triangle"


@dataclass
class LoadCase:
    id: str
    kind: str
    magnitude: float
    direction: np.ndarray
    position: np.ndarray
    area: Optional[float] = None


@dataclass
class Constraint:
    id: str
    kind: str
    position: np.ndarray
    direction: Optional[np.ndarray] = None
    stiffness: Optional[float] = None


@dataclass
class AnalysisResult:
    max_stress: float = 0.0
    max_displacement: float = 0.0
    safety_factor: float = float("inf")
    fatigue_life: float = float("inf")
    natural_frequencies: List[float] = field(default_factory=list)
    mode_shapes: List[Dict[str, Any]] = field(default_factory=list)
    solved: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_stress": self.max_stress,
            "max_displacement": self.max_displacement,
            "safety_factor": self.safety_factor,
            "fatigue_life": self.fatigue_life,
            "natural_frequencies": list(self.natural_frequencies),
            "solved": self.solved,
        }


class MechanicalSimulator:
    """
    Static stress solver over a bar/triangle mesh.

    Args:
        solver: Linear solver (default: LinearSolver("auto"))
        materials: Materials database
        mesh_density: Informational mesh density label
    """

    def __init__(self,
                 solver: Optional[LinearSolver] = None,
                 materials: Optional[MaterialsDatabase] = None,
                 mesh_density: str = "medium"):
        self.solver = solver or LinearSolver(method="auto")
        self.materials = materials or MaterialsDatabase()
        self.mesh_density = mesh_density

        self.nodes: Dict[str, MeshNode] = {}
        self.elements: Dict[str, MeshElement] = {}
        self.load_cases: Dict[str, LoadCase] = {}
        self.constraints: Dict[str, Constraint] = {}
        self.analysis_results: Dict[str, AnalysisResult] = {}
        self.last_result: Optional[AnalysisResult] = None

    # ------------------------------------------------------------------
    # Mesh
    # ------------------------------------------------------------------

    def add_node(self, node_id: str, position: Sequence[float],
                 owner: Optional[str] = None) -> MeshNode:
        node = MeshNode(id=node_id, position=_vec3(position), owner=owner)
        self.nodes[node_id] = node
        return node

    def add_element(self,
                    element_id: str,
                    node_ids: Sequence[str],
                    material: str = "steel",
                    thickness: float = MEMBRANE_THICKNESS,
                    section_area: float = DEFAULT_SECTION_AREA) -> Optional[MeshElement]:
        """
        Add a bar (2 nodes) or membrane triangle (3 nodes).

        Returns:
            The element, or None when it references unknown nodes, has the
            wrong node count or is degenerate
        """
        node_ids = list(node_ids)
        if len(node_ids) not in (2, 3):
            logger.warning(f"Element {element_id} has {len(node_ids)} nodes, expected 2 or 3")
            return None
        if any(n not in self.nodes for n in node_ids):
            logger.debug(f"Element {element_id} references unknown nodes, skipped")
            return None

        points = [self.nodes[n].position for n in node_ids]
        if len(node_ids) == 2:
            volume = float(np.linalg.norm(points[1] - points[0])) * section_area
        else:
            area = 0.5 * float(np.linalg.norm(np.cross(points[1] - points[0], points[2] - points[0])))
            volume = area * thickness

        if volume <= 0:
            logger.warning(f"Element {element_id} is degenerate, skipped")
            return None

        element = MeshElement(
            id=element_id,
            node_ids=node_ids,
            material=material,
            volume=volume,
            thickness=thickness,
            section_area=section_area,
        )
        self.elements[element_id] = element
        for node_id in node_ids:
            self.nodes[node_id].material = material
        return element

    def generate_mesh(self,
                      vertices: Sequence[Sequence[float]],
                      faces: Sequence[Sequence[int]],
                      material: str = "steel",
                      prefix: Optional[str] = None) -> List[str]:
        """
        Build membrane triangles from an indexed surface.

        Args:
            vertices: (N, 3) vertex positions
            faces: (M, 3) vertex indices per triangle
            material: Material name
            prefix: Owner id; node ids become "<prefix>:node_<k>"

        Returns:
            Ids of the created elements
        """
        vertices = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
        tag = f"{prefix}:" if prefix else ""

        for k, vertex in enumerate(vertices):
            self.add_node(f"{tag}node_{k}", vertex, owner=prefix)

        created = []
        for k, face in enumerate(faces):
            face = [int(i) for i in face]
            if len(face) != 3 or max(face) >= len(vertices):
                logger.debug(f"Face {k} is not a valid triangle, skipped")
                continue
            element = self.add_element(
                f"{tag}element_{k}",
                [f"{tag}node_{i}" for i in face],
                material,
            )
            if element is not None:
                created.append(element.id)

        logger.debug(f"Generated mesh '{prefix}' with {len(vertices)} nodes, {len(created)} elements")
        return created

    # ------------------------------------------------------------------
    # Loads and constraints
    # ------------------------------------------------------------------

    def add_load_case(self,
                      load_id: str,
                      kind: str,
                      magnitude: float,
                      direction: Sequence[float],
                      position: Sequence[float],
                      area: Optional[float] = None) -> Optional[LoadCase]:
        if kind not in LOAD_KINDS:
            logger.warning(f"Unknown load kind '{kind}' for {load_id}, skipped")
            return None
        load = LoadCase(load_id, kind, float(magnitude), _unit(direction), _vec3(position), area)
        self.load_cases[load_id] = load
        return load

    def remove_load_case(self, load_id: str) -> bool:
        return self.load_cases.pop(load_id, None) is not None

    def add_constraint(self,
                       constraint_id: str,
                       kind: str,
                       position: Sequence[float],
                       direction: Optional[Sequence[float]] = None,
                       stiffness: Optional[float] = None) -> Optional[Constraint]:
        if kind not in CONSTRAINT_KINDS:
            logger.warning(f"Unknown constraint kind '{kind}' for {constraint_id}, skipped")
            return None
        constraint = Constraint(
            constraint_id,
            kind,
            _vec3(position),
            _unit(direction, (0.0, 1.0, 0.0)) if direction is not None else None,
            stiffness,
        )
        self.constraints[constraint_id] = constraint
        return constraint

    def _find_nearest_node(self, position: np.ndarray) -> Optional[MeshNode]:
        if not self.nodes:
            return None
        return min(self.nodes.values(),
                   key=lambda n: float(np.linalg.norm(n.position - position)))

    # ------------------------------------------------------------------
    # Element matrices
    # ------------------------------------------------------------------

    def _bar_stiffness(self, element: MeshElement, props: MechanicalProperties):
        p1, p2 = (self.nodes[n].position for n in element.node_ids)
        axis = p2 - p1
        length = float(np.linalg.norm(axis))
        e = axis / length
        k = props.youngs_modulus * element.section_area / length
        block = k * np.outer(e, e)
        return np.block([[block, -block], [-block, block]])

    def _triangle_frame(self, element: MeshElement):
        """In-plane basis, local coordinates and area of a triangle."""
        p = [self.nodes[n].position for n in element.node_ids]
        e1 = p[1] - p[0]
        e1 /= np.linalg.norm(e1)
        normal = np.cross(p[1] - p[0], p[2] - p[0])
        area = 0.5 * np.linalg.norm(normal)
        normal /= np.linalg.norm(normal)
        e2 = np.cross(normal, e1)

        local = np.array([[(pi - p[0]) @ e1, (pi - p[0]) @ e2] for pi in p])

        T = np.zeros((6, 9))
        for i in range(3):
            T[2 * i, 3 * i:3 * i + 3] = e1
            T[2 * i + 1, 3 * i:3 * i + 3] = e2
        return local, area, T

    @staticmethod
    def _strain_displacement(local: np.ndarray, area: float) -> np.ndarray:
        (x1, y1), (x2, y2), (x3, y3) = local
        b = (y2 - y3, y3 - y1, y1 - y2)
        c = (x3 - x2, x1 - x3, x2 - x1)
        B = np.zeros((3, 6))
        for i in range(3):
            B[0, 2 * i] = b[i]
            B[1, 2 * i + 1] = c[i]
            B[2, 2 * i] = c[i]
            B[2, 2 * i + 1] = b[i]
        return B / (2 * area)

    def _triangle_stiffness(self, element: MeshElement, props: MechanicalProperties):
        local, area, T = self._triangle_frame(element)
        B = self._strain_displacement(local, area)
        D = plane_stress_matrix(props.youngs_modulus, props.poissons_ratio)
        k_local = B.T @ D @ B * element.volume
        return T.T @ k_local @ T

    def element_stiffness(self, element: MeshElement) -> np.ndarray:
        props = self.materials.mechanical(element.material)
        if element.kind == "bar":
            return self._bar_stiffness(element, props)
        return self._triangle_stiffness(element, props)

    # ------------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------------

    def _dof_table(self) -> IndexTable:
        table = IndexTable()
        for node_id in self.nodes:
            for axis in range(DOF_PER_NODE):
                table.add(f"{node_id}/{axis}")
        return table

    def _element_dofs(self, element: MeshElement, dofs: IndexTable) -> List[int]:
        return [dofs.index(f"{n}/{axis}") for n in element.node_ids for axis in range(DOF_PER_NODE)]

    def _node_dofs(self, node_id: str, dofs: IndexTable) -> List[int]:
        return [dofs.index(f"{node_id}/{axis}") for axis in range(DOF_PER_NODE)]

    def build_global_stiffness(self, dofs: IndexTable) -> sparse.csr_matrix:
        size = len(dofs)
        rows: List[int] = []
        cols: List[int] = []
        vals: List[float] = []

        for element in self.elements.values():
            k_e = self.element_stiffness(element)
            index = self._element_dofs(element, dofs)
            for a, i in enumerate(index):
                for b, j in enumerate(index):
                    if k_e[a, b] != 0.0:
                        rows.append(i)
                        cols.append(j)
                        vals.append(k_e[a, b])

        return sparse.csr_matrix((vals, (rows, cols)), shape=(size, size))

    def _lumped_masses(self) -> Dict[str, float]:
        masses = {node_id: 0.0 for node_id in self.nodes}
        for element in self.elements.values():
            density = self.materials.mechanical(element.material).density
            share = density * element.volume / len(element.node_ids)
            for node_id in element.node_ids:
                masses[node_id] += share
        return masses

    def build_load_vector(self, dofs: IndexTable):
        """
        Assemble nodal forces and prescribed displacements.

        Returns:
            Tuple of (force vector, {dof: prescribed displacement})
        """
        F = np.zeros(len(dofs))
        prescribed: Dict[int, float] = {}
        masses = None

        for load in self.load_cases.values():
            if load.kind == "acceleration":
                if masses is None:
                    masses = self._lumped_masses()
                for node_id, mass in masses.items():
                    F[self._node_dofs(node_id, dofs)] += mass * load.magnitude * load.direction
                continue

            node = self._find_nearest_node(load.position)
            if node is None:
                continue
            index = self._node_dofs(node.id, dofs)

            if load.kind == "force":
                F[index] += load.magnitude * load.direction
            elif load.kind == "pressure":
                area = load.area if load.area else 1.0
                F[index] += load.magnitude * area * load.direction
            elif load.kind == "displacement":
                for axis, dof in enumerate(index):
                    if abs(load.direction[axis]) > 1e-12:
                        prescribed[dof] = load.magnitude * load.direction[axis]

        return F, prescribed

    def _apply_constraints(self, K: sparse.csr_matrix, dofs: IndexTable):
        """Add spring stiffness; return the set of locked DOFs."""
        locked = set()
        springs = np.zeros(len(dofs))

        for constraint in self.constraints.values():
            node = self._find_nearest_node(constraint.position)
            if node is None:
                continue
            index = self._node_dofs(node.id, dofs)

            if constraint.kind in ("fixed", "pinned"):
                locked.update(index)
            elif constraint.kind == "roller":
                direction = constraint.direction if constraint.direction is not None \
                    else np.array([0.0, 1.0, 0.0])
                locked.add(index[int(np.argmax(np.abs(direction)))])
            elif constraint.kind == "spring":
                springs[index] += constraint.stiffness or 0.0

        if springs.any():
            K = K + sparse.diags(springs)

        diagonal = np.abs(K.diagonal())
        scale = diagonal.max() if diagonal.size else 0.0
        unsupported = np.nonzero(diagonal <= ZERO_STIFFNESS_RTOL * scale)[0]
        locked.update(int(i) for i in unsupported)

        return K.tocsr(), locked

    @staticmethod
    def _eliminate(K: sparse.csr_matrix, F: np.ndarray, fixed: Dict[int, float]):
        """Identity-row elimination of fixed DOFs with known values."""
        size = K.shape[0]
        values = np.zeros(size)
        mask = np.ones(size)
        for dof, value in fixed.items():
            values[dof] = value
            mask[dof] = 0.0

        F = F - K @ values
        keep = sparse.diags(mask)
        K_mod = keep @ K @ keep + sparse.diags(1.0 - mask)
        F = F * mask + values
        return K_mod.tocsr(), F

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def perform_stress_analysis(self, analysis_id: str = "static") -> AnalysisResult:
        """
        Run a static stress analysis.

        Args:
            analysis_id: Key under which the result is stored

        Returns:
            AnalysisResult (solved=False for an empty mesh or singular system)
        """
        if not self.nodes or not self.elements:
            logger.debug("Mechanical analysis skipped: empty mesh")
            result = AnalysisResult()
            self._store(analysis_id, result)
            return result

        dofs = self._dof_table()
        K = self.build_global_stiffness(dofs)
        F, prescribed = self.build_load_vector(dofs)
        K, locked = self._apply_constraints(K, dofs)

        fixed = {dof: 0.0 for dof in locked}
        fixed.update(prescribed)
        K, F = self._eliminate(K, F, fixed)

        try:
            u = self.solver.solve(K, F)
        except SingularSystemError as e:
            logger.warning(f"Stiffness matrix is singular ({e}); analysis '{analysis_id}' not solved")
            self._clear_node_results()
            result = AnalysisResult(natural_frequencies=list(MODAL_PLACEHOLDER_FREQUENCIES))
            self._store(analysis_id, result)
            return result

        for node_id, node in self.nodes.items():
            node.displacement = u[self._node_dofs(node_id, dofs)].copy()

        self._recover_stresses(u, dofs)
        result = self._calculate_results()
        self._store(analysis_id, result)

        logger.debug(
            f"Stress analysis '{analysis_id}': max stress {result.max_stress:.3e} Pa, "
            f"safety factor {result.safety_factor:.3f}"
        )
        return result

    def _store(self, analysis_id: str, result: AnalysisResult):
        self.analysis_results[analysis_id] = result
        self.last_result = result

    def _clear_node_results(self):
        for node in self.nodes.values():
            node.displacement = np.zeros(3)
            node.stress = np.zeros(3)
            node.strain = np.zeros(3)

    def _recover_stresses(self, u: np.ndarray, dofs: IndexTable):
        """Element stresses averaged onto their nodes."""
        stress_sum = {node_id: np.zeros(3) for node_id in self.nodes}
        strain_sum = {node_id: np.zeros(3) for node_id in self.nodes}
        counts = {node_id: 0 for node_id in self.nodes}

        for element in self.elements.values():
            props = self.materials.mechanical(element.material)
            u_e = u[self._element_dofs(element, dofs)]

            if element.kind == "bar":
                p1, p2 = (self.nodes[n].position for n in element.node_ids)
                axis = p2 - p1
                length = float(np.linalg.norm(axis))
                axial = float((u_e[3:] - u_e[:3]) @ (axis / length)) / length
                strain = np.array([axial, 0.0, 0.0])
                stress = np.array([props.youngs_modulus * axial, 0.0, 0.0])
            else:
                local, area, T = self._triangle_frame(element)
                B = self._strain_displacement(local, area)
                strain = B @ (T @ u_e)
                stress = plane_stress_matrix(props.youngs_modulus, props.poissons_ratio) @ strain

            for node_id in element.node_ids:
                stress_sum[node_id] += stress
                strain_sum[node_id] += strain
                counts[node_id] += 1

        for node_id, node in self.nodes.items():
            n = counts[node_id]
            node.stress = stress_sum[node_id] / n if n else np.zeros(3)
            node.strain = strain_sum[node_id] / n if n else np.zeros(3)

    def _calculate_results(self) -> AnalysisResult:
        max_stress = 0.0
        max_displacement = 0.0
        safety_factor = float("inf")
        critical: Optional[MeshNode] = None

        for node in self.nodes.values():
            stress = node.stress_magnitude
            max_displacement = max(max_displacement, float(np.linalg.norm(node.displacement)))
            if stress > max_stress:
                max_stress = stress
                critical = node
            if stress > 0:
                yield_strength = self.materials.mechanical(node.material).yield_strength
                safety_factor = min(safety_factor, yield_strength / stress)

        fatigue_life = float("inf")
        if critical is not None:
            fatigue_limit = self.materials.mechanical(critical.material).fatigue_limit
            if max_stress >= fatigue_limit:
                fatigue_life = FATIGUE_REFERENCE_CYCLES * fatigue_limit / max_stress

        return AnalysisResult(
            max_stress=max_stress,
            max_displacement=max_displacement,
            safety_factor=safety_factor,
            fatigue_life=fatigue_life,
            natural_frequencies=list(MODAL_PLACEHOLDER_FREQUENCIES),
            solved=True,
        )

    def perform_modal_analysis(self) -> List[Dict[str, Any]]:
        """
        Placeholder modal analysis.

        No eigenproblem is solved; fixed frequencies are returned with
        sinusoidal y-shapes over node x positions.
        """
        modes = []
        for index, frequency in enumerate(MODAL_PLACEHOLDER_FREQUENCIES):
            shape = [
                [0.0, float(np.sin((index + 1) * np.pi * node.position[0] / 10)), 0.0]
                for node in self.nodes.values()
            ]
            modes.append({"frequency": frequency, "shape": shape})
        return modes

    def analyze(self, analysis_id: str, analysis_type: str = "static") -> AnalysisResult:
        """Dispatch by analysis type; dynamic runs the static solve."""
        result = self.perform_stress_analysis(analysis_id)
        if analysis_type == "modal":
            result.mode_shapes = self.perform_modal_analysis()
        return result

    def perform_tolerance_analysis(self,
                                   tolerances: Dict[str, float],
                                   iterations: int = 10000,
                                   seed: Optional[int] = None) -> Dict[str, float]:
        """
        Monte-Carlo tolerance stack-up.

        Each dimension varies uniformly within ±tolerance.

        Args:
            tolerances: Dimension id → symmetric tolerance
            iterations: Number of samples
            seed: RNG seed

        Returns:
            Dictionary with worst_case_stack, statistical_stack (3σ), cpk
            against ±worst case limits, and yield_prediction [%] within 3σ
        """
        values = np.array(list(tolerances.values()), dtype=np.float64)
        worst_case = float(np.sum(np.abs(values)))
        if values.size == 0 or worst_case == 0.0:
            return {"worst_case_stack": 0.0, "statistical_stack": 0.0,
                    "cpk": 0.0, "yield_prediction": 100.0}

        rng = np.random.default_rng(seed)
        samples = rng.uniform(-1.0, 1.0, size=(iterations, values.size)) * values
        stack = samples.sum(axis=1)

        mean = float(np.mean(stack))
        sigma = float(np.std(stack))
        statistical = 3 * sigma
        cpk = min(worst_case - mean, mean + worst_case) / (3 * sigma) if sigma > 0 else 0.0
        within = float(np.mean(np.abs(stack - mean) <= statistical)) * 100

        return {
            "worst_case_stack": worst_case,
            "statistical_stack": statistical,
            "cpk": float(cpk),
            "yield_prediction": within,
        }

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_component_stresses(self) -> Dict[str, float]:
        """Maximum node stress per mesh owner."""
        stresses: Dict[str, float] = {}
        for node in self.nodes.values():
            if node.owner is None:
                continue
            stresses[node.owner] = max(stresses.get(node.owner, 0.0), node.stress_magnitude)
        return stresses

    def get_yield_strength(self, owner: str) -> float:
        for node in self.nodes.values():
            if node.owner == owner:
                return self.materials.mechanical(node.material).yield_strength
        return self.materials.mechanical("steel").yield_strength

    def get_stress_map(self, threshold: float = 1e6) -> List[Dict[str, Any]]:
        data = []
        for node in self.nodes.values():
            stress = node.stress_magnitude
            if stress > threshold:
                data.append({
                    "node_id": node.id,
                    "position": node.position.tolist(),
                    "stress": stress,
                    "displacement": node.displacement.tolist(),
                })
        return data

    def get_analysis_result(self, analysis_id: str) -> Optional[AnalysisResult]:
        return self.analysis_results.get(analysis_id)

    def get_node(self, node_id: str) -> Optional[MeshNode]:
        return self.nodes.get(node_id)
