"""
Coupled Twin Physics - Rigid Bodies and Mechanisms
==================================================

A minimal rigid-body world with composable mechanisms layered on top. This
is not a real-time physics engine: there is no collision detection, only
force/torque integration.

Integration (semi-implicit Euler, per substep h = dt / substeps):
------------------------------------------------------------------
    v ← (v + (F/m + g)·h) / (1 + c_lin·h)
    x ← x + v·h
    ω ← (ω + (τ/I)·h) / (1 + c_ang·h)
    q ← normalize(q + ½·h·[ω, 0] ⊗ q)

Force and torque accumulators are cleared after every world step.

Mechanisms (stepped in this order before the world):
----------------------------------------------------
1. Motor          - speed-torque curve, proportional speed controller
2. GearTrain      - ratio = Π driven/driving teeth along the chain
3. SpringDamper   - Hooke + viscous force along the separation
4. BreakableJoint - snaps on peak stress or fatigue cycle count
5. ParticleSystem - fluid / gas / smoke particles
6. SoftBody       - distance-constraint relaxation

Example:
--------
>>> sim = PhysicsSimulator(gravity=(0, 0, 0))
>>> sim.create_rigid_body("a", (0, 0, 0))
>>> sim.create_rigid_body("b", (2, 0, 0))
>>> sim.create_spring_damper("s", "a", "b", properties=SpringDamperProperties(rest_length=1.0))
>>> sim.step(0.01)

Author: Coupled Twin Team
Date: October 17, 2026
"""

import numpy as np
from collections import deque
from dataclasses import dataclass, field, fields
from scipy.spatial import cKDTree
from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging

logger = logging.getLogger(__name__)

DEFAULT_GRAVITY = (0.0, -9.81, 0.0)
STRESS_HISTORY_LENGTH = 1000
SPEED_CONTROLLER_GAIN = 10.0
PARTICLE_KINDS = ("fluid", "gas", "smoke")


def _vec3(value: Optional[Sequence[float]], default=(0.0, 0.0, 0.0)) -> np.ndarray:
    if value is None:
        value = default
    return np.asarray(value, dtype=np.float64).reshape(3)


def _quat_multiply(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Hamilton product of (x, y, z, w) quaternions."""
    ax, ay, az, aw = a
    bx, by, bz, bw = b
    return np.array([
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw,
        aw * bw - ax * bx - ay * by - az * bz,
    ])


@dataclass
class PhysicsProperties:
    mass: float = 1.0
    density: float = 1000.0
    friction: float = 0.5
    restitution: float = 0.3
    linear_damping: float = 0.01
    angular_damping: float = 0.01
    collision_shape: str = "box"

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PhysicsProperties":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in (data or {}).items() if k in known})


@dataclass
class RigidBody:
    id: str
    position: np.ndarray
    rotation: np.ndarray
    mass: float = 1.0
    inertia: float = 1.0
    linear_damping: float = 0.01
    angular_damping: float = 0.01
    fixed: bool = False
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    angular_velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    force: np.ndarray = field(default_factory=lambda: np.zeros(3))
    torque: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def add_force(self, force: Sequence[float]):
        self.force = self.force + np.asarray(force, dtype=np.float64)

    def add_torque(self, torque: Sequence[float]):
        self.torque = self.torque + np.asarray(torque, dtype=np.float64)

    def clear_accumulators(self):
        self.force = np.zeros(3)
        self.torque = np.zeros(3)


class RigidBodyWorld:
    """Force-driven rigid-body integrator without collisions."""

    def __init__(self, gravity: Sequence[float] = DEFAULT_GRAVITY, substeps: int = 1):
        self.gravity = _vec3(gravity)
        self.substeps = max(1, int(substeps))
        self.bodies: Dict[str, RigidBody] = {}

    def add_body(self, body: RigidBody) -> RigidBody:
        self.bodies[body.id] = body
        return body

    def step(self, dt: float):
        h = dt / self.substeps
        for _ in range(self.substeps):
            for body in self.bodies.values():
                if not body.fixed:
                    self._integrate(body, h)
        for body in self.bodies.values():
            body.clear_accumulators()

    def _integrate(self, body: RigidBody, h: float):
        acceleration = body.force / body.mass + self.gravity
        body.velocity = (body.velocity + acceleration * h) / (1 + body.linear_damping * h)
        body.position = body.position + body.velocity * h

        angular_acceleration = body.torque / body.inertia
        body.angular_velocity = (body.angular_velocity + angular_acceleration * h) \
            / (1 + body.angular_damping * h)

        omega = np.append(body.angular_velocity, 0.0)
        q = body.rotation + 0.5 * h * _quat_multiply(omega, body.rotation)
        body.rotation = q / np.linalg.norm(q)


# ============================================================================
# Mechanisms
# ============================================================================

@dataclass
class Gear:
    id: str
    teeth: int
    module: float = 1.0
    pressure_angle: float = 20.0
    helix_angle: float = 0.0
    face_width: float = 0.01
    material: str = "steel"
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))


class GearTrain:
    """
    Chain of meshing gears.

    Example:
    --------
    >>> train = GearTrain("g", [Gear("a", 10), Gear("b", 20), Gear("c", 40)])
    >>> train.gear_ratio()
    4.0
    """

    def __init__(self, train_id: str, gears: List[Gear]):
        self.id = train_id
        self.gears = list(gears)
        self.input_speed = 0.0  # rad/s
        self.angles = np.zeros(len(self.gears))

    def gear_ratio(self) -> float:
        ratio = 1.0
        for driving, driven in zip(self.gears, self.gears[1:]):
            ratio *= driven.teeth / driving.teeth
        return ratio

    def gear_speeds(self) -> np.ndarray:
        """Signed speed of each gear; meshing gears counter-rotate."""
        if not self.gears:
            return np.zeros(0)
        first = self.gears[0].teeth
        return np.array([
            self.input_speed * first / gear.teeth * (-1) ** i
            for i, gear in enumerate(self.gears)
        ])

    @property
    def output_speed(self) -> float:
        return self.input_speed / self.gear_ratio()

    def update(self, dt: float):
        self.angles = self.angles + self.gear_speeds() * dt


@dataclass
class MotorProperties:
    kind: str = "dc"
    max_torque: float = 1.0
    max_speed: float = 100.0
    torque_curve: List[Tuple[float, float]] = field(default_factory=lambda: [(0.0, 1.0), (100.0, 0.0)])
    efficiency: float = 0.85
    inertia: float = 1e-4


class Motor:
    """Motor driving a body about z with a proportional speed controller."""

    def __init__(self, motor_id: str, properties: MotorProperties, body: RigidBody):
        self.id = motor_id
        self.properties = properties
        self.body = body
        self.current_speed = 0.0
        self.current_torque = 0.0
        self.target_speed = 0.0

    def set_target_speed(self, speed: float):
        self.target_speed = min(speed, self.properties.max_speed)

    def torque_at(self, speed: float) -> float:
        """Linear interpolation on the speed-torque curve, 0 outside it."""
        curve = self.properties.torque_curve
        for (s0, t0), (s1, t1) in zip(curve, curve[1:]):
            if s0 <= speed <= s1:
                if s1 == s0:
                    return t0
                return t0 + (speed - s0) / (s1 - s0) * (t1 - t0)
        return 0.0

    def update(self, dt: float):
        acceleration = (self.target_speed - self.current_speed) * SPEED_CONTROLLER_GAIN
        self.current_speed += acceleration * dt
        self.current_torque = self.torque_at(self.current_speed)
        self.body.add_torque((0.0, 0.0, self.current_torque))


@dataclass
class SpringDamperProperties:
    spring_constant: float = 1000.0
    damping_coefficient: float = 10.0
    rest_length: float = 1.0
    max_compression: float = 0.5
    max_extension: float = 0.5
    preload: float = 0.0


class SpringDamper:
    """Linear spring and dashpot between two anchor points."""

    def __init__(self, spring_id: str, body_a: RigidBody, body_b: RigidBody,
                 anchor_a: Sequence[float], anchor_b: Sequence[float],
                 properties: SpringDamperProperties):
        self.id = spring_id
        self.body_a = body_a
        self.body_b = body_b
        self.anchor_a = _vec3(anchor_a)
        self.anchor_b = _vec3(anchor_b)
        self.properties = properties
        self.last_force = 0.0

    def update(self, dt: float):
        separation = (self.body_b.position + self.anchor_b) - (self.body_a.position + self.anchor_a)
        length = float(np.linalg.norm(separation))
        if length < 1e-12:
            self.last_force = 0.0
            return
        axis = separation / length

        extension = length - self.properties.rest_length
        extension_rate = float((self.body_b.velocity - self.body_a.velocity) @ axis)

        # Positive tension pulls the bodies together
        tension = (self.properties.spring_constant * extension
                   + self.properties.damping_coefficient * extension_rate
                   + self.properties.preload)
        self.last_force = tension

        self.body_a.add_force(axis * tension)
        self.body_b.add_force(-axis * tension)


@dataclass
class BreakableJointProperties:
    max_force: float = 1000.0
    max_torque: float = 100.0
    stress_concentration: float = 1.0
    fatigue_limit: float = 1e6
    cycle_count: int = 0


class BreakableJoint:
    """
    Joint whose stress proxy is the relative speed of its bodies.

    Breaks when the proxy exceeds max_force, or when the fatigue cycle
    count (half the stress history length) exceeds fatigue_limit.
    """

    def __init__(self, joint_id: str, body_a: RigidBody, body_b: RigidBody,
                 kind: str, properties: BreakableJointProperties):
        self.id = joint_id
        self.body_a = body_a
        self.body_b = body_b
        self.kind = kind
        self.properties = properties
        self.broken = False
        self.stress_history = deque(maxlen=STRESS_HISTORY_LENGTH)

    def cycles(self) -> float:
        return len(self.stress_history) / 2

    def check_stress(self):
        if self.broken:
            return

        stress = float(np.linalg.norm(self.body_a.velocity - self.body_b.velocity))
        stress *= self.properties.stress_concentration

        if stress > self.properties.max_force:
            self._break(f"peak stress {stress:.3g}")
            return

        self.stress_history.append(stress)
        if self.cycles() > self.properties.fatigue_limit:
            self._break(f"fatigue after {self.cycles():.0f} cycles")

    def _break(self, reason: str):
        self.broken = True
        logger.warning(f"Joint {self.id} broke: {reason}")


class ParticleSystem:
    """Fluid, gas or smoke particles respawned in a cube when they expire."""

    def __init__(self, system_id: str, kind: str = "fluid",
                 particle_count: int = 1000, spread: float = 10.0,
                 max_life: float = 5.0, seed: Optional[int] = None):
        if kind not in PARTICLE_KINDS:
            logger.debug(f"Unknown particle kind '{kind}', using fluid")
            kind = "fluid"
        self.id = system_id
        self.kind = kind
        self.spread = spread
        self.max_life = max_life
        self.rng = np.random.default_rng(seed)

        n = int(particle_count)
        self.positions = self._spawn(n)
        self.velocities = (self.rng.random((n, 3)) - 0.5) * 2
        self.life = self.rng.random(n) * max_life

    def _spawn(self, n: int) -> np.ndarray:
        return (self.rng.random((n, 3)) - 0.5) * self.spread

    def update(self, dt: float):
        self.positions += self.velocities * dt
        self.life -= dt

        expired = self.life <= 0
        if expired.any():
            self.life[expired] = self.max_life
            self.positions[expired] = self._spawn(int(expired.sum()))

        if self.kind == "fluid":
            self.velocities *= 0.99
        elif self.kind == "gas":
            self.velocities[:, 1] += 0.1
        else:
            self.velocities[:, 1] += 0.5

    def __len__(self) -> int:
        return len(self.positions)


class SoftBody:
    """Vertices relaxed toward their rest distances."""

    def __init__(self, body_id: str, vertices: Sequence[Sequence[float]], material: str = "plastic",
                 connect_radius: float = 2.0, stiffness: float = 0.1):
        self.id = body_id
        self.material = material
        self.stiffness = stiffness
        self.vertices = np.asarray(vertices, dtype=np.float64).reshape(-1, 3).copy()
        self.rest_vertices = self.vertices.copy()

        pairs = cKDTree(self.vertices).query_pairs(connect_radius, output_type="ndarray") \
            if len(self.vertices) > 1 else np.zeros((0, 2), dtype=int)
        self.constraints = np.asarray(pairs, dtype=int).reshape(-1, 2)
        self.rest_lengths = np.linalg.norm(
            self.vertices[self.constraints[:, 1]] - self.vertices[self.constraints[:, 0]], axis=1)

    def update(self, dt: float):
        for (a, b), rest in zip(self.constraints, self.rest_lengths):
            delta = self.vertices[b] - self.vertices[a]
            length = np.linalg.norm(delta)
            if length < 1e-12:
                continue
            shift = (length - rest) * self.stiffness * dt * delta / length
            self.vertices[a] += shift
            self.vertices[b] -= shift

    def max_deformation(self) -> float:
        if not len(self.vertices):
            return 0.0
        return float(np.max(np.linalg.norm(self.vertices - self.rest_vertices, axis=1)))


# ============================================================================
# Simulator
# ============================================================================

class PhysicsSimulator:
    """
    Owns the rigid-body world and every mechanism.

    Args:
        gravity: Gravity vector [m/s²]
        substeps: World substeps per step
    """

    def __init__(self, gravity: Sequence[float] = DEFAULT_GRAVITY, substeps: int = 1):
        self.world = RigidBodyWorld(gravity, substeps)
        self.gear_trains: Dict[str, GearTrain] = {}
        self.motors: Dict[str, Motor] = {}
        self.spring_dampers: Dict[str, SpringDamper] = {}
        self.breakable_joints: Dict[str, BreakableJoint] = {}
        self.particle_systems: Dict[str, ParticleSystem] = {}
        self.soft_bodies: Dict[str, SoftBody] = {}

    @property
    def bodies(self) -> Dict[str, RigidBody]:
        return self.world.bodies

    def create_rigid_body(self,
                          body_id: str,
                          position: Sequence[float],
                          rotation: Optional[Sequence[float]] = None,
                          properties: Optional[PhysicsProperties] = None,
                          fixed: bool = False) -> RigidBody:
        """
        Create a rigid body.

        Args:
            body_id: Body id
            position: Initial position [m]
            rotation: Quaternion (x, y, z, w), identity by default
            properties: Mass and damping
            fixed: Static body (never integrated)
        """
        properties = properties or PhysicsProperties()
        q = np.asarray(rotation if rotation is not None else (0, 0, 0, 1), dtype=np.float64)
        norm = np.linalg.norm(q)
        mass = properties.mass if properties.mass > 0 else 1.0

        body = RigidBody(
            id=body_id,
            position=_vec3(position),
            rotation=q / norm if norm > 0 else np.array([0.0, 0.0, 0.0, 1.0]),
            mass=mass,
            inertia=mass * 0.1,
            linear_damping=properties.linear_damping,
            angular_damping=properties.angular_damping,
            fixed=fixed,
        )
        return self.world.add_body(body)

    def create_gear_train(self, train_id: str, gears: List[Gear]) -> Optional[GearTrain]:
        if any(gear.teeth <= 0 for gear in gears):
            logger.debug(f"Gear train {train_id} has a gear without teeth, skipped")
            return None
        train = GearTrain(train_id, gears)
        self.gear_trains[train_id] = train
        return train

    def create_motor(self, motor_id: str, properties: MotorProperties,
                     body_id: str) -> Optional[Motor]:
        body = self.bodies.get(body_id)
        if body is None:
            logger.debug(f"Motor {motor_id} attached to unknown body {body_id}, skipped")
            return None
        motor = Motor(motor_id, properties, body)
        self.motors[motor_id] = motor
        return motor

    def create_spring_damper(self, spring_id: str, body_a: str, body_b: str,
                             anchor_a: Optional[Sequence[float]] = None,
                             anchor_b: Optional[Sequence[float]] = None,
                             properties: Optional[SpringDamperProperties] = None) -> Optional[SpringDamper]:
        a, b = self.bodies.get(body_a), self.bodies.get(body_b)
        if a is None or b is None:
            logger.debug(f"Spring {spring_id} references unknown body, skipped")
            return None
        spring = SpringDamper(spring_id, a, b, _vec3(anchor_a), _vec3(anchor_b),
                              properties or SpringDamperProperties())
        self.spring_dampers[spring_id] = spring
        return spring

    def create_breakable_joint(self, joint_id: str, body_a: str, body_b: str,
                               kind: str = "fixed",
                               properties: Optional[BreakableJointProperties] = None) -> Optional[BreakableJoint]:
        a, b = self.bodies.get(body_a), self.bodies.get(body_b)
        if a is None or b is None:
            logger.debug(f"Joint {joint_id} references unknown body, skipped")
            return None
        joint = BreakableJoint(joint_id, a, b, kind, properties or BreakableJointProperties())
        self.breakable_joints[joint_id] = joint
        return joint

    def create_particle_system(self, system_id: str, kind: str = "fluid", **kwargs) -> ParticleSystem:
        system = ParticleSystem(system_id, kind, **kwargs)
        self.particle_systems[system_id] = system
        return system

    def create_soft_body(self, body_id: str, vertices: Sequence[Sequence[float]],
                         material: str = "plastic", **kwargs) -> SoftBody:
        soft = SoftBody(body_id, vertices, material, **kwargs)
        self.soft_bodies[body_id] = soft
        return soft

    def step(self, dt: float):
        for motor in self.motors.values():
            motor.update(dt)
        for train in self.gear_trains.values():
            train.update(dt)
        for spring in self.spring_dampers.values():
            spring.update(dt)
        for joint in self.breakable_joints.values():
            joint.check_stress()
        for system in self.particle_systems.values():
            system.update(dt)
        for soft in self.soft_bodies.values():
            soft.update(dt)
        self.world.step(dt)

    def get_state(self) -> Dict[str, Any]:
        return {
            "bodies": {
                b.id: {"position": b.position.tolist(), "velocity": b.velocity.tolist()}
                for b in self.bodies.values()
            },
            "motors": {
                m.id: {"speed": m.current_speed, "torque": m.current_torque}
                for m in self.motors.values()
            },
            "gear_ratios": {g.id: g.gear_ratio() for g in self.gear_trains.values()},
            "broken_joints": [j.id for j in self.breakable_joints.values() if j.broken],
            "particle_counts": {p.id: len(p) for p in self.particle_systems.values()},
        }

    def get_rigid_body(self, body_id: str) -> Optional[RigidBody]:
        return self.bodies.get(body_id)

    def get_gear_train(self, train_id: str) -> Optional[GearTrain]:
        return self.gear_trains.get(train_id)

    def get_motor(self, motor_id: str) -> Optional[Motor]:
        return self.motors.get(motor_id)
