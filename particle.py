# particle.py
"""
Manages the state of all particles (hard disks) in the simulation.

This module defines the ParticleSystem class, which is responsible for
initializing and storing particle data (position, velocity, radius, mass)
in NumPy arrays, and for resolving the two kinds of contact the model
knows about: a particle against the walls of the box, and two particles
against each other.
"""
import logging
import math
import numpy as np
from typing import Dict, Any
from numba import jit
from boundary import Boundary
from constants import DEFAULT_MASS, SUGGESTED_RADIUS_FRACTION

# --- Data Contracts ---
#
# class ParticleSystem:
#   - __init__(self, params: Dict[str, Any], boundary: Boundary):
#     - Inputs:
#       - params: Dictionary of simulation parameters from config.json.
#         - "seed": int or None
#         - "particle_count": int
#         - "max_speed": float
#         - "radius": float or None (None selects the suggested radius)
#         - "mass": float
#       - boundary: The Boundary whose extent is covered by the lattice.
#     - Outputs: None
#     - Side Effects: Initializes internal NumPy arrays for particle state.
#     - Invariants:
#       - self.positions is a NumPy array of shape (N, 2) of dtype float64.
#       - self.velocities is a NumPy array of shape (N, 2) of dtype float64.
#       - self.radii and self.masses are arrays of shape (N,), all positive.
#       - No two particles overlap at creation.
#
#   - resolve_collision(self, i: int, j: int) -> bool:
#     - Side Effects: Exchanges the normal velocity components of i and j
#       when their surfaces touch. Positions are never corrected.
#
#   - rebound_off_walls(self, index: int, boundary: Boundary) -> int:
#     - Side Effects: Reflects the velocity of a particle touching a wall
#       and records one impulse per reflected axis in the boundary.


@jit(nopython=True)
def _resolve_pair_numba(positions, velocities, radii, i, j):
    """
    Numba-jitted elastic exchange between particles i and j.

    The velocity components along the line of centers are swapped and the
    tangential components are left untouched. Coincident centers have no
    defined normal and are skipped.
    """
    dx = positions[j, 0] - positions[i, 0]
    dy = positions[j, 1] - positions[i, 1]
    dist_sq = dx * dx + dy * dy
    r_sum = radii[i] + radii[j]

    if dist_sq > r_sum * r_sum:
        return False

    dist = np.sqrt(dist_sq)
    if dist == 0.0:
        return False

    nx = dx / dist
    ny = dy / dist

    vn_i = velocities[i, 0] * nx + velocities[i, 1] * ny
    vn_j = velocities[j, 0] * nx + velocities[j, 1] * ny

    # i takes j's normal component and vice versa
    delta = vn_j - vn_i
    velocities[i, 0] += delta * nx
    velocities[i, 1] += delta * ny
    velocities[j, 0] -= delta * nx
    velocities[j, 1] -= delta * ny
    return True


@jit(nopython=True)
def _resolve_all_pairs_numba(positions, velocities, radii):
    """
    Numba-jitted O(n^2) sweep over every unordered pair (i, j), i < j.

    Pairs are visited in index order, so later pairs see the velocities
    already exchanged by earlier ones.
    """
    particle_count = positions.shape[0]
    exchanges = 0
    for i in range(particle_count):
        for j in range(i + 1, particle_count):
            if _resolve_pair_numba(positions, velocities, radii, i, j):
                exchanges += 1
    return exchanges


@jit(nopython=True)
def _rebound_particle_numba(positions, velocities, radii, masses, i,
                            xmin, xmax, ymin, ymax, impulses, offset):
    """
    Numba-jitted wall test for a single particle.

    Each axis is tested on its own. A reflected axis writes the
    post-reflection m*v^2 into `impulses[offset + k]`. Returns the number
    of impulses written (0, 1 or 2).
    """
    count = 0
    x = positions[i, 0]
    y = positions[i, 1]
    r = radii[i]

    if (x - xmin) <= r or (xmax - x) <= r:
        velocities[i, 0] = -velocities[i, 0]
        impulses[offset + count] = masses[i] * (
            velocities[i, 0] ** 2 + velocities[i, 1] ** 2
        )
        count += 1

    # A corner contact reflects x first, then tests and reflects y
    if (y - ymin) <= r or (ymax - y) <= r:
        velocities[i, 1] = -velocities[i, 1]
        impulses[offset + count] = masses[i] * (
            velocities[i, 0] ** 2 + velocities[i, 1] ** 2
        )
        count += 1

    return count


@jit(nopython=True)
def _rebound_all_numba(positions, velocities, radii, masses,
                       xmin, xmax, ymin, ymax, impulses):
    """Numba-jitted wall test for every particle, in index order."""
    written = 0
    for i in range(positions.shape[0]):
        written += _rebound_particle_numba(
            positions, velocities, radii, masses, i,
            xmin, xmax, ymin, ymax, impulses, written
        )
    return written


def lattice_size(particle_count: int) -> int:
    """Number of lattice cells per side needed to place `particle_count` particles."""
    return int(math.ceil(math.sqrt(particle_count)))


def max_radius(side: float, particle_count: int) -> float:
    """Exclusive upper bound on the radius: half the lattice pitch."""
    return side / (2.0 * lattice_size(particle_count))


def suggested_radius(side: float, particle_count: int) -> float:
    return SUGGESTED_RADIUS_FRACTION * max_radius(side, particle_count)


def validate_parameters(params: Dict[str, Any], side: float) -> float:
    """
    Checks the setup parameters of a lattice-initialized particle system.

    Returns:
        float: The radius to use (the suggested radius if none was given).

    Raises:
        ValueError: If any parameter is out of range.
    """
    def fail(msg):
        msg = f"Configuration error: {msg}"
        logging.error(msg)
        raise ValueError(msg)

    def number(name, value):
        if isinstance(value, bool):
            fail(f"{name} must be a number, got {value!r}.")
        try:
            value = float(value)
        except (TypeError, ValueError):
            fail(f"{name} must be a number, got {value!r}.")
        if not math.isfinite(value):
            fail(f"{name} must be finite, got {value}.")
        return value

    count = params.get('particle_count')
    if isinstance(count, bool) or not isinstance(count, (int, np.integer)) or count <= 0:
        fail(f"particle_count must be a positive integer, got {count!r}.")

    side = number('box side length', side)
    if not side > 0:
        fail(f"box side length must be positive, got {side}.")

    max_speed = number('max_speed', params.get('max_speed', 0.0))
    if not max_speed >= 0:
        fail(f"max_speed must be non-negative, got {max_speed}.")

    mass = number('mass', params.get('mass', DEFAULT_MASS))
    if not mass > 0:
        fail(f"mass must be positive, got {mass}.")

    radius = params.get('radius')
    limit = max_radius(side, count)
    if radius is None:
        radius = suggested_radius(side, count)
        logging.info(f"No radius configured; using suggested radius {radius:.6g}.")
    elif not 0 < number('radius', radius) < limit:
        fail(
            f"radius must satisfy 0 < radius < {limit:.6g} for {count} particles "
            f"in a box of side {side}, got {radius}. "
            f"Suggested: {suggested_radius(side, count):.6g}."
        )
    return float(radius)


class ParticleSystem:
    """
    A container for all particles, managing their state via NumPy arrays.
    """
    def __init__(self, params: Dict[str, Any], boundary: Boundary):
        """
        Initializes the particle system on a centered square lattice.

        Args:
            params (Dict[str, Any]): Simulation parameters from config.
            boundary (Boundary): The box the lattice covers.
        """
        side = min(boundary.width, boundary.height)
        radius = validate_parameters(params, side)

        self.particle_count = int(params['particle_count'])
        self.max_speed = float(params.get('max_speed', 0.0))
        self.seed = params.get('seed')

        # All randomness comes from a single generator built from the seed.
        self.rng = np.random.default_rng(self.seed)

        self._allocate(self.particle_count)

        mass = float(params.get('mass', DEFAULT_MASS))
        grid = lattice_size(self.particle_count)
        pitch_x = boundary.width / grid
        pitch_y = boundary.height / grid

        index = 0
        for i in range(grid):
            for j in range(grid):
                if index >= self.particle_count:
                    break
                x0 = boundary.xmin + (i + 0.5) * pitch_x
                y0 = boundary.ymin + (j + 0.5) * pitch_y

                angle = self.rng.uniform(0.0, 2.0 * np.pi)
                speed = self.rng.uniform(0.0, self.max_speed)
                self.initialize(
                    index, mass, x0, y0,
                    speed * np.cos(angle), speed * np.sin(angle), radius
                )
                index += 1

        logging.info(
            f"ParticleSystem initialized with {self.particle_count} "
            f"particles on a {grid}x{grid} lattice (radius {radius:.6g})."
        )
        logging.debug(
            f"Particle data arrays created. "
            f"Positions shape: {self.positions.shape}, "
            f"Velocities shape: {self.velocities.shape}"
        )

    @classmethod
    def from_arrays(cls, positions, velocities, radius, mass=DEFAULT_MASS) -> "ParticleSystem":
        """
        Builds a particle system from explicit state.

        `radius` and `mass` may be scalars (shared by every particle) or
        arrays of shape (N,).
        """
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, 2)
        velocities = np.asarray(velocities, dtype=np.float64).reshape(-1, 2)
        if positions.shape != velocities.shape:
            raise ValueError(
                f"positions {positions.shape} and velocities {velocities.shape} "
                f"must have the same shape."
            )

        count = positions.shape[0]
        radii = np.broadcast_to(np.asarray(radius, dtype=np.float64), (count,))
        masses = np.broadcast_to(np.asarray(mass, dtype=np.float64), (count,))
        if np.any(radii <= 0) or np.any(masses <= 0):
            raise ValueError("Particle radii and masses must be positive.")

        system = cls.__new__(cls)
        system.particle_count = count
        system.max_speed = float(np.max(np.linalg.norm(velocities, axis=1))) if count else 0.0
        system.seed = None
        system.rng = None
        system._allocate(count)
        for k in range(count):
            system.initialize(
                k, masses[k], positions[k, 0], positions[k, 1],
                velocities[k, 0], velocities[k, 1], radii[k]
            )
        return system

    def _allocate(self, count: int) -> None:
        self.positions = np.zeros((count, 2), dtype=np.float64)
        self.velocities = np.zeros((count, 2), dtype=np.float64)
        self.radii = np.zeros(count, dtype=np.float64)
        self.masses = np.zeros(count, dtype=np.float64)
        # Rebound kernel output: at most one impulse per axis per particle.
        self._impulses = np.zeros(2 * count, dtype=np.float64)

    def initialize(self, index: int, mass: float, x: float, y: float,
                   vx: float, vy: float, radius: float) -> None:
        """Sets every attribute of one particle."""
        self.masses[index] = mass
        self.positions[index] = (x, y)
        self.velocities[index] = (vx, vy)
        self.radii[index] = radius

    # --- Motion ---

    def advance(self, dt: float) -> None:
        """Moves every particle along its velocity for a time `dt` (> 0)."""
        self.positions += self.velocities * dt

    def advance_particle(self, index: int, dt: float) -> None:
        self.positions[index] += self.velocities[index] * dt

    # --- Contacts ---

    def rebound_off_walls(self, index: int, boundary: Boundary) -> int:
        """
        Reflects one particle off the walls it touches.

        Returns:
            int: Number of rebounds (one per reflected axis).
        """
        impulses = np.zeros(2, dtype=np.float64)
        count = _rebound_particle_numba(
            self.positions, self.velocities, self.radii, self.masses, index,
            boundary.xmin, boundary.xmax, boundary.ymin, boundary.ymax,
            impulses, 0
        )
        for k in range(count):
            boundary.record_impulse(impulses[k])
        return count

    def rebound_all(self, boundary: Boundary) -> int:
        """Reflects every particle touching a wall, in index order."""
        count = _rebound_all_numba(
            self.positions, self.velocities, self.radii, self.masses,
            boundary.xmin, boundary.xmax, boundary.ymin, boundary.ymax,
            self._impulses
        )
        for k in range(count):
            boundary.record_impulse(self._impulses[k])
        return count

    def resolve_collision(self, i: int, j: int) -> bool:
        """
        Elastic exchange between particles i and j if their surfaces touch.

        The normal components are swapped regardless of the mass ratio, so
        momentum and energy are conserved only for equal masses.

        Returns:
            bool: True if velocities were exchanged.
        """
        return _resolve_pair_numba(self.positions, self.velocities, self.radii, i, j)

    def resolve_all_collisions(self) -> int:
        """Resolves every unordered pair once. Returns the number of exchanges."""
        return _resolve_all_pairs_numba(self.positions, self.velocities, self.radii)

    # --- Derived quantities ---

    def speeds(self) -> np.ndarray:
        return np.linalg.norm(self.velocities, axis=1)

    def angles(self) -> np.ndarray:
        """Heading of every velocity, measured from the x axis."""
        return np.arctan2(self.velocities[:, 1], self.velocities[:, 0])

    def speed(self, index: int) -> float:
        return float(np.hypot(self.velocities[index, 0], self.velocities[index, 1]))

    def angle(self, index: int) -> float:
        return float(np.arctan2(self.velocities[index, 1], self.velocities[index, 0]))

    def kinetic_energy(self) -> float:
        return float(0.5 * np.sum(self.masses * np.sum(self.velocities ** 2, axis=1)))

    def momentum(self) -> np.ndarray:
        return np.sum(self.masses[:, np.newaxis] * self.velocities, axis=0)

    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.positions)) and np.all(np.isfinite(self.velocities)))
