# simulation.py
"""
Handles the core simulation loop of the hard-disk gas.

This module defines the Simulation class, which owns the particle system
and the boundary for the whole run and advances them in fixed time steps.
Each step resolves particle-particle collisions, wall rebounds and free
flight in a fixed order, then derives the wall pressure of the step.
"""
import logging
import math
import numpy as np
from dataclasses import dataclass
from typing import Dict, Any, Callable, Optional
from particle import ParticleSystem
from boundary import Boundary
from constants import DEFAULT_DELTA_TIME

# --- Data Contracts ---
#
# class Simulation:
#   - __init__(self, particles: ParticleSystem, boundary: Boundary, params: Dict[str, Any]):
#     - Inputs:
#       - particles: An initialized ParticleSystem object.
#       - boundary: The Boundary confining the particles.
#       - params: Dictionary of simulation parameters from config.json.
#         - "delta_time": float (> 0)
#     - Outputs: None
#     - Side Effects: Stores references to particles and boundary.
#
#   - step(self) -> Frame:
#     - Inputs: None (operates on internal state).
#     - Outputs: The Frame of this step: the pre-step snapshot and energy
#       plus the mean wall pressure measured during the step.
#     - Side Effects: Modifies particle velocities and positions and the
#       boundary's pressure accumulator.
#     - Invariants: Particle count remains constant. Pairs are resolved
#       before walls, walls before free flight.
#
#   - run(self, steps: int, exporter=None, on_frame=None) -> int:
#     - Outputs: The number of steps executed.
#     - Side Effects: Every frame is written by the exporter before the
#       next step starts.


def validate_steps(steps) -> int:
    """
    Checks a run length from the configuration.

    Raises:
        ValueError: Unless `steps` is a non-negative integer.
    """
    if isinstance(steps, bool) or not isinstance(steps, (int, np.integer)) or steps < 0:
        msg = f"Configuration error: steps must be a non-negative integer, got {steps!r}."
        logging.error(msg)
        raise ValueError(msg)
    return int(steps)


@dataclass
class Frame:
    """One step's snapshot plus its scalar summary."""
    step: int
    time: float
    positions: np.ndarray
    speeds: np.ndarray
    kinetic_energy: float
    pressure: float
    collisions: int = 0
    rebounds: int = 0


class Simulation:
    """
    Owns the particles and the box and advances them in fixed time steps.
    """
    def __init__(self, particles: ParticleSystem, boundary: Boundary, params: Dict[str, Any]):
        """
        Initializes the simulation loop.

        Args:
            particles (ParticleSystem): The particle system to simulate.
            boundary (Boundary): The box confining the particles.
            params (Dict[str, Any]): Simulation parameters from config.
        """
        self.particles = particles
        self.boundary = boundary
        delta_time = params.get('delta_time', DEFAULT_DELTA_TIME)
        try:
            self.delta_time = float(delta_time)
            self.log_throttle = int(params.get('log_throttle_steps', 100))
        except (TypeError, ValueError) as e:
            msg = f"Configuration error: invalid run parameter: {e}"
            logging.critical(msg)
            raise ValueError(msg) from e

        if isinstance(delta_time, bool) or not (
            self.delta_time > 0 and math.isfinite(self.delta_time)
        ):
            msg = f"Configuration error: delta_time must be a positive number, got {delta_time!r}."
            logging.critical(msg)
            raise ValueError(msg)

        self.step_count = 0
        self._non_finite_reported = False
        self._escape_reported = False

        logging.info(
            f"Simulation initialized: {particles.particle_count} particles, "
            f"dt={self.delta_time}."
        )

    @property
    def time(self) -> float:
        """Simulated time at the start of the next step."""
        return self.step_count * self.delta_time

    def step(self) -> Frame:
        """
        Executes one time step of the simulation.
        """
        particles = self.particles
        boundary = self.boundary

        # 1. Snapshot of the pre-step state
        step_index = self.step_count
        sim_time = self.time
        positions = particles.positions.copy()
        speeds = particles.speeds()
        energy = particles.kinetic_energy()

        # 2. Open a new pressure sampling window
        boundary.reset_pressure_window()

        # 3. Pairwise collisions, every unordered pair once
        collisions = particles.resolve_all_collisions()

        # 4. Wall rebounds, then free flight
        rebounds = particles.rebound_all(boundary)
        particles.advance(self.delta_time)

        # 5. Close the window
        pressure = boundary.finalize_pressure()

        self.step_count += 1

        if not self._non_finite_reported and not particles.is_finite():
            logging.warning(
                f"Non-finite particle state detected at step {step_index}; "
                f"the run continues but results are no longer meaningful."
            )
            self._non_finite_reported = True

        if not self._escape_reported:
            inside = boundary.contains(particles.positions[:, 0], particles.positions[:, 1])
            if not np.all(inside):
                logging.warning(
                    f"{int(np.count_nonzero(~inside))} particle(s) outside the box "
                    f"after step {step_index}; the time step may be too large "
                    f"for the particle speeds."
                )
                self._escape_reported = True

        return Frame(
            step=step_index,
            time=sim_time,
            positions=positions,
            speeds=speeds,
            kinetic_energy=energy,
            pressure=pressure,
            collisions=collisions,
            rebounds=rebounds,
        )

    def run(self, steps: int, exporter=None,
            on_frame: Optional[Callable[[Frame], bool]] = None) -> int:
        """
        Runs a fixed number of steps.

        Args:
            steps (int): Number of steps to run.
            exporter: Optional FrameExporter; each frame is written and
                flushed before the next step.
            on_frame: Optional callback receiving each frame after it has
                been exported. Returning False stops the run.

        Returns:
            int: Number of steps actually executed.
        """
        steps = validate_steps(steps)
        executed = 0
        for _ in range(steps):
            frame = self.step()
            executed += 1

            if exporter is not None:
                exporter.write_frame(frame)

            # Hot loops must throttle logs
            if self.log_throttle > 0 and executed % self.log_throttle == 0:
                logging.info(f"Simulation step {executed}/{steps}")
                logging.debug(
                    f"Step {frame.step} | t={frame.time:.4f} | "
                    f"P={frame.pressure:.6g} | E={frame.kinetic_energy:.6g} | "
                    f"collisions={frame.collisions} | rebounds={frame.rebounds}"
                )

            if on_frame is not None and on_frame(frame) is False:
                logging.info(f"Run stopped by frame observer after {executed} steps.")
                break

        return executed
