import logging

import numpy as np
import pytest

from boundary import Boundary
from exporter import FrameExporter
from particle import ParticleSystem
from simulation import Simulation, validate_steps


def single_particle_sim(position, velocity, radius=0.5, mass=1.0, dt=0.01):
    box = Boundary.centered(10.0)
    particles = ParticleSystem.from_arrays([position], [velocity], radius, mass)
    return Simulation(particles, box, {'delta_time': dt})


@pytest.mark.parametrize("dt", [0.0, -0.01, None, "fast", True, float("nan")])
def test_non_positive_time_step_is_rejected(box, params, dt):
    particles = ParticleSystem(params, box)
    with pytest.raises(ValueError):
        Simulation(particles, box, {'delta_time': dt})


def test_frame_carries_pre_step_state(box, params):
    particles = ParticleSystem(params, box)
    sim = Simulation(particles, box, params)
    initial_positions = particles.positions.copy()
    initial_speeds = particles.speeds()
    initial_energy = particles.kinetic_energy()

    frame = sim.step()

    assert frame.step == 0
    assert frame.time == 0.0
    np.testing.assert_array_equal(frame.positions, initial_positions)
    np.testing.assert_array_equal(frame.speeds, initial_speeds)
    assert frame.kinetic_energy == pytest.approx(initial_energy)
    np.testing.assert_allclose(
        particles.positions, initial_positions + particles.velocities * 0.01
    )


def test_simulated_time_advances_by_fixed_step(box, params):
    sim = Simulation(ParticleSystem(params, box), box, params)
    times = [sim.step().time for _ in range(3)]
    assert times == pytest.approx([0.0, 0.01, 0.02])
    assert sim.step_count == 3
    assert sim.time == pytest.approx(0.03)


def test_wall_contact_sets_step_pressure():
    sim = single_particle_sim((-4.6, 0.0), (-1.0, 0.0), mass=3.0)
    frame = sim.step()
    assert frame.rebounds == 1
    assert frame.pressure == pytest.approx(3.0 * 1.0 / 3)
    assert sim.boundary.mean_pressure() == frame.pressure


def test_window_without_contacts_keeps_previous_pressure():
    sim = single_particle_sim((-4.6, 0.0), (-1.0, 0.0))
    first = sim.step()
    sim.particles.positions[0] = (0.0, 0.0)

    second = sim.step()
    assert second.rebounds == 0
    assert second.pressure == first.pressure


def test_particle_at_radius_from_wall_rebounds_once_per_step():
    sim = single_particle_sim((-4.5, 0.0), (0.0, 0.1))
    frame = sim.step()
    assert frame.rebounds == 1
    assert sim.boundary.n == 1


def test_collisions_are_resolved_before_walls_and_motion():
    box = Boundary.centered(10.0)
    particles = ParticleSystem.from_arrays(
        [(0.0, 0.0), (0.9, 0.0)], [(1.0, 0.0), (0.0, 0.0)], 0.5
    )
    sim = Simulation(particles, box, {'delta_time': 0.1})
    frame = sim.step()

    assert frame.collisions == 1
    np.testing.assert_allclose(particles.positions, [(0.0, 0.0), (1.0, 0.0)], atol=1e-12)


def test_kinetic_energy_is_conserved_over_a_run():
    box = Boundary.centered(10.0)
    params = {
        'seed': 11, 'particle_count': 25, 'max_speed': 3.0,
        'radius': 0.8, 'mass': 1.0, 'delta_time': 0.01,
    }
    particles = ParticleSystem(params, box)
    sim = Simulation(particles, box, params)
    energy = particles.kinetic_energy()

    frames = [sim.step() for _ in range(200)]

    assert sum(f.collisions for f in frames) > 0
    assert sum(f.rebounds for f in frames) > 0
    assert particles.kinetic_energy() == pytest.approx(energy, rel=1e-9)


def test_run_executes_requested_steps(box, params):
    sim = Simulation(ParticleSystem(params, box), box, params)
    seen = []
    assert sim.run(5, on_frame=seen.append) == 5
    assert [f.step for f in seen] == [0, 1, 2, 3, 4]


def test_observer_returning_false_stops_run(box, params):
    sim = Simulation(ParticleSystem(params, box), box, params)
    assert sim.run(10, on_frame=lambda frame: frame.step < 2) == 3
    assert sim.step_count == 3


def test_non_finite_state_is_reported_once_and_run_continues(caplog):
    sim = single_particle_sim((0.0, 0.0), (np.nan, 0.0))
    with caplog.at_level(logging.WARNING):
        assert sim.run(3) == 3

    warnings = [r for r in caplog.records if "Non-finite" in r.getMessage()]
    assert len(warnings) == 1


def test_four_particle_box_single_step(tmp_path, box):
    params = {
        'seed': 2025, 'particle_count': 4, 'max_speed': 1.0,
        'radius': 0.5, 'mass': 1.0, 'delta_time': 0.01,
    }
    particles = ParticleSystem(params, box)
    sim = Simulation(particles, box, params)

    with FrameExporter(str(tmp_path)) as exporter:
        assert sim.run(1, exporter) == 1

    speeds = particles.speeds()
    assert np.all(speeds > 0.0)
    assert np.all(speeds <= 1.0)
    lines = (tmp_path / "pressure.dat").read_text().splitlines()
    assert len(lines) == 1
    assert lines[0].split("\t")[0] == "0"


def test_identical_seeds_give_identical_snapshots(tmp_path):
    def run(directory):
        box = Boundary.centered(10.0)
        params = {
            'seed': 3, 'particle_count': 16, 'max_speed': 5.0,
            'radius': 0.9, 'delta_time': 0.01,
        }
        sim = Simulation(ParticleSystem(params, box), box, params)
        snapshots = []
        with FrameExporter(str(directory)) as exporter:
            sim.run(
                20, exporter,
                on_frame=lambda frame: snapshots.append(
                    (directory / "snapshot.dat").read_text()
                ),
            )
        return snapshots

    (tmp_path / "a").mkdir()
    (tmp_path / "b").mkdir()
    first = run(tmp_path / "a")
    second = run(tmp_path / "b")

    assert len(first) == 20
    assert first == second


@pytest.mark.parametrize("steps", [2.0, -1, True, None, "10"])
def test_invalid_step_counts_are_rejected(box, params, steps):
    sim = Simulation(ParticleSystem(params, box), box, params)
    with pytest.raises(ValueError):
        sim.run(steps)
    assert sim.step_count == 0


def test_valid_step_counts_pass_through():
    assert validate_steps(0) == 0
    assert validate_steps(np.int64(12)) == 12


def test_particle_leaving_the_box_is_reported_once(caplog):
    sim = single_particle_sim((4.0, 0.0), (500.0, 0.0))
    with caplog.at_level(logging.WARNING):
        sim.run(3)

    warnings = [r for r in caplog.records if "outside the box" in r.getMessage()]
    assert len(warnings) == 1
