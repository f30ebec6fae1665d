import os

import pytest

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
pygame = pytest.importorskip("pygame")

from boundary import Boundary
from exporter import FrameExporter
from particle import ParticleSystem
from simulation import Simulation
from visualization import Visualizer


@pytest.fixture
def exported_run(tmp_path):
    box = Boundary.centered(10.0)
    params = {'seed': 1, 'particle_count': 9, 'max_speed': 2.0, 'radius': 0.5}
    sim = Simulation(ParticleSystem(params, box), box, params)
    with FrameExporter(str(tmp_path)) as exporter:
        yield sim, exporter


@pytest.fixture
def viewer(exported_run):
    sim, exporter = exported_run
    visualizer = Visualizer(sim.boundary, 0.5, exporter, fps=0)
    yield visualizer
    visualizer.close()


def test_box_corners_map_inside_margin(viewer):
    assert viewer.to_screen(-5.0, 5.0) == (viewer.margin, viewer.margin)
    x, y = viewer.to_screen(5.0, -5.0)
    assert x == y
    assert x > viewer.margin


def test_draw_renders_exported_frames(exported_run, viewer):
    sim, exporter = exported_run
    assert sim.run(2, exporter, on_frame=viewer.draw) == 2


def test_quit_event_stops_the_run(exported_run, viewer):
    sim, exporter = exported_run
    pygame.event.post(pygame.event.Event(pygame.QUIT))
    assert sim.run(5, exporter, on_frame=viewer.draw) == 1
