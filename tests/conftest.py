import logging
import pytest

from boundary import Boundary


@pytest.fixture
def box():
    """Square box of side 10 centered on the origin."""
    return Boundary.centered(10.0)


@pytest.fixture
def params():
    return {
        'seed': 7,
        'particle_count': 4,
        'max_speed': 1.0,
        'radius': 0.5,
        'mass': 1.0,
        'delta_time': 0.01,
    }


@pytest.fixture
def restore_root_logger():
    """Removes the handlers installed by setup_logging and restores the level."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
