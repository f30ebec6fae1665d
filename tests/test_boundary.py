import numpy as np
import pytest

from boundary import Boundary


def test_centered_box_is_symmetric(box):
    assert (box.xmin, box.xmax, box.ymin, box.ymax) == (-5.0, 5.0, -5.0, 5.0)
    assert box.width == 10.0
    assert box.height == 10.0


@pytest.mark.parametrize("extent", [
    (1.0, 1.0, 0.0, 1.0),
    (0.0, 1.0, 2.0, -2.0),
    (5.0, -5.0, -5.0, 5.0),
])
def test_invalid_extent_is_rejected(extent):
    with pytest.raises(ValueError):
        Boundary(*extent)


def test_non_positive_side_is_rejected():
    with pytest.raises(ValueError):
        Boundary.centered(0.0)


def test_extent_is_fixed_once_set(box):
    with pytest.raises(RuntimeError):
        box.set_extent(-1.0, 1.0, -1.0, 1.0)
    assert box.xmax == 5.0


def test_contains_respects_margin(box):
    assert box.contains(0.0, 0.0)
    assert box.contains(4.5, -4.5, margin=0.5)
    assert not box.contains(4.6, 0.0, margin=0.5)


def test_impulses_are_normalized_by_three(box):
    box.reset_pressure_window()
    box.record_impulse(3.0)
    box.record_impulse(6.0)

    assert box.pn == pytest.approx(3.0)
    assert box.n == 2
    assert box.finalize_pressure() == pytest.approx(1.5)
    assert box.mean_pressure() == pytest.approx(1.5)


def test_empty_window_on_fresh_boundary_yields_zero(box):
    box.reset_pressure_window()
    assert box.finalize_pressure() == 0.0
    assert box.mean_pressure() == 0.0


def test_empty_window_carries_previous_pressure_forward(box):
    box.reset_pressure_window()
    box.record_impulse(1.2)
    box.finalize_pressure()

    box.reset_pressure_window()
    assert box.pn == 0.0
    assert box.n == 0
    assert box.finalize_pressure() == pytest.approx(0.4)


def test_reset_does_not_clear_last_pressure(box):
    box.record_impulse(3.0)
    box.finalize_pressure()
    box.reset_pressure_window()
    assert box.mean_pressure() == pytest.approx(1.0)


def test_mean_pressure_has_no_side_effects(box):
    box.record_impulse(3.0)
    box.mean_pressure()
    assert box.n == 1
    assert box.mean_pressure() == 0.0


@pytest.mark.parametrize("side", [None, "wide", True, -3.0, float("inf")])
def test_unusable_side_is_a_setup_error(side):
    with pytest.raises(ValueError):
        Boundary.centered(side)


def test_contains_gives_elementwise_mask_for_arrays(box):
    x = np.array([0.0, 5.5, -4.9, np.nan])
    y = np.array([0.0, 0.0, 4.9, 0.0])
    np.testing.assert_array_equal(box.contains(x, y), [True, False, True, False])
