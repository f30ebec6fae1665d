# boundary.py
"""
Defines the rigid rectangular box that confines the gas.

The Boundary holds the fixed extent of the box and the accumulator used
to estimate the pressure on its walls over one sampling window (one
simulated step). Particles report every wall contact to it; the
simulation loop resets the accumulator at the start of a window and
finalizes it at the end.
"""
import logging
import math
from constants import PRESSURE_NORMALIZATION

# --- Data Contracts ---
#
# class Boundary:
#   - __init__(self, xmin: float, xmax: float, ymin: float, ymax: float):
#     - Side Effects: Fixes the extent. The pressure accumulator starts empty
#       and the mean pressure starts at 0.0.
#     - Invariants: xmin < xmax and ymin < ymax for the whole run.
#
#   - reset_pressure_window(self) -> None:
#     - Side Effects: Zeroes the running sum (pn) and sample count (n).
#       The last finalized pressure (p) is kept.
#
#   - record_impulse(self, value: float) -> None:
#     - Inputs: value = mass * (vx^2 + vy^2) at the moment of contact.
#     - Side Effects: pn += value / 3, n += 1.
#
#   - finalize_pressure(self) -> float:
#     - Outputs: The mean pressure of the window, pn / n. When no contact
#       was recorded the previous value is carried forward.


class Boundary:
    """
    Fixed rectangular extent plus a per-window wall pressure accumulator.
    """
    def __init__(self, xmin: float, xmax: float, ymin: float, ymax: float):
        self.xmin = None
        self.xmax = None
        self.ymin = None
        self.ymax = None

        # Pressure accumulator state
        self.pn = 0.0
        self.n = 0
        self.p = 0.0

        self.set_extent(xmin, xmax, ymin, ymax)

    @classmethod
    def centered(cls, side: float) -> "Boundary":
        """Builds a square box of the given side length, symmetric about the origin."""
        msg = f"Configuration error: box side length must be a positive number, got {side!r}."
        if isinstance(side, bool):
            logging.error(msg)
            raise ValueError(msg)
        try:
            side = float(side)
        except (TypeError, ValueError):
            logging.error(msg)
            raise ValueError(msg) from None
        if not (side > 0 and math.isfinite(side)):
            logging.error(msg)
            raise ValueError(msg)
        half = side / 2.0
        return cls(-half, half, -half, half)

    def set_extent(self, xmin: float, xmax: float, ymin: float, ymax: float) -> None:
        """
        Sets the extent of the box. The extent is fixed once set.

        Raises:
            ValueError: If the extent is empty or inverted on either axis.
            RuntimeError: If the extent was already set.
        """
        if self.xmin is not None:
            raise RuntimeError("Boundary extent is fixed for the lifetime of the run.")
        if not (xmin < xmax and ymin < ymax):
            msg = (
                f"Configuration error: invalid box extent "
                f"x=[{xmin}, {xmax}], y=[{ymin}, {ymax}]."
            )
            logging.error(msg)
            raise ValueError(msg)

        self.xmin = float(xmin)
        self.xmax = float(xmax)
        self.ymin = float(ymin)
        self.ymax = float(ymax)
        logging.debug(
            f"Boundary extent set to x=[{self.xmin}, {self.xmax}], "
            f"y=[{self.ymin}, {self.ymax}]."
        )

    @property
    def width(self) -> float:
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        return self.ymax - self.ymin

    def contains(self, x, y, margin=0.0):
        """
        True where (x, y) lies inside the box shrunk by `margin` on every side.

        Accepts scalars or NumPy arrays; arrays give an elementwise mask.
        NaN coordinates are never inside.
        """
        return (
            (self.xmin + margin <= x) & (x <= self.xmax - margin)
            & (self.ymin + margin <= y) & (y <= self.ymax - margin)
        )

    def reset_pressure_window(self) -> None:
        self.pn = 0.0
        self.n = 0

    def record_impulse(self, value: float) -> None:
        self.pn += value / PRESSURE_NORMALIZATION
        self.n += 1

    def finalize_pressure(self) -> float:
        """
        Averages the contributions recorded during the current window.

        A window without any wall contact has no samples to average; in that
        case the previously finalized pressure is kept.
        """
        if self.n > 0:
            self.p = self.pn / self.n
        else:
            logging.debug(f"No wall contacts in this window; keeping pressure {self.p:.6g}.")
        return self.p

    def mean_pressure(self) -> float:
        return self.p
