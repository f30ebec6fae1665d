# constants.py
"""
Application-level constants.

These values are static and do not change between simulation runs.
They are fundamental to the model and the output format, such as the
pressure normalization, the exported file names, or the viewer's
rendering properties, and are not part of the experimental configuration.
"""

# --- Physics Model ---
# Each wall contact contributes m*v^2 / 3 to the pressure accumulator.
PRESSURE_NORMALIZATION = 3.0
DEFAULT_DELTA_TIME = 0.01
DEFAULT_STEPS = 300
DEFAULT_MASS = 1.0
# Fraction of the largest admissible radius offered when none is configured.
SUGGESTED_RADIUS_FRACTION = 0.9

# --- Frame Export ---
SNAPSHOT_FILENAME = "snapshot.dat"
PRESSURE_LOG_FILENAME = "pressure.dat"
ENERGY_LOG_FILENAME = "energy.dat"
HISTOGRAM_FILENAME = "histogram.dat"
NUMBER_FORMAT = "%.6g"
HISTOGRAM_BINS = 100
# Minimum width of the speed range covered by the histogram.
HISTOGRAM_MIN_SPAN = 1e-9

# --- Visualization settings ---
WINDOW_SIZE = 700
HISTOGRAM_PANEL_WIDTH = 400
FPS = 30
BACKGROUND_COLOR = (24, 24, 24) # Dark Gray
BOX_COLOR = (200, 200, 200)
HISTOGRAM_COLOR = (31, 119, 180)
TEXT_COLOR = (255, 255, 255)

# --- Speed Coloring ---
# Particles are shaded from SLOW_COLOR (speed 0) to FAST_COLOR (fastest
# particle of the frame).
SLOW_COLOR = (0, 102, 255)
FAST_COLOR = (255, 0, 102)
