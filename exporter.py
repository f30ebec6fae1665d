# exporter.py
"""
Writes simulation frames as flat, tab-separated text files.

Per step, the exporter overwrites a snapshot of every particle
(x, y, speed) and a histogram of particle speeds, and appends one line to
the run-wide pressure and energy logs. Everything is flushed before
write_frame returns, so a renderer polling the files between steps never
sees a partial record.
"""
import logging
import os
import numpy as np
from typing import TYPE_CHECKING
from constants import (
    SNAPSHOT_FILENAME, PRESSURE_LOG_FILENAME, ENERGY_LOG_FILENAME,
    HISTOGRAM_FILENAME, NUMBER_FORMAT, HISTOGRAM_BINS, HISTOGRAM_MIN_SPAN
)

if TYPE_CHECKING:
    from simulation import Frame

# --- Data Contracts ---
#
# class FrameExporter:
#   - __init__(self, output_dir: str, histogram_bins: int = 100):
#     - Side Effects: None until open() is called.
#
#   - open(self) -> FrameExporter:
#     - Side Effects: Truncates and opens the pressure and energy logs.
#     - Raises: OSError if a log cannot be opened (fatal for the run).
#
#   - write_frame(self, frame: Frame) -> None:
#     - Side Effects:
#       - snapshot.dat  : rewritten, one "x\ty\tspeed" line per particle.
#       - histogram.dat : rewritten, one "bin_center\tcount" line per bin.
#       - pressure.dat  : appended "time\tpressure".
#       - energy.dat    : appended "time\tkinetic_energy".
#     - Invariants: All files are flushed when the call returns.


def speed_histogram(speeds: np.ndarray, bins: int = HISTOGRAM_BINS):
    """
    Histogram of the finite, strictly positive speeds.

    Returns:
        Tuple of (bin_centers, counts); both empty if no speed qualifies.
    """
    speeds = np.asarray(speeds, dtype=np.float64)
    valid = speeds[np.isfinite(speeds) & (speeds > 0.0)]
    if valid.size == 0:
        return np.empty(0), np.empty(0, dtype=np.int64)

    low = float(valid.min())
    high = float(valid.max())
    if high - low <= HISTOGRAM_MIN_SPAN:
        high = low + HISTOGRAM_MIN_SPAN

    counts, edges = np.histogram(valid, bins=bins, range=(low, high))
    centers = 0.5 * (edges[:-1] + edges[1:])
    return centers, counts


class FrameExporter:
    """
    Serializes frames to the snapshot, histogram and run-wide log files.
    """
    def __init__(self, output_dir: str, histogram_bins: int = HISTOGRAM_BINS):
        self.output_dir = output_dir
        self.histogram_bins = int(histogram_bins)
        self.snapshot_path = os.path.join(output_dir, SNAPSHOT_FILENAME)
        self.histogram_path = os.path.join(output_dir, HISTOGRAM_FILENAME)
        self.pressure_path = os.path.join(output_dir, PRESSURE_LOG_FILENAME)
        self.energy_path = os.path.join(output_dir, ENERGY_LOG_FILENAME)

        self._pressure_log = None
        self._energy_log = None
        self.frames_written = 0

    def __enter__(self) -> "FrameExporter":
        return self.open()

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def open(self) -> "FrameExporter":
        try:
            self._pressure_log = open(self.pressure_path, 'w')
            self._energy_log = open(self.energy_path, 'w')
        except OSError as e:
            logging.critical(f"Could not open output logs in {self.output_dir}: {e}")
            self.close()
            raise
        logging.info(f"Frame exporter writing to {self.output_dir}.")
        return self

    def close(self) -> None:
        for handle in (self._pressure_log, self._energy_log):
            if handle is not None and not handle.closed:
                handle.close()
        self._pressure_log = None
        self._energy_log = None

    def write_frame(self, frame: "Frame") -> None:
        if self._pressure_log is None:
            raise RuntimeError("FrameExporter.write_frame called before open().")

        self.write_snapshot(frame.positions, frame.speeds)
        self.write_histogram(frame.speeds)

        self._pressure_log.write(
            f"{NUMBER_FORMAT % frame.time}\t{NUMBER_FORMAT % frame.pressure}\n"
        )
        self._pressure_log.flush()
        self._energy_log.write(
            f"{NUMBER_FORMAT % frame.time}\t{NUMBER_FORMAT % frame.kinetic_energy}\n"
        )
        self._energy_log.flush()
        self.frames_written += 1

    def write_snapshot(self, positions: np.ndarray, speeds: np.ndarray) -> None:
        """Rewrites the snapshot file; one line per particle in index order."""
        rows = np.column_stack((positions, speeds))
        with open(self.snapshot_path, 'w') as f:
            np.savetxt(f, rows, fmt=NUMBER_FORMAT, delimiter='\t')

    def write_histogram(self, speeds: np.ndarray) -> None:
        centers, counts = speed_histogram(speeds, self.histogram_bins)
        with open(self.histogram_path, 'w') as f:
            if centers.size:
                np.savetxt(f, np.column_stack((centers, counts)), fmt=NUMBER_FORMAT, delimiter='\t')


def read_table(path: str, columns: int) -> np.ndarray:
    """
    Reads a tab-separated file written by the exporter.

    Returns:
        np.ndarray: Shape (rows, columns); (0, columns) for an empty file.
    """
    with open(path, 'r') as f:
        text = f.read()
    if not text.strip():
        return np.empty((0, columns))
    return np.loadtxt(text.splitlines(), delimiter='\t', ndmin=2)
