# visualization.py
"""
Renders the exported frames of the gas simulation using Pygame.

The Visualizer is a consumer of the exporter's files, not of the
simulation state: each frame it reads the snapshot and the speed
histogram that were just flushed to disk and draws them side by side.
"""
import logging
import pygame
import numpy as np
from typing import Tuple, TYPE_CHECKING
from boundary import Boundary
from exporter import FrameExporter, read_table
from constants import (
    WINDOW_SIZE, HISTOGRAM_PANEL_WIDTH, FPS, BACKGROUND_COLOR, BOX_COLOR,
    HISTOGRAM_COLOR, TEXT_COLOR, SLOW_COLOR, FAST_COLOR
)

if TYPE_CHECKING:
    from simulation import Frame


# --- Data Contracts ---
#
# class Visualizer:
#   - __init__(self, boundary: Boundary, radius: float, exporter: FrameExporter, fps: int = FPS):
#     - Inputs:
#       - boundary: The box; maps simulation coordinates to pixels.
#       - radius: Particle radius in simulation units.
#       - exporter: The FrameExporter whose files are rendered.
#     - Side Effects: Initializes Pygame and creates a display surface.
#
#   - draw(self, frame: Frame) -> bool:
#     - Outputs: False if the user has closed the window, True otherwise.
#     - Side Effects: Reads the snapshot and histogram files and renders them.

class Visualizer:
    """
    Draws the particle snapshot and the speed distribution of every frame.
    """
    def __init__(self, boundary: Boundary, radius: float, exporter: FrameExporter, fps: int = FPS):
        """
        Initializes Pygame and the display window.
        """
        pygame.init()
        pygame.font.init()

        width = WINDOW_SIZE + HISTOGRAM_PANEL_WIDTH
        height = WINDOW_SIZE
        self.screen = pygame.display.set_mode((width, height))
        pygame.display.set_caption("Hard-disk gas in a box")
        self.clock = pygame.time.Clock()
        self.fps = fps

        self.boundary = boundary
        self.exporter = exporter
        self.margin = 20
        self.scale = (WINDOW_SIZE - 2 * self.margin) / max(boundary.width, boundary.height)
        self.radius_px = max(1, int(round(radius * self.scale)))
        self.hist_rect = pygame.Rect(
            WINDOW_SIZE + self.margin, 3 * self.margin,
            HISTOGRAM_PANEL_WIDTH - 2 * self.margin, height - 5 * self.margin
        )

        self.font = pygame.font.SysFont(None, 20)
        self.slow_color = pygame.Color(SLOW_COLOR)
        self.fast_color = pygame.Color(FAST_COLOR)

        logging.info(f"Visualizer initialized with Pygame display ({width}x{height}).")

    def to_screen(self, x: float, y: float) -> Tuple[int, int]:
        """Maps simulation coordinates to pixels (y axis pointing up)."""
        px = self.margin + (x - self.boundary.xmin) * self.scale
        py = self.margin + (self.boundary.ymax - y) * self.scale
        return int(round(px)), int(round(py))

    def _speed_color(self, speed: float, fastest: float) -> pygame.Color:
        if not fastest > 0 or not np.isfinite(speed):
            return self.slow_color
        return self.slow_color.lerp(self.fast_color, float(np.clip(speed / fastest, 0.0, 1.0)))

    def _draw_particles(self, snapshot: np.ndarray):
        top_left = self.to_screen(self.boundary.xmin, self.boundary.ymax)
        box_rect = pygame.Rect(
            top_left[0], top_left[1],
            int(self.boundary.width * self.scale), int(self.boundary.height * self.scale)
        )
        pygame.draw.rect(self.screen, BOX_COLOR, box_rect, 1)

        if snapshot.size == 0:
            return
        speeds = snapshot[:, 2]
        finite = speeds[np.isfinite(speeds)]
        fastest = float(finite.max()) if finite.size else 0.0
        for x, y, speed in snapshot:
            if not (np.isfinite(x) and np.isfinite(y)):
                continue
            pygame.draw.circle(
                self.screen, self._speed_color(speed, fastest),
                self.to_screen(x, y), self.radius_px
            )

    def _draw_histogram(self, histogram: np.ndarray):
        """Renders the speed distribution as bars scaled to the tallest bin."""
        pygame.draw.rect(self.screen, BOX_COLOR, self.hist_rect, 1)
        label = self.font.render("Speed distribution", True, TEXT_COLOR)
        self.screen.blit(label, (self.hist_rect.x, self.hist_rect.y - 20))

        if histogram.size == 0:
            return
        centers, counts = histogram[:, 0], histogram[:, 1]
        tallest = counts.max()
        if tallest <= 0:
            return

        bar_width = self.hist_rect.width / len(counts)
        for k, count in enumerate(counts):
            bar_height = int(self.hist_rect.height * count / tallest)
            if bar_height == 0:
                continue
            bar = pygame.Rect(
                int(self.hist_rect.x + k * bar_width), self.hist_rect.bottom - bar_height,
                max(1, int(bar_width * 0.9)), bar_height
            )
            pygame.draw.rect(self.screen, HISTOGRAM_COLOR, bar)

        low = self.font.render(f"{centers[0]:.3g}", True, TEXT_COLOR)
        high = self.font.render(f"{centers[-1]:.3g}", True, TEXT_COLOR)
        self.screen.blit(low, (self.hist_rect.x, self.hist_rect.bottom + 4))
        self.screen.blit(high, (self.hist_rect.right - high.get_width(), self.hist_rect.bottom + 4))

    def _draw_title(self, frame: "Frame", count: int):
        text = (
            f"t = {frame.time:.2f}   P = {frame.pressure:.4f}   "
            f"E = {frame.kinetic_energy:.4f}   N = {count}"
        )
        surf = self.font.render(text, True, TEXT_COLOR)
        self.screen.blit(surf, (WINDOW_SIZE + self.margin, self.margin // 2))

    def draw(self, frame: "Frame") -> bool:
        """
        Renders the files of the frame that was just exported.

        Returns:
            bool: False if the user has quit, True otherwise.
        """
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                logging.info("Viewer window closed by user.")
                return False
            if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                logging.info("Viewer closed with Escape.")
                return False

        snapshot = read_table(self.exporter.snapshot_path, 3)
        histogram = read_table(self.exporter.histogram_path, 2)

        self.screen.fill(BACKGROUND_COLOR)
        self._draw_particles(snapshot)
        self._draw_histogram(histogram)
        self._draw_title(frame, len(snapshot))

        pygame.display.flip()
        if self.fps:
            self.clock.tick(self.fps)
        return True

    def close(self):
        pygame.quit()
        logging.info("Pygame shut down.")
