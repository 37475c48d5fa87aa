from __future__ import annotations

import math
from contextlib import contextmanager
from enum import Enum
from typing import Iterator, Sequence, Tuple

import numpy as np
from PIL import Image

from blobmask.utils.compositing import (
    capsule_coverage,
    destination_out,
    polygon_coverage,
    soften,
    source_over,
    to_uint8_rgba,
)

Color = Tuple[float, float, float, float]

OPAQUE_BLACK: Color = (0.0, 0.0, 0.0, 1.0)
OPAQUE_WHITE: Color = (1.0, 1.0, 1.0, 1.0)


class CompositeMode(Enum):
    NORMAL = "source-over"
    SUBTRACT = "destination-out"


class Surface:
    """RGBA raster with a logical-to-pixel scale transform.

    Drawing calls take logical coordinates; they are multiplied by `scale`
    before rasterising. `composite_mode` and `blur` behave like canvas state:
    they apply to every following draw call until changed or restored.
    """

    def __init__(self, width_px: int = 1, height_px: int = 1, scale: float = 1.0):
        self.composite_mode = CompositeMode.NORMAL
        self.blur = 0.0
        self._saved: list[tuple[CompositeMode, float]] = []
        self.resize(width_px, height_px, scale)

    def resize(self, width_px: int, height_px: int, scale: float = 1.0) -> None:
        width_px = max(1, int(width_px))
        height_px = max(1, int(height_px))
        self.pixels = np.zeros((height_px, width_px, 4), dtype=np.float32)
        self.scale = float(scale)

    @property
    def width_px(self) -> int:
        return self.pixels.shape[1]

    @property
    def height_px(self) -> int:
        return self.pixels.shape[0]

    @property
    def alpha(self) -> np.ndarray:
        return self.pixels[..., 3]

    # -- state -------------------------------------------------------------

    def save(self) -> None:
        self._saved.append((self.composite_mode, self.blur))

    def restore(self) -> None:
        if self._saved:
            self.composite_mode, self.blur = self._saved.pop()

    @contextmanager
    def saved_state(self) -> Iterator["Surface"]:
        self.save()
        try:
            yield self
        finally:
            self.restore()

    # -- drawing -----------------------------------------------------------

    def clear(self) -> None:
        self.pixels.fill(0.0)

    def fill(self, color: Color) -> None:
        coverage = np.full(self.alpha.shape, color[3], dtype=np.float32)
        self._apply(self.pixels, coverage, color)

    def fill_polygon(self, points: Sequence[Sequence[float]] | np.ndarray, color: Color = OPAQUE_BLACK) -> None:
        pts = np.asarray(points, dtype=np.float64) * self.scale
        if pts.ndim != 2 or len(pts) < 3:
            return
        sigma = self.blur * self.scale
        box = self._padded_box(pts[:, 0].min(), pts[:, 1].min(), pts[:, 0].max(), pts[:, 1].max(), sigma)
        x0, y0, x1, y1 = box
        coverage = soften(polygon_coverage(pts, (x1 - x0, y1 - y0), (x0, y0)), sigma)
        self._apply_box(box, coverage * color[3], color)

    def stroke_segment(
        self,
        start: Tuple[float, float],
        end: Tuple[float, float],
        radius: float,
        color: Color = OPAQUE_BLACK,
    ) -> None:
        """Round-capped line of width `2 * radius` from `start` to `end`."""
        s = self.scale
        a = (start[0] * s, start[1] * s)
        b = (end[0] * s, end[1] * s)
        r = radius * s
        sigma = self.blur * s
        box = self._padded_box(min(a[0], b[0]) - r, min(a[1], b[1]) - r, max(a[0], b[0]) + r, max(a[1], b[1]) + r, sigma)
        x0, y0, x1, y1 = box
        coverage = soften(capsule_coverage(a, b, r, (x1 - x0, y1 - y0), (x0, y0)), sigma)
        self._apply_box(box, coverage * color[3], color)

    def draw_surface(self, other: "Surface") -> None:
        """Composite `other` onto this surface pixel for pixel."""
        if other.pixels.shape != self.pixels.shape:
            raise ValueError(
                f"surface size mismatch: {other.width_px}x{other.height_px} "
                f"onto {self.width_px}x{self.height_px}"
            )
        self._apply(self.pixels, other.alpha, other.pixels[..., :3])

    # -- readback ----------------------------------------------------------

    def alpha_at(self, x: float, y: float) -> float:
        """Alpha of the pixel containing logical point (x, y)."""
        px = min(self.width_px - 1, max(0, int(math.floor(x * self.scale))))
        py = min(self.height_px - 1, max(0, int(math.floor(y * self.scale))))
        return float(self.pixels[py, px, 3])

    def to_array(self) -> np.ndarray:
        return to_uint8_rgba(self.pixels)

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.to_array(), "RGBA")

    # -- internals ---------------------------------------------------------

    def _padded_box(self, x0: float, y0: float, x1: float, y1: float, sigma: float) -> Tuple[int, int, int, int]:
        # unclipped, so blur near the surface edge sees the shape beyond it
        pad = int(math.ceil(3.0 * sigma)) + 1
        return (
            int(math.floor(x0)) - pad,
            int(math.floor(y0)) - pad,
            int(math.ceil(x1)) + pad + 1,
            int(math.ceil(y1)) + pad + 1,
        )

    def _apply_box(self, box: Tuple[int, int, int, int], coverage: np.ndarray, color: Color) -> None:
        x0, y0, x1, y1 = box
        cx0, cy0 = max(0, x0), max(0, y0)
        cx1, cy1 = min(self.width_px, x1), min(self.height_px, y1)
        if cx0 >= cx1 or cy0 >= cy1:
            return
        cov = coverage[cy0 - y0 : cy1 - y0, cx0 - x0 : cx1 - x0]
        self._apply(self.pixels[cy0:cy1, cx0:cx1], cov, color)

    def _apply(self, region: np.ndarray, coverage: np.ndarray, rgb) -> None:
        if self.composite_mode is CompositeMode.SUBTRACT:
            destination_out(region, coverage)
        elif self.composite_mode is CompositeMode.NORMAL:
            rgb = np.asarray(rgb, dtype=np.float32)
            source_over(region, rgb[..., :3], coverage)
        else:
            raise ValueError(f"unknown composite mode: {self.composite_mode!r}")
