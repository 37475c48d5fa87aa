from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List

from blobmask.core.blobs import Anchor
from blobmask.core.surface import Surface

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewportState:
    width: float = 1.0
    height: float = 1.0
    pixel_density: float = 1.0

    @property
    def pixel_size(self) -> tuple[int, int]:
        return (
            max(1, math.ceil(self.width * self.pixel_density)),
            max(1, math.ceil(self.height * self.pixel_density)),
        )


def _clamp_size(value: float) -> float:
    value = float(value)
    if not math.isfinite(value) or value < 1.0:
        return 1.0
    return value


def _clamp_density(value: float) -> float:
    value = float(value)
    if not math.isfinite(value) or value <= 0.0:
        return 1.0
    return value


def default_anchors(width: float, height: float) -> List[Anchor]:
    """The four hole anchors, placed relative to the viewport corners."""
    return [
        Anchor(0.0, height, 300.0),  # bottom-left
        Anchor(width - 80.0, 100.0, 85.0),  # top-right
        Anchor(200.0, 220.0, 90.0),
        Anchor(width, height, 200.0),  # bottom-right
    ]


class Viewport:
    """Owns the visible mask surface and the erasure accumulation surface."""

    def __init__(self):
        self.state = ViewportState()
        self.visible = Surface()
        self.accumulation = Surface()

    @property
    def width(self) -> float:
        return self.state.width

    @property
    def height(self) -> float:
        return self.state.height

    @property
    def pixel_density(self) -> float:
        return self.state.pixel_density

    def configure(self, width: float, height: float, pixel_density: float = 1.0) -> ViewportState:
        state = ViewportState(_clamp_size(width), _clamp_size(height), _clamp_density(pixel_density))
        w_px, h_px = state.pixel_size
        # allocate both before swapping so a failed allocation leaves the old pair intact
        visible = Surface(w_px, h_px, state.pixel_density)
        accumulation = Surface(w_px, h_px, state.pixel_density)
        self.visible = visible
        self.accumulation = accumulation
        self.state = state
        logger.debug(
            "viewport configured: %gx%g @%gx -> %dx%d px",
            state.width, state.height, state.pixel_density, w_px, h_px,
        )
        return state

    def anchors(self) -> List[Anchor]:
        return default_anchors(self.width, self.height)
