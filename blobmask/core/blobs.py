from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, NamedTuple, Tuple

import numpy as np

POINTS_PER_BLOB = 60
PHASE_STRIDE = 137


class Anchor(NamedTuple):
    x: float
    y: float
    radius: float


@dataclass(frozen=True)
class Blob:
    anchor_x: float
    anchor_y: float
    base_radius: float
    point_count: int = POINTS_PER_BLOB
    phase_offsets: Tuple[float, ...] = ()
    motion_amplitude_x: float = 40.0
    motion_amplitude_y: float = 30.0
    motion_speed: float = 0.0003  # rad/ms
    edge_noise_amplitude: float = 5.0
    edge_noise_speed: float = 0.001  # rad/ms
    phase: float = 500.0

    def __post_init__(self):
        if self.point_count < 3:
            raise ValueError(f"a blob needs at least 3 outline points, got {self.point_count}")
        if not self.phase_offsets:
            offsets = tuple(float(i * PHASE_STRIDE) for i in range(self.point_count))
            object.__setattr__(self, "phase_offsets", offsets)
        elif len(self.phase_offsets) != self.point_count:
            raise ValueError(
                f"expected {self.point_count} phase offsets, got {len(self.phase_offsets)}"
            )


def create_blob(anchor: Anchor, point_count: int = POINTS_PER_BLOB) -> Blob:
    return Blob(
        anchor_x=float(anchor.x),
        anchor_y=float(anchor.y),
        base_radius=float(anchor.radius),
        point_count=int(point_count),
    )


def create_field(anchors: Iterable[Anchor | Tuple[float, float, float]], point_count: int = POINTS_PER_BLOB) -> Tuple[Blob, ...]:
    """One blob per anchor, in anchor order."""
    return tuple(create_blob(Anchor(*a), point_count) for a in anchors)


def drift_center(blob: Blob, t: float) -> Tuple[float, float]:
    cx = blob.anchor_x + math.cos(t * blob.motion_speed + blob.phase) * blob.motion_amplitude_x
    cy = blob.anchor_y + math.sin(t * blob.motion_speed + blob.phase * 0.7) * blob.motion_amplitude_y
    return cx, cy


def outline_radii(blob: Blob, t: float) -> np.ndarray:
    offsets = np.asarray(blob.phase_offsets, dtype=np.float64)
    return blob.base_radius + np.sin(t * blob.edge_noise_speed + offsets) * blob.edge_noise_amplitude


def sample_outline(blob: Blob, t: float) -> np.ndarray:
    """Closed outline of `blob` at time `t` (ms), shape (point_count, 2).

    Pure function of its arguments; the last point connects back to the first.
    """
    cx, cy = drift_center(blob, t)
    angles = np.arange(blob.point_count, dtype=np.float64) / blob.point_count * (2.0 * math.pi)
    radii = outline_radii(blob, t)
    return np.column_stack((cx + np.cos(angles) * radii, cy + np.sin(angles) * radii))
