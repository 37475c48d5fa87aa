from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np
from PIL import Image, ImageDraw
from scipy.ndimage import gaussian_filter


def clamp01(x: np.ndarray | float) -> np.ndarray | float:
    return np.clip(x, 0.0, 1.0)


def source_over(dst: np.ndarray, src_rgb: Sequence[float] | np.ndarray, coverage: np.ndarray) -> None:
    """Paint `src_rgb` over `dst` in place, weighted by `coverage`.

    `dst` is an (h, w, 4) float32 view with straight alpha in [0, 1];
    `coverage` is (h, w) in [0, 1] and already includes the source alpha.
    `src_rgb` is either one colour or an (h, w, 3) array.
    """
    src_a = clamp01(coverage)
    dst_a = dst[..., 3]
    out_a = src_a + dst_a * (1.0 - src_a)
    rgb = np.asarray(src_rgb, dtype=np.float32)
    safe = np.where(out_a > 0.0, out_a, 1.0)
    for c in range(3):
        dst[..., c] = (rgb[..., c] * src_a + dst[..., c] * dst_a * (1.0 - src_a)) / safe
    dst[..., 3] = out_a


def destination_out(dst: np.ndarray, coverage: np.ndarray) -> None:
    # existing coverage minus new coverage; colour channels are left alone
    dst[..., 3] *= 1.0 - clamp01(coverage)


def polygon_coverage(points_px: np.ndarray, size: Tuple[int, int], origin: Tuple[int, int]) -> np.ndarray:
    """Rasterise a closed polygon into an (h, w) float32 coverage mask.

    `points_px` are pixel-space vertices; `origin` is the (x, y) pixel offset of
    the mask's top-left corner within the surface.
    """
    w, h = size
    img = Image.new("L", (max(1, w), max(1, h)), 0)
    ox, oy = origin
    pts = [(float(x) - ox, float(y) - oy) for x, y in points_px]
    ImageDraw.Draw(img).polygon(pts, fill=255)
    return np.asarray(img, dtype=np.float32) / 255.0


def capsule_coverage(
    start_px: Tuple[float, float],
    end_px: Tuple[float, float],
    radius_px: float,
    size: Tuple[int, int],
    origin: Tuple[int, int],
) -> np.ndarray:
    """Coverage of a round-capped segment, sampled at pixel centres.

    A pixel is covered when its centre lies within `radius_px` of the segment,
    which is exactly what a round-capped, round-joined stroke of width
    `2 * radius_px` paints.
    """
    w, h = size
    ox, oy = origin
    yy, xx = np.mgrid[0:h, 0:w].astype(np.float32)
    px = xx + ox + 0.5
    py = yy + oy + 0.5
    ax, ay = start_px
    bx, by = end_px
    dx = bx - ax
    dy = by - ay
    seg_len2 = dx * dx + dy * dy
    if seg_len2 <= 0.0:
        dist = np.hypot(px - ax, py - ay)
    else:
        u = np.clip(((px - ax) * dx + (py - ay) * dy) / seg_len2, 0.0, 1.0)
        dist = np.hypot(px - (ax + u * dx), py - (ay + u * dy))
    return (dist <= radius_px).astype(np.float32)


def soften(coverage: np.ndarray, sigma_px: float) -> np.ndarray:
    if sigma_px <= 0:
        return coverage
    return clamp01(gaussian_filter(coverage, sigma=sigma_px, mode="constant", cval=0.0))


def to_uint8_rgba(pixels: np.ndarray) -> np.ndarray:
    return (clamp01(pixels) * 255.0 + 0.5).astype(np.uint8)
