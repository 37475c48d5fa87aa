from __future__ import annotations

import json
import logging
import math
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Tuple

logger = logging.getLogger(__name__)

MAX_BLOBS = 4
MAX_BLUR_PX = 100.0
MAX_ERASER_RADIUS = 1000.0


@dataclass(frozen=True)
class OverlayConfig:
    """Overlay settings.

    `blob_count` defaults to 4, the length of the anchor list, so every anchor
    gets a blob; lower values keep only the first `blob_count` anchors.
    """

    blob_count: int = MAX_BLOBS
    blur_px: float = 5.0
    eraser_radius: float = 40.0
    points_per_blob: int = 60
    frame_interval_ms: int = 16
    mask_color: Tuple[int, int, int] = (255, 255, 255)

    @property
    def mask_rgba(self) -> Tuple[float, float, float, float]:
        r, g, b = self.mask_color
        return (r / 255.0, g / 255.0, b / 255.0, 1.0)


def _hex_to_rgb(h: str) -> Tuple[int, int, int]:
    h = h.strip().lstrip("#")
    if len(h) == 3:
        h = "".join(c * 2 for c in h)
    if len(h) != 6:
        raise ValueError(f"bad hex colour: {h!r}")
    return (int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16))


def _parse_color(value: Any) -> Tuple[int, int, int]:
    if isinstance(value, str):
        return _hex_to_rgb(value)
    if isinstance(value, (list, tuple)) and len(value) >= 3:
        return tuple(max(0, min(255, int(v))) for v in value[:3])  # type: ignore[return-value]
    raise ValueError(f"bad colour: {value!r}")


def _clamped(name: str, value, low, high=None):
    out = max(low, value)
    if high is not None:
        out = min(high, out)
    if out != value:
        logger.warning("config %s=%r out of range, using %r", name, value, out)
    return out


def config_from_dict(data: Mapping[str, Any]) -> OverlayConfig:
    """Build a config from a mapping; bad values are clamped or dropped, never fatal."""
    known = {f.name for f in fields(OverlayConfig)}
    cfg = OverlayConfig()
    for key, value in data.items():
        if key not in known:
            logger.warning("ignoring unknown config key %r", key)
            continue
        try:
            if key == "mask_color":
                value = _parse_color(value)
            elif key in ("blob_count", "points_per_blob", "frame_interval_ms"):
                value = int(value)
            else:
                value = float(value)
                if not math.isfinite(value):
                    raise ValueError("not a finite number")
        except (TypeError, ValueError, OverflowError) as e:
            logger.warning("ignoring config %s=%r: %s", key, value, e)
            continue
        cfg = replace(cfg, **{key: value})

    return replace(
        cfg,
        blob_count=_clamped("blob_count", cfg.blob_count, 0, MAX_BLOBS),
        blur_px=_clamped("blur_px", cfg.blur_px, 0.0, MAX_BLUR_PX),
        eraser_radius=_clamped("eraser_radius", cfg.eraser_radius, 0.5, MAX_ERASER_RADIUS),
        points_per_blob=_clamped("points_per_blob", cfg.points_per_blob, 3),
        frame_interval_ms=_clamped("frame_interval_ms", cfg.frame_interval_ms, 1),
    )


def load_config(path: str | None) -> OverlayConfig:
    """Read a JSON config file; a missing or malformed file yields the defaults."""
    if not path:
        return OverlayConfig()
    if not os.path.exists(path):
        logger.warning("config file %s not found, using defaults", path)
        return OverlayConfig()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("could not read config %s: %s", path, e)
        return OverlayConfig()
    if not isinstance(data, dict):
        logger.warning("config %s must hold a JSON object, using defaults", path)
        return OverlayConfig()
    return config_from_dict(data)
