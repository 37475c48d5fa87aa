from __future__ import annotations

import logging
import os
from typing import Callable, Iterator, Optional, Sequence, Tuple

import imageio.v3 as iio
import numpy as np
from PIL import Image

from blobmask.config import OverlayConfig
from blobmask.core.events import EventTarget, PointerEvent
from blobmask.core import events
from blobmask.core.overlay import Host, Overlay
from blobmask.core.scheduler import ManualScheduler
from blobmask.core.viewport import ViewportState

logger = logging.getLogger(__name__)

Stroke = Sequence[Tuple[float, float]]


def compose_over(mask: Image.Image, background: Optional[Image.Image]) -> Image.Image:
    """Flatten the mask over a background image (or black) to RGB."""
    if background is None:
        base = Image.new("RGBA", mask.size, (0, 0, 0, 255))
    else:
        base = background.convert("RGBA").resize(mask.size, Image.BICUBIC)
    return Image.alpha_composite(base, mask).convert("RGB")


def render_frames(
    config: OverlayConfig,
    width: float,
    height: float,
    pixel_density: float = 1.0,
    frames: int = 60,
    fps: float = 30.0,
    start_ms: float = 0.0,
    strokes: Sequence[Stroke] = (),
) -> Iterator[Image.Image]:
    """Yield `frames` RGBA mask images on a deterministic timeline.

    Each stroke is replayed as a pointer drag before the first frame.
    """
    surface_events = EventTarget()
    window_events = EventTarget()
    scheduler = ManualScheduler()
    host = Host(
        surface_events=surface_events,
        window_events=window_events,
        scheduler=scheduler,
        metrics=lambda: ViewportState(width, height, pixel_density),
    )
    overlay = Overlay(config)
    if not overlay.mount(host):
        return
    try:
        for stroke in strokes:
            if not stroke:
                continue
            surface_events.dispatch(events.POINTER_DOWN, PointerEvent(*stroke[0]))
            for point in stroke[1:]:
                surface_events.dispatch(events.POINTER_MOVE, PointerEvent(*point))
            surface_events.dispatch(events.POINTER_UP, None)

        dt = 1000.0 / max(1e-6, fps)
        for i in range(frames):
            scheduler.tick(start_ms + i * dt)
            yield overlay.viewport.visible.to_image()
    finally:
        overlay.unmount()


def export_animation(
    path: str,
    config: OverlayConfig,
    width: float,
    height: float,
    pixel_density: float = 1.0,
    frames: int = 60,
    fps: float = 30.0,
    background: Optional[Image.Image] = None,
    strokes: Sequence[Stroke] = (),
    progress: Optional[Callable[[int], None]] = None,
) -> int:
    """Render to `path`: an animated GIF for `.gif`, otherwise a directory of PNGs.

    Returns the number of frames written.
    """
    out = []
    for i, mask in enumerate(render_frames(config, width, height, pixel_density, frames, fps, strokes=strokes)):
        out.append(np.array(compose_over(mask, background)))
        if progress is not None:
            progress(int((i + 1) * 100 / max(1, frames)))

    if not out:
        logger.warning("nothing rendered for %s", path)
        return 0

    if path.lower().endswith(".gif"):
        dur = max(10, int(1000 / max(1e-6, fps)))
        iio.imwrite(path, out, extension=".gif", duration=dur, loop=0)
    else:
        os.makedirs(path, exist_ok=True)
        for i, frame in enumerate(out):
            Image.fromarray(frame, "RGB").save(os.path.join(path, f"frame_{i:04d}.png"))
    logger.info("exported %d frames to %s", len(out), path)
    return len(out)
