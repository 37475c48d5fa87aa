from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from blobmask.core.blobs import Blob, sample_outline
from blobmask.core.scheduler import FrameScheduler
from blobmask.core.surface import OPAQUE_BLACK, OPAQUE_WHITE, Color, CompositeMode
from blobmask.core.viewport import Viewport

logger = logging.getLogger(__name__)


class Compositor:
    """Paints one frame: opaque mask, minus blob holes, minus erased strokes."""

    def __init__(
        self,
        viewport: Viewport,
        field: Callable[[], Sequence[Blob]],
        blur_px: float = 5.0,
        mask_color: Color = OPAQUE_WHITE,
    ):
        self.viewport = viewport
        self.field = field
        self.blur_px = max(0.0, float(blur_px))
        self.mask_color = mask_color

    def render(self, t: float) -> None:
        # surfaces are looked up every frame; configure() may have replaced them
        surface = self.viewport.visible
        accumulation = self.viewport.accumulation

        surface.clear()
        surface.fill(self.mask_color)

        with surface.saved_state():
            surface.composite_mode = CompositeMode.SUBTRACT
            surface.blur = self.blur_px
            for blob in self.field():
                surface.fill_polygon(sample_outline(blob, t), OPAQUE_BLACK)
            surface.blur = 0.0
            surface.draw_surface(accumulation)


class RenderLoop:
    """Self-rescheduling frame loop with a cancellable pending handle."""

    def __init__(
        self,
        compositor: Compositor,
        scheduler: FrameScheduler,
        on_frame: Optional[Callable[[float], None]] = None,
    ):
        self.compositor = compositor
        self.scheduler = scheduler
        self.on_frame = on_frame
        self.frames_rendered = 0
        self._handle: Optional[int] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._handle = self.scheduler.request_frame(self._frame)

    def stop(self) -> None:
        self._running = False
        if self._handle is not None:
            self.scheduler.cancel_frame(self._handle)
            self._handle = None
        logger.debug("render loop stopped after %d frames", self.frames_rendered)

    def _frame(self, t: float) -> None:
        if not self._running:
            return
        self._handle = None
        self.compositor.render(t)
        self.frames_rendered += 1
        if self.on_frame is not None:
            self.on_frame(t)
        # on_frame may have stopped the loop
        if self._running:
            self._handle = self.scheduler.request_frame(self._frame)
