from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from blobmask.config import OverlayConfig
from blobmask.core import events
from blobmask.core.blobs import Blob, create_field
from blobmask.core.compositor import Compositor, RenderLoop
from blobmask.core.eraser import Eraser
from blobmask.core.events import EventTarget, PointerEvent, ResizeEvent
from blobmask.core.scheduler import FrameScheduler
from blobmask.core.viewport import Viewport, ViewportState

logger = logging.getLogger(__name__)


@dataclass
class Host:
    """What a host environment hands to `Overlay.mount`."""

    surface_events: EventTarget
    window_events: EventTarget
    scheduler: FrameScheduler
    metrics: Callable[[], Optional[ViewportState]]
    origin: Callable[[], Tuple[float, float]] = lambda: (0.0, 0.0)


class Overlay:
    """Mounted mask with animated holes and a brush eraser."""

    def __init__(self, config: OverlayConfig | None = None):
        self.config = config or OverlayConfig()
        self.viewport = Viewport()
        self.field: Tuple[Blob, ...] = ()
        self.compositor = Compositor(
            self.viewport,
            lambda: self.field,
            blur_px=self.config.blur_px,
            mask_color=self.config.mask_rgba,
        )
        self.eraser = Eraser(self.viewport, radius=self.config.eraser_radius)
        self.loop: Optional[RenderLoop] = None
        self.host: Optional[Host] = None
        self.on_frame: Optional[Callable[[float], None]] = None
        self._surface_listeners = (
            (events.POINTER_DOWN, self._on_pointer_down),
            (events.POINTER_MOVE, self._on_pointer_move),
            (events.POINTER_UP, self._on_pointer_up),
            (events.POINTER_LEAVE, self._on_pointer_up),
        )
        self._window_listeners = (
            (events.RESIZE, self._on_resize),
            (events.DENSITY_CHANGE, self._on_resize),
        )

    @property
    def mounted(self) -> bool:
        return self.host is not None

    def mount(self, host: Host) -> bool:
        """Allocate surfaces, attach listeners and start the loop.

        Returns False, leaving nothing attached, when no drawable surface can
        be acquired.
        """
        if self.host is not None:
            return True
        metrics = host.metrics()
        if metrics is None:
            logger.warning("no drawable surface available; overlay not started")
            return False
        try:
            self.configure(metrics.width, metrics.height, metrics.pixel_density)
        except (MemoryError, ValueError) as e:
            logger.warning("could not allocate overlay surfaces: %s", e)
            return False

        self.host = host
        for event_type, listener in self._surface_listeners:
            host.surface_events.add_listener(event_type, listener)
        for event_type, listener in self._window_listeners:
            host.window_events.add_listener(event_type, listener)
        self.loop = RenderLoop(self.compositor, host.scheduler, on_frame=self._frame_done)
        self.loop.start()
        logger.info(
            "overlay mounted: %gx%g @%gx, %d blobs",
            self.viewport.width, self.viewport.height, self.viewport.pixel_density, len(self.field),
        )
        return True

    def unmount(self) -> None:
        host = self.host
        if host is None:
            return
        if self.loop is not None:
            self.loop.stop()
            self.loop = None
        for event_type, listener in self._surface_listeners:
            host.surface_events.remove_listener(event_type, listener)
        for event_type, listener in self._window_listeners:
            host.window_events.remove_listener(event_type, listener)
        self.eraser.pointer_up()
        self.host = None
        logger.info("overlay unmounted")

    def configure(self, width: float, height: float, pixel_density: float = 1.0) -> ViewportState:
        """Resize both surfaces (dropping erased strokes) and rebuild the field."""
        state = self.viewport.configure(width, height, pixel_density)
        anchors = self.viewport.anchors()[: self.config.blob_count]
        self.field = create_field(anchors, self.config.points_per_blob)
        return state

    def blobs(self) -> Sequence[Blob]:
        return self.field

    # -- host events -------------------------------------------------------

    def _to_surface(self, event: PointerEvent) -> Tuple[float, float]:
        left, top = self.host.origin() if self.host is not None else (0.0, 0.0)
        return (event.client_x - left, event.client_y - top)

    def _on_pointer_down(self, event: PointerEvent) -> None:
        self.eraser.pointer_down(self._to_surface(event))

    def _on_pointer_move(self, event: PointerEvent) -> None:
        self.eraser.pointer_move(self._to_surface(event))

    def _on_pointer_up(self, event=None) -> None:
        self.eraser.pointer_up()

    def _on_resize(self, event: Optional[ResizeEvent] = None) -> None:
        if event is None and self.host is not None:
            event = self.host.metrics()
        if event is None:
            return
        self.configure(event.width, event.height, event.pixel_density)

    def _frame_done(self, t: float) -> None:
        if self.on_frame is not None:
            self.on_frame(t)
