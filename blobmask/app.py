"""
blobmask desktop host and command line.

`blobmask run` opens a window with the animated mask over an optional
background image; drag with the left button to erase.
`blobmask export OUT` renders the same animation headlessly to a GIF or a
folder of PNG frames.
"""
from __future__ import annotations

import argparse
import itertools
import logging
import sys
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
from PySide6.QtCore import QElapsedTimer, Qt, QTimer
from PySide6.QtGui import QImage, QPainter, QPixmap
from PySide6.QtWidgets import QApplication, QWidget

from blobmask.config import OverlayConfig, load_config
from blobmask.core import events
from blobmask.core.events import EventTarget, PointerEvent, ResizeEvent
from blobmask.core.overlay import Host, Overlay
from blobmask.core.viewport import ViewportState

logger = logging.getLogger(__name__)


class QtFrameScheduler:
    """Animation-frame scheduler on top of a single-shot QTimer.

    All callbacks pending when the timer fires run in one batch with the same
    timestamp (ms since the scheduler was created).
    """

    def __init__(self, interval_ms: int = 16, parent=None):
        self._timer = QTimer(parent)
        self._timer.setSingleShot(True)
        self._timer.setInterval(max(1, int(interval_ms)))
        self._timer.timeout.connect(self._fire)
        self._clock = QElapsedTimer()
        self._clock.start()
        self._pending: Dict[int, Callable[[float], None]] = {}
        self._batch: Dict[int, Callable[[float], None]] = {}
        self._ids = itertools.count(1)

    def request_frame(self, callback: Callable[[float], None]) -> int:
        handle = next(self._ids)
        self._pending[handle] = callback
        if not self._timer.isActive():
            self._timer.start()
        return handle

    @property
    def pending(self) -> int:
        return len(self._pending)

    def cancel_frame(self, handle: int) -> None:
        self._pending.pop(handle, None)
        self._batch.pop(handle, None)
        if not self._pending:
            self._timer.stop()

    def _fire(self):
        now = self._clock.nsecsElapsed() / 1e6
        self._batch, self._pending = self._pending, {}
        while self._batch:
            handle = next(iter(self._batch))
            callback = self._batch.pop(handle)
            callback(now)


def qimage_from_array(arr: np.ndarray) -> tuple[QImage, bytes]:
    """Wrap an (h, w, 4) uint8 array; the image borrows the returned bytes."""
    h, w = arr.shape[:2]
    data = np.ascontiguousarray(arr).tobytes()
    return QImage(data, w, h, 4 * w, QImage.Format_RGBA8888), data


class OverlayWidget(QWidget):
    # full-window layer: background image under the animated mask
    def __init__(self, config: OverlayConfig | None = None, background: Optional[str] = None):
        super().__init__()
        self.setWindowTitle("blobmask")
        self.resize(1280, 800)
        self.setMouseTracking(True)
        self.setAttribute(Qt.WA_OpaquePaintEvent)

        self.background = QPixmap(background) if background else None
        if self.background is not None and self.background.isNull():
            logger.warning("could not load background image %s", background)
            self.background = None

        self.surface_events = EventTarget()
        self.window_events = EventTarget()
        self.scheduler = QtFrameScheduler((config or OverlayConfig()).frame_interval_ms, self)
        self.overlay = Overlay(config)
        self.overlay.on_frame = lambda t: self.update()
        self._screen_hooked = False

    def metrics(self) -> Optional[ViewportState]:
        if self.width() <= 0 or self.height() <= 0:
            return None
        return ViewportState(float(self.width()), float(self.height()), float(self.devicePixelRatioF()))

    def host(self) -> Host:
        return Host(
            surface_events=self.surface_events,
            window_events=self.window_events,
            scheduler=self.scheduler,
            metrics=self.metrics,
        )

    # -- lifecycle ---------------------------------------------------------

    def showEvent(self, event):
        super().showEvent(event)
        if not self.overlay.mounted:
            self.overlay.mount(self.host())
        handle = self.windowHandle()
        if handle is not None and not self._screen_hooked:
            handle.screenChanged.connect(self._on_screen_changed)
            self._screen_hooked = True

    def closeEvent(self, event):
        self.overlay.unmount()
        super().closeEvent(event)

    def resizeEvent(self, event):
        super().resizeEvent(event)
        m = self.metrics()
        if m is not None:
            self.window_events.dispatch(events.RESIZE, ResizeEvent(m.width, m.height, m.pixel_density))

    def _on_screen_changed(self, _screen):
        m = self.metrics()
        if m is not None:
            self.window_events.dispatch(events.DENSITY_CHANGE, ResizeEvent(m.width, m.height, m.pixel_density))

    # -- pointer -----------------------------------------------------------

    def mousePressEvent(self, event):
        if event.button() == Qt.LeftButton:
            p = event.position()
            self.surface_events.dispatch(events.POINTER_DOWN, PointerEvent(p.x(), p.y()))
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        p = event.position()
        self.surface_events.dispatch(events.POINTER_MOVE, PointerEvent(p.x(), p.y()))
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        if event.button() == Qt.LeftButton:
            p = event.position()
            self.surface_events.dispatch(events.POINTER_UP, PointerEvent(p.x(), p.y()))
        super().mouseReleaseEvent(event)

    def leaveEvent(self, event):
        self.surface_events.dispatch(events.POINTER_LEAVE, None)
        super().leaveEvent(event)

    # -- painting ----------------------------------------------------------

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.fillRect(self.rect(), Qt.black)
        if self.background is not None:
            painter.setRenderHint(QPainter.SmoothPixmapTransform)
            painter.drawPixmap(self.rect(), self.background)
        if self.overlay.mounted:
            viewport = self.overlay.viewport
            # data must outlive drawImage
            qimg, data = qimage_from_array(viewport.visible.to_array())
            qimg.setDevicePixelRatio(viewport.pixel_density)
            painter.drawImage(0, 0, qimg)
        painter.end()


def _parse_stroke(text: str) -> List[Tuple[float, float]]:
    points = []
    for pair in text.split():
        x, y = pair.split(",")
        points.append((float(x), float(y)))
    return points


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="blobmask", description="Animated blob mask with a brush eraser")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command")

    run = sub.add_parser("run", help="open the interactive window")
    run.add_argument("--config", help="JSON config file")
    run.add_argument("--background", help="image painted beneath the mask")

    exp = sub.add_parser("export", help="render frames to a GIF or a PNG folder")
    exp.add_argument("output", help="*.gif file or output directory")
    exp.add_argument("--config", help="JSON config file")
    exp.add_argument("--background", help="image painted beneath the mask")
    exp.add_argument("--frames", type=int, default=60)
    exp.add_argument("--fps", type=float, default=30.0)
    exp.add_argument("--width", type=float, default=1000.0)
    exp.add_argument("--height", type=float, default=800.0)
    exp.add_argument("--density", type=float, default=1.0)
    exp.add_argument(
        "--stroke",
        action="append",
        default=[],
        type=_parse_stroke,
        help='erase along "x1,y1 x2,y2 ..." before rendering (repeatable)',
    )
    return parser


def run_window(config: OverlayConfig, background: Optional[str]) -> int:
    QApplication.setHighDpiScaleFactorRoundingPolicy(Qt.HighDpiScaleFactorRoundingPolicy.PassThrough)
    app = QApplication.instance() or QApplication(sys.argv)
    w = OverlayWidget(config, background)
    w.show()
    return app.exec()


def run_export(args) -> int:
    from PIL import Image

    from blobmask.export import export_animation

    config = load_config(args.config)
    background = Image.open(args.background) if args.background else None
    count = export_animation(
        args.output,
        config,
        args.width,
        args.height,
        pixel_density=args.density,
        frames=args.frames,
        fps=args.fps,
        background=background,
        strokes=args.stroke,
        progress=lambda pct: logger.debug("export %d%%", pct),
    )
    return 0 if count else 1


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
    )
    try:
        if args.command == "export":
            return run_export(args)
        return run_window(load_config(getattr(args, "config", None)), getattr(args, "background", None))
    except (OSError, ValueError) as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
