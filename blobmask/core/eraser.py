from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from blobmask.core.surface import OPAQUE_BLACK, CompositeMode
from blobmask.core.viewport import Viewport

Point = Tuple[float, float]


class EraserState(Enum):
    IDLE = "idle"
    ERASING = "erasing"


@dataclass(frozen=True)
class StrokeSegment:
    start: Point
    end: Point
    radius: float


@dataclass
class DragSession:
    active: bool = False
    last_point: Optional[Point] = None

    def reset(self) -> None:
        self.active = False
        self.last_point = None


class Eraser:
    """Brush eraser: bakes drag strokes into the viewport's accumulation surface.

    There is no undo; every segment painted while erasing stays until the next
    viewport resize clears the accumulation surface.
    """

    def __init__(self, viewport: Viewport, radius: float = 40.0):
        self.viewport = viewport
        self.radius = float(radius)
        self.session = DragSession()

    @property
    def state(self) -> EraserState:
        return EraserState.ERASING if self.session.active else EraserState.IDLE

    def pointer_down(self, point: Point) -> None:
        self.session.active = True
        self.session.last_point = (float(point[0]), float(point[1]))

    def pointer_move(self, point: Point) -> Optional[StrokeSegment]:
        if not self.session.active:
            return None
        current = (float(point[0]), float(point[1]))
        start = self.session.last_point if self.session.last_point is not None else current
        segment = StrokeSegment(start, current, self.radius)
        self.paint(segment)
        self.session.last_point = current
        return segment

    def pointer_up(self) -> None:
        self.session.reset()

    pointer_leave = pointer_up

    def paint(self, segment: StrokeSegment) -> None:
        surface = self.viewport.accumulation
        with surface.saved_state():
            surface.composite_mode = CompositeMode.NORMAL
            surface.blur = 0.0
            surface.stroke_segment(segment.start, segment.end, segment.radius, OPAQUE_BLACK)
