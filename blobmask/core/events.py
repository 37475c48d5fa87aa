from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

POINTER_DOWN = "pointerdown"
POINTER_MOVE = "pointermove"
POINTER_UP = "pointerup"
POINTER_LEAVE = "pointerleave"
RESIZE = "resize"
DENSITY_CHANGE = "densitychange"

Listener = Callable[[Any], None]


@dataclass(frozen=True)
class PointerEvent:
    client_x: float
    client_y: float


@dataclass(frozen=True)
class ResizeEvent:
    width: float
    height: float
    pixel_density: float = 1.0


class EventTarget:
    """Minimal listener registry; dispatch is synchronous."""

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def add_listener(self, event_type: str, listener: Listener) -> None:
        if listener not in self._listeners[event_type]:
            self._listeners[event_type].append(listener)

    def remove_listener(self, event_type: str, listener: Listener) -> None:
        try:
            self._listeners[event_type].remove(listener)
        except ValueError:
            pass

    def listener_count(self, event_type: str | None = None) -> int:
        if event_type is not None:
            return len(self._listeners.get(event_type, ()))
        return sum(len(v) for v in self._listeners.values())

    def dispatch(self, event_type: str, event: Any = None) -> None:
        # copy so a listener may detach itself mid-dispatch
        for listener in list(self._listeners.get(event_type, ())):
            listener(event)
