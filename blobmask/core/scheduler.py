from __future__ import annotations

import itertools
from typing import Callable, Dict, Protocol

FrameCallback = Callable[[float], None]


class FrameScheduler(Protocol):
    def request_frame(self, callback: FrameCallback) -> int: ...

    def cancel_frame(self, handle: int) -> None: ...


class ManualScheduler:
    """Frame scheduler driven by explicit `tick()` calls.

    Callbacks requested while a tick is running are queued for the next tick,
    the same way an animation-frame loop never re-enters itself.
    """

    def __init__(self):
        self._pending: Dict[int, FrameCallback] = {}
        self._batch: Dict[int, FrameCallback] = {}
        self._ids = itertools.count(1)
        self.now = 0.0

    @property
    def pending(self) -> int:
        return len(self._pending)

    def request_frame(self, callback: FrameCallback) -> int:
        handle = next(self._ids)
        self._pending[handle] = callback
        return handle

    def cancel_frame(self, handle: int) -> None:
        self._pending.pop(handle, None)
        self._batch.pop(handle, None)

    def tick(self, timestamp_ms: float | None = None) -> int:
        """Run every callback pending at call time; returns how many ran."""
        if timestamp_ms is not None:
            self.now = float(timestamp_ms)
        self._batch, self._pending = self._pending, {}
        ran = 0
        while self._batch:
            handle = next(iter(self._batch))
            callback = self._batch.pop(handle)
            callback(self.now)
            ran += 1
        return ran
