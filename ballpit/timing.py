"""Frame rate measurement and limiting."""

from __future__ import annotations

import time
from collections import deque
from typing import Callable, Optional

_NUM_SAMPLES = 10
_FALLBACK_FPS = 60.0


def _default_ticks() -> int:
    return int(time.monotonic() * 1000)


def _default_delay(milliseconds: int) -> None:
    time.sleep(milliseconds / 1000.0)


class FpsLimiter:
    """Measures the frame rate over the last ten frames and sleeps to cap it.

    ``ticks`` returns the current time in milliseconds and ``delay`` sleeps for
    the given number of milliseconds.
    """

    def __init__(
        self,
        max_fps: float = 60.0,
        ticks: Optional[Callable[[], float]] = None,
        delay: Optional[Callable[[int], None]] = None,
    ) -> None:
        self.max_fps = max_fps
        self.fps = 0.0
        self.frame_time = 0.0
        self._ticks = ticks or _default_ticks
        self._delay = delay or _default_delay
        self._start_ticks = 0.0
        self._prev_ticks: Optional[float] = None
        self._frame_times: deque[float] = deque(maxlen=_NUM_SAMPLES)

    def begin(self) -> None:
        """Mark the start of a frame."""
        self._start_ticks = self._ticks()

    def end(self) -> float:
        """Finish a frame, sleeping if it ran faster than the cap; return the FPS."""
        self._calculate_fps()
        frame_ticks = float(self._ticks() - self._start_ticks)
        budget = 1000.0 / self.max_fps
        if budget > frame_ticks:
            self._delay(int(budget - frame_ticks))
        return self.fps

    def _calculate_fps(self) -> None:
        if self._prev_ticks is None:
            self._prev_ticks = self._ticks()
        current = self._ticks()
        self.frame_time = float(current - self._prev_ticks)
        self._frame_times.append(self.frame_time)
        self._prev_ticks = current

        average = sum(self._frame_times) / len(self._frame_times)
        self.fps = 1000.0 / average if average > 0 else _FALLBACK_FPS