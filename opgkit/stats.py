"""Smoothed frame timing statistics."""

from __future__ import annotations

import math
import time
from typing import Callable, Optional

MIN_TIME_BETWEEN_UPDATES = 0.5

_TEMPLATE = (
    "frame       : %8.1f ms | %5.1f fps\n\n"
    "state update: %8.1f ms\n"
    "render      : %8.1f ms\n"
    "display     : %8.1f ms\n"
)


class StatsDisplay:
    """Exponentially averaged timings of the phases of a render loop.

    All durations are in seconds. ``alpha`` is the weight of the newest
    sample: 1 means the average is the current frame alone.
    """

    def __init__(self, alpha: float = 0.9,
                 clock: Callable[[], float] = time.monotonic) -> None:
        self.alpha = alpha
        self.clock = clock
        self.visible = True
        self.last_time = clock()
        self.last_update_time: Optional[float] = None
        self.min_time_between_updates = MIN_TIME_BETWEEN_UPDATES
        self.avg_frame_time = 0.0
        self.avg_state_update_time = 0.0
        self.avg_render_time = 0.0
        self.avg_display_time = 0.0
        self.display_text = ""

    def _average(self, avg: float, current: float) -> float:
        return (1 - self.alpha) * avg + self.alpha * current

    def update_stats(self, state_update_time: float, render_time: float,
                     display_time: float) -> None:
        """Fold one frame's timings into the averages and refresh the text."""
        now = self.clock()
        frame_time = now - self.last_time
        self.last_time = now

        self.avg_frame_time = self._average(self.avg_frame_time, frame_time)
        self.avg_state_update_time = self._average(self.avg_state_update_time, state_update_time)
        self.avg_render_time = self._average(self.avg_render_time, render_time)
        self.avg_display_time = self._average(self.avg_display_time, display_time)

        if (self.last_update_time is None
                or now - self.last_update_time > self.min_time_between_updates):
            fps = 1 / self.avg_frame_time if self.avg_frame_time else math.inf
            self.display_text = _TEMPLATE % (
                self.avg_frame_time * 1000.0, fps,
                self.avg_state_update_time * 1000.0,
                self.avg_render_time * 1000.0,
                self.avg_display_time * 1000.0,
            )
            self.last_update_time = now

    def toggle_visibility(self) -> None:
        self.visible = not self.visible

    def set_visibility(self, visible: bool) -> None:
        self.visible = visible