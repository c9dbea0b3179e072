"""Adaptive sub-stepping between two animation frames.

The number of intermediate samples follows the on-screen distance travelled
by the pen, not the simulated time elapsed, so very fast stages still produce
a continuous stroke while slow ones cost a single segment per frame.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Callable, List, Optional, Sequence, Tuple

Point = Tuple[float, float]
Segment = Tuple[Point, Point]
PositionsFn = Callable[[Sequence[float]], List[Point]]

MIN_PIXEL_STEP = 0.1

_LOGGER = logging.getLogger(__name__)


def substep_count(distance: float, max_pixel_step: float, max_substeps: int) -> int:
    """Number of sub-segments needed so none is longer than ``max_pixel_step``.

    The result is clamped to ``[1, max_substeps]``; the step is floored at
    ``MIN_PIXEL_STEP``.
    """

    step = max(MIN_PIXEL_STEP, float(max_pixel_step))
    cap = max(1, int(max_substeps))
    steps = int(math.ceil(distance / step))
    return min(max(steps, 1), cap)


@dataclass(frozen=True)
class SamplerState:
    t_prev: float = 0.0
    p_prev: Point = (0.0, 0.0)
    active: bool = False


class AdaptiveSampler:
    def __init__(
        self,
        positions_at: PositionsFn,
        *,
        max_pixel_step: float = 1.0,
        max_substeps: int = 256,
    ) -> None:
        self._positions_at = positions_at
        self.max_pixel_step = max_pixel_step
        self.max_substeps = max_substeps
        self.state = SamplerState()

    def reset(self) -> None:
        """Start a new run: the next ``advance`` only seeds the state."""

        self.state = SamplerState()

    def advance(self, t_now: float, p_now: Optional[Point] = None) -> List[Segment]:
        """Return the segments bridging the previous frame to ``t_now``.

        ``p_now`` is the pen at ``t_now`` when the caller already evaluated it.
        Errors raised by ``positions_at`` propagate and leave the carried state
        untouched.
        """

        if p_now is None:
            p_now = self._positions_at([t_now])[0]
        state = self.state
        if not state.active:
            self.state = SamplerState(t_now, p_now, True)
            return []

        t_prev, p_prev = state.t_prev, state.p_prev
        dist = math.hypot(p_now[0] - p_prev[0], p_now[1] - p_prev[1])
        steps = substep_count(dist, self.max_pixel_step, self.max_substeps)
        if steps >= self.max_substeps and dist > steps * self.max_pixel_step:
            _LOGGER.debug(
                "Sub-stepping clamped to %d for a %.1f px jump", steps, dist
            )

        times = [t_prev + (t_now - t_prev) * (i / steps) for i in range(1, steps)]
        points = list(self._positions_at(times)) if times else []
        points.append(p_now)

        segments: List[Segment] = []
        prev = p_prev
        for p in points:
            segments.append((prev, p))
            prev = p

        self.state = SamplerState(t_now, p_now, True)
        return segments
