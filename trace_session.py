from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import List, Optional, Sequence, Tuple

import nested_math as nm
from spiro_config import TraceSettings
from trace_sampler import AdaptiveSampler
from trace_surface import TraceAccumulator

Point = Tuple[float, float]

_LOGGER = logging.getLogger(__name__)


@dataclass
class FrameState:
    time: float
    pen: Optional[Point] = None           # coordonnées écran
    centers: List[Point] = field(default_factory=list)
    segments_drawn: int = 0
    error: Optional[str] = None


class TraceSession:
    """
    Un tick par image : calcul des centres, sous-échantillonnage, ajout au tracé.

    La chaîne est partagée par référence avec l'hôte, qui peut modifier les
    étages entre deux ticks ; la session ne fait que la lire.
    """

    def __init__(
        self,
        chain: List[nm.Stage],
        *,
        base_radius: float,
        origin: Point,
        width: int,
        height: int,
        settings: Optional[TraceSettings] = None,
    ) -> None:
        self.chain = chain
        self.base_radius = float(base_radius)
        self.origin = origin
        self.settings = settings or TraceSettings()
        self.accumulator = TraceAccumulator(
            width,
            height,
            stroke_width=self.settings.stroke_width,
            pixels_per_cycle=self.settings.pixels_per_cycle,
            hue_offset=self.settings.hue_offset,
            alpha=self.settings.alpha,
        )
        self.sampler = AdaptiveSampler(
            self._positions_at,
            max_pixel_step=self.settings.max_pixel_step,
            max_substeps=self.settings.max_substeps,
        )
        self._tracing = True
        self._last_error: Optional[str] = None

    @property
    def tracing(self) -> bool:
        return self._tracing

    def set_tracing(self, enabled: bool) -> None:
        if enabled == self._tracing:
            return
        self._tracing = enabled
        self.sampler.reset()
        _LOGGER.info("Tracing %s", "on" if enabled else "off")

    def toggle_tracing(self) -> bool:
        self.set_tracing(not self._tracing)
        return self._tracing

    def clear(self) -> None:
        self.accumulator.clear()
        self.sampler.reset()
        _LOGGER.info("Trace cleared")

    def reset_run(self) -> None:
        self.sampler.reset()

    def _to_screen(self, p: Point) -> Point:
        return (self.origin[0] + p[0], self.origin[1] + p[1])

    def _positions_at(self, times: Sequence[float]) -> List[Point]:
        local = nm.pen_positions_for_times(self.base_radius, self.chain, times)
        return [self._to_screen(p) for p in local]

    def _reject(self, t: float, exc: nm.SpiroInputError) -> FrameState:
        message = str(exc)
        if message != self._last_error:
            _LOGGER.warning("Skipping tick at t=%.3f: %s", t, message)
        else:
            _LOGGER.debug("Skipping tick at t=%.3f: %s", t, message)
        self._last_error = message
        self.sampler.reset()
        return FrameState(time=t, error=message)

    def tick(self, t: float, *, advance_trace: bool = True) -> FrameState:
        """
        Avance d'une image au temps ``t``.

        ``advance_trace=False`` gèle le tracé pour cette image (pause) ; la
        prochaine reprise repart d'un nouveau point sans segment de liaison.
        """
        try:
            pen_local, centers_local = nm.compute_pen_and_centers(
                self.base_radius, self.chain, t
            )
        except nm.SpiroInputError as exc:
            return self._reject(t, exc)

        frame = FrameState(
            time=t,
            pen=self._to_screen(pen_local),
            centers=[self._to_screen(c) for c in centers_local],
        )

        if self._tracing and advance_trace:
            try:
                segments = self.sampler.advance(t, frame.pen)
            except nm.SpiroInputError as exc:
                return self._reject(t, exc)
            frame.segments_drawn = self.accumulator.append_segments(segments)
        else:
            self.sampler.reset()

        self._last_error = None
        return frame
