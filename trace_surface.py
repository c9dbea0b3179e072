from __future__ import annotations

from collections.abc import Sequence
import colorsys
import math
from typing import Iterable, List, Optional, Tuple

from PySide6.QtCore import QPointF, Qt
from PySide6.QtGui import QBrush, QColor, QImage, QLinearGradient, QPainter, QPolygonF

Point = Tuple[float, float]
Sample = Tuple[Point, float]

# Segments plus courts que ça sont ignorés (direction non définie).
MIN_SEGMENT_LENGTH = 1e-4


def hue_for_length(length: float, pixels_per_cycle: float, hue_offset: float = 0.0) -> float:
    """Teinte (degrés, [0, 360[) associée à une longueur de tracé cumulée."""
    return ((length / pixels_per_cycle) * 360.0 + hue_offset) % 360.0


def rainbow_color(hue: float, alpha: int = 230) -> QColor:
    r, g, b = colorsys.hsv_to_rgb((hue % 360.0) / 360.0, 1.0, 1.0)
    return QColor(
        int(round(r * 255.0)),
        int(round(g * 255.0)),
        int(round(b * 255.0)),
        int(alpha),
    )


class SampleView(Sequence):
    """Vue en lecture seule sur les échantillons (position, longueur cumulée)."""

    def __init__(self, samples: List[Sample]) -> None:
        self._samples = samples

    def __getitem__(self, index):
        return self._samples[index]

    def __len__(self) -> int:
        return len(self._samples)


class TraceAccumulator:
    """
    Surface hors écran persistante sur laquelle le tracé s'accumule.

    La couleur de chaque extrémité dépend de la longueur cumulée du tracé,
    pas du temps : un même chemin donne le même arc-en-ciel quelle que soit
    la cadence d'affichage. La surface n'est modifiée que par
    ``append_segment`` / ``append_segments`` et ``clear``.
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        stroke_width: float = 2.0,
        pixels_per_cycle: float = 600.0,
        hue_offset: float = 0.0,
        alpha: int = 230,
    ) -> None:
        if not (math.isfinite(pixels_per_cycle) and pixels_per_cycle > 0.0):
            raise ValueError(f"pixels_per_cycle must be positive ({pixels_per_cycle!r})")
        if not (math.isfinite(stroke_width) and stroke_width > 0.0):
            raise ValueError(f"stroke_width must be positive ({stroke_width!r})")
        self.stroke_width = float(stroke_width)
        self.pixels_per_cycle = float(pixels_per_cycle)
        self.hue_offset = float(hue_offset)
        self.alpha = min(255, max(0, int(alpha)))
        self._image = QImage(int(width), int(height), QImage.Format.Format_ARGB32_Premultiplied)
        self._path_length = 0.0
        self._samples: List[Sample] = []
        self._sample_view = SampleView(self._samples)
        self.clear()

    @property
    def path_length(self) -> float:
        return self._path_length

    @property
    def samples(self) -> SampleView:
        return self._sample_view

    def surface(self) -> QImage:
        return self._image

    def clear(self) -> None:
        self._image.fill(Qt.GlobalColor.transparent)
        self._path_length = 0.0
        self._samples.clear()

    def append_segment(self, a: Point, b: Point, stroke_width: Optional[float] = None) -> bool:
        return self.append_segments([(a, b)], stroke_width) == 1

    def append_segments(
        self,
        segments: Iterable[Tuple[Point, Point]],
        stroke_width: Optional[float] = None,
    ) -> int:
        """Peint une suite de segments avec un seul QPainter ; renvoie le nombre peint."""
        width = self.stroke_width if stroke_width is None else float(stroke_width)
        painter: Optional[QPainter] = None
        drawn = 0
        try:
            for a, b in segments:
                dx = b[0] - a[0]
                dy = b[1] - a[1]
                length = math.hypot(dx, dy)
                if length < MIN_SEGMENT_LENGTH:
                    continue

                prev_length = self._path_length
                new_length = prev_length + length
                c0 = rainbow_color(
                    hue_for_length(prev_length, self.pixels_per_cycle, self.hue_offset),
                    self.alpha,
                )
                c1 = rainbow_color(
                    hue_for_length(new_length, self.pixels_per_cycle, self.hue_offset),
                    self.alpha,
                )

                if painter is None:
                    painter = QPainter(self._image)
                    painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
                    painter.setPen(Qt.PenStyle.NoPen)
                self._draw_thick_segment(painter, a, b, dx / length, dy / length, width, c0, c1)

                self._path_length = new_length
                if not self._samples or self._samples[-1][0] != a:
                    self._samples.append((a, prev_length))
                self._samples.append((b, new_length))
                drawn += 1
        finally:
            if painter is not None:
                painter.end()
        return drawn

    @staticmethod
    def _draw_thick_segment(
        painter: QPainter,
        a: Point,
        b: Point,
        ux: float,
        uy: float,
        stroke: float,
        ca: QColor,
        cb: QColor,
    ) -> None:
        half = stroke * 0.5
        nx = -uy * half
        ny = ux * half

        gradient = QLinearGradient(QPointF(a[0], a[1]), QPointF(b[0], b[1]))
        gradient.setColorAt(0.0, ca)
        gradient.setColorAt(1.0, cb)
        painter.setBrush(QBrush(gradient))
        painter.drawPolygon(
            QPolygonF(
                [
                    QPointF(a[0] - nx, a[1] - ny),
                    QPointF(a[0] + nx, a[1] + ny),
                    QPointF(b[0] + nx, b[1] + ny),
                    QPointF(b[0] - nx, b[1] - ny),
                ]
            )
        )

        # embouts ronds : masquent la jonction entre deux segments
        painter.setBrush(ca)
        painter.drawEllipse(QPointF(a[0], a[1]), half, half)
        painter.setBrush(cb)
        painter.drawEllipse(QPointF(b[0], b[1]), half, half)
