from __future__ import annotations

from typing import Sequence, Tuple

from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import QColor, QFont, QPainter, QPen

Point = Tuple[float, float]

BASE_CIRCLE_COLOR = QColor(180, 180, 180, 10)
DISC_COLOR = QColor(140, 200, 255)
SELECTED_DISC_COLOR = QColor(255, 230, 120)
ARM_COLOR = QColor(120, 200, 140)
PEN_COLOR = QColor(255, 0, 0)


def draw_circle(
    painter: QPainter,
    center: Point,
    radius: float,
    *,
    color: QColor = DISC_COLOR,
    width: float = 2.0,
) -> None:
    """Draw an unfilled circle outline."""

    pen = QPen(color)
    pen.setWidthF(width)
    painter.setPen(pen)
    painter.setBrush(Qt.BrushStyle.NoBrush)
    painter.drawEllipse(QPointF(center[0], center[1]), abs(radius), abs(radius))


def draw_mechanism(
    painter: QPainter,
    *,
    centers: Sequence[Point],
    radii: Sequence[float],
    pen_pos: Point,
    selected: int = -1,
) -> None:
    """Draw each stage disc plus the arm from its center to the next center or the pen.

    The selected stage is highlighted.
    """

    for i, (center, radius) in enumerate(zip(centers, radii)):
        color = SELECTED_DISC_COLOR if i == selected else DISC_COLOR
        draw_circle(painter, center, radius, color=color)

        to = centers[i + 1] if i + 1 < len(centers) else pen_pos
        pen = QPen(ARM_COLOR)
        pen.setWidthF(0)
        painter.setPen(pen)
        painter.drawLine(QPointF(center[0], center[1]), QPointF(to[0], to[1]))


def draw_marker(
    painter: QPainter,
    point: Point,
    *,
    radius: float = 4.0,
    color: QColor = PEN_COLOR,
) -> None:
    """Draw a filled dot."""

    painter.setPen(Qt.PenStyle.NoPen)
    painter.setBrush(color)
    painter.drawEllipse(QPointF(point[0], point[1]), radius, radius)


def draw_text_block(
    painter: QPainter,
    text: str,
    *,
    pos: Point,
    font: QFont,
    boxed: bool = False,
    pad: float = 16.0,
) -> None:
    """Draw multi-line text at ``pos``, optionally over a translucent box."""

    painter.setFont(font)
    metrics = painter.fontMetrics()
    lines = text.split("\n")
    line_h = metrics.lineSpacing()
    text_w = max((metrics.horizontalAdvance(line) for line in lines), default=0)
    text_h = line_h * len(lines)

    if boxed:
        box = QRectF(pos[0] - pad, pos[1] - pad, text_w + pad * 2.0, text_h + pad * 2.0)
        outline = QPen(QColor(255, 255, 255, 80))
        outline.setWidthF(2.0)
        painter.setPen(outline)
        painter.setBrush(QColor(0, 0, 0, 200))
        painter.drawRect(box)

    painter.setPen(QColor(255, 255, 255))
    for i, line in enumerate(lines):
        painter.drawText(QPointF(pos[0], pos[1] + metrics.ascent() + i * line_h), line)
