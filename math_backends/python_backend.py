from __future__ import annotations

import math
from typing import TYPE_CHECKING, List, Sequence, Tuple

if TYPE_CHECKING:
    from nested_math import Stage

Point = Tuple[float, float]


def _cos_sin(angle: float) -> Tuple[float, float]:
    # angle débordé (vitesse énorme) : NaN comme le noyau numba, rejeté par l'appelant
    if not math.isfinite(angle):
        return math.nan, math.nan
    return math.cos(angle), math.sin(angle)


def pen_and_centers(
    base_radius: float,
    chain: Sequence["Stage"],
    t: float,
) -> Tuple[Point, List[Point]]:
    """
    Position du stylo et centres de chaque étage au temps ``t``.

    Convention :
      - Le cercle de base (rayon ``base_radius``) est fixe et centré en (0, 0).
      - L'étage j roule sur le disque de l'étage j - 1 (ou sur la base si j == 0).
      - Seul le DERNIER étage porte le stylo (``pen_offset``).

    Un angle non fini donne des coordonnées NaN au lieu de lever une erreur.
    """
    x = 0.0
    y = 0.0
    driving = float(base_radius)
    centers: List[Point] = []
    last = len(chain) - 1

    for j, stage in enumerate(chain):
        alpha = stage.angular_velocity * t + stage.phase
        if stage.rolls_outside:
            kappa = driving + stage.radius
        else:
            kappa = driving - stage.radius

        cos_a, sin_a = _cos_sin(alpha)
        x += kappa * cos_a
        y += kappa * sin_a
        centers.append((x, y))

        if j == last:
            cos_b, sin_b = _cos_sin((kappa / stage.radius) * alpha)
            d = stage.pen_offset
            # dehors et dedans ne sont pas symétriques : ne pas "corriger"
            if stage.rolls_outside:
                x += -d * cos_b
                y += -d * sin_b
            else:
                x += d * cos_b
                y += -d * sin_b
        else:
            driving = stage.radius

    return (x, y), centers


def pen_positions(
    base_radius: float,
    chain: Sequence["Stage"],
    times: Sequence[float],
) -> List[Point]:
    return [pen_and_centers(base_radius, chain, t)[0] for t in times]
