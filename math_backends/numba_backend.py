from __future__ import annotations

import importlib.util
import math
from typing import TYPE_CHECKING, List, Sequence, Tuple

from math_backends import python_backend

if TYPE_CHECKING:
    from nested_math import Stage

Point = Tuple[float, float]

NUMBA_AVAILABLE = importlib.util.find_spec("numba") is not None
if NUMBA_AVAILABLE:
    import numba
    import numpy as np


def _numba_chain_data(chain: Sequence["Stage"]):
    if not NUMBA_AVAILABLE:
        return None
    count = len(chain)
    radius = np.zeros(count, dtype=np.float64)
    speed = np.zeros(count, dtype=np.float64)
    phase = np.zeros(count, dtype=np.float64)
    outside = np.zeros(count, dtype=np.bool_)
    for idx, stage in enumerate(chain):
        radius[idx] = float(stage.radius)
        speed[idx] = float(stage.angular_velocity)
        phase[idx] = float(stage.phase)
        outside[idx] = bool(stage.rolls_outside)
    pen_offset = float(chain[-1].pen_offset) if count else 0.0
    return radius, speed, phase, outside, pen_offset


if NUMBA_AVAILABLE:

    @numba.njit(cache=True)
    def _pen_positions_numba(
        t_values: np.ndarray,
        base_radius: float,
        radius: np.ndarray,
        speed: np.ndarray,
        phase: np.ndarray,
        outside: np.ndarray,
        pen_offset: float,
    ) -> tuple[np.ndarray, np.ndarray]:
        n = len(t_values)
        count = len(radius)
        out_x = np.empty(n, dtype=np.float64)
        out_y = np.empty(n, dtype=np.float64)
        for i in range(n):
            t = t_values[i]
            x = 0.0
            y = 0.0
            driving = base_radius
            for j in range(count):
                alpha = speed[j] * t + phase[j]
                if outside[j]:
                    kappa = driving + radius[j]
                else:
                    kappa = driving - radius[j]
                x += kappa * math.cos(alpha)
                y += kappa * math.sin(alpha)
                if j == count - 1:
                    beta = (kappa / radius[j]) * alpha
                    if outside[j]:
                        x += -pen_offset * math.cos(beta)
                        y += -pen_offset * math.sin(beta)
                    else:
                        x += pen_offset * math.cos(beta)
                        y += -pen_offset * math.sin(beta)
                else:
                    driving = radius[j]
            out_x[i] = x
            out_y[i] = y
        return out_x, out_y


def pen_positions(
    base_radius: float,
    chain: Sequence["Stage"],
    times: Sequence[float],
) -> List[Point]:
    data = _numba_chain_data(chain)
    if data is None:
        return python_backend.pen_positions(base_radius, chain, times)
    radius, speed, phase, outside, pen_offset = data
    t_values = np.asarray(times, dtype=np.float64)
    px, py = _pen_positions_numba(
        t_values, float(base_radius), radius, speed, phase, outside, pen_offset
    )
    return [(float(x), float(y)) for x, y in zip(px, py)]
