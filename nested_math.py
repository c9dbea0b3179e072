from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Callable, List, Sequence, Tuple

from math_backends import numba_backend, python_backend

Point = Tuple[float, float]

# En dessous de ce rayon, l'angle de rotation (kappa / r) n'est plus défini.
RADIUS_EPSILON = 1e-6


class SpiroInputError(ValueError):
    """Configuration de chaîne ou temps inutilisable pour le calcul."""


class DegenerateStageError(SpiroInputError):
    def __init__(self, stage_index: int, radius: float):
        super().__init__(
            f"Stage {stage_index + 1} has a degenerate radius ({radius!r} <= {RADIUS_EPSILON})"
        )
        self.stage_index = stage_index
        self.radius = radius


class NonFiniteInputError(SpiroInputError):
    pass


@dataclass
class Stage:
    radius: float
    pen_offset: float = 0.0       # utilisé uniquement par le DERNIER étage
    rolls_outside: bool = False   # True = dehors (épitrochoïde), False = dedans
    angular_velocity: float = 0.0  # rad / unité de temps, négatif = sens inverse
    phase: float = 0.0            # angle de départ (rad)


Chain = List[Stage]


@dataclass(frozen=True)
class MathBackend:
    name: str
    label: str
    available: bool
    generator: Callable


_BACKENDS: dict[str, MathBackend] = {}
_ACTIVE_BACKEND = "python"


def register_backend(backend: MathBackend) -> None:
    _BACKENDS[backend.name] = backend


def list_backends(*, available_only: bool = False) -> list[MathBackend]:
    backends = list(_BACKENDS.values())
    if available_only:
        backends = [b for b in backends if b.available]
    return sorted(backends, key=lambda b: b.name)


def get_backend_name() -> str:
    return _ACTIVE_BACKEND


def set_backend(name: str) -> None:
    backend = _BACKENDS.get(name)
    if backend is None:
        raise ValueError(f"Unknown math backend: {name}")
    if not backend.available:
        raise ValueError(f"Math backend not available: {name}")
    global _ACTIVE_BACKEND
    _ACTIVE_BACKEND = backend.name


def _check_finite(value: float, what: str) -> None:
    if not math.isfinite(value):
        raise NonFiniteInputError(f"{what} is not finite ({value!r})")


def validate_chain(base_radius: float, chain: Sequence[Stage]) -> None:
    """
    Vérifie la base et chaque étage sans rien évaluer.

    Lève :
      - NonFiniteInputError si un paramètre vaut NaN / ±inf ;
      - SpiroInputError si le rayon de base n'est pas strictement positif ;
      - DegenerateStageError si un rayon d'étage est <= RADIUS_EPSILON.
    """
    _check_finite(base_radius, "base radius")
    if base_radius <= 0.0:
        raise SpiroInputError(f"base radius must be positive ({base_radius!r})")

    for idx, stage in enumerate(chain):
        label = f"stage {idx + 1}"
        _check_finite(stage.radius, f"{label} radius")
        _check_finite(stage.pen_offset, f"{label} pen offset")
        _check_finite(stage.angular_velocity, f"{label} angular velocity")
        _check_finite(stage.phase, f"{label} phase")
        if stage.radius <= RADIUS_EPSILON:
            raise DegenerateStageError(idx, stage.radius)


def _check_point(point: Point, t: float) -> None:
    if not (math.isfinite(point[0]) and math.isfinite(point[1])):
        raise NonFiniteInputError(f"pen position is not finite at t={t!r}")


def compute_pen_and_centers(
    base_radius: float,
    chain: Sequence[Stage],
    time: float,
) -> Tuple[Point, List[Point]]:
    """
    Calcule la position du stylo et les centres de tous les étages.

    Les coordonnées sont locales (repère du cercle de base) ; l'appelant
    ajoute le centre de l'écran. Une chaîne vide renvoie ((0, 0), []).
    """
    _check_finite(time, "time")
    validate_chain(base_radius, chain)
    pen, centers = python_backend.pen_and_centers(base_radius, chain, time)
    _check_point(pen, time)
    for center in centers:
        _check_point(center, time)
    return pen, centers


def pen_at_time(base_radius: float, chain: Sequence[Stage], time: float) -> Point:
    return compute_pen_and_centers(base_radius, chain, time)[0]


def pen_positions_for_times(
    base_radius: float,
    chain: Sequence[Stage],
    times: Sequence[float],
) -> List[Point]:
    """Évalue le stylo pour une série de temps via le backend actif."""
    for t in times:
        _check_finite(t, "time")
    validate_chain(base_radius, chain)
    if not times:
        return []

    backend = _BACKENDS.get(_ACTIVE_BACKEND)
    if backend is None:
        raise ValueError(f"Unknown math backend: {_ACTIVE_BACKEND}")
    points = backend.generator(base_radius, chain, times)
    for t, point in zip(times, points):
        _check_point(point, t)
    return points


register_backend(
    MathBackend(
        name="python",
        label="Python",
        available=True,
        generator=python_backend.pen_positions,
    )
)
register_backend(
    MathBackend(
        name="numba",
        label="Numba",
        available=numba_backend.NUMBA_AVAILABLE,
        generator=numba_backend.pen_positions,
    )
)


__all__ = [
    "Chain",
    "DegenerateStageError",
    "MathBackend",
    "NonFiniteInputError",
    "RADIUS_EPSILON",
    "SpiroInputError",
    "Stage",
    "compute_pen_and_centers",
    "get_backend_name",
    "list_backends",
    "pen_at_time",
    "pen_positions_for_times",
    "register_backend",
    "set_backend",
    "validate_chain",
]
