import importlib.util
import math

import pytest

import nested_math as nm


def sample_chain():
    return [
        nm.Stage(radius=60.0, rolls_outside=False, angular_velocity=1.5, phase=0.2),
        nm.Stage(radius=20.0, rolls_outside=True, angular_velocity=-6.0, phase=-1.0),
        nm.Stage(radius=7.0, pen_offset=5.0, rolls_outside=False, angular_velocity=24.0),
    ]


def test_numba_backend_availability():
    backends = nm.list_backends(available_only=True)
    names = {backend.name for backend in backends}
    assert "python" in names

    numba_available = importlib.util.find_spec("numba") is not None
    if numba_available:
        assert "numba" in names
    else:
        assert "numba" not in names


def test_unknown_backend_is_rejected():
    with pytest.raises(ValueError):
        nm.set_backend("fortran")
    assert nm.get_backend_name() == "python"


def test_batch_matches_scalar_solver():
    chain = sample_chain()
    times = [0.0, 0.01, 0.5, 1.25, -3.0]
    points = nm.pen_positions_for_times(150.0, chain, times)
    assert points == [nm.pen_at_time(150.0, chain, t) for t in times]


def test_batch_rejects_non_finite_time():
    with pytest.raises(nm.NonFiniteInputError):
        nm.pen_positions_for_times(150.0, sample_chain(), [0.0, math.inf])


def test_batch_of_nothing():
    assert nm.pen_positions_for_times(150.0, sample_chain(), []) == []


@pytest.mark.skipif(importlib.util.find_spec("numba") is None, reason="numba not installed")
def test_numba_backend_matches_python():
    chain = sample_chain()
    times = [i * 0.013 for i in range(200)]
    expected = nm.pen_positions_for_times(150.0, chain, times)
    nm.set_backend("numba")
    try:
        got = nm.pen_positions_for_times(150.0, chain, times)
    finally:
        nm.set_backend("python")
    assert len(got) == len(expected)
    for (gx, gy), (ex, ey) in zip(got, expected):
        assert math.isclose(gx, ex, abs_tol=1e-6)
        assert math.isclose(gy, ey, abs_tol=1e-6)
