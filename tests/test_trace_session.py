import math

import pytest

from nested_math import Stage, pen_at_time
from spiro_config import TraceSettings
from trace_session import TraceSession


@pytest.fixture
def session(qapp):
    chain = [Stage(radius=30.0, pen_offset=20.0, rolls_outside=False, angular_velocity=2.0)]
    return TraceSession(
        chain,
        base_radius=80.0,
        origin=(100.0, 100.0),
        width=200,
        height=200,
        settings=TraceSettings(max_pixel_step=1.0, max_substeps=64),
    )


def test_tick_reports_screen_positions(session):
    frame = session.tick(0.0)
    assert frame.error is None
    assert frame.pen == pytest.approx((100.0 + 50.0 + 20.0, 100.0))
    assert frame.centers == [pytest.approx((150.0, 100.0))]
    assert frame.segments_drawn == 0


def test_consecutive_ticks_accumulate_length(session):
    session.tick(0.0)
    frame = session.tick(0.1)
    assert frame.segments_drawn > 0
    assert session.accumulator.path_length > 0.0
    last_sample = session.accumulator.samples[-1][0]
    local = pen_at_time(80.0, session.chain, 0.1)
    assert last_sample == (100.0 + local[0], 100.0 + local[1])


def test_paused_tracing_freezes_the_trace(session):
    session.tick(0.0)
    session.tick(0.1)
    length = session.accumulator.path_length
    session.set_tracing(False)
    frame = session.tick(0.5)
    assert frame.pen is not None
    assert frame.segments_drawn == 0
    assert session.accumulator.path_length == length

    session.set_tracing(True)
    assert session.tick(0.9).segments_drawn == 0  # pas de segment de liaison
    assert session.tick(1.0).segments_drawn > 0


def test_advance_trace_false_skips_drawing(session):
    session.tick(0.0)
    assert session.tick(0.2, advance_trace=False).segments_drawn == 0
    assert session.accumulator.path_length == 0.0
    assert not session.sampler.state.active


def test_clear_resets_length_and_run(session):
    session.tick(0.0)
    session.tick(0.3)
    session.clear()
    assert session.accumulator.path_length == 0.0
    assert session.tick(0.4).segments_drawn == 0


def test_degenerate_stage_skips_tick_and_recovers(session):
    session.tick(0.0)
    session.chain[0].radius = 0.0
    frame = session.tick(0.1)
    assert frame.pen is None
    assert frame.centers == []
    assert frame.error
    assert not session.sampler.state.active

    session.chain[0].radius = 30.0
    assert session.tick(0.2).segments_drawn == 0
    assert session.tick(0.3).segments_drawn > 0


def test_non_finite_time_is_rejected(session):
    session.tick(0.0)
    length = session.accumulator.path_length
    frame = session.tick(math.nan)
    assert frame.error
    assert session.accumulator.path_length == length


def test_toggle_tracing(session):
    assert session.tracing
    assert session.toggle_tracing() is False
    assert session.toggle_tracing() is True


def test_overflowing_speed_skips_the_tick(session):
    session.tick(0.0)
    session.chain[0].angular_velocity = 1e308
    frame = session.tick(10.0)
    assert frame.pen is None
    assert frame.error
    assert not session.sampler.state.active


def test_tick_evaluates_the_current_pen_once(session, monkeypatch):
    import nested_math as nm

    batches = []
    real = nm.pen_positions_for_times

    def counting(base_radius, chain, times):
        batches.append(list(times))
        return real(base_radius, chain, times)

    monkeypatch.setattr(nm, "pen_positions_for_times", counting)
    session.tick(0.0)
    session.tick(0.1)
    assert all(0.1 not in batch and 0.0 not in batch for batch in batches)
