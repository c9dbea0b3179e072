import math

import pytest

from trace_surface import TraceAccumulator, hue_for_length, rainbow_color


def _all_transparent(image) -> bool:
    for y in range(image.height()):
        for x in range(image.width()):
            if image.pixelColor(x, y).alpha() != 0:
                return False
    return True


@pytest.fixture
def acc(qapp):
    return TraceAccumulator(40, 40, stroke_width=4.0, pixels_per_cycle=600.0)


def test_starts_empty_and_transparent(acc):
    assert acc.path_length == 0.0
    assert list(acc.samples) == []
    assert _all_transparent(acc.surface())


def test_append_adds_segment_length(acc):
    assert acc.append_segment((10.0, 10.0), (13.0, 14.0))
    assert math.isclose(acc.path_length, 5.0, abs_tol=1e-9)
    assert acc.surface().pixelColor(11, 12).alpha() > 0


def test_degenerate_segment_is_skipped(acc):
    assert not acc.append_segment((20.0, 20.0), (20.0, 20.00001))
    assert acc.path_length == 0.0
    assert _all_transparent(acc.surface())


def test_batch_records_contiguous_samples(acc):
    drawn = acc.append_segments([((5.0, 5.0), (8.0, 5.0)), ((8.0, 5.0), (8.0, 9.0))])
    assert drawn == 2
    assert list(acc.samples) == [((5.0, 5.0), 0.0), ((8.0, 5.0), 3.0), ((8.0, 9.0), 7.0)]


def test_clear_wipes_surface_and_length(acc):
    acc.append_segment((5.0, 5.0), (30.0, 30.0))
    acc.clear()
    assert acc.path_length == 0.0
    assert list(acc.samples) == []
    assert _all_transparent(acc.surface())


def test_hue_is_periodic_in_length():
    for length in [0.0, 75.0, 150.0, 599.0]:
        assert math.isclose(
            hue_for_length(length, 600.0, 30.0),
            hue_for_length(length + 600.0, 600.0, 30.0),
            abs_tol=1e-9,
        )
    assert math.isclose(hue_for_length(150.0, 600.0), 90.0)


def test_negative_hue_offset_wraps():
    hue = hue_for_length(0.0, 600.0, -30.0)
    assert math.isclose(hue, 330.0)


def test_rainbow_color_primaries():
    red = rainbow_color(0.0, 230)
    assert (red.red(), red.green(), red.blue(), red.alpha()) == (255, 0, 0, 230)
    green = rainbow_color(120.0, 255)
    assert (green.red(), green.green(), green.blue()) == (0, 255, 0)
    blue = rainbow_color(240.0)
    assert (blue.red(), blue.green(), blue.blue()) == (0, 0, 255)


def test_segment_is_a_gradient_with_colored_round_caps(qapp):
    acc = TraceAccumulator(80, 40, stroke_width=6.0, pixels_per_cycle=60.0, alpha=255)
    # longueur 70 : teinte 0 (rouge) en a, 60 (jaune) en b
    assert acc.append_segment((5.0, 20.0), (75.0, 20.0))
    image = acc.surface()

    near_a = image.pixelColor(8, 20)
    near_b = image.pixelColor(72, 20)
    assert near_a.red() > 200 and near_a.green() < 80
    assert near_b.red() > 200 and near_b.green() > 170

    cap_a = image.pixelColor(2, 20)
    cap_b = image.pixelColor(77, 20)
    assert cap_a.alpha() > 128 and cap_a.green() < 80
    assert cap_b.alpha() > 128 and cap_b.green() > 170
    assert image.pixelColor(79, 20).alpha() == 0


@pytest.mark.parametrize("pixels_per_cycle", [0.0, -60.0, math.nan])
def test_rejects_non_positive_color_cycle(qapp, pixels_per_cycle):
    with pytest.raises(ValueError):
        TraceAccumulator(10, 10, pixels_per_cycle=pixels_per_cycle)


def test_rejects_non_positive_stroke(qapp):
    with pytest.raises(ValueError):
        TraceAccumulator(10, 10, stroke_width=0.0)


def test_alpha_is_clamped(qapp):
    assert TraceAccumulator(10, 10, alpha=400).alpha == 255
    assert TraceAccumulator(10, 10, alpha=-3).alpha == 0


def test_samples_are_a_live_read_only_view(acc):
    view = acc.samples
    acc.append_segment((5.0, 5.0), (9.0, 8.0))
    assert len(view) == 2
    assert view[-1] == ((9.0, 8.0), 5.0)
    assert not hasattr(view, "append")
    acc.clear()
    assert len(view) == 0
