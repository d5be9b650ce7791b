from __future__ import annotations

import math

import pytest

from fractals.errors import InvalidZoomFactor, RenderCancelled
from fractals.renderer import CancelSource
from fractals.vector import (
    KOCH_COLOR,
    SIERPINSKI_COLOR,
    adaptive_depth,
    koch_curve,
    koch_snowflake,
    midpoint,
    sierpinski,
    sierpinski_corners,
    sierpinski_triangle,
    snowflake_edges,
)


# ── adaptive_depth ──────────────────────────────────────────────────


@pytest.mark.parametrize(
    "base, zoom, max_depth, expected",
    [
        (5, 1.0, 9, 5),
        (5, 4.0, 9, 7),
        (5, 1024.0, 9, 9),
        (5, 1.2, 9, 5),
        (5, 1.2 ** 4, 9, 6),
        (7, 0.5, 11, 6),
        (5, 1e-6, 9, 0),
    ],
)
def test_adaptive_depth(base: int, zoom: float, max_depth: int, expected: int) -> None:
    assert adaptive_depth(base, zoom, max_depth) == expected


def test_adaptive_depth_is_monotonic() -> None:
    depths = [adaptive_depth(5, 1.2 ** k, 9) for k in range(-40, 60)]
    assert depths == sorted(depths)
    assert depths[-1] == 9


def test_adaptive_depth_rejects_zero_zoom() -> None:
    with pytest.raises(InvalidZoomFactor):
        adaptive_depth(5, 0.0, 9)


# ── Koch ────────────────────────────────────────────────────────────


class TestKoch:
    @pytest.mark.parametrize("depth", range(0, 5))
    def test_segment_count(self, depth: int) -> None:
        assert len(list(koch_curve((0.0, 0.0), (1.0, 0.0), depth))) == 4 ** depth
        assert len(list(koch_snowflake(800, 600, depth))) == 3 * 4 ** depth

    def test_peak_points_up_on_screen(self) -> None:
        segments = list(koch_curve((0.0, 0.0), (3.0, 0.0), 1))
        points = [segments[0][0]] + [end for _, end in segments]
        expected = [(0.0, 0.0), (1.0, 0.0), (1.5, -math.sqrt(3) / 2), (2.0, 0.0), (3.0, 0.0)]
        for got, want in zip(points, expected):
            assert got == pytest.approx(want)

    @pytest.mark.parametrize("depth", range(0, 4))
    def test_next_depth_subdivides_every_segment(self, depth: int) -> None:
        a, b = (10.0, 400.0), (410.0, 400.0)
        refined = [seg for start, end in koch_curve(a, b, depth) for seg in koch_curve(start, end, 1)]
        direct = list(koch_curve(a, b, depth + 1))
        assert len(refined) == len(direct)
        for (s1, e1), (s2, e2) in zip(refined, direct):
            assert s1 == pytest.approx(s2, abs=1e-9)
            assert e1 == pytest.approx(e2, abs=1e-9)

    def test_curve_is_connected(self) -> None:
        segments = list(koch_curve((0.0, 0.0), (90.0, 30.0), 3))
        assert segments[0][0] == (0.0, 0.0)
        assert segments[-1][1] == pytest.approx((90.0, 30.0))
        for (_, end), (start, _) in zip(segments, segments[1:]):
            assert end == pytest.approx(start)

    def test_snowflake_layout(self) -> None:
        (p1, p2), (q2, p3), (r3, r1) = snowflake_edges(800, 600)
        assert p1 == (200.0, 400.0)
        assert p2 == (600.0, 400.0)
        assert p3 == pytest.approx((400.0, 400.0 - 400 * math.sqrt(3) / 2))
        assert (q2, r3, r1) == (p2, p3, p1)

    def test_stroke_compensates_for_zoom(self) -> None:
        segment = next(koch_snowflake(800, 600, 0, zoom=4.0))
        assert segment.width == pytest.approx(0.5)
        assert segment.color == KOCH_COLOR

    def test_stale_token_cancels(self) -> None:
        source = CancelSource()
        token = source.issue()
        source.issue()
        with pytest.raises(RenderCancelled):
            list(koch_snowflake(800, 600, 2, cancel=token))


# ── Sierpinski ──────────────────────────────────────────────────────


class TestSierpinski:
    @pytest.mark.parametrize("depth", range(0, 7))
    def test_triangle_count(self, depth: int) -> None:
        assert len(list(sierpinski_triangle(800, 600, depth))) == 3 ** depth

    def test_corners(self) -> None:
        h = 500 * math.sqrt(3) / 2
        apex, left, right = sierpinski_corners(800, 600)
        assert apex == pytest.approx((400.0, 300.0 - h / 2))
        assert left == pytest.approx((150.0, 300.0 + h / 2))
        assert right == pytest.approx((650.0, 300.0 + h / 2))

    def test_middle_triangle_is_left_out(self) -> None:
        a, b, c = (0.0, 0.0), (4.0, 0.0), (2.0, 4.0)
        triangles = list(sierpinski(a, b, c, 1))
        ab, bc, ca = midpoint(a, b), midpoint(b, c), midpoint(c, a)
        assert triangles == [(a, ab, ca), (ab, b, bc), (ca, bc, c)]
        assert (ab, bc, ca) not in triangles

    def test_top_level_matches_recursive_generator(self) -> None:
        corners = sierpinski_corners(640, 480)
        expected = list(sierpinski(*corners, 3))
        got = [tri.points for tri in sierpinski_triangle(640, 480, 3)]
        assert got == expected

    def test_fill_colour(self) -> None:
        triangle = next(sierpinski_triangle(800, 600, 2))
        assert triangle.color == SIERPINSKI_COLOR

    def test_area_shrinks_by_three_quarters(self) -> None:
        def area(tri):
            (x1, y1), (x2, y2), (x3, y3) = tri.points
            return abs((x2 - x1) * (y3 - y1) - (x3 - x1) * (y2 - y1)) / 2

        whole = sum(area(t) for t in sierpinski_triangle(800, 600, 0))
        level_two = sum(area(t) for t in sierpinski_triangle(800, 600, 2))
        assert level_two == pytest.approx(whole * 0.75 ** 2)

    def test_stale_token_cancels(self) -> None:
        source = CancelSource()
        token = source.issue()
        source.issue()
        with pytest.raises(RenderCancelled):
            list(sierpinski_triangle(800, 600, 3, cancel=token))
