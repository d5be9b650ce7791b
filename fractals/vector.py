"""Recursive generators for the line-based fractals."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Optional, Union, TYPE_CHECKING

from .view import validate_zoom

if TYPE_CHECKING:
    from .renderer import CancelToken

Point = tuple[float, float]

KOCH_BASE_DEPTH = 5
KOCH_MAX_DEPTH = 9
KOCH_SIZE = 400.0
KOCH_BASE_DROP = 100.0
KOCH_COLOR = "#0077ff"
KOCH_LINE_WIDTH = 2.0

SIERPINSKI_BASE_DEPTH = 7
SIERPINSKI_MAX_DEPTH = 11
SIERPINSKI_SIZE = 500.0
SIERPINSKI_COLOR = "#ff6600"


@dataclass(frozen=True)
class Segment:
    start: Point
    end: Point
    color: str = KOCH_COLOR
    width: float = KOCH_LINE_WIDTH


@dataclass(frozen=True)
class Triangle:
    a: Point
    b: Point
    c: Point
    color: str = SIERPINSKI_COLOR

    @property
    def points(self) -> tuple[Point, Point, Point]:
        return (self.a, self.b, self.c)


Primitive = Union[Segment, Triangle]


def adaptive_depth(base: int, zoom: float, max_depth: int) -> int:
    """Recursion depth growing by one per doubling of ``zoom``, capped at ``max_depth``.

    Never negative, so extreme zoom-out still draws the base shape.
    """

    zoom = validate_zoom(zoom)
    return max(0, min(max_depth, base + math.floor(math.log2(zoom))))


def midpoint(p: Point, q: Point) -> Point:
    return ((p[0] + q[0]) / 2, (p[1] + q[1]) / 2)


def koch_curve(a: Point, b: Point, depth: int) -> Iterator[tuple[Point, Point]]:
    """Yield the segments of a Koch curve from ``a`` to ``b``."""

    if depth == 0:
        yield (a, b)
        return
    dx = (b[0] - a[0]) / 3
    dy = (b[1] - a[1]) / 3
    p1 = (a[0] + dx, a[1] + dy)
    p2 = (a[0] + 2 * dx, a[1] + 2 * dy)
    angle = math.atan2(b[1] - a[1], b[0] - a[0]) - math.pi / 3
    length = math.sqrt(dx * dx + dy * dy)
    peak = (p1[0] + math.cos(angle) * length, p1[1] + math.sin(angle) * length)
    yield from koch_curve(a, p1, depth - 1)
    yield from koch_curve(p1, peak, depth - 1)
    yield from koch_curve(peak, p2, depth - 1)
    yield from koch_curve(p2, b, depth - 1)


def sierpinski(a: Point, b: Point, c: Point, depth: int) -> Iterator[tuple[Point, Point, Point]]:
    """Yield the filled corner triangles; the middle one is left out at every level."""

    if depth == 0:
        yield (a, b, c)
        return
    ab = midpoint(a, b)
    bc = midpoint(b, c)
    ca = midpoint(c, a)
    yield from sierpinski(a, ab, ca, depth - 1)
    yield from sierpinski(ab, b, bc, depth - 1)
    yield from sierpinski(ca, bc, c, depth - 1)


def snowflake_edges(width: int, height: int, size: float = KOCH_SIZE) -> list[tuple[Point, Point]]:
    cx = width / 2
    cy = height / 2 + KOCH_BASE_DROP
    h = size * math.sqrt(3) / 2
    p1 = (cx - size / 2, cy)
    p2 = (cx + size / 2, cy)
    p3 = (cx, cy - h)
    return [(p1, p2), (p2, p3), (p3, p1)]


def sierpinski_corners(width: int, height: int, size: float = SIERPINSKI_SIZE) -> tuple[Point, Point, Point]:
    h = size * math.sqrt(3) / 2
    apex = (width / 2, height / 2 - h / 2)
    left = (width / 2 - size / 2, height / 2 + h / 2)
    right = (width / 2 + size / 2, height / 2 + h / 2)
    return (apex, left, right)


def koch_snowflake(
    width: int,
    height: int,
    depth: int,
    zoom: float = 1.0,
    cancel: Optional["CancelToken"] = None,
) -> Iterator[Segment]:
    """Closed snowflake of ``3 * 4**depth`` segments.

    Stroke width is divided by ``zoom`` so lines keep their on-screen
    thickness once the view transform scales them back up.
    """

    stroke = KOCH_LINE_WIDTH / validate_zoom(zoom)
    for a, b in snowflake_edges(width, height):
        if cancel is not None:
            cancel.check()
        for start, end in koch_curve(a, b, depth):
            yield Segment(start, end, KOCH_COLOR, stroke)


def sierpinski_triangle(
    width: int,
    height: int,
    depth: int,
    cancel: Optional["CancelToken"] = None,
) -> Iterator[Triangle]:
    """Apex-up gasket of ``3**depth`` filled triangles."""

    a, b, c = sierpinski_corners(width, height)
    if depth == 0:
        yield Triangle(a, b, c)
        return
    ab = midpoint(a, b)
    bc = midpoint(b, c)
    ca = midpoint(c, a)
    for corner in ((a, ab, ca), (ab, b, bc), (ca, bc, c)):
        if cancel is not None:
            cancel.check()
        for p, q, r in sierpinski(*corner, depth - 1):
            yield Triangle(p, q, r)
