"""View state and the coordinate mappings derived from it."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum

import numpy as np

from .errors import InvalidZoomFactor, UnknownSelection

ZOOM_STEP = 1.2
MIN_ZOOM = 1e-6

# Zoom focal point as a fraction of the canvas, deliberately above centre.
ANCHOR_X = 0.5
ANCHOR_Y = 0.4755

BASE_SPAN = 3.0
PLANE_CENTER = (-0.5, 0.0)


class FractalSelection(str, Enum):
    KOCH = "koch"
    SIERPINSKI = "sierpinski"
    MANDELBROT = "mandelbrot"

    @classmethod
    def parse(cls, value: "FractalSelection | str") -> "FractalSelection":
        if isinstance(value, cls):
            return value
        for member in cls:
            if member.value == value:
                return member
        raise UnknownSelection(value, tuple(member.value for member in cls))

    @property
    def is_vector(self) -> bool:
        return self is not FractalSelection.MANDELBROT


def validate_zoom(zoom: float) -> float:
    zoom = float(zoom)
    if not math.isfinite(zoom) or zoom <= 0.0:
        raise InvalidZoomFactor(zoom)
    return zoom


def clamp_zoom(zoom: float) -> float:
    """Clamp ``zoom`` to ``MIN_ZOOM`` instead of rejecting it."""

    if math.isnan(zoom):
        raise InvalidZoomFactor(zoom)
    return max(float(zoom), MIN_ZOOM)


@dataclass(frozen=True)
class ViewState:
    """Immutable snapshot of the zoom factor and pan offset (in pixels)."""

    zoom: float = 1.0
    pan: tuple[float, float] = (0.0, 0.0)

    def __post_init__(self) -> None:
        validate_zoom(self.zoom)
        object.__setattr__(self, "pan", (float(self.pan[0]), float(self.pan[1])))

    def zoom_in(self, step: float = ZOOM_STEP) -> "ViewState":
        return replace(self, zoom=self.zoom * step)

    def zoom_out(self, step: float = ZOOM_STEP) -> "ViewState":
        return replace(self, zoom=clamp_zoom(self.zoom / step))

    def panned(self, dx: float, dy: float) -> "ViewState":
        return replace(self, pan=(self.pan[0] + dx, self.pan[1] + dy))


@dataclass
class ViewStore:
    """Mutable holder owned by the shell; hands out immutable snapshots."""

    state: ViewState = field(default_factory=ViewState)

    def zoom_in(self) -> ViewState:
        self.state = self.state.zoom_in()
        return self.state

    def zoom_out(self) -> ViewState:
        self.state = self.state.zoom_out()
        return self.state

    def drag(self, dx: float, dy: float) -> ViewState:
        self.state = self.state.panned(dx, dy)
        return self.state

    def snapshot(self) -> ViewState:
        return self.state


@dataclass(frozen=True)
class Affine:
    """2D affine matrix in canvas order: ``x' = a*x + c*y + e``, ``y' = b*x + d*y + f``."""

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    e: float = 0.0
    f: float = 0.0

    @classmethod
    def identity(cls) -> "Affine":
        return cls()

    @classmethod
    def translation(cls, tx: float, ty: float) -> "Affine":
        return cls(e=tx, f=ty)

    @classmethod
    def scaling(cls, sx: float, sy: float | None = None) -> "Affine":
        return cls(a=sx, d=sx if sy is None else sy)

    @property
    def matrix(self) -> np.ndarray:
        return np.array(
            [[self.a, self.c, self.e], [self.b, self.d, self.f], [0.0, 0.0, 1.0]],
            dtype=np.float64,
        )

    @property
    def scale(self) -> float:
        """Uniform scale factor, used to size strokes on raster surfaces."""

        return math.sqrt(abs(self.a * self.d - self.b * self.c))

    def then(self, other: "Affine") -> "Affine":
        """Compose so that ``other`` is applied in the local frame of ``self``."""

        return Affine(
            a=self.a * other.a + self.c * other.b,
            b=self.b * other.a + self.d * other.b,
            c=self.a * other.c + self.c * other.d,
            d=self.b * other.c + self.d * other.d,
            e=self.a * other.e + self.c * other.f + self.e,
            f=self.b * other.e + self.d * other.f + self.f,
        )

    def inverse(self) -> "Affine":
        det = self.a * self.d - self.b * self.c
        if det == 0.0:
            raise ValueError("affine transform is not invertible")
        return Affine(
            a=self.d / det,
            b=-self.b / det,
            c=-self.c / det,
            d=self.a / det,
            e=(self.c * self.f - self.d * self.e) / det,
            f=(self.b * self.e - self.a * self.f) / det,
        )

    def apply(self, point: tuple[float, float]) -> tuple[float, float]:
        x, y = point
        return (self.a * x + self.c * y + self.e, self.b * x + self.d * y + self.f)

    def apply_many(self, points: np.ndarray) -> np.ndarray:
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        out = np.empty_like(pts)
        out[:, 0] = self.a * pts[:, 0] + self.c * pts[:, 1] + self.e
        out[:, 1] = self.b * pts[:, 0] + self.d * pts[:, 1] + self.f
        return out


@dataclass(frozen=True)
class PixelPlane:
    """Mapping from raster pixels to the complex plane for a single render."""

    width: int
    height: int
    scale: float
    offset_re: float
    offset_im: float
    center_re: float = PLANE_CENTER[0]
    center_im: float = PLANE_CENTER[1]

    def real_axis(self) -> np.ndarray:
        xs = np.arange(self.width, dtype=np.float64)
        return (xs - self.width / 2) * self.scale + self.center_re - self.offset_re

    def imag_axis(self) -> np.ndarray:
        ys = np.arange(self.height, dtype=np.float64)
        return (ys - self.height / 2) * self.scale + self.center_im - self.offset_im


def pixel_to_complex(plane: PixelPlane, row: int, col: int) -> tuple[np.float64, np.float64]:
    re = (np.float64(col) - plane.width / 2) * plane.scale + plane.center_re - plane.offset_re
    im = (np.float64(row) - plane.height / 2) * plane.scale + plane.center_im - plane.offset_im
    return np.float64(re), np.float64(im)


@dataclass(frozen=True)
class ViewTransform:
    """Couples a ``ViewState`` to a canvas of ``width`` x ``height`` pixels."""

    width: int
    height: int
    view: ViewState

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"canvas must have positive dimensions, got {self.width}x{self.height}")
        validate_zoom(self.view.zoom)

    @property
    def anchor(self) -> tuple[float, float]:
        return (self.width * ANCHOR_X, self.height * ANCHOR_Y)

    def vector_affine(self) -> Affine:
        cx, cy = self.anchor
        px, py = self.view.pan
        zoom = self.view.zoom
        return (
            Affine.translation(cx + px, cy + py)
            .then(Affine.scaling(zoom))
            .then(Affine.translation(-cx, -cy))
        )

    def pixel_plane(self) -> PixelPlane:
        # Pan enters with the opposite sign to the vector path; kept as-is so
        # dragging the Mandelbrot view behaves the way the explorer always has.
        w, h = self.width, self.height
        scale = BASE_SPAN / min(w, h) / self.view.zoom
        px, py = self.view.pan
        return PixelPlane(
            width=w,
            height=h,
            scale=scale,
            offset_re=(px - w / 2) * scale,
            offset_im=(py - h / 2) * scale,
        )
