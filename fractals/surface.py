"""Drawing surfaces the renderer paints onto."""

from __future__ import annotations

from typing import Optional, Protocol

import numpy as np
import PIL.Image
import PIL.ImageColor
import PIL.ImageDraw

from .vector import Point, Primitive, Segment, Triangle
from .view import Affine


class Surface(Protocol):
    width: int
    height: int

    def clear(self) -> None: ...

    def set_transform(self, transform: Affine) -> None: ...

    def stroke_line(self, start: Point, end: Point, width: float, color: str) -> None: ...

    def fill_polygon(self, points: tuple[Point, ...], color: str) -> None: ...

    def put_image(self, rgba: np.ndarray) -> None: ...


class RecordingSurface:
    """Keeps the primitive sequence and raster instead of drawing pixels."""

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.transform = Affine.identity()
        self.primitives: list[Primitive] = []
        self.raster: Optional[np.ndarray] = None

    def clear(self) -> None:
        self.transform = Affine.identity()
        self.primitives = []
        self.raster = None

    def set_transform(self, transform: Affine) -> None:
        self.transform = transform

    def stroke_line(self, start: Point, end: Point, width: float, color: str) -> None:
        self.primitives.append(Segment(start, end, color, width))

    def fill_polygon(self, points: tuple[Point, ...], color: str) -> None:
        a, b, c = points
        self.primitives.append(Triangle(a, b, c, color))

    def put_image(self, rgba: np.ndarray) -> None:
        self.raster = np.array(rgba, dtype=np.uint8, copy=True)


class RasterSurface:
    """Pillow-backed RGBA canvas that applies the current transform itself."""

    def __init__(self, width: int, height: int, background: tuple[int, int, int, int] = (0, 0, 0, 0)) -> None:
        self.width = width
        self.height = height
        self.background = background
        self.transform = Affine.identity()
        self.image = PIL.Image.new("RGBA", (width, height), background)
        self._draw = PIL.ImageDraw.Draw(self.image, "RGBA")

    def clear(self) -> None:
        self.transform = Affine.identity()
        self.image.paste(self.background, [0, 0, self.width, self.height])

    def set_transform(self, transform: Affine) -> None:
        self.transform = transform

    def _device_points(self, points) -> list[tuple[float, float]]:
        return [tuple(p) for p in self.transform.apply_many(np.asarray(points, dtype=np.float64))]

    def stroke_line(self, start: Point, end: Point, width: float, color: str) -> None:
        device_width = max(1, int(round(width * self.transform.scale)))
        self._draw.line(self._device_points([start, end]), fill=PIL.ImageColor.getrgb(color), width=device_width)

    def fill_polygon(self, points: tuple[Point, ...], color: str) -> None:
        self._draw.polygon(self._device_points(points), fill=PIL.ImageColor.getrgb(color))

    def put_image(self, rgba: np.ndarray) -> None:
        self.image.paste(PIL.Image.fromarray(np.ascontiguousarray(rgba, dtype=np.uint8)), (0, 0))

    def to_array(self) -> np.ndarray:
        return np.array(self.image, copy=True)
