"""Orchestration: pick an engine for the selected fractal and paint a surface."""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .errors import RenderCancelled
from .escape import EscapeTimeEngine, max_iterations_for
from .surface import RecordingSurface, Surface
from .vector import (
    KOCH_BASE_DEPTH,
    KOCH_MAX_DEPTH,
    SIERPINSKI_BASE_DEPTH,
    SIERPINSKI_MAX_DEPTH,
    Primitive,
    adaptive_depth,
    koch_snowflake,
    sierpinski_triangle,
)
from .view import Affine, FractalSelection, ViewState, ViewTransform


class CancelSource:
    """Generation counter; issuing a new token makes every older one stale."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self.generation = 0

    def issue(self) -> "CancelToken":
        self.generation = next(self._counter)
        return CancelToken(self, self.generation)


@dataclass(frozen=True)
class CancelToken:
    source: CancelSource
    generation: int

    @property
    def stale(self) -> bool:
        return self.source.generation != self.generation

    def check(self) -> None:
        if self.stale:
            raise RenderCancelled(
                f"render generation {self.generation} superseded by {self.source.generation}"
            )


@dataclass(frozen=True)
class RenderOutput:
    """What a render produced: a raster for Mandelbrot, primitives otherwise."""

    selection: FractalSelection
    width: int
    height: int
    transform: Affine
    budget: int
    raster: Optional[np.ndarray] = None
    primitives: tuple[Primitive, ...] = ()

    @property
    def is_raster(self) -> bool:
        return self.raster is not None


def budget_for(selection: FractalSelection, zoom: float) -> int:
    """Recursion depth for vector fractals, iteration cap for Mandelbrot."""

    if selection is FractalSelection.KOCH:
        return adaptive_depth(KOCH_BASE_DEPTH, zoom, KOCH_MAX_DEPTH)
    if selection is FractalSelection.SIERPINSKI:
        return adaptive_depth(SIERPINSKI_BASE_DEPTH, zoom, SIERPINSKI_MAX_DEPTH)
    return max_iterations_for(zoom)


class FractalRenderer:
    def __init__(self, escape_engine: Optional[EscapeTimeEngine] = None) -> None:
        self.escape_engine = escape_engine or EscapeTimeEngine()

    def render(
        self,
        selection: FractalSelection | str,
        view: ViewState,
        surface: Surface,
        cancel: Optional[CancelToken] = None,
    ) -> int:
        """Paint ``selection`` at ``view`` onto ``surface``; returns the budget used."""

        selection = FractalSelection.parse(selection)
        transform = ViewTransform(surface.width, surface.height, view)
        budget = budget_for(selection, view.zoom)

        surface.clear()
        surface.set_transform(Affine.identity())

        if selection is FractalSelection.MANDELBROT:
            raster = self.escape_engine.render(transform.pixel_plane(), budget, cancel)
            surface.put_image(raster)
            return budget

        surface.set_transform(transform.vector_affine())
        if selection is FractalSelection.KOCH:
            for segment in koch_snowflake(surface.width, surface.height, budget, view.zoom, cancel):
                surface.stroke_line(segment.start, segment.end, segment.width, segment.color)
        else:
            for triangle in sierpinski_triangle(surface.width, surface.height, budget, cancel):
                surface.fill_polygon(triangle.points, triangle.color)
        return budget


def render(
    selection: FractalSelection | str,
    view: ViewState,
    width: int,
    height: int,
    *,
    renderer: Optional[FractalRenderer] = None,
    cancel: Optional[CancelToken] = None,
) -> RenderOutput:
    """Render without a caller-supplied surface and return what was drawn."""

    selection = FractalSelection.parse(selection)
    surface = RecordingSurface(width, height)
    budget = (renderer or FractalRenderer()).render(selection, view, surface, cancel)
    return RenderOutput(
        selection=selection,
        width=width,
        height=height,
        transform=surface.transform,
        budget=budget,
        raster=surface.raster,
        primitives=tuple(surface.primitives),
    )
