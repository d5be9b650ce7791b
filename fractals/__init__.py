"""Public API for the fractal explorer core."""

from .color import hsl_to_rgb, hsl_to_rgb_array, shade
from .errors import FractalError, InvalidZoomFactor, RenderCancelled, UnknownSelection
from .escape import (
    EscapeSample,
    EscapeTimeEngine,
    escape_sample,
    max_iterations_for,
    smooth_fraction,
)
from .renderer import CancelSource, CancelToken, FractalRenderer, RenderOutput, budget_for, render
from .surface import RasterSurface, RecordingSurface, Surface
from .vector import Segment, Triangle, adaptive_depth, koch_curve, sierpinski
from .view import (
    Affine,
    FractalSelection,
    PixelPlane,
    ViewState,
    ViewStore,
    ViewTransform,
    clamp_zoom,
    pixel_to_complex,
)

__all__ = [
    "Affine",
    "CancelSource",
    "CancelToken",
    "EscapeSample",
    "EscapeTimeEngine",
    "FractalError",
    "FractalRenderer",
    "FractalSelection",
    "InvalidZoomFactor",
    "PixelPlane",
    "RasterSurface",
    "RecordingSurface",
    "RenderCancelled",
    "RenderOutput",
    "Segment",
    "Surface",
    "Triangle",
    "UnknownSelection",
    "ViewState",
    "ViewStore",
    "ViewTransform",
    "adaptive_depth",
    "budget_for",
    "clamp_zoom",
    "escape_sample",
    "hsl_to_rgb",
    "hsl_to_rgb_array",
    "koch_curve",
    "max_iterations_for",
    "pixel_to_complex",
    "render",
    "shade",
    "sierpinski",
    "smooth_fraction",
]
