"""Escape-time iteration for the Mandelbrot set."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

import numpy as np
import tensorflow as tf

from .color import shade
from .view import PixelPlane, validate_zoom

if TYPE_CHECKING:
    from .renderer import CancelToken

HORIZON_SQUARED = 4.0
BASE_ITERATIONS = 100
MAX_ITERATIONS_CEILING = 5000
DEFAULT_BAND_ROWS = 64


@dataclass(frozen=True)
class EscapeSample:
    """Outcome of iterating a single point."""

    iterations: int
    magnitude_squared: float
    escaped: bool


@dataclass(frozen=True)
class EscapeField:
    """Per-pixel iteration counts and final ``|z|^2`` for a band of rows."""

    iterations: np.ndarray
    magnitude_squared: np.ndarray
    max_iterations: int

    @property
    def escaped(self) -> np.ndarray:
        return self.iterations < self.max_iterations


def max_iterations_for(zoom: float) -> int:
    """Iteration budget: ``round(100 * sqrt(zoom))`` capped at the ceiling."""

    zoom = validate_zoom(zoom)
    # Half-up rounding; Python's round() would round 0.5 to even.
    budget = int(math.floor(BASE_ITERATIONS * math.sqrt(zoom) + 0.5))
    return max(1, min(MAX_ITERATIONS_CEILING, budget))


def escape_sample(re: float, im: float, max_iterations: int) -> EscapeSample:
    """Iterate ``z <- z^2 + c`` from ``z = 0`` for ``c = re + im*i``."""

    zr = zi = 0.0
    n = 0
    while zr * zr + zi * zi <= HORIZON_SQUARED and n < max_iterations:
        zr, zi = zr * zr - zi * zi + re, 2 * zr * zi + im
        n += 1
    return EscapeSample(
        iterations=n,
        magnitude_squared=zr * zr + zi * zi,
        escaped=n < max_iterations,
    )


def smooth_fraction(sample: EscapeSample, max_iterations: int) -> float:
    if not sample.escaped:
        return sample.iterations / max_iterations
    log_zn = math.log(sample.magnitude_squared) / 2
    nu = math.log(log_zn / math.log(2)) / math.log(2)
    return (sample.iterations + 1 - nu) / max_iterations


def smooth_fractions(field: EscapeField) -> np.ndarray:
    """Vectorised ``smooth_fraction`` over an ``EscapeField``."""

    iters = field.iterations.astype(np.float64)
    escaped = field.escaped
    # Only escaped pixels have |z|^2 > 4; the others get a placeholder so the
    # logarithms stay finite.
    mag = np.where(escaped, field.magnitude_squared, HORIZON_SQUARED * 4)
    log_zn = np.log(mag) / 2
    nu = np.log(log_zn / np.log(2)) / np.log(2)
    smooth = (iters + 1 - nu) / field.max_iterations
    return np.where(escaped, smooth, iters / field.max_iterations)


@tf.function
def _escape_step(
    zr: tf.Tensor, zi: tf.Tensor, cr: tf.Tensor, ci: tf.Tensor, ns: tf.Tensor, active: tf.Tensor
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Advance every point that has not escaped by one iteration."""

    zr_new = zr * zr - zi * zi + cr
    zi_new = 2.0 * zr * zi + ci
    zr = tf.where(active, zr_new, zr)
    zi = tf.where(active, zi_new, zi)
    ns = ns + tf.cast(active, tf.int32)
    horizon = tf.constant(HORIZON_SQUARED, dtype=zr.dtype)
    active = tf.logical_and(active, zr * zr + zi * zi <= horizon)
    return zr, zi, ns, active


@tf.function(reduce_retracing=True)
def _escape_run(
    cr: tf.Tensor, ci: tf.Tensor, max_iterations: tf.Tensor
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Iterate a band of points with a TensorFlow while loop."""

    max_iterations = tf.cast(max_iterations, tf.int32)
    i = tf.constant(0, dtype=tf.int32)
    zr = tf.zeros_like(cr)
    zi = tf.zeros_like(ci)
    ns = tf.zeros_like(cr, dtype=tf.int32)
    active = tf.ones_like(ns, tf.bool)

    def cond(i, zr, zi, ns, active):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, zr, zi, ns, active):
        zr, zi, ns, active = _escape_step(zr, zi, cr, ci, ns, active)
        return i + 1, zr, zi, ns, active

    return tf.while_loop(cond, body, (i, zr, zi, ns, active))


def compute_band(
    re_axis: np.ndarray,
    im_axis: np.ndarray,
    max_iterations: int,
    *,
    device: Optional[str] = None,
) -> EscapeField:
    """Iterate the grid spanned by ``re_axis`` (columns) and ``im_axis`` (rows)."""

    budget = tf.constant(max_iterations, dtype=tf.int32)
    with tf.device(device if device is not None else "/CPU:0"):
        re_tf = tf.convert_to_tensor(re_axis, dtype=tf.float64)
        im_tf = tf.convert_to_tensor(im_axis, dtype=tf.float64)
        cr, ci = tf.meshgrid(re_tf, im_tf)
        _, zr, zi, ns, _ = _escape_run(cr, ci, budget)
        magnitude = zr * zr + zi * zi

    return EscapeField(
        iterations=ns.numpy(),
        magnitude_squared=magnitude.numpy(),
        max_iterations=max_iterations,
    )


class EscapeTimeEngine:
    """Paints a Mandelbrot raster band by band."""

    def __init__(
        self,
        *,
        band_rows: int = DEFAULT_BAND_ROWS,
        colormap: Optional[str] = None,
        device: Optional[str] = None,
    ) -> None:
        if band_rows <= 0:
            raise ValueError(f"band_rows must be positive, got {band_rows}")
        self.band_rows = band_rows
        self.colormap = colormap
        self.device = device

    def render(
        self,
        plane: PixelPlane,
        max_iterations: int,
        cancel: Optional["CancelToken"] = None,
    ) -> np.ndarray:
        """Return an RGBA ``uint8`` raster of shape ``(height, width, 4)``."""

        raster = np.zeros((plane.height, plane.width, 4), dtype=np.uint8)
        re_axis = plane.real_axis()
        im_axis = plane.imag_axis()

        for top in range(0, plane.height, self.band_rows):
            if cancel is not None:
                cancel.check()
            bottom = min(top + self.band_rows, plane.height)
            field = compute_band(re_axis, im_axis[top:bottom], max_iterations, device=self.device)
            raster[top:bottom] = shade(smooth_fractions(field), self.colormap)

        if cancel is not None:
            cancel.check()
        return raster
