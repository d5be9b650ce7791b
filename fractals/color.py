"""HSL colour conversion used to paint escape-time fractions."""

from __future__ import annotations

import math
from typing import Callable, Optional

import numpy as np
from matplotlib import colormaps as _mpl_colormaps

HUE_START = 0.66
SATURATION = 1.0
LIGHTNESS = 0.5


def _hue_to_channel(p: float, q: float, t: float) -> float:
    if t < 0:
        t += 1
    if t > 1:
        t -= 1
    if t < 1 / 6:
        return p + (q - p) * 6 * t
    if t < 1 / 2:
        return q
    if t < 2 / 3:
        return p + (q - p) * (2 / 3 - t) * 6
    return p


def _to_byte(value: float) -> int:
    return int(math.floor(value * 255 + 0.5))


def hsl_to_rgb(h: float, s: float, l: float) -> tuple[int, int, int]:
    """Convert HSL (each nominally in ``[0, 1]``) to an 8-bit RGB triple.

    The hue wraps, so ``h=-0.1`` and ``h=0.9`` give the same colour.
    """

    if s == 0:
        r = g = b = l
    else:
        h = h % 1.0
        q = l * (1 + s) if l < 0.5 else l + s - l * s
        p = 2 * l - q
        r = _hue_to_channel(p, q, h + 1 / 3)
        g = _hue_to_channel(p, q, h)
        b = _hue_to_channel(p, q, h - 1 / 3)
    return (_to_byte(r), _to_byte(g), _to_byte(b))


def _hue_to_channel_array(p: np.ndarray, q: np.ndarray, t: np.ndarray) -> np.ndarray:
    t = np.where(t < 0, t + 1, t)
    t = np.where(t > 1, t - 1, t)
    return np.select(
        [t < 1 / 6, t < 1 / 2, t < 2 / 3],
        [p + (q - p) * 6 * t, q, p + (q - p) * (2 / 3 - t) * 6],
        default=p,
    )


def hsl_to_rgb_array(h: np.ndarray, s: float, l: float) -> np.ndarray:
    """Vectorised ``hsl_to_rgb``; returns ``uint8`` with a trailing RGB axis."""

    h = np.asarray(h, dtype=np.float64)
    if s == 0:
        channels = [np.full(h.shape, l, dtype=np.float64)] * 3
    else:
        h = np.mod(h, 1.0)
        q = l * (1 + s) if l < 0.5 else l + s - l * s
        p = 2 * l - q
        p_arr = np.full(h.shape, p, dtype=np.float64)
        q_arr = np.full(h.shape, q, dtype=np.float64)
        channels = [
            _hue_to_channel_array(p_arr, q_arr, h + 1 / 3),
            _hue_to_channel_array(p_arr, q_arr, h),
            _hue_to_channel_array(p_arr, q_arr, h - 1 / 3),
        ]
    rgb = np.stack(channels, axis=-1)
    return np.floor(rgb * 255 + 0.5).astype(np.uint8)


def escape_hue(t: np.ndarray | float) -> np.ndarray | float:
    """Blue for fast escapes sweeping to red for points that never escape."""

    return HUE_START - HUE_START * t


def get_colormap(name: str) -> Callable[[np.ndarray], np.ndarray]:
    return _mpl_colormaps.get_cmap(name)


def shade(t: np.ndarray, colormap: Optional[str] = None) -> np.ndarray:
    """Map escape fractions ``t`` to an RGBA ``uint8`` raster."""

    t = np.asarray(t, dtype=np.float64)
    rgba = np.empty(t.shape + (4,), dtype=np.uint8)
    if colormap is None:
        rgba[..., :3] = hsl_to_rgb_array(escape_hue(t), SATURATION, LIGHTNESS)
    else:
        cmap = get_colormap(colormap)
        mapped = np.array(cmap(np.clip(t, 0.0, 1.0)), copy=True)
        rgba[..., :3] = np.uint8(np.clip(mapped[..., :3] * 255, 0, 255))
    rgba[..., 3] = 255
    return rgba
