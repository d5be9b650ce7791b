"""Exceptions raised by the fractal rendering core."""

from __future__ import annotations


class FractalError(Exception):
    """Base class for recoverable rendering errors."""


class InvalidZoomFactor(FractalError, ValueError):
    """Raised when a zoom factor is not a positive finite number."""

    def __init__(self, zoom: float) -> None:
        super().__init__(f"zoom factor must be a positive finite number, got {zoom!r}")
        self.zoom = zoom


class UnknownSelection(FractalError, ValueError):
    """Raised for a fractal identifier that is not recognised."""

    def __init__(self, selection: object, choices: tuple[str, ...]) -> None:
        super().__init__(f"unknown fractal {selection!r}; expected one of: {', '.join(choices)}")
        self.selection = selection
        self.choices = choices


class RenderCancelled(FractalError):
    """Raised when a newer render request made the current one stale."""
