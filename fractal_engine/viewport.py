"""Mapping between raster pixels and the complex plane."""

from __future__ import annotations

from dataclasses import dataclass

MIN_SELECTION_PIXELS = 2


@dataclass(frozen=True)
class Viewport:
    """Rectangular region of the complex plane mapped onto a raster."""

    left: float
    right: float
    top: float
    bottom: float

    def __post_init__(self) -> None:
        if not self.right > self.left:
            raise ValueError(f"viewport right ({self.right}) must be greater than left ({self.left})")
        if not self.top > self.bottom:
            raise ValueError(f"viewport top ({self.top}) must be greater than bottom ({self.bottom})")

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.top - self.bottom


DEFAULT_VIEWPORT = Viewport(left=-2.0, right=0.9, top=1.4, bottom=-1.4)


def scale_factors(viewport: Viewport, width: int, height: int) -> tuple[float, float]:
    """Return the complex-plane extent of one pixel along each axis."""

    x_scale = (viewport.right - viewport.left) / width
    y_scale = (viewport.top - viewport.bottom) / height
    return x_scale, y_scale


def pixel_to_complex(
    pixel_index: int,
    viewport: Viewport,
    stride: int,
    bytes_per_pixel: int,
    x_scale: float,
    y_scale: float,
) -> complex:
    """Map the byte offset of a pixel to the point it samples.

    ``pixel_index`` is an offset into the raster's byte array, so the row is
    found through the stride and the column through the pixel width.
    """

    row = pixel_index // stride
    col = (pixel_index % stride) // bytes_per_pixel
    imag = viewport.top - row * y_scale
    real = viewport.left + col * x_scale
    return complex(real, imag)


def complex_to_pixel(c: complex, viewport: Viewport, x_scale: float, y_scale: float) -> tuple[int, int]:
    row = int(round((viewport.top - c.imag) / y_scale))
    col = int(round((c.real - viewport.left) / x_scale))
    return row, col


def zoom_in_region(
    viewport: Viewport,
    x_scale: float,
    y_scale: float,
    rect_top: float,
    rect_left: float,
    rect_width: float,
    rect_height: float,
) -> Viewport:
    """Translate a device-pixel selection rectangle into a new viewport.

    The selection is given relative to the top-left corner of the raster.
    Rejecting clicks that are too small to be a drag is the caller's job,
    see :func:`is_drag_selection`.
    """

    left = viewport.left + rect_left * x_scale
    top = viewport.top - rect_top * y_scale
    right = left + rect_width * x_scale
    bottom = top - rect_height * y_scale
    return Viewport(left=left, right=right, top=top, bottom=bottom)


def is_drag_selection(rect_width: float, rect_height: float) -> bool:
    return rect_width > MIN_SELECTION_PIXELS and rect_height > MIN_SELECTION_PIXELS
