"""Public API for the escape-time fractal engine."""

from .colors import Color, ColorScheme, select_color
from .config import GenerationConfig, default_segment_count, parse_iterations
from .display import DisplaySurface, FrameRecorder, GifRecorder, MatplotlibSurface
from .history import ZoomHistory
from .kernel import EscapeTimeKernel, MandelbrotKernel, iterate
from .raster import BYTES_PER_PIXEL, PixelIndexError, RasterBuffer
from .renderer import ProgressiveRenderer
from .scheduler import GenerationStatus, Segment, SegmentScheduler, partition
from .session import FractalSession
from .viewport import (
    DEFAULT_VIEWPORT,
    Viewport,
    complex_to_pixel,
    is_drag_selection,
    pixel_to_complex,
    scale_factors,
    zoom_in_region,
)

__all__ = [
    "BYTES_PER_PIXEL",
    "Color",
    "ColorScheme",
    "DEFAULT_VIEWPORT",
    "DisplaySurface",
    "EscapeTimeKernel",
    "FractalSession",
    "FrameRecorder",
    "GenerationConfig",
    "GenerationStatus",
    "GifRecorder",
    "MandelbrotKernel",
    "MatplotlibSurface",
    "PixelIndexError",
    "ProgressiveRenderer",
    "RasterBuffer",
    "Segment",
    "SegmentScheduler",
    "Viewport",
    "ZoomHistory",
    "complex_to_pixel",
    "default_segment_count",
    "is_drag_selection",
    "iterate",
    "parse_iterations",
    "partition",
    "pixel_to_complex",
    "scale_factors",
    "select_color",
    "zoom_in_region",
]
