"""The BGRA pixel store written by generation workers."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
import PIL.Image

from .colors import Color
from .display import DisplaySurface, bgra_to_rgba
from .viewport import DEFAULT_VIEWPORT, Viewport

BYTES_PER_PIXEL = 4


class PixelIndexError(IndexError):
    """Raised when a pixel write falls outside the raster."""


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


@dataclass(eq=False)
class RasterBuffer:
    """A ``height`` x ``width`` BGRA raster plus the viewport it samples.

    ``pixels`` is a flat byte array; the pixel at ``(row, col)`` starts at
    ``row * stride + col * bytes_per_pixel``.
    """

    width: int
    height: int
    viewport: Viewport = DEFAULT_VIEWPORT
    zoom_index: int = 0
    bytes_per_pixel: int = BYTES_PER_PIXEL
    pixels: np.ndarray = field(default=None, repr=False)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"raster dimensions must be positive, got {self.width}x{self.height}")
        size = self.height * self.stride
        if self.pixels is None:
            self.pixels = np.zeros(size, dtype=np.uint8)
        elif self.pixels.shape != (size,) or self.pixels.dtype != np.uint8:
            raise ValueError(f"pixel array must be a flat uint8 array of {size} bytes")

    @classmethod
    def allocate(cls, width: int, height: int, viewport: Viewport = DEFAULT_VIEWPORT) -> "RasterBuffer":
        return cls(width=width, height=height, viewport=viewport)

    @property
    def stride(self) -> int:
        return self.width * self.bytes_per_pixel

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def byte_index(self, row: int, col: int) -> int:
        return row * self.stride + col * self.bytes_per_pixel

    def pixel_coordinates(self, byte_index: int) -> tuple[int, int]:
        return byte_index // self.stride, (byte_index % self.stride) // self.bytes_per_pixel

    def write_pixel(self, byte_index: int, color: Color) -> None:
        if byte_index < 0 or byte_index + 4 > self.pixels.size:
            raise PixelIndexError(
                f"pixel write at byte {byte_index} is outside a raster of {self.pixels.size} bytes"
            )
        self.pixels[byte_index:byte_index + 4] = (color.b, color.g, color.r, color.a)

    def color_at(self, row: int, col: int) -> Color:
        index = self.byte_index(row, col)
        b, g, r, a = (int(v) for v in self.pixels[index:index + 4])
        return Color(r, g, b, a)

    def copy(self) -> "RasterBuffer":
        return RasterBuffer(
            width=self.width,
            height=self.height,
            viewport=self.viewport,
            zoom_index=self.zoom_index,
            bytes_per_pixel=self.bytes_per_pixel,
            pixels=self.pixels.copy(),
        )

    def flush_to_display(self, surface: DisplaySurface) -> None:
        """Hand the current bytes to ``surface``.

        This does not synchronize with generation workers, so a frame taken
        mid-generation may mix old and new pixels.
        """

        surface.present(self.pixels, self.width, self.height)

    def to_rgba(self) -> np.ndarray:
        return np.ascontiguousarray(bgra_to_rgba(self.pixels, self.width, self.height))

    def to_image(self) -> PIL.Image.Image:
        return PIL.Image.fromarray(self.to_rgba())

    def export(self, output_path: Path, image_format: str = "png") -> Path:
        """Write the raster to ``output_path`` using the provided format."""

        output_path = Path(output_path)
        pil_format = _pil_format_name(image_format)
        image = self.to_image()
        if pil_format in {"JPEG", "BMP"}:
            image = image.convert("RGB")
        output_path.parent.mkdir(parents=True, exist_ok=True)
        image.save(str(output_path), format=pil_format)
        return output_path
