"""Vectorised escape-time evaluation of a whole raster with TensorFlow."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
import tensorflow as tf

from .colors import select_color
from .config import GenerationConfig
from .kernel import BAILOUT_RADIUS
from .raster import RasterBuffer
from .viewport import Viewport, scale_factors


@dataclass(frozen=True)
class GridResult:
    """Escape counts and final ``z`` values for every pixel of a raster."""

    iterations: np.ndarray
    final_z: np.ndarray
    viewport: Viewport
    max_iterations: int


@tf.function
def _escape_time(cs: tf.Tensor, max_iterations: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor]:
    """Iterate every sample from ``z = 0`` with the same stopping rule as :func:`iterate`.

    A sample stops changing as soon as ``|z|`` reaches the bail-out radius, so
    its count and final ``z`` match the scalar kernel exactly.
    """

    radius = tf.constant(BAILOUT_RADIUS, dtype=tf.float64)

    def keep_going(step, zs, counts):
        return tf.logical_and(step < max_iterations, tf.reduce_any(tf.abs(zs) < radius))

    def advance(step, zs, counts):
        inside = tf.abs(zs) < radius
        zs = tf.where(inside, zs * zs + cs, zs)
        return step + 1, zs, counts + tf.cast(inside, tf.int32)

    start = (tf.constant(0, dtype=tf.int32), tf.zeros_like(cs), tf.zeros(tf.shape(cs), dtype=tf.int32))
    _, zs, counts = tf.while_loop(keep_going, advance, start)
    return counts, zs


def sample_points(viewport: Viewport, width: int, height: int) -> np.ndarray:
    """Complex sample of every pixel, laid out ``(height, width)`` like the raster."""

    x_scale, y_scale = scale_factors(viewport, width, height)
    real = np.float64(viewport.left) + np.arange(width, dtype=np.float64) * np.float64(x_scale)
    imag = np.float64(viewport.top) - np.arange(height, dtype=np.float64) * np.float64(y_scale)
    return real[np.newaxis, :] + 1j * imag[:, np.newaxis]


def compute_grid(
    viewport: Viewport,
    width: int,
    height: int,
    max_iterations: int,
    *,
    device: Optional[str] = None,
) -> GridResult:
    """Run the escape-time iteration for all pixels at once."""

    if max_iterations <= 0:
        raise ValueError(f"max_iterations must be positive, got {max_iterations}")

    points = sample_points(viewport, width, height)
    with tf.device(device if device is not None else "/CPU:0"):
        cs = tf.convert_to_tensor(points, dtype=tf.complex128)
        counts, zs = _escape_time(cs, tf.constant(max_iterations, dtype=tf.int32))

    return GridResult(
        iterations=counts.numpy(),
        final_z=zs.numpy(),
        viewport=viewport,
        max_iterations=max_iterations,
    )


def render_grid(buffer: RasterBuffer, config: GenerationConfig, *, device: Optional[str] = None) -> GridResult:
    """Fill ``buffer`` in one pass using :func:`compute_grid`.

    There is no cancellation or preview on this path.
    """

    result = compute_grid(buffer.viewport, buffer.width, buffer.height, config.max_iterations, device=device)
    scheme = config.color_scheme
    for row in range(buffer.height):
        for col in range(buffer.width):
            color = select_color(
                int(result.iterations[row, col]),
                complex(result.final_z[row, col]),
                config.max_iterations,
                scheme,
            )
            buffer.write_pixel(buffer.byte_index(row, col), color)
    return result
