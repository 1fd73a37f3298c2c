"""Split a raster into segments and render them on a worker pool."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .colors import select_color
from .config import GenerationConfig
from .kernel import EscapeTimeKernel, MandelbrotKernel
from .raster import RasterBuffer
from .viewport import pixel_to_complex, scale_factors

logger = logging.getLogger(__name__)


class GenerationStatus(Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Segment:
    """Half-open range ``[start, end)`` of pixel indices handled by one worker."""

    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start

    def byte_range(self, bytes_per_pixel: int) -> tuple[int, int]:
        return self.start * bytes_per_pixel, self.end * bytes_per_pixel


def partition(total_pixels: int, segments: int) -> list[Segment]:
    """Divide ``total_pixels`` into ``segments`` contiguous, disjoint ranges.

    Every range holds ``total_pixels // segments`` pixels, except the last,
    which also takes the remainder so that no pixel is left unrendered.
    """

    if segments < 1:
        raise ValueError(f"segments must be >= 1, got {segments}")
    per_segment = total_pixels // segments
    ranges = [Segment(i * per_segment, (i + 1) * per_segment) for i in range(segments)]
    ranges[-1] = Segment(ranges[-1].start, total_pixels)
    return ranges


class SegmentScheduler:
    """Run one generation at a time over a disjoint partition of a raster.

    Workers share nothing but the cancellation event; each writes only to the
    byte range of its own segment, so pixel writes take no lock. A second
    :meth:`generate` call while one is in flight is rejected, not queued.
    """

    def __init__(self, kernel: Optional[EscapeTimeKernel] = None) -> None:
        self.kernel: EscapeTimeKernel = kernel if kernel is not None else MandelbrotKernel()
        self._admission = threading.Lock()
        self._busy = False
        self._cancel = threading.Event()
        self._pool: ThreadPoolExecutor | None = None
        self._pool_size = 0

    @property
    def busy(self) -> bool:
        with self._admission:
            return self._busy

    def cancel(self) -> None:
        """Ask the running generation to stop; returns immediately."""

        self._cancel.set()
        logger.debug("cancellation requested")

    def generate(self, buffer: RasterBuffer, config: GenerationConfig) -> GenerationStatus:
        with self._admission:
            if self._busy:
                logger.info("generation already in flight, request rejected")
                return GenerationStatus.REJECTED
            self._busy = True
            cancel = threading.Event()
            self._cancel = cancel

        try:
            return self._run(buffer, config, cancel)
        finally:
            with self._admission:
                self._busy = False

    def _run(self, buffer: RasterBuffer, config: GenerationConfig, cancel: threading.Event) -> GenerationStatus:
        segments = partition(buffer.pixel_count, config.resolved_segments())
        x_scale, y_scale = scale_factors(buffer.viewport, buffer.width, buffer.height)
        pool = self._ensure_pool(len(segments))

        logger.debug(
            "generating %dx%d raster in %d segments, max_iterations=%d, scheme=%s",
            buffer.width,
            buffer.height,
            len(segments),
            config.max_iterations,
            config.color_scheme.value,
        )

        futures: list[Future] = [
            pool.submit(self._process_segment, buffer, segment, x_scale, y_scale, config, cancel)
            for segment in segments
        ]
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)
        if pending:
            # A worker failed; stop the rest before reporting it.
            cancel.set()
            wait(pending)
        for future in futures:
            error = future.exception()
            if error is not None:
                raise error

        written = sum(future.result() for future in futures)
        if cancel.is_set():
            logger.info("generation cancelled after %d of %d pixels", written, buffer.pixel_count)
            return GenerationStatus.CANCELLED
        logger.debug("generation completed, %d pixels written", written)
        return GenerationStatus.COMPLETED

    def _process_segment(
        self,
        buffer: RasterBuffer,
        segment: Segment,
        x_scale: float,
        y_scale: float,
        config: GenerationConfig,
        cancel: threading.Event,
    ) -> int:
        compute = self.kernel.compute
        max_iterations = config.max_iterations
        scheme = config.color_scheme
        viewport = buffer.viewport
        stride = buffer.stride
        bytes_per_pixel = buffer.bytes_per_pixel

        start, end = segment.byte_range(bytes_per_pixel)
        written = 0
        for pixel_index in range(start, end, bytes_per_pixel):
            if cancel.is_set():
                break
            c = pixel_to_complex(pixel_index, viewport, stride, bytes_per_pixel, x_scale, y_scale)
            count, z = compute(c, max_iterations)
            buffer.write_pixel(pixel_index, select_color(count, z, max_iterations, scheme))
            written += 1
        return written

    def _ensure_pool(self, size: int) -> ThreadPoolExecutor:
        if self._pool is None or self._pool_size != size:
            if self._pool is not None:
                self._pool.shutdown(wait=True)
            self._pool = ThreadPoolExecutor(max_workers=size, thread_name_prefix="segment")
            self._pool_size = size
        return self._pool

    def close(self) -> None:
        with self._admission:
            pool, self._pool = self._pool, None
            self._pool_size = 0
        if pool is not None:
            pool.shutdown(wait=True)

    def __enter__(self) -> "SegmentScheduler":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
