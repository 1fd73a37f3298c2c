"""A single exploration session: the live raster, its history and the engine."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from .config import GenerationConfig
from .display import DisplaySurface, FrameRecorder
from .history import ZoomHistory
from .raster import RasterBuffer
from .renderer import ProgressiveRenderer
from .scheduler import GenerationStatus, SegmentScheduler
from .viewport import DEFAULT_VIEWPORT, Viewport, is_drag_selection, scale_factors, zoom_in_region

logger = logging.getLogger(__name__)

STATUS_BUSY = "Processing image, please wait."
STATUS_READY = "Ready."


class FractalSession:
    """Commands a presentation layer issues against the engine.

    Only one render runs at a time. While it runs, commands that would change
    the live raster (render, zoom in/out, restore, resize) are rejected.
    """

    def __init__(
        self,
        width: int,
        height: int,
        config: Optional[GenerationConfig] = None,
        surface: Optional[DisplaySurface] = None,
        scheduler: Optional[SegmentScheduler] = None,
    ) -> None:
        self.width = width
        self.height = height
        self.config = config if config is not None else GenerationConfig()
        self.surface: DisplaySurface = surface if surface is not None else FrameRecorder(max_frames=1)
        self.scheduler = scheduler if scheduler is not None else SegmentScheduler()
        self.history = ZoomHistory()
        self.image = RasterBuffer.allocate(width, height)
        self.last_status: GenerationStatus | None = None
        self._lock = threading.Lock()
        self._busy = False
        self._worker: threading.Thread | None = None
        self._error: BaseException | None = None

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._busy

    @property
    def status(self) -> str:
        return STATUS_BUSY if self.busy else STATUS_READY

    def update_config(self, config: GenerationConfig) -> None:
        self.config = config

    def _claim(self) -> bool:
        with self._lock:
            if self._busy:
                return False
            self._busy = True
            return True

    def _release(self) -> None:
        with self._lock:
            self._busy = False

    def render(self, viewport: Optional[Viewport] = None, wait: bool = True) -> GenerationStatus | None:
        """Render ``viewport`` (default area when omitted) into a fresh raster.

        With ``wait=False`` the render runs on a background thread and
        ``None`` is returned; :meth:`join` waits for it and returns its status.
        """

        if not self._claim():
            logger.info("render rejected, session is busy")
            return GenerationStatus.REJECTED
        return self._start(viewport if viewport is not None else DEFAULT_VIEWPORT, wait)

    def _start(self, viewport: Viewport, wait: bool) -> GenerationStatus | None:
        try:
            buffer = RasterBuffer.allocate(self.width, self.height, viewport)
        except Exception:
            self._release()
            raise
        self.image = buffer
        config = self.config
        previous = self._worker
        if previous is not None:
            previous.join()
            self._worker = None
        self._error = None
        if wait:
            return self._generate(buffer, config)

        self._worker = threading.Thread(
            target=self._generate_in_background,
            args=(buffer, config),
            name="session-render",
            daemon=True,
        )
        self._worker.start()
        return None

    def _render_into(self, buffer: RasterBuffer, config: GenerationConfig) -> GenerationStatus:
        with ProgressiveRenderer(buffer, self.surface, config.resolved_draw_interval_ms()):
            status = self.scheduler.generate(buffer, config)
        self.last_status = status
        logger.info("render of %s finished: %s", buffer.viewport, status.value)
        return status

    def _generate(self, buffer: RasterBuffer, config: GenerationConfig) -> GenerationStatus:
        try:
            return self._render_into(buffer, config)
        finally:
            self._release()

    def _generate_in_background(self, buffer: RasterBuffer, config: GenerationConfig) -> None:
        # Record the error before releasing the session.
        try:
            self._render_into(buffer, config)
        except BaseException as exc:
            logger.error("background render failed", exc_info=True)
            self._error = exc
        finally:
            self._release()

    def join(self, timeout: Optional[float] = None) -> GenerationStatus | None:
        """Wait for a background render; re-raises its error if it failed."""

        worker = self._worker
        if worker is not None:
            worker.join(timeout)
            if worker.is_alive():
                return None
            self._worker = None
        if self._error is not None:
            error, self._error = self._error, None
            raise error
        return self.last_status

    def stop(self) -> None:
        self.scheduler.cancel()

    def zoom_in(
        self,
        rect_top: float,
        rect_left: float,
        rect_width: float,
        rect_height: float,
        wait: bool = True,
    ) -> GenerationStatus | None:
        """Zoom into a selection given in device pixels of the live raster.

        Selections too small to be a drag are ignored and return ``None``.
        The current raster is pushed to the history before rendering.
        """

        if not is_drag_selection(rect_width, rect_height):
            logger.debug("selection %sx%s too small to zoom", rect_width, rect_height)
            return None
        if not self._claim():
            logger.info("zoom rejected, session is busy")
            return GenerationStatus.REJECTED

        current = self.image
        x_scale, y_scale = scale_factors(current.viewport, current.width, current.height)
        viewport = zoom_in_region(current.viewport, x_scale, y_scale, rect_top, rect_left, rect_width, rect_height)
        self.history.push_current(current)
        return self._start(viewport, wait)

    def zoom_out(self, target: RasterBuffer) -> bool:
        """Make a history entry the live raster, forgetting what came after it."""

        if not self._claim():
            logger.info("zoom out rejected, session is busy")
            return False
        try:
            self.image = self.history.pop_to(target)
            self.image.flush_to_display(self.surface)
        finally:
            self._release()
        return True

    def restore(self, wait: bool = True) -> GenerationStatus | None:
        """Forget the zoom history and render the default area."""

        if not self._claim():
            return GenerationStatus.REJECTED
        self.history.clear()
        return self._start(DEFAULT_VIEWPORT, wait)

    def resize(self, width: int, height: int, wait: bool = True) -> GenerationStatus | None:
        if not self._claim():
            return GenerationStatus.REJECTED
        self.width = width
        self.height = height
        return self._start(DEFAULT_VIEWPORT, wait)

    def export(self, output_path: Path, image_format: str = "png") -> Path:
        return self.image.export(output_path, image_format)

    def close(self) -> None:
        self.stop()
        self.join()
        self.scheduler.close()

    def __enter__(self) -> "FractalSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
