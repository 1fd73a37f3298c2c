"""Periodic preview of a raster while it is being generated."""

from __future__ import annotations

import logging
import threading

from .config import DEFAULT_DRAW_INTERVAL_MS
from .display import DisplaySurface
from .raster import RasterBuffer

logger = logging.getLogger(__name__)


class ProgressiveRenderer:
    """Flush ``buffer`` to ``surface`` every ``interval_ms`` until finished.

    Preview frames are read without any lock while workers write, so they can
    be torn. :meth:`finish` must be called after the scheduler has joined its
    workers; its final flush then always shows the complete buffer.
    """

    def __init__(self, buffer: RasterBuffer, surface: DisplaySurface, interval_ms: int = DEFAULT_DRAW_INTERVAL_MS) -> None:
        self.buffer = buffer
        self.surface = surface
        self.interval_ms = interval_ms if interval_ms > 0 else DEFAULT_DRAW_INTERVAL_MS
        self.frames_flushed = 0
        self._done = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> "ProgressiveRenderer":
        if self._thread is not None:
            raise RuntimeError("progressive renderer already started")
        self._thread = threading.Thread(target=self._loop, name="progressive-renderer", daemon=True)
        self._thread.start()
        return self

    def _loop(self) -> None:
        interval = self.interval_ms / 1000.0
        while not self._done.wait(interval):
            self._flush()

    def _flush(self) -> None:
        self.buffer.flush_to_display(self.surface)
        self.frames_flushed += 1

    def finish(self) -> None:
        self._done.set()
        if self._thread is not None:
            self._thread.join()
        self._flush()
        logger.debug("progressive renderer finished after %d frames", self.frames_flushed)

    def __enter__(self) -> "ProgressiveRenderer":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.finish()
