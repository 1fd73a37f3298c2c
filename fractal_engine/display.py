"""Display surfaces that receive raw BGRA frames from a raster buffer."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Protocol

import imageio
import numpy as np

logger = logging.getLogger(__name__)


class DisplaySurface(Protocol):
    def present(self, pixels: np.ndarray, width: int, height: int) -> None:
        ...


def bgra_to_rgba(pixels: np.ndarray, width: int, height: int) -> np.ndarray:
    """Reshape a flat BGRA byte array into an ``(height, width, 4)`` RGBA image."""

    frame = np.asarray(pixels, dtype=np.uint8).reshape(height, width, 4)
    return frame[..., [2, 1, 0, 3]]


class FrameRecorder:
    """Keep copies of the frames presented to it, newest last."""

    def __init__(self, max_frames: int | None = None) -> None:
        self.max_frames = max_frames
        self.frames: list[np.ndarray] = []
        self._lock = threading.Lock()

    def present(self, pixels: np.ndarray, width: int, height: int) -> None:
        frame = np.array(pixels, dtype=np.uint8, copy=True)
        with self._lock:
            self.frames.append(frame)
            if self.max_frames is not None and len(self.frames) > self.max_frames:
                del self.frames[0]

    @property
    def latest(self) -> np.ndarray | None:
        with self._lock:
            return self.frames[-1] if self.frames else None


class GifRecorder:
    """Append every presented frame to an animated GIF."""

    def __init__(self, path: Path, duration: float = 0.1) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._writer: Any = imageio.get_writer(str(self.path), mode="I", duration=duration, loop=0)
        self._lock = threading.Lock()
        self.frame_count = 0

    def present(self, pixels: np.ndarray, width: int, height: int) -> None:
        frame = np.ascontiguousarray(bgra_to_rgba(pixels, width, height))
        with self._lock:
            if self._writer is None:
                return
            self._writer.append_data(frame)
            self.frame_count += 1

    def close(self) -> None:
        with self._lock:
            if self._writer is not None:
                self._writer.close()
                self._writer = None
                logger.info("wrote %d preview frames to %s", self.frame_count, self.path)


class MatplotlibSurface:
    """Interactive window that redraws whenever a frame is presented.

    Frames arrive from the preview thread; they are handed over under a lock
    and drawn on the main thread by :meth:`pump`.
    """

    def __init__(self, title: str = "fractal-engine") -> None:
        import matplotlib.pyplot as plt

        self._plt = plt
        self._figure, self._axes = plt.subplots()
        self._figure.canvas.manager.set_window_title(title)
        self._axes.set_axis_off()
        self._artist = None
        self._pending: np.ndarray | None = None
        self._lock = threading.Lock()

    def present(self, pixels: np.ndarray, width: int, height: int) -> None:
        frame = np.array(bgra_to_rgba(pixels, width, height), copy=True)
        with self._lock:
            self._pending = frame

    def pump(self, pause: float = 0.01) -> None:
        with self._lock:
            frame, self._pending = self._pending, None
        if frame is not None:
            if self._artist is None:
                self._artist = self._axes.imshow(frame, interpolation="nearest")
            else:
                self._artist.set_data(frame)
        self._plt.pause(pause)

    def show(self) -> None:
        self.pump()
        self._plt.show()
