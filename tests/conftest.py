import threading

import pytest

from fractal_engine import ColorScheme, GenerationConfig, SegmentScheduler, iterate


class BlockingKernel:
    """Mandelbrot kernel that parks every worker until ``release`` is set."""

    def __init__(self):
        self.entered = threading.Event()
        self.release = threading.Event()

    def compute(self, c, max_iterations):
        self.entered.set()
        self.release.wait(5)
        return iterate(c, max_iterations)


class CancellingKernel:
    """Cancel the owning scheduler once ``after`` points have been computed."""

    def __init__(self, after):
        self.after = after
        self.calls = 0
        self.scheduler = None
        self._lock = threading.Lock()

    def compute(self, c, max_iterations):
        with self._lock:
            self.calls += 1
            if self.calls == self.after:
                self.scheduler.cancel()
        return iterate(c, max_iterations)


class FailingKernel:
    def compute(self, c, max_iterations):
        raise RuntimeError("kernel failure")


class FailOnceKernel:
    """Raise on the first point it sees, then behave like the Mandelbrot kernel."""

    def __init__(self):
        self.failed = False
        self._lock = threading.Lock()

    def compute(self, c, max_iterations):
        with self._lock:
            first, self.failed = not self.failed, True
        if first:
            raise RuntimeError("first render fails")
        return iterate(c, max_iterations)


@pytest.fixture
def small_config():
    return GenerationConfig(max_iterations=40, segment_count=2, color_scheme=ColorScheme.GOLD, draw_interval_ms=5)


@pytest.fixture
def scheduler():
    with SegmentScheduler() as sched:
        yield sched


@pytest.fixture
def blocking_kernel():
    kernel = BlockingKernel()
    yield kernel
    kernel.release.set()


@pytest.fixture
def cancelling_kernel_factory():
    return CancellingKernel


@pytest.fixture
def failing_kernel():
    return FailingKernel()


@pytest.fixture
def fail_once_kernel_factory():
    return FailOnceKernel
