"""Escape-time iteration for a single point of the complex plane."""

from __future__ import annotations

from typing import Protocol

BAILOUT_RADIUS = 2.0


class EscapeTimeKernel(Protocol):
    """Capability shared by every fractal family the scheduler can drive."""

    def compute(self, c: complex, max_iterations: int) -> tuple[int, complex]:
        ...


def iterate(c: complex, max_iterations: int) -> tuple[int, complex]:
    """Iterate ``z = z*z + c`` from ``z = 0`` until escape or budget exhaustion.

    Returns the number of iterations performed and the last ``z``. A count
    equal to ``max_iterations`` means the point never left the bail-out
    radius and is treated as a member of the set.
    """

    z = 0j
    count = 0
    while count < max_iterations and abs(z) < BAILOUT_RADIUS:
        z = z * z + c
        count += 1
    return count, z


class MandelbrotKernel:
    """The Mandelbrot family: ``z <- z^2 + c`` starting at the origin."""

    name = "mandelbrot"

    def compute(self, c: complex, max_iterations: int) -> tuple[int, complex]:
        return iterate(c, max_iterations)
