"""Color schemes that turn escape-time results into BGRA pixels."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

import numpy as np


@dataclass(frozen=True)
class Color:
    """An 8-bit RGBA color."""

    r: int
    g: int
    b: int
    a: int = 255

    def bgra(self) -> bytes:
        return bytes((self.b, self.g, self.r, self.a))


IN_SET_COLOR = Color(0, 0, 0, 255)
BLACK_SCHEME_COLOR = Color(255, 255, 255, 255)

GOLD_PALETTE = np.array(
    [
        (40, 30, 25),
        (26, 30, 25),
        (43, 30, 25),
        (100, 7, 26),
        (4, 1, 83),
        (50, 4, 63),
        (10, 7, 120),
        (50, 82, 177),
        (43, 181, 29),
        (99, 236, 248),
        (33, 33, 191),
        (25, 221, 95),
        (255, 43, 0),
        (102, 63, 0),
        (92, 61, 0),
        (73, 92, 3),
    ],
    dtype=np.uint8,
)


class ColorScheme(Enum):
    BLACK = "Black"
    GOLD = "Gold"
    CONTINUOUS = "Continuous"
    SMOOTH_RED = "Smooth Red"
    WAVEY_BLUE = "Wavey Blue"

    @classmethod
    def parse(cls, label: str) -> "ColorScheme":
        """Accept either the enum name (``smooth_red``) or the display label (``Smooth Red``)."""

        normalized = label.strip().replace("-", " ").replace("_", " ").lower()
        for scheme in cls:
            if normalized in (scheme.value.lower(), scheme.name.replace("_", " ").lower()):
                return scheme
        choices = ", ".join(scheme.value for scheme in cls)
        raise ValueError(f"Unknown color scheme '{label}'. Valid choices: {choices}.")


def _to_byte(value: float) -> int:
    # Integer truncation followed by 8-bit wraparound, never clamping.
    return int(value) & 0xFF


def _log_brightness(count: int, magnitude: float) -> int:
    argument = 1.0 + count - magnitude
    if not argument > 0.0:
        # log2 is undefined here; the channel is pinned to 0.
        return 0
    return _to_byte(256.0 * math.log2(argument))


def scheme_black() -> Color:
    return BLACK_SCHEME_COLOR


def scheme_gold(count: int) -> Color:
    r, g, b = GOLD_PALETTE[count % len(GOLD_PALETTE)]
    return Color(int(r), int(g), int(b))


def scheme_continuous(count: int, max_iterations: int) -> Color:
    """Bernstein polynomial gradient normalized by the iteration budget."""

    x = count / max_iterations
    r = math.floor(9 * (1 - x) * x * x * x * 255)
    g = math.floor(14 * (1 - x) * (1 - x) * x * x * 255)
    b = math.floor(8 * (1 - x) * (1 - x) * (1 - x) * x * 255)
    return Color(_to_byte(r * 1.1), _to_byte(g * 1.1), _to_byte(b * 1.1))


def scheme_smooth_red(count: int, z: complex) -> Color:
    magnitude = math.sqrt(abs(z))
    brightness = _log_brightness(count, magnitude)
    return Color(255, brightness, brightness)


def scheme_wavey_blue(count: int, z: complex) -> Color:
    magnitude = math.sqrt(z.imag * z.imag + z.real * z.real)
    brightness = _log_brightness(count, magnitude)
    return Color(brightness, brightness, 200)


def select_color(count: int, z: complex, max_iterations: int, scheme: ColorScheme) -> Color:
    """Pick the color of a pixel from its escape count and final ``z``.

    Points that exhausted the iteration budget are always black, whatever the
    scheme.
    """

    if count == max_iterations:
        return IN_SET_COLOR
    if scheme is ColorScheme.BLACK:
        return scheme_black()
    if scheme is ColorScheme.GOLD:
        return scheme_gold(count)
    if scheme is ColorScheme.SMOOTH_RED:
        return scheme_smooth_red(count, z)
    if scheme is ColorScheme.WAVEY_BLUE:
        return scheme_wavey_blue(count, z)
    return scheme_continuous(count, max_iterations)
