"""Per-generation configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .colors import ColorScheme

DEFAULT_MAX_ITERATIONS = 1000
DEFAULT_DRAW_INTERVAL_MS = 100


def default_segment_count() -> int:
    """One worker per logical core, leaving one core for the caller."""

    return max(1, (os.cpu_count() or 1) - 1)


@dataclass(frozen=True)
class GenerationConfig:
    """Settings for a single generation.

    ``segment_count == 0`` selects :func:`default_segment_count` and
    ``draw_interval_ms == 0`` selects ``DEFAULT_DRAW_INTERVAL_MS``.
    """

    max_iterations: int = DEFAULT_MAX_ITERATIONS
    segment_count: int = 0
    color_scheme: ColorScheme = ColorScheme.CONTINUOUS
    draw_interval_ms: int = DEFAULT_DRAW_INTERVAL_MS

    def __post_init__(self) -> None:
        if self.max_iterations <= 0:
            raise ValueError(f"max_iterations must be positive, got {self.max_iterations}")
        if self.segment_count < 0:
            raise ValueError(f"segment_count must be >= 0, got {self.segment_count}")
        if self.draw_interval_ms < 0:
            raise ValueError(f"draw_interval_ms must be >= 0, got {self.draw_interval_ms}")
        if not isinstance(self.color_scheme, ColorScheme):
            object.__setattr__(self, "color_scheme", ColorScheme.parse(str(self.color_scheme)))

    def resolved_segments(self) -> int:
        return self.segment_count if self.segment_count > 0 else default_segment_count()

    def resolved_draw_interval_ms(self) -> int:
        return self.draw_interval_ms if self.draw_interval_ms > 0 else DEFAULT_DRAW_INTERVAL_MS


def parse_iterations(text: str) -> int | None:
    """Parse an iteration budget typed by a user; ``None`` when unusable."""

    try:
        value = int(text.strip())
    except ValueError:
        return None
    return value if value > 0 else None
