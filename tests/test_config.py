import os

import pytest

from fractal_engine import ColorScheme, GenerationConfig, default_segment_count, parse_iterations
from fractal_engine.config import DEFAULT_DRAW_INTERVAL_MS


def test_defaults():
    config = GenerationConfig()
    assert config.max_iterations == 1000
    assert config.color_scheme is ColorScheme.CONTINUOUS
    assert config.resolved_segments() == default_segment_count()
    assert config.resolved_draw_interval_ms() == DEFAULT_DRAW_INTERVAL_MS


@pytest.mark.parametrize("cores, expected", [(None, 1), (1, 1), (2, 1), (8, 7)])
def test_default_segment_count_leaves_a_core_free(monkeypatch, cores, expected):
    monkeypatch.setattr(os, "cpu_count", lambda: cores)
    assert default_segment_count() == expected


def test_explicit_segments_and_interval():
    config = GenerationConfig(segment_count=6, draw_interval_ms=250)
    assert config.resolved_segments() == 6
    assert config.resolved_draw_interval_ms() == 250


def test_zero_draw_interval_uses_default():
    assert GenerationConfig(draw_interval_ms=0).resolved_draw_interval_ms() == DEFAULT_DRAW_INTERVAL_MS


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(max_iterations=0),
        dict(max_iterations=-5),
        dict(segment_count=-1),
        dict(draw_interval_ms=-10),
        dict(color_scheme="Plaid"),
    ],
)
def test_invalid_configuration_is_rejected(kwargs):
    with pytest.raises(ValueError):
        GenerationConfig(**kwargs)


def test_scheme_label_is_parsed():
    assert GenerationConfig(color_scheme="Wavey Blue").color_scheme is ColorScheme.WAVEY_BLUE


def test_config_is_immutable():
    config = GenerationConfig()
    with pytest.raises(AttributeError):
        config.max_iterations = 5


@pytest.mark.parametrize(
    "text, expected",
    [("42", 42), ("  7 ", 7), ("0", None), ("-3", None), ("abc", None), ("", None), ("1.5", None)],
)
def test_parse_iterations(text, expected):
    assert parse_iterations(text) == expected
