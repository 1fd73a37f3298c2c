import pytest

from fractal_engine import (
    BYTES_PER_PIXEL,
    DEFAULT_VIEWPORT,
    Viewport,
    complex_to_pixel,
    is_drag_selection,
    pixel_to_complex,
    scale_factors,
    zoom_in_region,
)


@pytest.mark.parametrize(
    "bounds",
    [
        dict(left=1.0, right=1.0, top=1.0, bottom=0.0),
        dict(left=2.0, right=1.0, top=1.0, bottom=0.0),
        dict(left=0.0, right=1.0, top=0.0, bottom=0.0),
        dict(left=0.0, right=1.0, top=-1.0, bottom=0.0),
    ],
)
def test_viewport_rejects_degenerate_rectangles(bounds):
    with pytest.raises(ValueError):
        Viewport(**bounds)


def test_default_viewport_extent():
    assert DEFAULT_VIEWPORT.width == pytest.approx(2.9)
    assert DEFAULT_VIEWPORT.height == pytest.approx(2.8)


def test_scale_factors():
    x_scale, y_scale = scale_factors(DEFAULT_VIEWPORT, 290, 140)
    assert x_scale == pytest.approx(0.01)
    assert y_scale == pytest.approx(0.02)


def test_pixel_to_complex_uses_stride_and_pixel_width():
    width = 4
    stride = width * BYTES_PER_PIXEL
    x_scale, y_scale = scale_factors(DEFAULT_VIEWPORT, width, 4)
    byte_index = 1 * stride + 2 * BYTES_PER_PIXEL

    c = pixel_to_complex(byte_index, DEFAULT_VIEWPORT, stride, BYTES_PER_PIXEL, x_scale, y_scale)

    assert c.real == pytest.approx(-2.0 + 2 * x_scale)
    assert c.imag == pytest.approx(1.4 - 1 * y_scale)


def test_top_left_pixel_maps_to_viewport_corner():
    x_scale, y_scale = scale_factors(DEFAULT_VIEWPORT, 10, 10)
    c = pixel_to_complex(0, DEFAULT_VIEWPORT, 40, BYTES_PER_PIXEL, x_scale, y_scale)
    assert c == complex(DEFAULT_VIEWPORT.left, DEFAULT_VIEWPORT.top)


def test_pixel_round_trip():
    width, height = 7, 5
    stride = width * BYTES_PER_PIXEL
    viewport = Viewport(left=-0.75, right=-0.70, top=0.12, bottom=0.08)
    x_scale, y_scale = scale_factors(viewport, width, height)

    for row in range(height):
        for col in range(width):
            byte_index = row * stride + col * BYTES_PER_PIXEL
            c = pixel_to_complex(byte_index, viewport, stride, BYTES_PER_PIXEL, x_scale, y_scale)
            assert complex_to_pixel(c, viewport, x_scale, y_scale) == (row, col)


def test_zoom_in_region_maps_selection_corners():
    viewport = Viewport(left=0.0, right=10.0, top=10.0, bottom=0.0)
    x_scale, y_scale = scale_factors(viewport, 10, 10)

    zoomed = zoom_in_region(viewport, x_scale, y_scale, rect_top=2, rect_left=3, rect_width=4, rect_height=5)

    assert zoomed == Viewport(left=3.0, right=7.0, top=8.0, bottom=3.0)


def test_zoom_in_region_keeps_scale_of_selection():
    x_scale, y_scale = scale_factors(DEFAULT_VIEWPORT, 290, 280)
    zoomed = zoom_in_region(DEFAULT_VIEWPORT, x_scale, y_scale, 100, 50, 29, 28)
    assert zoomed.width == pytest.approx(0.29)
    assert zoomed.height == pytest.approx(0.28)
    assert zoomed.left == pytest.approx(-1.5)
    assert zoomed.top == pytest.approx(0.4)


@pytest.mark.parametrize(
    "width, height, expected",
    [(3, 3, True), (100, 40, True), (2, 50, False), (50, 2, False), (0, 0, False)],
)
def test_is_drag_selection(width, height, expected):
    assert is_drag_selection(width, height) is expected
