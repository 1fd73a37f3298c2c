import pytest

from fractal_engine import MandelbrotKernel, iterate


@pytest.mark.parametrize("c", [2.5, -3.0, 2 + 2j, 2.1j, -1.5 - 1.5j, 10.0])
@pytest.mark.parametrize("max_iterations", [2, 10, 1000])
def test_points_outside_radius_escape_immediately(c, max_iterations):
    count, z = iterate(c, max_iterations)
    assert count < max_iterations
    assert count == 1
    assert z == c


@pytest.mark.parametrize("max_iterations", [1, 7, 1000])
def test_origin_never_escapes(max_iterations):
    count, z = iterate(0j, max_iterations)
    assert count == max_iterations
    assert z == 0


def test_escape_count_and_final_value():
    # 0 -> 1 -> 2, and |2| is not below the bail-out radius.
    assert iterate(1 + 0j, 100) == (2, 2 + 0j)


def test_periodic_orbit_stays_bounded():
    count, z = iterate(-1 + 0j, 50)
    assert count == 50
    assert abs(z) <= 1


def test_mandelbrot_kernel_matches_iterate():
    kernel = MandelbrotKernel()
    for c in (0.3 + 0.5j, -0.75 + 0.1j, 0.26 + 0j, -2 + 1j):
        assert kernel.compute(c, 200) == iterate(c, 200)


def test_single_iteration_budget_exhausts_before_escape_is_seen():
    # The budget runs out on the step that would reveal the escape.
    assert iterate(3 + 0j, 1) == (1, 3 + 0j)
