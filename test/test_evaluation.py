"""Tests for the numerical evaluation of the approximations."""

from __future__ import annotations

import numpy as np
import pytest

from quadapprox import (
    DomainError,
    generate_breakpoints,
    interpolate,
    sawtooth_error_bound,
    sawtooth_value,
    sos2_error_bound,
)
from quadapprox.evaluation import tooth

DOMAINS = [(0.0, 4.0), (-3.0, 3.0), (-10.0, -2.0), (1e3, 1e3 + 12.0), (-0.5, 7.25)]


def test_tooth_map() -> None:
    g = np.array([0.0, 0.25, 0.5, 0.75, 1.0])
    np.testing.assert_allclose(tooth(g), [0.0, 0.5, 1.0, 0.5, 0.0])


@pytest.mark.parametrize("x_min, x_max", DOMAINS)
@pytest.mark.parametrize("depth", [1, 2, 3, 4])
def test_sawtooth_exact_at_breakpoints(x_min: float, x_max: float, depth: int) -> None:
    x, y = generate_breakpoints(x_min, x_max, 2**depth)
    values = sawtooth_value(x.values, x_min, x_max, depth)
    np.testing.assert_allclose(values, y.values, rtol=1e-12, atol=1e-9)


@pytest.mark.parametrize("x_min, x_max", DOMAINS)
@pytest.mark.parametrize("depth", [1, 2, 3, 4])
def test_sawtooth_equals_chord_interpolant(
    x_min: float, x_max: float, depth: int
) -> None:
    x_bkpts, y_bkpts = generate_breakpoints(x_min, x_max, 2**depth)
    samples = np.linspace(x_min, x_max, 301)
    np.testing.assert_allclose(
        sawtooth_value(samples, x_min, x_max, depth),
        interpolate(samples, x_bkpts, y_bkpts),
        rtol=1e-9,
        atol=1e-9,
    )


@pytest.mark.parametrize("x_min, x_max", DOMAINS)
@pytest.mark.parametrize("num_segments", [1, 2, 3, 8, 13])
def test_interpolant_overestimates_within_bound(
    x_min: float, x_max: float, num_segments: int
) -> None:
    x_bkpts, y_bkpts = generate_breakpoints(x_min, x_max, num_segments)
    samples = np.linspace(x_min, x_max, 1001)
    error = interpolate(samples, x_bkpts, y_bkpts) - samples**2
    bound = sos2_error_bound(x_min, x_max, num_segments)

    scale = max(abs(x_min), abs(x_max)) ** 2
    assert error.min() >= -1e-12 * scale
    assert error.max() <= bound * (1 + 1e-9) + 1e-12 * scale


@pytest.mark.parametrize("x_min, x_max", DOMAINS)
def test_sawtooth_worst_error_attained_at_midpoints(x_min: float, x_max: float) -> None:
    depth = 3
    x_bkpts, _ = generate_breakpoints(x_min, x_max, 2**depth)
    midpoints = 0.5 * (x_bkpts.values[:-1] + x_bkpts.values[1:])
    error = sawtooth_value(midpoints, x_min, x_max, depth) - midpoints**2
    np.testing.assert_allclose(error, sawtooth_error_bound(x_min, x_max, depth))


def test_error_bounds_agree_at_matching_resolution() -> None:
    for depth in range(1, 6):
        assert sawtooth_error_bound(-2.0, 5.0, depth) == pytest.approx(
            sos2_error_bound(-2.0, 5.0, 2**depth)
        )


def test_error_bounds_decrease_with_resolution() -> None:
    sos2 = [sos2_error_bound(0.0, 6.0, s) for s in (1, 2, 4, 8, 16)]
    saw = [sawtooth_error_bound(0.0, 6.0, d) for d in (1, 2, 3, 4)]
    assert sos2 == sorted(sos2, reverse=True)
    assert saw == sorted(saw, reverse=True)
    assert sos2_error_bound(0.0, 4.0, 4) == 0.25


def test_evaluation_outside_domain_raises() -> None:
    x_bkpts, y_bkpts = generate_breakpoints(0.0, 4.0, 4)
    with pytest.raises(ValueError, match="inside the domain"):
        interpolate([5.0], x_bkpts, y_bkpts)
    with pytest.raises(ValueError, match="inside the domain"):
        sawtooth_value(-1.0, 0.0, 4.0, 2)


def test_error_bound_invalid_domain() -> None:
    with pytest.raises(DomainError):
        sos2_error_bound(1.0, 1.0, 2)
    with pytest.raises(DomainError):
        sawtooth_error_bound(0.0, 1.0, 0)
