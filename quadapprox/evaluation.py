"""
Numerical evaluation of the approximations outside of an optimization model.

The functions here compute what the linear encodings represent for a given
value of x, which allows checking approximation quality without a solver.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike
from xarray import DataArray

from quadapprox.common import validate_domain


def _check_inside(x: np.ndarray, x_min: float, x_max: float) -> None:
    if np.any((x < x_min) | (x > x_max)):
        raise ValueError(
            f"Evaluation points must lie inside the domain [{x_min}, {x_max}]."
        )


def interpolate(
    x: ArrayLike, x_breakpoints: ArrayLike, y_breakpoints: ArrayLike
) -> np.ndarray:
    """
    Evaluate the piecewise linear interpolant through the given breakpoints.

    This is the value an SOS2 convex combination encoding attains for ``x``.
    """
    xb = np.asarray(
        x_breakpoints.values if isinstance(x_breakpoints, DataArray) else x_breakpoints,
        dtype=float,
    )
    yb = np.asarray(
        y_breakpoints.values if isinstance(y_breakpoints, DataArray) else y_breakpoints,
        dtype=float,
    )
    x = np.asarray(x, dtype=float)
    _check_inside(x, xb[0], xb[-1])
    return np.interp(x, xb, yb)


def tooth(g: ArrayLike) -> np.ndarray:
    """
    Tent map on [0, 1]: ``2 g`` on the left half, ``2 (1 - g)`` on the right.
    """
    g = np.asarray(g, dtype=float)
    return 2.0 * np.minimum(g, 1.0 - g)


def sawtooth_value(x: ArrayLike, x_min: float, x_max: float, depth: int) -> np.ndarray:
    """
    Evaluate the sawtooth approximation of x² of depth ``depth``.

    Uses ``x_min² + (2 x_min Δ + Δ²) g_0 - Σ_j Δ² 2^(-2j) g_j`` with
    ``g_0 = (x - x_min) / Δ`` and ``g_j`` the j-fold tooth map of ``g_0``.
    """
    x_min, x_max, depth = validate_domain(x_min, x_max, depth, "depth")
    x = np.asarray(x, dtype=float)
    _check_inside(x, x_min, x_max)

    delta = x_max - x_min
    g = (x - x_min) / delta
    value = x_min * x_min + (2.0 * x_min * delta + delta * delta) * g
    for j in range(1, depth + 1):
        g = tooth(g)
        value = value - delta * delta * 2.0 ** (-2 * j) * g
    return value


def sos2_error_bound(x_min: float, x_max: float, num_segments: int) -> float:
    """
    Maximum overestimation of x² by the chord interpolant with
    ``num_segments`` uniform segments, ``Δ² / (4 S²)``.
    """
    x_min, x_max, num_segments = validate_domain(
        x_min, x_max, num_segments, "num_segments"
    )
    delta = x_max - x_min
    return delta * delta / (4.0 * num_segments * num_segments)


def sawtooth_error_bound(x_min: float, x_max: float, depth: int) -> float:
    """
    Maximum overestimation of x² by the sawtooth approximation,
    ``Δ² 2^(-2L-2)``.
    """
    x_min, x_max, depth = validate_domain(x_min, x_max, depth, "depth")
    delta = x_max - x_min
    return delta * delta * 2.0 ** (-2 * depth - 2)
