"""
Breakpoint generation for piecewise linear approximations.

Breakpoints are uniformly spaced over the domain and the function is
evaluated exactly at every breakpoint, so the piecewise linear interpolant is
exact at the breakpoints. For the convex function x² the chord between two
neighbouring breakpoints lies above the curve.
"""

from __future__ import annotations

from collections.abc import Callable

import numpy as np
import pandas as pd
from xarray import DataArray

from quadapprox.common import DomainError, validate_domain
from quadapprox.config import options


def square(x: np.ndarray) -> np.ndarray:
    return x * x


def breakpoint_index(n_points: int) -> pd.Index:
    return pd.Index(np.arange(n_points), name=options["breakpoint_dim"])


def check_spacing(x_min: float, x_max: float, step: float, context: str) -> None:
    """
    Raise if breakpoints ``step`` apart are not distinct in double precision
    anywhere in ``[x_min, x_max]``.
    """
    magnitude = max(abs(x_min), abs(x_max))
    if not step > 4 * np.spacing(magnitude):
        raise DomainError(
            f"Breakpoint spacing {step} is below the floating point resolution "
            f"at {magnitude} ({context})."
        )


def generate_breakpoints(
    x_min: float,
    x_max: float,
    num_segments: int,
    func: Callable[[np.ndarray], np.ndarray] = square,
) -> tuple[DataArray, DataArray]:
    """
    Generate uniformly spaced breakpoints and the function values at them.

    Parameters
    ----------
    x_min : float
        Lower end of the domain, equal to the first breakpoint.
    x_max : float
        Upper end of the domain, equal to the last breakpoint.
    num_segments : int
        Number of linear segments, yielding ``num_segments + 1`` breakpoints.
    func : callable, default square
        Vectorised function evaluated at the breakpoints.

    Returns
    -------
    tuple[DataArray, DataArray]
        Breakpoints ``x_i = x_min + i * (x_max - x_min) / num_segments`` and
        ``func(x_i)``, both along the breakpoint dimension with integer
        coordinates ``0..num_segments``.

    Raises
    ------
    DomainError
        If ``x_max <= x_min``, ``num_segments < 1`` or the breakpoints are
        too close to be distinct in double precision.

    Examples
    --------
    >>> x, y = generate_breakpoints(0.0, 4.0, 4)
    >>> x.values.tolist()
    [0.0, 1.0, 2.0, 3.0, 4.0]
    >>> y.values.tolist()
    [0.0, 1.0, 4.0, 9.0, 16.0]
    """
    x_min, x_max, num_segments = validate_domain(
        x_min, x_max, num_segments, "num_segments"
    )
    context = f"x_min={x_min}, x_max={x_max}, num_segments={num_segments}"
    # offsets from x_min keep the spacing exact for large |x_min|
    step = (x_max - x_min) / num_segments
    check_spacing(x_min, x_max, step, context)
    x = x_min + step * np.arange(num_segments + 1, dtype=float)
    x[-1] = x_max
    if not (np.diff(x) > 0).all():
        raise DomainError(f"Breakpoints are not strictly increasing ({context}).")

    index = breakpoint_index(num_segments + 1)
    x_bkpts = DataArray(x, coords=[index])
    y_bkpts = DataArray(np.asarray(func(x.copy()), dtype=float), coords=[index])
    return x_bkpts, y_bkpts


def sawtooth_breakpoints(
    x_min: float, x_max: float, depth: int
) -> tuple[DataArray, DataArray]:
    """
    Breakpoints interpolated by a sawtooth approximation of depth ``depth``.

    These are the ``2**depth + 1`` points of ``generate_breakpoints`` with
    ``2**depth`` segments.
    """
    x_min, x_max, depth = validate_domain(x_min, x_max, depth, "depth")
    return generate_breakpoints(x_min, x_max, 2**depth)
