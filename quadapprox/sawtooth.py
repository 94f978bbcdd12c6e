"""
Sawtooth approximation of x² with a logarithmic number of binaries.

Reference: Beach, Burlacu, Hager, Hildebrand (2024), "Enhancements of
discretization approaches for non-convex mixed-integer quadratically
constrained quadratic programming".

The normalized variable g_0 = (x - x_min) / Δ is passed through L
compositions of the tooth (tent) map. Each level halves the segment width,
with the binary α_j recording which half g_{j-1} lies in, so L binaries
resolve 2^L segments.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd
from xarray import DataArray

from quadapprox.approximation import QuadraticApproximation
from quadapprox.breakpoints import check_spacing
from quadapprox.common import (
    as_index,
    select_pairs,
    validate_domain,
    warn_outside_domain,
)
from quadapprox.config import options
from quadapprox.constants import SAWTOOTH_METHOD, ConstraintType, VariableType
from quadapprox.container import ConstraintKey, VariableKey
from quadapprox.evaluation import sawtooth_error_bound

if TYPE_CHECKING:
    from collections.abc import Hashable

    from linopy.expressions import LinearExpression
    from linopy.variables import Variable

    from quadapprox.common import ComponentType
    from quadapprox.container import OptimizationContainer

logger = logging.getLogger(__name__)

TOOTH_CONSTRAINTS = (
    ConstraintType.SAWTOOTH_TOOTH_UPPER_LEFT,
    ConstraintType.SAWTOOTH_TOOTH_UPPER_RIGHT,
    ConstraintType.SAWTOOTH_TOOTH_LOWER_LEFT,
    ConstraintType.SAWTOOTH_TOOTH_LOWER_RIGHT,
)


def level_index(first: int, depth: int) -> pd.Index:
    return pd.Index(np.arange(first, depth + 1), name=options["level_dim"])


def sawtooth_coefficients(x_min: float, x_max: float, depth: int) -> DataArray:
    """
    Coefficients Δ² 2^(-2j) of g_j, j = 1..depth, in the sawtooth expression.
    """
    delta = x_max - x_min
    levels = level_index(1, depth)
    return DataArray(delta * delta * 2.0 ** (-2.0 * levels.values), coords=[levels])


def add_sawtooth_quadratic_approximation(
    container: OptimizationContainer,
    component_type: ComponentType,
    names: Iterable[Hashable],
    time_steps: Iterable[Hashable],
    x: Variable | LinearExpression,
    x_min: float,
    x_max: float,
    depth: int,
    meta: str = "",
) -> QuadraticApproximation:
    """
    Approximate x² with the sawtooth MIP formulation.

    For every (name, time) pair, with Δ = x_max - x_min:

    1. Continuous g_0, ..., g_L in [0, 1] and binaries α_1, ..., α_L
    2. Linking constraint: g_0 = (x - x_min) / Δ
    3. For j = 1..L
       g_j <= 2 g_{j-1}, g_j <= 2 (1 - g_{j-1}),
       g_j >= 2 (g_{j-1} - α_j), g_j >= 2 (α_j - g_{j-1})

    The returned approximation is
    x_min² + (2 x_min Δ + Δ²) g_0 - Σ_j Δ² 2^(-2j) g_j. It interpolates x²
    at 2^L + 1 uniformly spaced breakpoints and overestimates it by at most
    Δ² 2^(-2L-2).

    Parameters
    ----------
    container : OptimizationContainer
        Container to register the variables and constraints in.
    component_type : str or type
        Type of the components being approximated.
    names : iterable
        Component names.
    time_steps : iterable
        Time steps.
    x : linopy.Variable or linopy.LinearExpression
        Quantity to square, indexed by the component and time dimensions.
    x_min, x_max : float
        Domain of ``x``.
    depth : int
        Sawtooth depth L, the number of binaries per (name, time) pair.
    meta : str, optional
        Tag distinguishing independent approximations for the same
        component type.

    Returns
    -------
    QuadraticApproximation

    Raises
    ------
    DomainError
        If ``x_max <= x_min``, ``depth < 1`` or ``depth`` is so large that
        neighbouring breakpoints coincide in double precision.
    ContainerKeyExistsError
        If an approximation with the same component type and meta exists.
    """
    x_min, x_max, depth = validate_domain(x_min, x_max, depth, "depth")
    check_spacing(
        x_min,
        x_max,
        (x_max - x_min) * 2.0**-depth,
        f"x_min={x_min}, x_max={x_max}, depth={depth}",
    )
    names = as_index(names, options["component_dim"])
    time_steps = as_index(time_steps, options["time_dim"])
    container.check_available(
        VariableKey.build(VariableType.SAWTOOTH_AUX, component_type, meta),
        VariableKey.build(VariableType.SAWTOOTH_BINARY, component_type, meta),
        ConstraintKey.build(ConstraintType.SAWTOOTH_LINKING, component_type, meta),
        *(ConstraintKey.build(c, component_type, meta) for c in TOOTH_CONSTRAINTS),
    )
    x = select_pairs(x, names, time_steps)
    warn_outside_domain(x, names, time_steps, x_min, x_max)

    level_dim = options["level_dim"]
    delta = x_max - x_min
    alpha_levels = level_index(1, depth)

    g = container.add_variable_container(
        VariableType.SAWTOOTH_AUX,
        component_type,
        names,
        level_index(0, depth),
        time_steps,
        meta=meta,
        lower=0.0,
        upper=1.0,
    )
    alpha = container.add_variable_container(
        VariableType.SAWTOOTH_BINARY,
        component_type,
        names,
        alpha_levels,
        time_steps,
        meta=meta,
        binary=True,
    )

    g_0 = g.sel({level_dim: 0}, drop=True)
    container.add_constraints(
        ConstraintType.SAWTOOTH_LINKING,
        component_type,
        g_0 - x / delta == -x_min / delta,
        meta=meta,
    )

    # g_prev at level j holds g_{j-1}
    g_prev = g.shift({level_dim: 1}).sel({level_dim: alpha_levels.values})
    g_curr = g.sel({level_dim: alpha_levels.values})
    tooth = (
        g_curr - 2 * g_prev <= 0,
        g_curr + 2 * g_prev <= 2,
        g_curr - 2 * g_prev + 2 * alpha >= 0,
        g_curr + 2 * g_prev - 2 * alpha >= 0,
    )
    for constraint_type, constraint in zip(TOOTH_CONSTRAINTS, tooth):
        container.add_constraints(
            constraint_type, component_type, constraint, meta=meta
        )

    coeffs = sawtooth_coefficients(x_min, x_max, depth)
    expression = (
        (2.0 * x_min * delta + delta * delta) * g_0
        - (g_curr * coeffs).sum(dim=level_dim)
        + x_min * x_min
    )

    logger.debug(
        f"Added sawtooth approximation of x² for {len(names)} component(s) and "
        f"{len(time_steps)} time step(s) with depth {depth}"
    )
    return QuadraticApproximation(
        expression=expression,
        method=SAWTOOTH_METHOD,
        meta=meta,
        names=names,
        time_steps=time_steps,
        x_min=x_min,
        x_max=x_max,
        resolution=depth,
        num_segments=2**depth,
        error_bound=sawtooth_error_bound(x_min, x_max, depth),
    )
