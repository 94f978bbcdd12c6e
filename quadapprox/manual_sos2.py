"""
Piecewise linear approximation of x² with SOS2 adjacency modelled by binaries.

Same convex combination encoding as ``quadapprox.solver_sos2`` but for
solvers without native SOS2 support. One binary per segment selects the
active segment and the weights outside of it are forced to zero.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd
from xarray import DataArray

from quadapprox.approximation import QuadraticApproximation
from quadapprox.breakpoints import breakpoint_index, generate_breakpoints
from quadapprox.common import (
    as_index,
    select_pairs,
    validate_domain,
    warn_outside_domain,
)
from quadapprox.config import options
from quadapprox.constants import MANUAL_SOS2_METHOD, ConstraintType, VariableType
from quadapprox.container import ConstraintKey, VariableKey
from quadapprox.evaluation import sos2_error_bound
from quadapprox.piecewise import add_convex_combination, pwl_expression

if TYPE_CHECKING:
    from collections.abc import Hashable

    from linopy.expressions import LinearExpression
    from linopy.variables import Variable

    from quadapprox.common import ComponentType
    from quadapprox.container import OptimizationContainer

logger = logging.getLogger(__name__)


def segment_index(n_segments: int) -> pd.Index:
    return pd.Index(np.arange(n_segments), name=options["segment_dim"])


def adjacency_matrix(n_points: int) -> DataArray:
    """
    Incidence of breakpoints and segments.

    Entry (i, j) is 1 if segment j has breakpoint i as one of its ends,
    i.e. j is i - 1 or i.
    """
    bp = breakpoint_index(n_points)
    seg = segment_index(n_points - 1)
    i = bp.values[:, np.newaxis]
    j = seg.values[np.newaxis, :]
    return DataArray(((j == i - 1) | (j == i)).astype(float), coords=[bp, seg])


def add_manual_sos2_adjacency_constraints(
    container: OptimizationContainer,
    component_type: ComponentType,
    names: pd.Index,
    time_steps: pd.Index,
    lambda_var: Variable,
    meta: str = "",
) -> Variable:
    """
    Enforce SOS2 adjacency on ``lambda_var`` with binary segment selectors.

    Creates n - 1 binaries z_j and adds

    - Σ z_j = 1 (exactly one active segment)
    - λ_0 <= z_0
    - λ_i <= z_{i-1} + z_i for interior breakpoints
    - λ_{n-1} <= z_{n-2}

    Returns the segment selection binaries.
    """
    n_points = lambda_var.sizes[options["breakpoint_dim"]]
    segment_dim = options["segment_dim"]

    z = container.add_variable_container(
        VariableType.MANUAL_SOS2_BINARY,
        component_type,
        names,
        segment_index(n_points - 1),
        time_steps,
        meta=meta,
        binary=True,
    )
    container.add_constraints(
        ConstraintType.MANUAL_SOS2_SEGMENT_SELECTION,
        component_type,
        z.sum(dim=segment_dim) == 1,
        meta=meta,
    )
    adjacent = (z * adjacency_matrix(n_points)).sum(dim=segment_dim)
    container.add_constraints(
        ConstraintType.MANUAL_SOS2_ADJACENCY,
        component_type,
        lambda_var <= adjacent,
        meta=meta,
    )
    return z


def add_manual_sos2_quadratic_approximation(
    container: OptimizationContainer,
    component_type: ComponentType,
    names: Iterable[Hashable],
    time_steps: Iterable[Hashable],
    x: Variable | LinearExpression,
    x_min: float,
    x_max: float,
    num_segments: int,
    meta: str = "",
) -> QuadraticApproximation:
    """
    Approximate x² with a convex combination and binary segment selection.

    Builds the same weights, linking and normalization constraints as
    ``add_sos2_quadratic_approximation``, then replaces the native SOS2 set
    by ``num_segments`` binaries and ``num_segments + 2`` linear constraints
    per (name, time) pair. Breakpoints and error bound are identical to the
    native variant.

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
    num_segments : int
        Number of linear segments, at least 1.
    meta : str, optional
        Tag distinguishing independent approximations for the same
        component type.

    Returns
    -------
    QuadraticApproximation

    Raises
    ------
    DomainError
        If ``x_max <= x_min`` or ``num_segments < 1``.
    ContainerKeyExistsError
        If an approximation with the same component type and meta exists.
    """
    x_min, x_max, num_segments = validate_domain(
        x_min, x_max, num_segments, "num_segments"
    )
    names = as_index(names, options["component_dim"])
    time_steps = as_index(time_steps, options["time_dim"])
    container.check_available(
        VariableKey.build(VariableType.QUADRATIC_APPROX, component_type, meta),
        VariableKey.build(VariableType.MANUAL_SOS2_BINARY, component_type, meta),
        ConstraintKey.build(
            ConstraintType.QUADRATIC_APPROX_LINKING, component_type, meta
        ),
        ConstraintKey.build(
            ConstraintType.QUADRATIC_APPROX_NORMALIZATION, component_type, meta
        ),
        ConstraintKey.build(
            ConstraintType.MANUAL_SOS2_SEGMENT_SELECTION, component_type, meta
        ),
        ConstraintKey.build(ConstraintType.MANUAL_SOS2_ADJACENCY, component_type, meta),
    )
    x = select_pairs(x, names, time_steps)
    warn_outside_domain(x, names, time_steps, x_min, x_max)

    x_bkpts, x_sq_bkpts = generate_breakpoints(x_min, x_max, num_segments)

    lambda_var = add_convex_combination(
        container, component_type, names, time_steps, x, x_bkpts, meta=meta
    )
    add_manual_sos2_adjacency_constraints(
        container, component_type, names, time_steps, lambda_var, meta=meta
    )

    logger.debug(
        f"Added manual SOS2 approximation of x² for {len(names)} component(s) "
        f"and {len(time_steps)} time step(s) with {num_segments} binaries each"
    )
    return QuadraticApproximation(
        expression=pwl_expression(lambda_var, x_sq_bkpts),
        method=MANUAL_SOS2_METHOD,
        meta=meta,
        names=names,
        time_steps=time_steps,
        x_min=x_min,
        x_max=x_max,
        resolution=num_segments,
        num_segments=num_segments,
        error_bound=sos2_error_bound(x_min, x_max, num_segments),
    )
