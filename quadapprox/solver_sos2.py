"""
Piecewise linear approximation of x² with solver-native SOS2 constraints.

The square is encoded as a convex combination of breakpoints. The solver
enforces through an SOS2 set that at most two adjacent weights are nonzero.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from quadapprox.approximation import QuadraticApproximation
from quadapprox.breakpoints import generate_breakpoints
from quadapprox.common import (
    as_index,
    select_pairs,
    validate_domain,
    warn_outside_domain,
)
from quadapprox.config import options
from quadapprox.constants import SOS2_METHOD, ConstraintType, VariableType
from quadapprox.container import ConstraintKey, VariableKey
from quadapprox.evaluation import sos2_error_bound
from quadapprox.piecewise import (
    add_convex_combination,
    add_pwl_sos2_constraint,
    pwl_expression,
)

if TYPE_CHECKING:
    from collections.abc import Hashable

    from linopy.expressions import LinearExpression
    from linopy.variables import Variable

    from quadapprox.common import ComponentType
    from quadapprox.container import OptimizationContainer

logger = logging.getLogger(__name__)


def add_sos2_quadratic_approximation(
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
    Approximate x² with a convex combination over breakpoints and SOS2.

    For every (name, time) pair the following is added to the container:

    1. Weights λ_i in [0, 1], one per breakpoint x_i
    2. Linking constraint: x = Σ λ_i x_i
    3. Normalization constraint: Σ λ_i = 1
    4. An SOS2 set over the weights along the breakpoint dimension

    The returned approximation is Σ λ_i x_i². It is exact at the breakpoints
    and overestimates x² by at most Δ² / (4 S²) in between, where
    Δ = x_max - x_min and S is the number of segments.

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

    Notes
    -----
    The solver must support SOS2 constraints. This is not checked when
    building, unsupported solvers fail at solve time. Use
    ``add_manual_sos2_quadratic_approximation`` for those solvers.
    """
    x_min, x_max, num_segments = validate_domain(
        x_min, x_max, num_segments, "num_segments"
    )
    names = as_index(names, options["component_dim"])
    time_steps = as_index(time_steps, options["time_dim"])
    container.check_available(
        VariableKey.build(VariableType.QUADRATIC_APPROX, component_type, meta),
        ConstraintKey.build(
            ConstraintType.QUADRATIC_APPROX_LINKING, component_type, meta
        ),
        ConstraintKey.build(
            ConstraintType.QUADRATIC_APPROX_NORMALIZATION, component_type, meta
        ),
    )
    x = select_pairs(x, names, time_steps)
    warn_outside_domain(x, names, time_steps, x_min, x_max)

    x_bkpts, x_sq_bkpts = generate_breakpoints(x_min, x_max, num_segments)

    lambda_var = add_convex_combination(
        container, component_type, names, time_steps, x, x_bkpts, meta=meta
    )
    add_pwl_sos2_constraint(container, lambda_var)

    logger.debug(
        f"Added SOS2 approximation of x² for {len(names)} component(s) and "
        f"{len(time_steps)} time step(s) with {num_segments} segment(s)"
    )
    return QuadraticApproximation(
        expression=pwl_expression(lambda_var, x_sq_bkpts),
        method=SOS2_METHOD,
        meta=meta,
        names=names,
        time_steps=time_steps,
        x_min=x_min,
        x_max=x_max,
        resolution=num_segments,
        num_segments=num_segments,
        error_bound=sos2_error_bound(x_min, x_max, num_segments),
    )
