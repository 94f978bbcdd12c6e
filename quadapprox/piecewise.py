"""
Shared registration helpers for convex combination (lambda) encodings.

All helpers register through an ``OptimizationContainer`` and index their
entries by (component name, breakpoint, time step).
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

import pandas as pd
from xarray import DataArray

from quadapprox.breakpoints import breakpoint_index
from quadapprox.config import options
from quadapprox.constants import ConstraintType, VariableType

if TYPE_CHECKING:
    from linopy.constraints import Constraint
    from linopy.expressions import LinearExpression
    from linopy.variables import Variable

    from quadapprox.common import ComponentType
    from quadapprox.container import OptimizationContainer


def add_pwl_variables(
    container: OptimizationContainer,
    component_type: ComponentType,
    names: pd.Index,
    time_steps: pd.Index,
    n_points: int,
    meta: str = "",
    entry_type: str | Enum = VariableType.QUADRATIC_APPROX,
) -> Variable:
    """
    Create the convex combination weights, one per breakpoint, in [0, 1].
    """
    return container.add_variable_container(
        entry_type,
        component_type,
        names,
        breakpoint_index(n_points),
        time_steps,
        meta=meta,
        lower=0.0,
        upper=1.0,
    )


def pwl_expression(lambda_var: Variable, values: DataArray) -> LinearExpression:
    """
    Weighted sum ``Σ λ_i * values_i`` along the breakpoint dimension.
    """
    return (lambda_var * values).sum(dim=options["breakpoint_dim"])


def add_pwl_linking_constraint(
    container: OptimizationContainer,
    component_type: ComponentType,
    x: Variable | LinearExpression,
    lambda_var: Variable,
    x_breakpoints: DataArray,
    meta: str = "",
    entry_type: str | Enum = ConstraintType.QUADRATIC_APPROX_LINKING,
) -> Constraint:
    """
    Link the approximated variable to the breakpoints, ``x == Σ λ_i x_i``.
    """
    weighted_sum = pwl_expression(lambda_var, x_breakpoints)
    return container.add_constraints(
        entry_type, component_type, x == weighted_sum, meta=meta
    )


def add_pwl_normalization_constraint(
    container: OptimizationContainer,
    component_type: ComponentType,
    lambda_var: Variable,
    rhs: Any = 1.0,
    meta: str = "",
    entry_type: str | Enum = ConstraintType.QUADRATIC_APPROX_NORMALIZATION,
) -> Constraint:
    """
    Normalize the weights, ``Σ λ_i == rhs``.

    ``rhs`` is 1 for a plain convex combination. Passing an on-status variable
    or parameter instead forces all weights to zero when the unit is off.
    """
    total = lambda_var.sum(dim=options["breakpoint_dim"])
    return container.add_constraints(
        entry_type, component_type, total == rhs, meta=meta
    )


def add_pwl_sos2_constraint(
    container: OptimizationContainer, lambda_var: Variable
) -> None:
    """
    Let the solver enforce adjacency of the nonzero weights (native SOS2).
    """
    container.add_sos2_constraint(lambda_var, options["breakpoint_dim"])


def add_convex_combination(
    container: OptimizationContainer,
    component_type: ComponentType,
    names: pd.Index,
    time_steps: pd.Index,
    x: Variable | LinearExpression,
    x_breakpoints: DataArray,
    meta: str = "",
) -> Variable:
    """
    Create the weights together with the linking and normalization
    constraints. Adjacency of the nonzero weights is left to the caller.
    """
    lambda_var = add_pwl_variables(
        container, component_type, names, time_steps, x_breakpoints.size, meta=meta
    )
    add_pwl_linking_constraint(
        container, component_type, x, lambda_var, x_breakpoints, meta=meta
    )
    add_pwl_normalization_constraint(container, component_type, lambda_var, meta=meta)
    return lambda_var
