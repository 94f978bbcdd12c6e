"""
Interchangeable quadratic approximation formulations.

All formulations share one call signature, so callers can select one by
name, e.g. from configuration, and use the result the same way.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, Literal, Protocol

from quadapprox.constants import (
    MANUAL_SOS2_METHOD,
    METHODS,
    SAWTOOTH_METHOD,
    SOS2_METHOD,
)
from quadapprox.evaluation import sawtooth_error_bound, sos2_error_bound
from quadapprox.manual_sos2 import add_manual_sos2_quadratic_approximation
from quadapprox.sawtooth import add_sawtooth_quadratic_approximation
from quadapprox.solver_sos2 import add_sos2_quadratic_approximation

if TYPE_CHECKING:
    from linopy.expressions import LinearExpression
    from linopy.variables import Variable

    from quadapprox.approximation import QuadraticApproximation
    from quadapprox.common import ComponentType
    from quadapprox.container import OptimizationContainer

Method = Literal["sos2", "manual_sos2", "sawtooth"]


class QuadraticApproximator(Protocol):
    method: ClassVar[str]
    resolution_name: ClassVar[str]
    requires_sos: ClassVar[bool]

    def num_breakpoints(self, resolution: int) -> int: ...

    def error_bound(self, x_min: float, x_max: float, resolution: int) -> float: ...

    def build(
        self,
        container: OptimizationContainer,
        component_type: ComponentType,
        names: Iterable[Hashable],
        time_steps: Iterable[Hashable],
        x: Variable | LinearExpression,
        x_min: float,
        x_max: float,
        resolution: int,
        meta: str = "",
    ) -> QuadraticApproximation: ...


@dataclass(frozen=True)
class SolverSOS2:
    """
    Convex combination with solver-native SOS2 adjacency.
    """

    method: ClassVar[str] = SOS2_METHOD
    resolution_name: ClassVar[str] = "num_segments"
    requires_sos: ClassVar[bool] = True

    def num_breakpoints(self, resolution: int) -> int:
        return resolution + 1

    def error_bound(self, x_min: float, x_max: float, resolution: int) -> float:
        return sos2_error_bound(x_min, x_max, resolution)

    def build(
        self,
        container: OptimizationContainer,
        component_type: ComponentType,
        names: Iterable[Hashable],
        time_steps: Iterable[Hashable],
        x: Variable | LinearExpression,
        x_min: float,
        x_max: float,
        resolution: int,
        meta: str = "",
    ) -> QuadraticApproximation:
        return add_sos2_quadratic_approximation(
            container,
            component_type,
            names,
            time_steps,
            x,
            x_min,
            x_max,
            resolution,
            meta=meta,
        )


@dataclass(frozen=True)
class ManualSOS2:
    """
    Convex combination with adjacency enforced by segment selection binaries.
    """

    method: ClassVar[str] = MANUAL_SOS2_METHOD
    resolution_name: ClassVar[str] = "num_segments"
    requires_sos: ClassVar[bool] = False

    def num_breakpoints(self, resolution: int) -> int:
        return resolution + 1

    def error_bound(self, x_min: float, x_max: float, resolution: int) -> float:
        return sos2_error_bound(x_min, x_max, resolution)

    def build(
        self,
        container: OptimizationContainer,
        component_type: ComponentType,
        names: Iterable[Hashable],
        time_steps: Iterable[Hashable],
        x: Variable | LinearExpression,
        x_min: float,
        x_max: float,
        resolution: int,
        meta: str = "",
    ) -> QuadraticApproximation:
        return add_manual_sos2_quadratic_approximation(
            container,
            component_type,
            names,
            time_steps,
            x,
            x_min,
            x_max,
            resolution,
            meta=meta,
        )


@dataclass(frozen=True)
class Sawtooth:
    """
    Recursive tooth map encoding with ``depth`` binaries per pair.
    """

    method: ClassVar[str] = SAWTOOTH_METHOD
    resolution_name: ClassVar[str] = "depth"
    requires_sos: ClassVar[bool] = False

    def num_breakpoints(self, resolution: int) -> int:
        return 2**resolution + 1

    def error_bound(self, x_min: float, x_max: float, resolution: int) -> float:
        return sawtooth_error_bound(x_min, x_max, resolution)

    def build(
        self,
        container: OptimizationContainer,
        component_type: ComponentType,
        names: Iterable[Hashable],
        time_steps: Iterable[Hashable],
        x: Variable | LinearExpression,
        x_min: float,
        x_max: float,
        resolution: int,
        meta: str = "",
    ) -> QuadraticApproximation:
        return add_sawtooth_quadratic_approximation(
            container,
            component_type,
            names,
            time_steps,
            x,
            x_min,
            x_max,
            resolution,
            meta=meta,
        )


APPROXIMATORS: dict[str, QuadraticApproximator] = {
    SOS2_METHOD: SolverSOS2(),
    MANUAL_SOS2_METHOD: ManualSOS2(),
    SAWTOOTH_METHOD: Sawtooth(),
}


def get_approximator(method: Method | str) -> QuadraticApproximator:
    """
    Return the formulation registered under ``method``.

    Raises
    ------
    ValueError
        If ``method`` is not one of 'sos2', 'manual_sos2' or 'sawtooth'.
    """
    try:
        return APPROXIMATORS[method]
    except KeyError:
        raise ValueError(
            f"method must be one of {list(METHODS)}, got '{method}'"
        ) from None


def add_quadratic_approximation(
    container: OptimizationContainer,
    component_type: ComponentType,
    names: Iterable[Hashable],
    time_steps: Iterable[Hashable],
    x: Variable | LinearExpression,
    x_min: float,
    x_max: float,
    resolution: int,
    method: Method = "sos2",
    meta: str = "",
) -> QuadraticApproximation:
    """
    Add a piecewise linear approximation of x² using the formulation ``method``.

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
    resolution : int
        Number of segments for 'sos2' and 'manual_sos2', depth for
        'sawtooth'.
    method : {'sos2', 'manual_sos2', 'sawtooth'}, default 'sos2'
        Formulation to use:

        - ``"sos2"``: convex combination with native SOS2 sets. Requires a
          solver with SOS2 support.
        - ``"manual_sos2"``: convex combination with ``resolution`` binaries
          per pair. Works with any MIP solver.
        - ``"sawtooth"``: ``resolution`` binaries per pair resolving
          ``2**resolution`` segments.
    meta : str, optional
        Tag distinguishing independent approximations for the same
        component type.

    Returns
    -------
    QuadraticApproximation

    Examples
    --------
    >>> import pandas as pd
    >>> from quadapprox import OptimizationContainer
    >>> container = OptimizationContainer()
    >>> names = pd.Index(["gen"], name="name")
    >>> time = pd.Index([0, 1], name="time")
    >>> x = container.add_variable_container("Power", "Gen", names, time)
    >>> approx = add_quadratic_approximation(
    ...     container, "Gen", names, time, x, 0, 4, 2, method="sawtooth"
    ... )
    >>> approx.num_breakpoints
    5
    """
    return get_approximator(method).build(
        container,
        component_type,
        names,
        time_steps,
        x,
        x_min,
        x_max,
        resolution,
        meta=meta,
    )
