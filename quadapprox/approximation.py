"""
Result type returned by the quadratic approximation builders.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from functools import cached_property
from typing import Any

import pandas as pd
from linopy.expressions import LinearExpression
from xarray import DataArray

from quadapprox.breakpoints import generate_breakpoints
from quadapprox.common import Pair, iterate_pairs


@dataclass(frozen=True, eq=False, repr=False)
class QuadraticApproximation(Mapping[Pair, LinearExpression]):
    """
    Approximation of x² for every (name, time) pair of one builder call.

    The object is a read-only mapping from ``(name, time)`` to the scalar
    linear expression approximating x² for that pair. The vectorised
    expression over all pairs is available as ``expression`` and can be used
    directly in constraints. linopy objectives reject constant terms, which
    the sawtooth expression carries when ``x_min != 0``. Use ``variable_part``
    in objectives and add ``constant.sum()`` back to the objective value.

    Attributes
    ----------
    expression : linopy.LinearExpression
        Approximation of x² indexed by the component and time dimensions.
    method : str
        Name of the formulation that built the approximation.
    meta : str
        Tag of the approximation.
    names, time_steps : pandas.Index
        Components and time steps covered, named after their dimensions.
    x_min, x_max : float
        Domain of the approximated variable.
    resolution : int
        Number of segments or sawtooth depth.
    num_segments : int
        Number of linear pieces, ``2**depth`` for the sawtooth formulation.
    error_bound : float
        Maximum overestimation of x² anywhere in the domain.
    """

    expression: LinearExpression
    method: str
    meta: str
    names: pd.Index
    time_steps: pd.Index
    x_min: float
    x_max: float
    resolution: int
    num_segments: int
    error_bound: float

    def __getitem__(self, key: Pair) -> LinearExpression:
        if key not in self:
            raise KeyError(key)
        name, t = key
        return self.expression.sel({self.names.name: name, self.time_steps.name: t})

    def __contains__(self, key: Any) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        name, t = key
        return name in self.names and t in self.time_steps

    def __iter__(self) -> Iterator[Pair]:
        return iterate_pairs(self.names, self.time_steps)

    def __len__(self) -> int:
        return len(self.names) * len(self.time_steps)

    def __eq__(self, other: object) -> bool:
        return self is other

    __hash__ = object.__hash__

    def __repr__(self) -> str:
        return (
            f"QuadraticApproximation(method={self.method!r}, meta={self.meta!r}, "
            f"domain=[{self.x_min}, {self.x_max}], resolution={self.resolution}, "
            f"pairs={len(self)}, error_bound={self.error_bound:.6g})"
        )

    @property
    def num_breakpoints(self) -> int:
        return self.num_segments + 1

    @cached_property
    def _breakpoints(self) -> tuple[DataArray, DataArray]:
        return generate_breakpoints(self.x_min, self.x_max, self.num_segments)

    @property
    def x_breakpoints(self) -> DataArray:
        """
        Breakpoints at which the approximation is exact.

        Computed on first access, a sawtooth of depth L has 2^L + 1 of them.
        """
        return self._breakpoints[0]

    @property
    def y_breakpoints(self) -> DataArray:
        return self._breakpoints[1]

    @property
    def constant(self) -> DataArray:
        """
        Constant term of ``expression`` per (name, time) pair.
        """
        return self.expression.const

    @property
    def variable_part(self) -> LinearExpression:
        """
        ``expression`` without its constant term, accepted by linopy objectives.
        """
        return self.expression - self.expression.const
