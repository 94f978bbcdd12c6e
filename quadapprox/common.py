"""
Quadapprox common module.

This module contains the error types, input validation and indexing helpers
shared by all approximation builders.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Iterable, Iterator, Sequence
from numbers import Integral
from typing import TYPE_CHECKING, Any, Union

import numpy as np
import pandas as pd

from quadapprox.config import options

if TYPE_CHECKING:
    from linopy.expressions import LinearExpression
    from linopy.variables import Variable

logger = logging.getLogger(__name__)

ComponentType = Union[str, type]
Pair = tuple[Hashable, Hashable]


class DomainError(ValueError):
    """
    Raised when the domain bounds or the resolution of an approximation are
    invalid.
    """


class ContainerKeyExistsError(ValueError):
    """
    Raised when a variable or constraint collection is registered twice.
    """


def validate_domain(
    x_min: float, x_max: float, resolution: int, resolution_name: str
) -> tuple[float, float, int]:
    """
    Check the domain ``[x_min, x_max]`` and the resolution of an approximation.

    Parameters
    ----------
    x_min : float
        Lower bound of the approximated variable.
    x_max : float
        Upper bound of the approximated variable.
    resolution : int
        Number of segments or sawtooth depth.
    resolution_name : str
        Name of the resolution parameter, used in error messages.

    Returns
    -------
    tuple[float, float, int]
        The validated bounds as floats and the resolution as int.

    Raises
    ------
    DomainError
        If a bound is not finite, if ``x_max <= x_min`` or if the resolution
        is not an integer >= 1.
    """
    context = f"x_min={x_min}, x_max={x_max}, {resolution_name}={resolution}"
    try:
        lo, hi = float(x_min), float(x_max)
    except (TypeError, ValueError) as e:
        raise DomainError(f"Domain bounds must be numbers ({context}).") from e
    if not (np.isfinite(lo) and np.isfinite(hi)):
        raise DomainError(f"Domain bounds must be finite ({context}).")
    if not hi > lo:
        raise DomainError(
            f"x_max must be strictly greater than x_min ({context})."
        )
    if isinstance(resolution, bool) or not isinstance(resolution, Integral):
        raise DomainError(f"{resolution_name} must be an integer ({context}).")
    if resolution < 1:
        raise DomainError(f"{resolution_name} must be at least 1 ({context}).")
    return lo, hi, int(resolution)


def as_index(values: Iterable[Hashable], name: str) -> pd.Index:
    """
    Convert names or time steps to a named, non-empty and unique index.
    """
    index = values if isinstance(values, pd.Index) else pd.Index(list(values))
    index = index.rename(name)
    if index.empty:
        raise ValueError(f"Coordinates for dimension '{name}' must not be empty.")
    if not index.is_unique:
        duplicated = index[index.duplicated()].unique().tolist()
        raise ValueError(
            f"Coordinates for dimension '{name}' contain duplicates: {duplicated}"
        )
    return index


def component_type_name(component_type: ComponentType) -> str:
    if isinstance(component_type, type):
        return component_type.__name__
    return str(component_type)


def iterate_pairs(names: pd.Index, time_steps: pd.Index) -> Iterator[Pair]:
    """
    Iterate over all (name, time) pairs, names varying slowest.
    """
    for name in names:
        for t in time_steps:
            yield name, t


def pairs_where(mask: np.ndarray, names: pd.Index, time_steps: pd.Index) -> list[Pair]:
    """
    (name, time) pairs at the True entries of a mask shaped (names, time steps),
    as plain Python values.
    """
    name_values = names.tolist()
    time_values = time_steps.tolist()
    return [(name_values[i], time_values[j]) for i, j in zip(*np.nonzero(mask))]


def format_pairs(pairs: Sequence[Pair], max_items: int = 5) -> str:
    shown = ", ".join(str(p) for p in pairs[:max_items])
    if len(pairs) > max_items:
        shown += f", ... ({len(pairs) - max_items} more)"
    return shown


def _is_variable(x: Any) -> bool:
    from linopy.variables import Variable

    return isinstance(x, Variable)


def select_pairs(
    x: Variable | LinearExpression, names: pd.Index, time_steps: pd.Index
) -> Variable | LinearExpression:
    """
    Select the entries of ``x`` for all requested (name, time) pairs.

    Raises
    ------
    ValueError
        If ``x`` is not indexed by exactly the component and time dimensions,
        or if a requested entry of a variable is masked out.
    KeyError
        If ``x`` has no entry for some requested (name, time) pair.
    """
    component_dim = options["component_dim"]
    time_dim = options["time_dim"]
    label = getattr(x, "name", None) or type(x).__name__

    dims = getattr(x, "coord_dims", x.dims)
    expected = {component_dim, time_dim}
    if set(dims) != expected:
        raise ValueError(
            f"'{label}' must be indexed by dimensions {sorted(expected)}, "
            f"but has dimensions {list(dims)}"
        )

    known_names = pd.Index(x.coords[component_dim].values)
    known_times = pd.Index(x.coords[time_dim].values)
    missing = [
        (n, t)
        for n, t in iterate_pairs(names, time_steps)
        if n not in known_names or t not in known_times
    ]
    if missing:
        raise KeyError(
            f"'{label}' has no entry for (name, time) pair(s) {format_pairs(missing)}"
        )

    selected = x.sel({component_dim: list(names), time_dim: list(time_steps)})

    if _is_variable(selected):
        labels = selected.labels.transpose(component_dim, time_dim).values
        masked = pairs_where(labels == -1, names, time_steps)
        if masked:
            raise ValueError(
                f"'{label}' is masked for (name, time) pair(s) {format_pairs(masked)}"
            )
    return selected


def warn_outside_domain(
    x: Variable | LinearExpression,
    names: pd.Index,
    time_steps: pd.Index,
    x_min: float,
    x_max: float,
) -> list[Pair]:
    """
    Log a warning for all entries whose finite bounds exceed the domain.

    The approximation restricts the variable to ``[x_min, x_max]``, so wider
    finite bounds usually point to a mismatch between model and domain.
    Returns the offending (name, time) pairs.
    """
    if not options["check_domain"] or not _is_variable(x):
        return []

    component_dim = options["component_dim"]
    time_dim = options["time_dim"]
    lower = x.lower.transpose(component_dim, time_dim).values
    upper = x.upper.transpose(component_dim, time_dim).values
    outside = (np.isfinite(lower) & (lower < x_min)) | (
        np.isfinite(upper) & (upper > x_max)
    )
    pairs = pairs_where(outside, names, time_steps)
    if pairs:
        logger.warning(
            f"Bounds of '{x.name}' exceed the approximation domain "
            f"[{x_min}, {x_max}] for (name, time) pair(s) {format_pairs(pairs)}; "
            "values outside the domain are cut off."
        )
    return pairs
