"""
Optimization container wrapping a linopy model.

The container keeps an explicit registry from keys
``(entry type, component type, meta)`` to the linopy variables and
constraints created for them. Builders only register through the container,
so no global state is involved.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np
import pandas as pd
from linopy import Model
from linopy.constraints import Constraint
from linopy.variables import Variable

from quadapprox.common import (
    ComponentType,
    ContainerKeyExistsError,
    component_type_name,
)
from quadapprox.config import options

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OptimizationContainerKey:
    entry_type: str
    component_type: str
    meta: str = ""

    @classmethod
    def build(
        cls,
        entry_type: str | Enum,
        component_type: ComponentType,
        meta: str = "",
    ) -> OptimizationContainerKey:
        if isinstance(entry_type, Enum):
            entry_type = entry_type.value
        return cls(str(entry_type), component_type_name(component_type), str(meta))

    @property
    def model_name(self) -> str:
        """
        Name of the entry in the linopy model.
        """
        sep = options["name_separator"]
        parts = [self.entry_type, self.component_type]
        if self.meta:
            parts.append(self.meta)
        return sep.join(parts)

    def __str__(self) -> str:
        return self.model_name


class VariableKey(OptimizationContainerKey):
    pass


class ConstraintKey(OptimizationContainerKey):
    pass


class OptimizationContainer:
    """
    Registry of named variable and constraint collections in a linopy model.

    Parameters
    ----------
    model : linopy.Model, optional
        Model to add variables and constraints to. A new model is created if
        None.

    Examples
    --------
    >>> container = OptimizationContainer()
    >>> names = pd.Index(["gen1", "gen2"], name="name")
    >>> time = pd.Index([1, 2, 3], name="time")
    >>> x = container.add_variable_container("Power", "Generator", names, time)
    >>> container.has_container_key(VariableKey.build("Power", "Generator"))
    True
    """

    def __init__(self, model: Model | None = None) -> None:
        self._model = Model() if model is None else model
        self.variables: dict[VariableKey, Variable] = {}
        self.constraints: dict[ConstraintKey, Constraint] = {}

    @property
    def model(self) -> Model:
        return self._model

    def __repr__(self) -> str:
        lines = [f"OptimizationContainer ({type(self._model).__name__})"]
        for title, registry in (
            ("Variables", self.variables),
            ("Constraints", self.constraints),
        ):
            lines.append(f"{title}:")
            if not registry:
                lines.append(" <empty>")
            for key, entry in registry.items():
                dims = ", ".join(str(d) for d in entry.dims)
                lines.append(f" * {key} ({dims})")
        return "\n".join(lines)

    def has_container_key(self, key: OptimizationContainerKey) -> bool:
        if isinstance(key, VariableKey):
            return key in self.variables
        if isinstance(key, ConstraintKey):
            return key in self.constraints
        raise TypeError(f"Expected VariableKey or ConstraintKey, got {type(key)}")

    def check_available(self, *keys: OptimizationContainerKey) -> None:
        """
        Raise if any of the keys is already registered.

        Builders call this for all their keys before touching the model, so
        a duplicate never leaves a partial approximation behind.
        """
        taken = [str(k) for k in keys if self.has_container_key(k)]
        if taken:
            raise ContainerKeyExistsError(
                f"Container key(s) {taken} already registered. Use a distinct "
                "meta tag for independent approximations."
            )
        names = [k.model_name for k in keys]
        clashing = [
            n
            for n in names
            if n in self._model.variables or n in self._model.constraints
        ]
        if clashing:
            raise ContainerKeyExistsError(
                f"Name(s) {clashing} already exist in the underlying model."
            )

    def add_variable_container(
        self,
        entry_type: str | Enum,
        component_type: ComponentType,
        *axes: pd.Index,
        meta: str = "",
        lower: Any = -np.inf,
        upper: Any = np.inf,
        binary: bool = False,
    ) -> Variable:
        """
        Create and register a variable collection indexed by ``axes``.

        Parameters
        ----------
        entry_type : str or Enum
            Kind of the variable collection.
        component_type : str or type
            Type of the components the variables belong to.
        *axes : pandas.Index
            Named indexes spanning the collection, e.g. names and time steps.
        meta : str, optional
            Tag distinguishing several collections of the same kind.
        lower, upper : scalar or array_like, optional
            Bounds of the variables. Ignored for binaries.
        binary : bool, default False
            Whether the variables are binary.

        Returns
        -------
        linopy.Variable

        Raises
        ------
        ContainerKeyExistsError
            If the key is already registered.
        """
        key = VariableKey.build(entry_type, component_type, meta)
        self.check_available(key)
        for axis in axes:
            if not isinstance(axis, pd.Index) or axis.name is None:
                raise ValueError(f"Axes must be named pandas indexes, got {axis!r}")

        if binary:
            var = self._model.add_variables(
                coords=list(axes), name=key.model_name, binary=True
            )
        else:
            var = self._model.add_variables(
                lower=lower, upper=upper, coords=list(axes), name=key.model_name
            )
        self.variables[key] = var
        logger.debug(f"Registered variable container {key} with shape {var.shape}")
        return var

    def add_constraints(
        self,
        entry_type: str | Enum,
        component_type: ComponentType,
        constraint: Any,
        meta: str = "",
    ) -> Constraint:
        """
        Add and register a collection of linear constraints.

        ``constraint`` is anything ``linopy.Model.add_constraints`` accepts as
        its first argument, typically the result of ``lhs == rhs``.
        """
        key = ConstraintKey.build(entry_type, component_type, meta)
        self.check_available(key)
        con = self._model.add_constraints(constraint, name=key.model_name)
        self.constraints[key] = con
        logger.debug(f"Registered constraint container {key} with shape {con.shape}")
        return con

    def add_sos2_constraint(self, variable: Variable, sos_dim: str) -> None:
        """
        Declare ``variable`` a native SOS2 set along ``sos_dim``.

        One set is created for every combination of the other dimensions.
        Whether the solver supports SOS2 is not checked here.
        """
        self._model.add_sos_constraints(variable, sos_type=2, sos_dim=sos_dim)
        logger.debug(f"Declared '{variable.name}' as SOS2 along '{sos_dim}'")

    def get_variable(
        self,
        entry_type: str | Enum,
        component_type: ComponentType,
        meta: str = "",
    ) -> Variable:
        key = VariableKey.build(entry_type, component_type, meta)
        try:
            return self.variables[key]
        except KeyError:
            known = [str(k) for k in self.variables]
            raise KeyError(
                f"No variable container {key}, registered: {known}"
            ) from None

    def get_constraint(
        self,
        entry_type: str | Enum,
        component_type: ComponentType,
        meta: str = "",
    ) -> Constraint:
        key = ConstraintKey.build(entry_type, component_type, meta)
        try:
            return self.constraints[key]
        except KeyError:
            known = [str(k) for k in self.constraints]
            raise KeyError(
                f"No constraint container {key}, registered: {known}"
            ) from None

    def iter_variable_keys(self) -> Iterator[VariableKey]:
        yield from self.variables

    def iter_constraint_keys(self) -> Iterator[ConstraintKey]:
        yield from self.constraints
