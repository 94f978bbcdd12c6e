"""Pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable, Iterator

import pandas as pd
import pytest
from linopy.variables import Variable

from components import MockThermalGen
from quadapprox import OptimizationContainer, options


@pytest.fixture(autouse=True)
def reset_options() -> Iterator[None]:
    yield
    options.reset()


@pytest.fixture
def container() -> OptimizationContainer:
    return OptimizationContainer()


@pytest.fixture
def make_x(
    container: OptimizationContainer,
) -> Callable[..., Variable]:
    """
    Create the variable to approximate, indexed by component name and time.
    """

    def make(
        names: list[str] | None = None,
        time_steps: list[int] | None = None,
        **kwargs,
    ) -> Variable:
        names = ["dev1"] if names is None else names
        time_steps = [1] if time_steps is None else time_steps
        return container.add_variable_container(
            "TestOriginalVariable",
            MockThermalGen,
            pd.Index(names, name=options["component_dim"]),
            pd.Index(time_steps, name=options["time_dim"]),
            **kwargs,
        )

    return make
