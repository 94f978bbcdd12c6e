"""Tests for method dispatch and behaviour shared by all formulations."""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd
import pytest
import xarray as xr
from linopy import available_solvers

from quadapprox import (
    APPROXIMATORS,
    ContainerKeyExistsError,
    ManualSOS2,
    OptimizationContainer,
    Sawtooth,
    SolverSOS2,
    add_quadratic_approximation,
    get_approximator,
    options,
)
from components import MockThermalGen

_highs = pytest.mark.skipif(
    "highs" not in available_solvers, reason="HiGHS not installed"
)


def _quadapprox_records(caplog: pytest.LogCaptureFixture) -> list[logging.LogRecord]:
    return [r for r in caplog.records if r.name.startswith("quadapprox")]


@pytest.fixture(params=list(APPROXIMATORS))
def method(request: pytest.FixtureRequest) -> str:
    return request.param


def test_get_approximator() -> None:
    assert isinstance(get_approximator("sos2"), SolverSOS2)
    assert isinstance(get_approximator("manual_sos2"), ManualSOS2)
    assert isinstance(get_approximator("sawtooth"), Sawtooth)


def test_invalid_method(container, make_x) -> None:
    with pytest.raises(ValueError, match="method must be one of"):
        get_approximator("bilinear")
    x = make_x()
    with pytest.raises(ValueError, match="got 'sos1'"):
        add_quadratic_approximation(
            container, MockThermalGen, ["dev1"], [1], x, 0, 1, 2, method="sos1"
        )
    assert len(container.variables) == 1


def test_approximator_properties() -> None:
    assert SolverSOS2().requires_sos
    assert not ManualSOS2().requires_sos
    assert not Sawtooth().requires_sos
    assert SolverSOS2().num_breakpoints(4) == 5
    assert ManualSOS2().num_breakpoints(4) == 5
    assert Sawtooth().num_breakpoints(2) == 5
    assert Sawtooth().resolution_name == "depth"
    assert ManualSOS2().error_bound(0, 4, 4) == Sawtooth().error_bound(0, 4, 2)


def test_dispatch(container, make_x, method: str) -> None:
    x = make_x(["a", "b"], [1, 2])
    approx = add_quadratic_approximation(
        container, MockThermalGen, ["a", "b"], [1, 2], x, -1.0, 3.0, 2, method=method
    )
    approximator = get_approximator(method)
    assert approx.method == method
    assert approx.num_breakpoints == approximator.num_breakpoints(2)
    assert approx.error_bound == approximator.error_bound(-1.0, 3.0, 2)
    assert set(approx.expression.coord_dims) == {"name", "time"}
    assert list(approx) == [("a", 1), ("a", 2), ("b", 1), ("b", 2)]


def test_duplicate_meta_raises(container, make_x, method: str) -> None:
    x = make_x()
    add_quadratic_approximation(
        container, MockThermalGen, ["dev1"], [1], x, 0, 1, 2, method=method
    )
    variables = set(container.model.variables)
    constraints = set(container.model.constraints)

    with pytest.raises(ContainerKeyExistsError, match="already registered"):
        add_quadratic_approximation(
            container, MockThermalGen, ["dev1"], [1], x, 0, 1, 2, method=method
        )
    assert set(container.model.variables) == variables
    assert set(container.model.constraints) == constraints


def test_distinct_meta(container, make_x, method: str) -> None:
    x = make_x()
    first = add_quadratic_approximation(
        container, MockThermalGen, ["dev1"], [1], x, 0, 1, 2, method=method
    )
    second = add_quadratic_approximation(
        container, MockThermalGen, ["dev1"], [1], x, 0, 1, 2, method=method, meta="2"
    )
    assert first.meta == ""
    assert second.meta == "2"
    assert first != second


def test_mixed_methods_share_component_type(container, make_x) -> None:
    x = make_x()
    add_quadratic_approximation(
        container, MockThermalGen, ["dev1"], [1], x, 0, 1, 2, method="sawtooth"
    )
    # the sawtooth keys do not collide with the convex combination keys
    add_quadratic_approximation(
        container, MockThermalGen, ["dev1"], [1], x, 0, 1, 2, method="manual_sos2"
    )
    with pytest.raises(ContainerKeyExistsError):
        add_quadratic_approximation(
            container, MockThermalGen, ["dev1"], [1], x, 0, 1, 2, method="sos2"
        )


class TestInputSelection:
    """Tests for selecting (name, time) pairs from the input."""

    def test_wrong_dimensions(self, container, method: str) -> None:
        x = container.model.add_variables(
            coords=[pd.Index(["dev1"], name="name")], name="x"
        )
        with pytest.raises(ValueError, match="must be indexed by dimensions"):
            add_quadratic_approximation(
                container, MockThermalGen, ["dev1"], [1], x, 0, 1, 2, method=method
            )
        assert not container.variables

    def test_missing_pairs(self, container, make_x, method: str) -> None:
        x = make_x(["a"], [1, 2])
        with pytest.raises(KeyError, match=r"\('b', 2\)"):
            add_quadratic_approximation(
                container, MockThermalGen, ["a", "b"], [2], x, 0, 1, 2, method=method
            )
        assert len(container.variables) == 1

    def test_masked_entries(self, container) -> None:
        mask = xr.DataArray(
            [[True, False]],
            dims=["name", "time"],
            coords={"name": ["a"], "time": [1, 2]},
        )
        x = container.model.add_variables(
            coords=[pd.Index(["a"], name="name"), pd.Index([1, 2], name="time")],
            name="x",
            mask=mask,
        )
        with pytest.raises(ValueError, match=r"masked .* \('a', 2\)$"):
            add_quadratic_approximation(
                container, MockThermalGen, ["a"], [1, 2], x, 0, 1, 2
            )
        add_quadratic_approximation(container, MockThermalGen, ["a"], [1], x, 0, 1, 2)

    def test_component_dim_option(self, container) -> None:
        options(component_dim="bus", time_dim="snapshot")
        x = container.add_variable_container(
            "Flow",
            "Line",
            pd.Index(["l1", "l2"], name="bus"),
            pd.Index([0, 1, 2], name="snapshot"),
        )
        approx = add_quadratic_approximation(
            container, "Line", ["l1"], [0, 2], x, -1, 1, 2, method="sawtooth"
        )
        assert approx.names.name == "bus"
        assert approx.time_steps.name == "snapshot"
        assert set(approx.expression.coord_dims) == {"bus", "snapshot"}


class TestDomainWarning:
    """Tests for the warning on variable bounds outside the domain."""

    def test_warns_for_wide_bounds(self, container, make_x, caplog) -> None:
        x = make_x(["a", "b"], [1], lower=-1, upper=1)
        with caplog.at_level(logging.WARNING, logger="quadapprox"):
            add_quadratic_approximation(
                container, MockThermalGen, ["a", "b"], [1], x, 0, 1, 2
            )
        assert "exceed the approximation domain" in caplog.text
        assert "('a', 1), ('b', 1)" in caplog.text

    def test_no_warning_inside_domain(self, container, make_x, caplog) -> None:
        x = make_x(lower=0.5, upper=1)
        with caplog.at_level(logging.WARNING, logger="quadapprox"):
            add_quadratic_approximation(
                container, MockThermalGen, ["dev1"], [1], x, 0, 1, 2
            )
        assert not _quadapprox_records(caplog)

    def test_no_warning_for_infinite_bounds(self, container, make_x, caplog) -> None:
        x = make_x()
        with caplog.at_level(logging.WARNING, logger="quadapprox"):
            add_quadratic_approximation(
                container, MockThermalGen, ["dev1"], [1], x, 0, 1, 2
            )
        assert not _quadapprox_records(caplog)

    def test_check_domain_disabled(self, container, make_x, caplog) -> None:
        x = make_x(lower=-5, upper=5)
        with options(check_domain=False):
            with caplog.at_level(logging.WARNING, logger="quadapprox"):
                add_quadratic_approximation(
                    container, MockThermalGen, ["dev1"], [1], x, 0, 1, 2
                )
        assert not _quadapprox_records(caplog)


@_highs
class TestSolverIntegration:
    """Integration tests comparing the formulations that run on HiGHS."""

    @pytest.mark.parametrize(
        "method, resolution", [("manual_sos2", 4), ("sawtooth", 2)]
    )
    def test_asymmetric_domain(
        self, container, make_x, method: str, resolution: int
    ) -> None:
        x = make_x(lower=-1, upper=-1)
        y = container.model.add_variables(coords=x.labels.coords, name="y")
        approx = add_quadratic_approximation(
            container,
            MockThermalGen,
            ["dev1"],
            [1],
            x,
            -3.0,
            5.0,
            resolution,
            method=method,
        )
        m = container.model
        m.add_constraints(y == approx.expression, name="square")
        m.add_objective(y.sum(), sense="max")

        status, cond = m.solve(solver_name="highs")

        assert status == "ok"
        assert np.isclose(y.solution.item(), 1.0, atol=1e-5)

    @pytest.mark.parametrize("method", ["manual_sos2", "sawtooth"])
    def test_large_offset_domain(self, container, make_x, method: str) -> None:
        x = make_x(lower=1008, upper=1008)
        y = container.model.add_variables(coords=x.labels.coords, name="y")
        approx = add_quadratic_approximation(
            container, MockThermalGen, ["dev1"], [1], x, 1000, 1016, 2, method=method
        )
        m = container.model
        m.add_constraints(y == approx.expression, name="square")
        m.add_objective(y.sum())

        status, cond = m.solve(solver_name="highs")

        assert status == "ok"
        assert y.solution.item() == pytest.approx(1008.0**2, rel=1e-6)

    def test_formulations_agree(self) -> None:
        slope = xr.DataArray(
            [[1.0, 2.5], [-1.3, 7.0]],
            dims=["name", "time"],
            coords={"name": ["g1", "g2"], "time": [1, 2]},
        )
        # piecewise linear minimum is attained at one of the breakpoints -2..6
        bkpts = np.arange(-2.0, 7.0)
        expected = sum(
            (bkpts**2 - s * bkpts).min() for s in slope.values.ravel()
        )

        objectives = {}
        for method, resolution, solve_kwargs in [
            ("sos2", 8, {"reformulate_sos": True}),
            ("manual_sos2", 8, {}),
            ("sawtooth", 3, {}),
        ]:
            container = OptimizationContainer()
            x = container.add_variable_container(
                "Power",
                MockThermalGen,
                pd.Index(["g1", "g2"], name="name"),
                pd.Index([1, 2], name="time"),
                lower=-2,
                upper=6,
            )
            approx = add_quadratic_approximation(
                container,
                MockThermalGen,
                ["g1", "g2"],
                [1, 2],
                x,
                -2.0,
                6.0,
                resolution,
                method=method,
            )
            m = container.model
            m.add_objective((approx.variable_part - slope * x).sum())
            status, cond = m.solve(solver_name="highs", **solve_kwargs)
            assert status == "ok"
            objectives[method] = m.objective.value + approx.constant.sum().item()

        for method, value in objectives.items():
            assert np.isclose(value, expected, atol=1e-5), method

    @pytest.mark.parametrize(
        "method, resolution, solve_kwargs",
        [
            ("sos2", 4, {"reformulate_sos": True}),
            ("manual_sos2", 4, {}),
            ("sawtooth", 2, {}),
        ],
    )
    def test_square_in_constraint(
        self, container, make_x, method: str, resolution: int, solve_kwargs: dict
    ) -> None:
        x = make_x(lower=3, upper=3)
        y = container.model.add_variables(coords=x.labels.coords, name="y")
        approx = add_quadratic_approximation(
            container,
            MockThermalGen,
            ["dev1"],
            [1],
            x,
            0.0,
            4.0,
            resolution,
            method=method,
        )
        m = container.model
        m.add_constraints(approx.expression + y == 10, name="budget")
        m.add_objective(y.sum())

        status, cond = m.solve(solver_name="highs", **solve_kwargs)

        assert status == "ok"
        assert np.isclose(y.solution.item(), 1.0, atol=1e-5)
