#!/usr/bin/env python3
"""
Quadapprox: piecewise linear mixed-integer approximations of x² for linopy.
"""

from importlib.metadata import version

__version__ = version("quadapprox")

from quadapprox.approximation import QuadraticApproximation
from quadapprox.breakpoints import generate_breakpoints, sawtooth_breakpoints
from quadapprox.common import ContainerKeyExistsError, DomainError
from quadapprox.config import options
from quadapprox.constants import ConstraintType, VariableType
from quadapprox.container import ConstraintKey, OptimizationContainer, VariableKey
from quadapprox.evaluation import (
    interpolate,
    sawtooth_error_bound,
    sawtooth_value,
    sos2_error_bound,
)
from quadapprox.manual_sos2 import add_manual_sos2_quadratic_approximation
from quadapprox.methods import (
    APPROXIMATORS,
    ManualSOS2,
    QuadraticApproximator,
    Sawtooth,
    SolverSOS2,
    add_quadratic_approximation,
    get_approximator,
)
from quadapprox.sawtooth import add_sawtooth_quadratic_approximation
from quadapprox.solver_sos2 import add_sos2_quadratic_approximation

__all__ = (
    "APPROXIMATORS",
    "ConstraintKey",
    "ConstraintType",
    "ContainerKeyExistsError",
    "DomainError",
    "ManualSOS2",
    "OptimizationContainer",
    "QuadraticApproximation",
    "QuadraticApproximator",
    "Sawtooth",
    "SolverSOS2",
    "VariableKey",
    "VariableType",
    "add_manual_sos2_quadratic_approximation",
    "add_quadratic_approximation",
    "add_sawtooth_quadratic_approximation",
    "add_sos2_quadratic_approximation",
    "generate_breakpoints",
    "get_approximator",
    "interpolate",
    "options",
    "sawtooth_breakpoints",
    "sawtooth_error_bound",
    "sawtooth_value",
    "sos2_error_bound",
)
