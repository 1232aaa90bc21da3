"""
PyMosaic: functions built from data.

Fit a smoother, a linear model, a spline, or a connect-the-dots
interpolant from a formula and a table, and get back an ordinary Python
callable of the formula's input variables.

Submodules:
    core: Data containers, results, exceptions, compute primitives
    formula: R-style formula parsing and model frames
    smoothers: The function builders
"""

__version__ = "0.1.0"

from pymosaic import core
from pymosaic import formula
from pymosaic import smoothers
from pymosaic.core.datasource import DataSource
from pymosaic.formula import parse_formula
from pymosaic.smoothers import (
    smoother,
    linear_model,
    linearModel,
    spliner,
    connector,
    FittedFunction,
)

__all__ = [
    "__version__",
    "core",
    "formula",
    "smoothers",
    "DataSource",
    "parse_formula",
    "smoother",
    "linear_model",
    "linearModel",
    "spliner",
    "connector",
    "FittedFunction",
]
