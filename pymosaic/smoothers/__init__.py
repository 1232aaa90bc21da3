"""
Functions from data.

Public API:
    smoother(formula, data, span, degree) -> FittedFunction
    linear_model(formula, data) -> FittedFunction
    spliner(formula, data, method, monotonic) -> FittedFunction
    connector(formula, data, method) -> FittedFunction

Each builder fits once and returns an immutable callable whose arguments
are the input variables named on the right-hand side of the formula.

Example:
    >>> from pymosaic.smoothers import spliner
    >>> f = spliner('y ~ x', variables={'x': [1, 2, 3, 4, 5], 'y': [1, 2, 4, 8, 8.2]})
    >>> f(x=2.5)
    >>> f(x=2.5, deriv=1)
"""

from pymosaic.smoothers.design import FunctionDesign
from pymosaic.smoothers.solution import FittedFunction, FITTED_LINEAR_MODEL
from pymosaic.smoothers.solvers import smoother, linear_model, spliner, connector

# camelCase spelling kept for users of the R package
linearModel = linear_model

__all__ = [
    "smoother",
    "linear_model",
    "linearModel",
    "spliner",
    "connector",
    "FittedFunction",
    "FunctionDesign",
    "FITTED_LINEAR_MODEL",
]
