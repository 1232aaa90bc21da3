"""
Core infrastructure for PyMosaic.

Shared abstractions used by the formula layer and the function builders.

Key components:
    protocols: DataTable, FunctionBackend protocols
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    datasource: DataSource column container
    validation: Input validators
    compute: Hardware detection, timing, linear algebra primitives
"""

from pymosaic.core.protocols import DataTable, FunctionBackend
from pymosaic.core.result import Result
from pymosaic.core.datasource import DataSource
from pymosaic.core.exceptions import (
    PyMosaicError,
    ValidationError,
    DimensionError,
    InvalidFormulaError,
    UnsupportedArityError,
    FormulaArgumentError,
    NumericalError,
    SingularMatrixError,
    FitError,
)

__all__ = [
    # Protocols
    "DataTable",
    "FunctionBackend",
    # Containers
    "Result",
    "DataSource",
    # Exceptions
    "PyMosaicError",
    "ValidationError",
    "DimensionError",
    "InvalidFormulaError",
    "UnsupportedArityError",
    "FormulaArgumentError",
    "NumericalError",
    "SingularMatrixError",
    "FitError",
]
