"""
Exception hierarchy for PyMosaic.

All exceptions inherit from PyMosaicError to allow catching any
library-specific error. Domain-specific exceptions should inherit from
the appropriate base class here.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""


class PyMosaicError(Exception):
    """Base exception for all PyMosaic errors."""
    pass


class ValidationError(PyMosaicError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.

    Raised when array shapes don't match expected dimensions or
    when multiple arrays have inconsistent shapes.
    """
    pass


class InvalidFormulaError(ValidationError):
    """
    Formula is malformed or cannot be used by the requested builder.

    Raised for syntax errors, a missing or multi-term left-hand side,
    unknown transformation functions, and variables that cannot be
    found in the data.

    Attributes:
        formula: The offending formula text, if known
    """

    def __init__(self, message: str, formula: str | None = None):
        super().__init__(message)
        self.formula = formula


class UnsupportedArityError(InvalidFormulaError):
    """
    Formula has more input variables than the builder supports.

    spliner() and connector() interpolate in one variable only.

    Attributes:
        formula: The offending formula text
        n_inputs: Number of right-hand-side variables found
    """

    def __init__(
        self,
        message: str,
        formula: str | None = None,
        n_inputs: int | None = None,
    ):
        super().__init__(message, formula=formula)
        self.n_inputs = n_inputs


class FormulaArgumentError(InvalidFormulaError, TypeError):
    """
    A generated function was called with the wrong arguments.

    Raised for unknown argument names, arguments given twice, or missing
    input variables. Also a TypeError, which is what Python raises for a
    bad call of an ordinary function.

    Attributes:
        expected: Parameter names the function accepts
        received: Argument names the caller supplied
    """

    def __init__(
        self,
        message: str,
        formula: str | None = None,
        expected: tuple[str, ...] = (),
        received: tuple[str, ...] = (),
    ):
        super().__init__(message, formula=formula)
        self.expected = expected
        self.received = received


class NumericalError(PyMosaicError):
    """
    Numerical computation failed.

    Base class for errors arising from numerical issues during computation.
    """
    pass


class SingularMatrixError(NumericalError):
    """
    Matrix is singular or nearly singular.

    Raised when a matrix operation requires invertibility but the matrix
    is singular or numerically rank-deficient.

    Attributes:
        matrix_name: Name/description of the problematic matrix
        condition_number: Estimated condition number, if available
        rank: Numerical rank, if computed
        expected_rank: Expected rank (typically min(n, p))
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        condition_number: float | None = None,
        rank: int | None = None,
        expected_rank: int | None = None
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.condition_number = condition_number
        self.rank = rank
        self.expected_rank = expected_rank


class FitError(NumericalError):
    """
    A fitting or interpolation routine failed or degenerated.

    Raised at construction time (too few points for the span or method,
    singular design, duplicated abscissae) and at evaluation time (a
    prediction that is not finite).

    Attributes:
        method: Name of the routine that failed (e.g. 'loess', 'fmm')
    """

    def __init__(self, message: str, method: str | None = None):
        super().__init__(message)
        self.method = method
