"""
Builders: functions from data.

Each builder takes a formula and a data table, fits one backend, and
returns a FittedFunction whose arguments are the variables on the
right-hand side of the formula. If the formula transforms a variable,
e.g. sqrt(age) or log(income), only the variable itself (age, income) is
an argument; the transformation is applied on every call.

    smoother      local regression (loess)
    linear_model  least squares on exactly the given terms, no implicit intercept
    spliner       interpolating spline in one variable
    connector     piecewise-linear interpolation in one variable
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal, TYPE_CHECKING
from numpy.typing import ArrayLike

from pymosaic.core.capabilities import CAPABILITY_GPU_NATIVE
from pymosaic.core.compute.device import select_device
from pymosaic.core.datasource import DataSource
from pymosaic.core.exceptions import InvalidFormulaError, UnsupportedArityError, ValidationError
from pymosaic.core.validation import check_choice
from pymosaic.formula import Formula, parse_formula
from pymosaic.smoothers.design import FunctionDesign
from pymosaic.smoothers.solution import FittedFunction, FITTED_LINEAR_MODEL
from pymosaic.smoothers.backends.cpu import CPUQRBackend
from pymosaic.smoothers.backends.cpu_loess import CPULoessBackend, LoessFamily, LOESS_FAMILIES
from pymosaic.smoothers.backends.cpu_spline import (
    CPUSplineBackend, SplineMethod, SPLINE_METHODS, MONOTONE_METHOD,
)
from pymosaic.smoothers.backends.cpu_approx import CPUApproxBackend, ApproxMethod, APPROX_METHODS
from pymosaic.smoothers.backends._common import TiesChoice

if TYPE_CHECKING:
    import pandas as pd

DEFAULT_SPAN = 0.5
DEFAULT_DEGREE = 2
DEFAULT_SPLINE_METHOD = 'fmm'

TIES_CHOICES = (None, 'mean', 'min', 'max')

# Type alias for backend selection
BackendChoice = Literal['auto', 'cpu', 'cpu_qr', 'gpu', 'gpu_fp64']


def smoother(
    formula: str | Formula,
    data: DataSource | Mapping[str, ArrayLike] | pd.DataFrame | None = None,
    span: float = DEFAULT_SPAN,
    degree: int = DEFAULT_DEGREE,
    *,
    family: LoessFamily = 'gaussian',
    weights: str | ArrayLike | None = None,
    normalize: bool = True,
    variables: Mapping[str, ArrayLike] | None = None,
) -> FittedFunction:
    """
    Create a function by local regression (loess).

    Args:
        formula: e.g. 'wage ~ age'. One output on the left; up to four
            inputs on the right. 'a*b' means the same as 'a + b'.
        data: DataSource, pandas DataFrame, or mapping of columns
        span: How smooth: the fraction of the data in each neighbourhood
        degree: 0 locally constant, 1 locally linear, 2 locally quadratic
        family: 'gaussian' least squares, or 'symmetric' robust re-fits
        weights: Prior weights, as a column name or an array
        normalize: Scale several inputs to a common trimmed spread
        variables: Columns to use when data is None

    Returns:
        FittedFunction of the input variables

    Raises:
        InvalidFormulaError: No single output, or no usable inputs
        FitError: The span is too small for the data, the degree is not
            0, 1 or 2, or a local fit is singular

    Example:
        >>> f = smoother('wage ~ age', data=cps, span=0.9)
        >>> f(40)
    """
    check_choice(family, LOESS_FAMILIES, 'family')
    f = _with_response(formula)
    ds = _resolve_data(data, variables)

    terms = tuple(t for t in f.terms if not t.is_intercept and not t.is_interaction)
    main_effects = {t.label for t in terms}
    for term in f.terms:
        if term.is_interaction and not {fac.label for fac in term.factors} <= main_effects:
            raise InvalidFormulaError(
                f"smoother() treats interactions as sums; '{term.label}' needs "
                f"its parts as separate terms, e.g. use '*' instead of ':'",
                formula=str(f),
            )
    if not terms:
        raise InvalidFormulaError(
            f"smoother() needs at least one input term in '{f}'", formula=str(f)
        )

    design = FunctionDesign.from_formula(f, ds, terms=terms, weights=weights)
    backend = CPULoessBackend(span=span, degree=degree, family=family, normalize=normalize)
    result = backend.fit(design)

    return FittedFunction(
        kind='smoother',
        formula=f,
        _result=result,
        _backend=backend,
        _terms=terms,
    )


def linear_model(
    formula: str | Formula,
    data: DataSource | Mapping[str, ArrayLike] | pd.DataFrame | None = None,
    *,
    weights: str | ArrayLike | None = None,
    backend: BackendChoice = 'auto',
    variables: Mapping[str, ArrayLike] | None = None,
) -> FittedFunction:
    """
    Create a function as a least-squares linear combination of terms.

    NOTE: An intercept is not included unless the formula says so with
    '+ 1'. This differs from the usual regression-formula convention.

    Args:
        formula: e.g. 'log(wage) ~ age + educ + 1'
        data: DataSource, pandas DataFrame, or mapping of columns
        weights: Prior weights, as a column name or an array
        backend: Computational backend to use:
            - 'auto': GPU when the data already lives there, else CPU
            - 'cpu' / 'cpu_qr': QR decomposition (reference)
            - 'gpu': PyTorch, FP32
            - 'gpu_fp64': PyTorch, FP64 (CUDA only)
        variables: Columns to use when data is None

    Returns:
        FittedFunction of the input variables plus showcoefs=False.
        With showcoefs=True it returns the coefficients by term label.
        Its mosaic_type is "Fitted Linear Model".

    Raises:
        InvalidFormulaError: No single output on the left-hand side
        FitError: Singular design matrix or too few observations

    Example:
        >>> g = linear_model('log(wage) ~ age + educ + 1', data=cps)
        >>> g(age=40, educ=12)
        >>> g(showcoefs=True)
    """
    f = _with_response(formula)
    ds = _resolve_data(data, variables)

    design = FunctionDesign.from_formula(f, ds, weights=weights)
    backend_impl = _get_backend(backend, ds)
    result = backend_impl.fit(design)

    return FittedFunction(
        kind='linear_model',
        formula=f,
        _result=result,
        _backend=backend_impl,
        _terms=design.terms,
        _options=(('showcoefs', False),),
        mosaic_type=FITTED_LINEAR_MODEL,
    )


def spliner(
    formula: str | Formula,
    data: DataSource | Mapping[str, ArrayLike] | pd.DataFrame | None = None,
    method: SplineMethod = DEFAULT_SPLINE_METHOD,
    monotonic: bool = False,
    *,
    ties: TiesChoice = None,
    variables: Mapping[str, ArrayLike] | None = None,
) -> FittedFunction:
    """
    Create a function by spline interpolation in one variable.

    Args:
        formula: e.g. 'y ~ x'; exactly one input variable
        data: DataSource, pandas DataFrame, or mapping of columns
        method: 'fmm', 'natural', 'periodic', 'monoH.FC', 'hyman' or 'akima'
        monotonic: Respect monotonicity in the data; forces 'monoH.FC'
        ties: None to refuse duplicated x, or 'mean'/'min'/'max' to
            collapse them
        variables: Columns to use when data is None

    Returns:
        FittedFunction of (x, deriv=0); deriv 1..3 evaluates derivatives.
        Outside the data 'natural', 'monoH.FC' and 'hyman' continue
        linearly; 'periodic' repeats; the others extrapolate their end pieces.

    Raises:
        UnsupportedArityError: More than one input variable
        FitError: Duplicated x (without ties), too few points, or a
            non-finite evaluation

    Example:
        >>> f1 = spliner('y ~ x', variables={'x': [1, 2, 3, 4, 5], 'y': [1, 2, 4, 8, 8.2]})
        >>> f1(x=[8, 9, 10])
    """
    check_choice(method, SPLINE_METHODS, 'method')
    return _interpolating_function(
        formula, _resolve_data(data, variables),
        method=method, monotonic=monotonic, ties=ties,
    )


def connector(
    formula: str | Formula,
    data: DataSource | Mapping[str, ArrayLike] | pd.DataFrame | None = None,
    method: ApproxMethod = 'linear',
    *,
    ties: TiesChoice = None,
    variables: Mapping[str, ArrayLike] | None = None,
) -> FittedFunction:
    """
    Create a function by connecting the data points.

    Args:
        formula: e.g. 'x ~ y'; exactly one input variable
        data: DataSource, pandas DataFrame, or mapping of columns
        method: 'linear' (straight segments) or 'constant' (steps)
        ties: None to refuse duplicated inputs, or 'mean'/'min'/'max'
        variables: Columns to use when data is None

    Returns:
        FittedFunction of the input variable. Outside the data range it
        returns the nearest boundary value.

    Raises:
        UnsupportedArityError: More than one input variable
        FitError: Duplicated inputs (without ties) or too few points
    """
    check_choice(method, APPROX_METHODS, 'method')
    return _interpolating_function(
        formula, _resolve_data(data, variables),
        method=method, connect=True, ties=ties,
    )


def _interpolating_function(
    formula: str | Formula,
    data: DataSource,
    *,
    method: str,
    monotonic: bool = False,
    connect: bool = False,
    ties: TiesChoice = None,
) -> FittedFunction:
    """Shared path of spliner() and connector()."""
    check_choice(ties, TIES_CHOICES, 'ties')
    f = _with_response(formula)

    if len(f.input_names) != 1:
        raise UnsupportedArityError(
            f"Sorry: only one input variable is supported, got "
            f"{len(f.input_names)} {f.input_names} in '{f}'",
            formula=str(f),
            n_inputs=len(f.input_names),
        )
    terms = tuple(t for t in f.terms if not t.is_intercept)
    if len(terms) != 1:
        raise UnsupportedArityError(
            f"Sorry: interpolation needs a single term on the right-hand side, "
            f"got {[t.label for t in terms]} in '{f}'",
            formula=str(f),
            n_inputs=len(f.input_names),
        )

    design = FunctionDesign.from_formula(f, data, terms=terms)
    if connect:
        backend = CPUApproxBackend(method=method, ties=ties)
        options: tuple[tuple[str, Any], ...] = ()
    else:
        backend = CPUSplineBackend(method=MONOTONE_METHOD if monotonic else method, ties=ties)
        options = (('deriv', 0),)
    result = backend.fit(design)

    return FittedFunction(
        kind='connector' if connect else 'spliner',
        formula=f,
        _result=result,
        _backend=backend,
        _terms=terms,
        _options=options,
    )


def _with_response(formula: str | Formula) -> Formula:
    f = parse_formula(formula)
    if f.response is None:
        raise InvalidFormulaError(
            f"Formula '{f}' needs exactly one output on the left-hand side",
            formula=str(f),
        )
    return f


def _resolve_data(
    data: DataSource | Mapping[str, ArrayLike] | pd.DataFrame | None,
    variables: Mapping[str, ArrayLike] | None,
) -> DataSource:
    if data is None and variables is None:
        raise ValidationError("Supply data, or the columns as variables={...}")
    if data is not None and variables is not None:
        raise ValidationError("Supply either data or variables, not both")
    return DataSource.build(data if data is not None else variables)


def _get_backend(choice: BackendChoice, data: DataSource):
    """
    Select and instantiate the least-squares backend.

    Raises:
        ValueError: If unknown backend specified
        RuntimeError: If GPU requested but unavailable
    """
    if choice == 'auto':
        if data.supports(CAPABILITY_GPU_NATIVE):
            return _get_backend('gpu', data)
        return CPUQRBackend()

    elif choice in ('cpu', 'cpu_qr'):
        return CPUQRBackend()

    elif choice in ('gpu', 'gpu_fp64'):
        device = select_device('gpu')
        from pymosaic.smoothers.backends.gpu import GPUCholeskyBackend
        return GPUCholeskyBackend(use_fp64=choice == 'gpu_fp64', device=device.device_type)

    else:
        raise ValueError(f"Unknown backend: {choice!r}")
