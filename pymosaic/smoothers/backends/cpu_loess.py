"""
CPU backend for local regression (loess).

Fitting is delegated to scikit-misc, which wraps the netlib loess code that
R's loess() runs. The surface is always "direct": every prediction is a
separate weighted local polynomial fit around the prediction point, so the
function extrapolates instead of returning NaN outside the data hull.

    q      = floor(n * span), at most n
    h(x0)  = distance from x0 to its q-th nearest observation;
             for span > 1, the largest distance times span^(1/p)
    w_i    = T(d_i / h) with the tricube T(u) = (1 - u^3)^3 on [0, 1)

The neighbourhood and normalisation checks below run before the library so
that the common failures name the setting to change.
"""

from __future__ import annotations

from dataclasses import dataclass
from math import comb
from typing import Any, Literal
import numpy as np
from numpy.typing import NDArray
from skmisc.loess import loess

from pymosaic.core.exceptions import FitError
from pymosaic.core.result import Result
from pymosaic.core.compute.timing import Timer
from pymosaic.smoothers.design import FunctionDesign

LoessFamily = Literal['gaussian', 'symmetric']

LOESS_FAMILIES = ('gaussian', 'symmetric')
LOESS_DEGREES = (0, 1, 2)

# R's loess accepts at most four numeric predictors
MAX_PREDICTORS = 4

# Bisquare passes for family='symmetric' (R: iterations = 4 means 3 re-fits)
ROBUSTNESS_ITERATIONS = 4

# Fraction trimmed from each end when scaling predictors
NORMALIZE_TRIM = 0.1


@dataclass(frozen=True)
class LoessParams:
    """
    Fitted loess model.

    Attributes:
        model: The fitted skmisc.loess.loess object
        span: Smoothing span
        degree: Local polynomial degree
        q: Neighbourhood size
        fitted_values: Surface at the data points (n,)
    """
    model: Any
    span: float
    degree: int
    q: int
    fitted_values: NDArray[np.floating[Any]]


def n_local_coefficients(p: int, degree: int) -> int:
    """Number of monomials of total degree <= degree in p variables."""
    return comb(p + degree, degree)


def _trimmed_scale(x: NDArray[np.floating[Any]]) -> NDArray[np.floating[Any]]:
    n = x.shape[0]
    trim = int(np.ceil(NORMALIZE_TRIM * n))
    trimmed = np.sort(x, axis=0)[trim:n - trim]
    return np.sqrt(np.var(trimmed, axis=0, ddof=1))


class CPULoessBackend:
    """
    Direct-surface loess through scikit-misc.

    Implements the FunctionBackend protocol for FunctionDesign -> LoessParams.
    """

    def __init__(
        self,
        span: float = 0.5,
        degree: int = 2,
        family: LoessFamily = 'gaussian',
        normalize: bool = True,
    ):
        self.span = span
        self.degree = degree
        self.family = family
        self.normalize = normalize

    @property
    def name(self) -> str:
        return 'cpu_loess'

    def fit(self, design: FunctionDesign) -> Result[LoessParams]:
        """
        Fit the loess surface at the data points.

        Raises:
            FitError: If span is not positive, degree is unsupported, there
                are too many predictors, the span leaves no more neighbours
                than local coefficients, a predictor cannot be normalised,
                or the loess routine itself fails
        """
        timer = Timer()
        timer.start()

        n, p = design.n, design.p
        self._check_settings(n, p)

        q = min(int(np.floor(n * self.span)), n)
        n_coef = n_local_coefficients(p, self.degree)
        # the q-th neighbour gets zero tricube weight, so q == n_coef is too few
        if q <= n_coef:
            raise FitError(
                f"span is too small: span={self.span} gives {q} neighbour(s) "
                f"out of {n}, but a degree-{self.degree} fit in {p} variable(s) "
                f"needs more than {n_coef}",
                method='loess',
            )

        if self.normalize and p > 1 and np.any(_trimmed_scale(design.X) <= 0):
            raise FitError(
                "cannot normalize predictors: a trimmed standard deviation is zero",
                method='loess',
            )

        with timer.section('local_fits'):
            try:
                model = loess(
                    np.ascontiguousarray(design.X, dtype=np.float64),
                    np.ascontiguousarray(design.y, dtype=np.float64),
                    weights=design.weights,
                    span=self.span,
                    degree=self.degree,
                    family=self.family,
                    normalize=self.normalize,
                    surface='direct',
                    iterations=ROBUSTNESS_ITERATIONS,
                )
                model.fit()
            except ValueError as e:
                raise FitError(f"loess failed: {e}", method='loess') from e
            fitted = np.asarray(model.outputs.fitted_values, dtype=np.float64)

        timer.stop()

        residuals = design.y - fitted

        return Result(
            params=LoessParams(
                model=model, span=self.span, degree=self.degree, q=q,
                fitted_values=fitted,
            ),
            info={
                'method': 'loess',
                'surface': 'direct',
                'span': self.span,
                'degree': self.degree,
                'family': self.family,
                'q': q,
                'n_local_coefficients': n_coef,
                'equivalent_parameters': float(model.outputs.enp),
                'residual_standard_error': float(np.sqrt(np.mean(residuals ** 2))),
            },
            timing=timer.result(),
            backend_name=self.name,
            warnings=(),
        )

    def _check_settings(self, n: int, p: int) -> None:
        if not self.span > 0:
            raise FitError(f"span must be positive, got {self.span!r}", method='loess')
        if self.degree not in LOESS_DEGREES:
            raise FitError(
                f"degree must be one of {LOESS_DEGREES}, got {self.degree!r}",
                method='loess',
            )
        if p == 0:
            raise FitError("loess needs at least one predictor", method='loess')
        if p > MAX_PREDICTORS:
            raise FitError(
                f"loess supports at most {MAX_PREDICTORS} predictors, got {p}",
                method='loess',
            )

    def evaluate(
        self,
        params: LoessParams,
        inputs: NDArray[np.floating[Any]],
        **options: Any,
    ) -> NDArray[np.floating[Any]]:
        """
        Predict at new points (m x p). Rows with a non-finite input are NaN.

        Raises:
            FitError: If the loess prediction fails
        """
        out = np.full(inputs.shape[0], np.nan)
        finite = np.all(np.isfinite(inputs), axis=1)
        if not finite.any():
            return out
        try:
            prediction = params.model.predict(
                np.ascontiguousarray(inputs[finite], dtype=np.float64), stderror=False
            )
        except ValueError as e:
            raise FitError(f"loess prediction failed: {e}", method='loess') from e
        out[finite] = np.asarray(prediction.values, dtype=np.float64)
        return out
