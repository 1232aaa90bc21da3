"""
CPU backend for interpolating splines.

Builds SciPy piecewise polynomials that play the role of R's splinefun():

    'fmm'       not-a-knot cubic spline (scipy CubicSpline)
    'natural'   natural cubic spline, extended linearly outside the data
    'periodic'  periodic cubic spline, evaluated periodically
    'monoH.FC'  monotone piecewise cubic Hermite (scipy PchipInterpolator)
    'hyman'     'fmm' slopes clipped by the Hyman filter, for monotone y
    'akima'     Akima spline (scipy Akima1DInterpolator)

Outside the data range 'natural' and the monotone methods ('monoH.FC',
'hyman') extend the tangent line at each end, so monotone data stay
monotone everywhere. 'periodic' repeats; the rest extrapolate their
boundary polynomial piece.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Any, Literal
import numpy as np
from numpy.typing import NDArray
from scipy.interpolate import (
    Akima1DInterpolator, CubicHermiteSpline, CubicSpline, PchipInterpolator, PPoly,
)

from pymosaic.core.exceptions import FitError
from pymosaic.core.result import Result
from pymosaic.core.compute.timing import Timer
from pymosaic.smoothers.design import FunctionDesign
from pymosaic.smoothers.backends._common import TiesChoice, regularize_values, single_column

SplineMethod = Literal['fmm', 'natural', 'periodic', 'monoH.FC', 'hyman', 'akima']

SPLINE_METHODS = ('fmm', 'natural', 'periodic', 'monoH.FC', 'hyman', 'akima')

MONOTONE_METHOD = 'monoH.FC'

# Methods extended linearly outside the data
LINEAR_TAIL_METHODS = ('natural', 'monoH.FC', 'hyman')

# Fewest distinct points each method can interpolate
MIN_POINTS = {
    'fmm': 2,
    'natural': 2,
    'periodic': 3,
    'monoH.FC': 2,
    'hyman': 2,
    'akima': 3,
}

MAX_DERIV = 3


@dataclass(frozen=True)
class SplineParams:
    """
    Fitted spline.

    Attributes:
        x, y: Knots (sorted, unique) and values
        method: Spline method
        spline: SciPy piecewise polynomial
    """
    x: NDArray[np.floating[Any]]
    y: NDArray[np.floating[Any]]
    method: str
    spline: PPoly


class CPUSplineBackend:
    """Interpolating spline through (x, y) with derivatives up to order 3."""

    def __init__(self, method: SplineMethod = 'fmm', ties: TiesChoice = None):
        self.method = method
        self.ties = ties

    @property
    def name(self) -> str:
        return 'cpu_spline'

    def fit(self, design: FunctionDesign) -> Result[SplineParams]:
        """
        Build the spline.

        Raises:
            FitError: Duplicated x without ties, too few points for the
                method, unequal end values for 'periodic', or a SciPy
                construction failure
        """
        timer = Timer()
        timer.start()

        with timer.section('regularize'):
            x, y, messages = regularize_values(
                single_column(design.X, self.method), design.y, self.ties, self.method
            )

        if len(x) < MIN_POINTS[self.method]:
            raise FitError(
                f"'{self.method}' spline needs at least {MIN_POINTS[self.method]} "
                f"distinct x values, got {len(x)}",
                method=self.method,
            )

        if self.method == 'periodic' and not np.isclose(y[0], y[-1]):
            raise FitError(
                f"'periodic' spline needs equal end values, got "
                f"y[0]={y[0]:g} and y[-1]={y[-1]:g}",
                method=self.method,
            )

        if self.method == 'hyman':
            steps = np.diff(y)
            if not (np.all(steps >= 0) or np.all(steps <= 0)):
                raise FitError(
                    "'hyman' spline needs y increasing or decreasing in x",
                    method=self.method,
                )

        with timer.section('construct'):
            try:
                spline = self._construct(x, y)
            except ValueError as e:
                raise FitError(f"'{self.method}' spline failed: {e}", method=self.method) from e

        for message in messages:
            warnings.warn(message)

        timer.stop()

        return Result(
            params=SplineParams(x=x, y=y, method=self.method, spline=spline),
            info={'method': self.method, 'n_knots': len(x)},
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(messages),
        )

    def _construct(self, x: NDArray, y: NDArray) -> PPoly:
        if self.method == 'fmm':
            return CubicSpline(x, y, bc_type='not-a-knot')
        if self.method == 'natural':
            return CubicSpline(x, y, bc_type='natural')
        if self.method == 'periodic':
            y = y.copy()
            y[-1] = y[0]
            return CubicSpline(x, y, bc_type='periodic')
        if self.method == 'monoH.FC':
            return PchipInterpolator(x, y)
        if self.method == 'hyman':
            slopes = CubicSpline(x, y, bc_type='not-a-knot')(x, nu=1)
            return CubicHermiteSpline(x, y, _hyman_filter(x, y, slopes))
        return Akima1DInterpolator(x, y)

    def evaluate(
        self,
        params: SplineParams,
        inputs: NDArray[np.floating[Any]],
        *,
        deriv: int = 0,
        **options: Any,
    ) -> NDArray[np.floating[Any]]:
        """
        Evaluate the spline or its deriv-th derivative.

        Raises:
            FitError: If deriv is not an integer in 0..3
        """
        if isinstance(deriv, bool) or int(deriv) != deriv or not 0 <= deriv <= MAX_DERIV:
            raise FitError(
                f"deriv must be an integer between 0 and {MAX_DERIV}, got {deriv!r}",
                method=params.method,
            )
        deriv = int(deriv)
        x = single_column(inputs, params.method)

        if params.method == 'periodic':
            return params.spline(x, nu=deriv, extrapolate='periodic')

        values = params.spline(x, nu=deriv, extrapolate=True)

        if params.method in LINEAR_TAIL_METHODS:
            values = _linear_tails(params, x, values, deriv)

        return values


def _hyman_filter(
    x: NDArray[np.floating[Any]],
    y: NDArray[np.floating[Any]],
    slopes: NDArray[np.floating[Any]],
) -> NDArray[np.floating[Any]]:
    """Clip knot slopes to Hyman's (1983) monotonicity bounds."""
    secants = np.diff(y) / np.diff(x)
    left = np.concatenate((secants[:1], secants))
    right = np.concatenate((secants, secants[-1:]))
    bound = 3.0 * np.minimum(np.abs(left), np.abs(right))

    direction = slopes.copy()
    same_sign = left * right > 0
    direction[same_sign] = right[same_sign]

    filtered = slopes.copy()
    up = direction >= 0
    filtered[up] = np.clip(slopes[up], 0.0, bound[up])
    filtered[~up] = np.clip(slopes[~up], -bound[~up], 0.0)
    return filtered


def _linear_tails(
    params: SplineParams,
    x: NDArray[np.floating[Any]],
    values: NDArray[np.floating[Any]],
    deriv: int,
) -> NDArray[np.floating[Any]]:
    """Replace cubic extrapolation by the tangent line at each end."""
    values = np.array(values, dtype=np.float64, copy=True)
    for mask, x_end in ((x < params.x[0], params.x[0]), (x > params.x[-1], params.x[-1])):
        if not mask.any():
            continue
        y_end = float(params.spline(x_end))
        slope = float(params.spline(x_end, nu=1))
        if deriv == 0:
            values[mask] = y_end + slope * (x[mask] - x_end)
        elif deriv == 1:
            values[mask] = slope
        else:
            values[mask] = 0.0
    return values
