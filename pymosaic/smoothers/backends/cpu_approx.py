"""
CPU backend for piecewise-linear and step interpolation.

Replicates R's approxfun(x, y, rule = 2): values outside the data range
are clamped to the nearest boundary value.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Any, Literal
import numpy as np
from numpy.typing import NDArray

from pymosaic.core.exceptions import FitError
from pymosaic.core.result import Result
from pymosaic.core.compute.timing import Timer
from pymosaic.smoothers.design import FunctionDesign
from pymosaic.smoothers.backends._common import TiesChoice, regularize_values, single_column

ApproxMethod = Literal['linear', 'constant']

APPROX_METHODS = ('linear', 'constant')

# Fewest distinct points each method can interpolate
MIN_POINTS = {'linear': 2, 'constant': 1}


@dataclass(frozen=True)
class ApproxParams:
    """Interpolation table: sorted unique x and matching y."""
    x: NDArray[np.floating[Any]]
    y: NDArray[np.floating[Any]]
    method: str


class CPUApproxBackend:
    """
    Piecewise-linear ('linear') or left-continuous step ('constant')
    interpolation with boundary clamping.
    """

    def __init__(self, method: ApproxMethod = 'linear', ties: TiesChoice = None):
        self.method = method
        self.ties = ties

    @property
    def name(self) -> str:
        return 'cpu_approx'

    def fit(self, design: FunctionDesign) -> Result[ApproxParams]:
        timer = Timer()
        timer.start()

        with timer.section('regularize'):
            x, y, messages = regularize_values(
                single_column(design.X, self.method), design.y, self.ties, self.method
            )

        if len(x) < MIN_POINTS[self.method]:
            raise FitError(
                f"{self.method} interpolation needs at least "
                f"{MIN_POINTS[self.method]} distinct x values, got {len(x)}",
                method=self.method,
            )

        for message in messages:
            warnings.warn(message)

        timer.stop()

        return Result(
            params=ApproxParams(x=x, y=y, method=self.method),
            info={'method': self.method, 'rule': 2, 'n_knots': len(x)},
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(messages),
        )

    def evaluate(
        self,
        params: ApproxParams,
        inputs: NDArray[np.floating[Any]],
        **options: Any,
    ) -> NDArray[np.floating[Any]]:
        x = single_column(inputs, params.method)
        if params.method == 'linear':
            return np.interp(x, params.x, params.y)

        idx = np.searchsorted(params.x, x, side='right') - 1
        return params.y[np.clip(idx, 0, len(params.x) - 1)]
