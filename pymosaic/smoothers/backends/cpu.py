"""
CPU reference backend for linear models.

Uses QR decomposition via LAPACK (through NumPy/SciPy) to solve the least
squares problem on exactly the design columns given: no intercept is
added here or anywhere else.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
import numpy as np
from numpy.typing import NDArray

from pymosaic.core.exceptions import FitError, SingularMatrixError
from pymosaic.core.result import Result
from pymosaic.core.compute.timing import Timer
from pymosaic.core.compute.linalg.qr import qr_solve_cpu
from pymosaic.smoothers.design import FunctionDesign


@dataclass(frozen=True)
class LinearParams:
    """
    Parameter payload for a fitted linear model.

    This is the immutable data computed by backends.
    """
    coefficients: NDArray[np.floating[Any]]
    term_labels: tuple[str, ...]
    residuals: NDArray[np.floating[Any]]
    fitted_values: NDArray[np.floating[Any]]
    rss: float
    rank: int
    df_residual: int


class CPUQRBackend:
    """
    CPU backend using QR decomposition.

    Implements the FunctionBackend protocol for FunctionDesign -> LinearParams.
    Prior weights enter as sqrt(w) row scaling, as in R's lm.wfit().
    """

    @property
    def name(self) -> str:
        return 'cpu_qr'

    def fit(self, design: FunctionDesign) -> Result[LinearParams]:
        """
        Solve least squares via QR decomposition.

        Raises:
            FitError: If there are fewer observations than terms or the
                design matrix is rank-deficient
        """
        timer = Timer()
        timer.start()

        X, y = design.X, design.y
        n, p = design.n, design.p
        if p == 0:
            raise FitError("linear model has no terms to fit", method='qr')

        sw = np.sqrt(design.weights) if design.weights is not None else np.ones(n)

        with timer.section('solve'):
            try:
                coefficients, rank = qr_solve_cpu(
                    X * sw[:, None], y * sw, check_rank=True
                )
            except SingularMatrixError as e:
                raise FitError(
                    f"cannot fit '{design.formula}': {e}", method='qr'
                ) from e

        with timer.section('residuals'):
            fitted_values = X @ coefficients
            residuals = y - fitted_values
            rss = float(np.sum(sw ** 2 * residuals ** 2))

        timer.stop()

        params = LinearParams(
            coefficients=coefficients,
            term_labels=design.term_labels,
            residuals=residuals,
            fitted_values=fitted_values,
            rss=rss,
            rank=rank,
            df_residual=n - rank,
        )

        return Result(
            params=params,
            info={'method': 'qr', 'rank': rank, 'weighted': design.weights is not None},
            timing=timer.result(),
            backend_name=self.name,
            warnings=(),
        )

    def evaluate(
        self,
        params: LinearParams,
        inputs: NDArray[np.floating[Any]],
        **options: Any,
    ) -> NDArray[np.floating[Any]]:
        return inputs @ params.coefficients
