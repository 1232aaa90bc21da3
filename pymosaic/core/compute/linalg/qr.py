"""
QR decomposition and least squares.

Used by the linear-model backend for the global fit and by the loess
backend for every local weighted fit.
"""

from dataclasses import dataclass
from typing import Literal, Any
import numpy as np
from numpy.typing import NDArray
from scipy.linalg import solve_triangular

from pymosaic.core.exceptions import SingularMatrixError


@dataclass(frozen=True)
class QRResult:
    """
    Result of QR decomposition.

    Attributes:
        Q: Orthogonal matrix (n x k where k = min(n, p) for reduced mode)
        R: Upper triangular matrix (k x p)
        rank: Numerical rank determined from R diagonal
    """
    Q: NDArray[np.floating[Any]]
    R: NDArray[np.floating[Any]]
    rank: int


def qr_cpu(
    X: NDArray[np.floating[Any]],
    mode: Literal['reduced', 'complete'] = 'reduced'
) -> QRResult:
    """
    QR decomposition using LAPACK (via NumPy).

    The numerical rank counts diagonal entries of R above
    max(n, p) * eps * max|R_ii|.
    """
    Q, R = np.linalg.qr(X, mode=mode)

    diag_R = np.abs(np.diag(R))
    if len(diag_R) > 0 and diag_R.max() > 0:
        tol = max(X.shape) * np.finfo(X.dtype).eps * diag_R.max()
        rank = int(np.sum(diag_R > tol))
    else:
        rank = 0

    return QRResult(Q=Q, R=R, rank=rank)


def qr_solve_cpu(
    X: NDArray[np.floating[Any]],
    y: NDArray[np.floating[Any]],
    check_rank: bool,
    matrix_name: str = 'X',
) -> tuple[NDArray[np.floating[Any]], int]:
    """
    Solve least squares via QR decomposition.

    Solves min_b ||y - Xb||^2 as b = R^-1 Q'y.

    Args:
        X: Design matrix (n x p)
        y: Response vector (n,)
        check_rank: If True, raise SingularMatrixError on rank-deficient X
        matrix_name: Name used in error messages

    Returns:
        (coefficients (p,), numerical rank)

    Raises:
        SingularMatrixError: If X has fewer rows than columns, or is
            rank-deficient and check_rank=True
    """
    n, p = X.shape
    if n < p:
        raise SingularMatrixError(
            f"{matrix_name} has {n} rows for {p} coefficients; "
            f"least squares is underdetermined.",
            matrix_name=matrix_name,
            rank=n,
            expected_rank=p,
        )

    qr_result = qr_cpu(X, mode='reduced')

    if check_rank and qr_result.rank < p:
        raise SingularMatrixError(
            f"{matrix_name} is rank-deficient: rank={qr_result.rank}, expected={p}. "
            f"This indicates perfect multicollinearity.",
            matrix_name=matrix_name,
            rank=qr_result.rank,
            expected_rank=p
        )

    Qty = qr_result.Q.T @ y
    beta = solve_triangular(qr_result.R[:p, :p], Qty[:p], lower=False)

    return beta, qr_result.rank
