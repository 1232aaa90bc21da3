"""
Shared helpers for the interpolation backends.
"""

from __future__ import annotations

from typing import Any, Literal
import numpy as np
from numpy.typing import NDArray

from pymosaic.core.exceptions import FitError

TiesChoice = Literal['mean', 'min', 'max'] | None

_TIE_REDUCERS = {
    'mean': np.mean,
    'min': np.min,
    'max': np.max,
}


def regularize_values(
    x: NDArray[np.floating[Any]],
    y: NDArray[np.floating[Any]],
    ties: TiesChoice,
    method: str,
) -> tuple[NDArray[np.floating[Any]], NDArray[np.floating[Any]], list[str]]:
    """
    Sort (x, y) by x and resolve duplicated x values.

    Args:
        x, y: Abscissae and ordinates (n,)
        ties: None to refuse duplicates, or how to collapse them
        method: Interpolation method name for error messages

    Returns:
        (sorted unique x, matching y, warning messages)

    Raises:
        FitError: If x has duplicates and ties is None
    """
    order = np.argsort(x, kind='stable')
    x, y = x[order], y[order]
    messages: list[str] = []

    unique_x, start, counts = np.unique(x, return_index=True, return_counts=True)
    if len(unique_x) == len(x):
        return x, y, messages

    n_dup = int(np.sum(counts > 1))
    if ties is None:
        raise FitError(
            f"{method}: x has {n_dup} duplicated value(s) "
            f"(first: {unique_x[counts > 1][0]!r}); pass ties='mean' to "
            f"collapse them",
            method=method,
        )

    reduce = _TIE_REDUCERS[ties]
    collapsed = np.array(
        [reduce(y[s:s + c]) for s, c in zip(start, counts)], dtype=np.float64
    )
    messages.append(
        f"collapsing to unique 'x' values: {n_dup} tie(s) resolved by {ties}"
    )
    return unique_x, collapsed, messages


def single_column(X: NDArray[np.floating[Any]], method: str) -> NDArray[np.floating[Any]]:
    """The only column of a one-input design or input matrix."""
    if X.ndim != 2 or X.shape[1] != 1:
        raise FitError(
            f"{method}: interpolation needs exactly one input column, "
            f"got shape {X.shape}",
            method=method,
        )
    return X[:, 0]
