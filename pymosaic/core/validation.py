"""
Input validators for PyMosaic.

Each validator checks one thing and raises immediately with the parameter
name and the offending value in the message. Nothing is silently repaired:
the only conversion is np.asarray on array-likes.
"""

from collections.abc import Collection
import numpy as np
from numpy.typing import ArrayLike, NDArray
from typing import Any

from pymosaic.core.exceptions import ValidationError, DimensionError


def check_array(
    array: ArrayLike,
    name: str,
) -> NDArray[np.floating[Any]]:
    """
    Convert to a floating-point numpy array.

    Integer and boolean input is promoted to float64; float32 is kept.

    Raises:
        ValidationError: If the input is not numeric (strings, objects,
            mixed types, dates)
    """
    try:
        result = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{name}: cannot convert to array: {e}") from e

    if result.dtype == object:
        raise ValidationError(
            f"{name}: converted to object dtype, indicating mixed types or non-numeric data"
        )
    if not (np.issubdtype(result.dtype, np.number) or result.dtype == bool):
        raise ValidationError(
            f"{name}: non-numeric dtype {result.dtype}, expected numeric data"
        )

    if not np.issubdtype(result.dtype, np.floating):
        result = result.astype(np.float64)
    return result


def check_finite(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Raises:
        ValidationError: If array contains NaN or Inf
    """
    if not np.all(np.isfinite(array)):
        n_nan = int(np.sum(np.isnan(array)))
        n_inf = int(np.sum(np.isinf(array)))
        raise ValidationError(
            f"{name}: contains non-finite values ({n_nan} NaN, {n_inf} Inf)"
        )


def check_nonnegative(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Raises:
        ValidationError: If any finite value is negative
    """
    negative = array[np.isfinite(array)] < 0
    if negative.any():
        raise ValidationError(
            f"{name}: {int(negative.sum())} negative value(s) are not allowed"
        )


def check_ndim(array: NDArray[np.floating[Any]], ndim: int, name: str) -> None:
    """
    Raises:
        DimensionError: If array does not have exactly ndim dimensions
    """
    if array.ndim != ndim:
        raise DimensionError(
            f"{name}: expected {ndim}D array, got {array.ndim}D with shape {array.shape}"
        )


def check_1d(array: NDArray[np.floating[Any]], name: str) -> None:
    check_ndim(array, 1, name)


def check_2d(array: NDArray[np.floating[Any]], name: str) -> None:
    check_ndim(array, 2, name)


def check_consistent_length(
    *arrays: NDArray[np.floating[Any]],
    names: tuple[str, ...]
) -> None:
    """
    Verify all arrays have the same number of rows.

    Raises:
        ValueError: If names and arrays differ in number (a programming error)
        DimensionError: If the row counts differ
    """
    if len(arrays) != len(names):
        raise ValueError(
            f"Number of arrays ({len(arrays)}) must match number of names ({len(names)})"
        )

    lengths = [arr.shape[0] for arr in arrays]
    if len(set(lengths)) > 1:
        details = ", ".join(f"{name}={length}" for name, length in zip(names, lengths))
        raise DimensionError(f"Inconsistent lengths: {details}")


def check_choice(value: Any, choices: Collection[Any], name: str) -> None:
    """
    Verify a configuration value is one of the allowed choices.

    Raises:
        ValidationError: If value is not among choices
    """
    if value not in choices:
        raise ValidationError(
            f"{name}: got {value!r}, expected one of {', '.join(map(repr, choices))}"
        )
