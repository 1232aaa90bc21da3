"""
Model frames: a formula evaluated against a data table.

Rows where the response, any term, or the prior weight is missing or
non-finite are dropped (R's na.omit), with a warning naming how many.
"""

from __future__ import annotations

import warnings
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
import numpy as np
from numpy.typing import ArrayLike, NDArray

from pymosaic.core.capabilities import CAPABILITY_MATERIALIZED
from pymosaic.core.exceptions import InvalidFormulaError, ValidationError
from pymosaic.core.protocols import DataTable
from pymosaic.core.validation import (
    check_array, check_1d, check_consistent_length, check_nonnegative,
)
from pymosaic.formula.parser import Formula, parse_formula
from pymosaic.formula.terms import Term


@dataclass(frozen=True)
class ModelFrame:
    """
    Evaluated response and term columns of a formula.

    Attributes:
        formula: The parsed formula
        response: Response values (n,)
        X: Term columns (n x k), one per entry of term_labels
        term_labels: Labels of the evaluated terms
        weights: Prior weights (n,), or None
        n_dropped: Rows removed because of missing or non-finite values
    """
    formula: Formula
    response: NDArray[np.floating[Any]]
    X: NDArray[np.floating[Any]]
    term_labels: tuple[str, ...]
    weights: NDArray[np.floating[Any]] | None = None
    n_dropped: int = 0

    @property
    def n(self) -> int:
        return self.response.shape[0]

    @property
    def p(self) -> int:
        return self.X.shape[1]


def table_columns(
    data: DataTable,
    names: tuple[str, ...],
    formula: Formula | None = None,
) -> dict[str, NDArray[np.floating[Any]]]:
    """
    Pull the named variables out of a data table as float64 arrays.

    Raises:
        InvalidFormulaError: If a variable is missing from the table
    """
    columns: dict[str, NDArray[np.floating[Any]]] = {}
    for name in names:
        if name not in data:
            raise InvalidFormulaError(
                f"Variable '{name}' not found in data. "
                f"Available: {sorted(data.keys())}",
                formula=str(formula) if formula is not None else None,
            )
        arr = data[name]
        if not data.supports(CAPABILITY_MATERIALIZED):
            arr = arr.cpu().numpy()
        columns[name] = np.asarray(arr, dtype=np.float64)
    return columns


def evaluate_terms(
    terms: tuple[Term, ...],
    columns: Mapping[str, NDArray[np.floating[Any]]],
    n: int,
) -> NDArray[np.floating[Any]]:
    """Evaluate terms into an (n x k) matrix."""
    if not terms:
        return np.empty((n, 0), dtype=np.float64)
    return np.column_stack([term.evaluate(columns, n) for term in terms])


def _prior_weights(
    weights: str | ArrayLike,
    data: DataTable,
    n: int,
) -> NDArray[np.floating[Any]]:
    if isinstance(weights, str):
        weights = table_columns(data, (weights,))[weights]
    w = check_array(weights, 'weights')
    check_1d(w, 'weights')
    check_consistent_length(w, np.empty(n), names=('weights', 'data'))
    check_nonnegative(w, 'weights')
    return w


def model_frame(
    formula: str | Formula,
    data: DataTable,
    *,
    terms: tuple[Term, ...] | None = None,
    weights: str | ArrayLike | None = None,
    require_response: bool = True,
) -> ModelFrame:
    """
    Evaluate a formula against a data table.

    Args:
        formula: Formula text or parsed Formula
        data: Column source (DataSource or anything satisfying DataTable)
        terms: Subset of the formula's terms to evaluate (default: all)
        weights: Prior weights, as a column name or an array
        require_response: Raise if the formula has no left-hand side

    Raises:
        InvalidFormulaError: Missing response or unknown variables
        ValidationError: Bad weights, or no complete rows remain
    """
    formula = parse_formula(formula)
    if formula.response is None and require_response:
        raise InvalidFormulaError(
            f"Formula '{formula}' needs an output on the left-hand side",
            formula=str(formula),
        )
    if terms is None:
        terms = formula.terms

    names = formula.response_names + formula.input_names
    columns = table_columns(data, tuple(dict.fromkeys(names)), formula)
    n = data.n_observations

    if formula.response is not None:
        response = formula.response.evaluate(columns, n)
    else:
        response = np.full(n, np.nan)
    X = evaluate_terms(terms, columns, n)
    w = _prior_weights(weights, data, n) if weights is not None else None

    complete = np.isfinite(X).all(axis=1)
    if formula.response is not None:
        complete &= np.isfinite(response)
    if w is not None:
        complete &= np.isfinite(w)

    n_dropped = int(n - complete.sum())
    if n_dropped:
        if not complete.any():
            raise ValidationError(
                f"No complete rows for formula '{formula}': all {n} rows "
                f"have missing or non-finite values"
            )
        warnings.warn(
            f"Dropped {n_dropped} of {n} rows with missing or non-finite "
            f"values for formula '{formula}'"
        )
        response = response[complete]
        X = X[complete]
        if w is not None:
            w = w[complete]

    return ModelFrame(
        formula=formula,
        response=response,
        X=X,
        term_labels=tuple(t.label for t in terms),
        weights=w,
        n_dropped=n_dropped,
    )
