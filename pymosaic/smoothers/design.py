"""
Function design.

A FunctionDesign is the model frame a backend fits: the response vector,
the term columns chosen by the builder, and optional prior weights. It
knows which formula terms its columns came from, so the generated function
can evaluate the same terms on new inputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
import numpy as np
from numpy.typing import ArrayLike, NDArray

from pymosaic.core.protocols import DataTable
from pymosaic.core.validation import check_finite, check_2d, check_1d, check_consistent_length
from pymosaic.formula import Formula, Term, model_frame, parse_formula


@dataclass(frozen=True)
class FunctionDesign:
    """
    Response, term columns and weights for one fit. Immutable.

    Construction:
        FunctionDesign.from_formula('y ~ x', ds)
        FunctionDesign.from_formula(f, ds, terms=f.terms[1:], weights='w')
    """
    _formula: Formula
    _terms: tuple[Term, ...]
    _X: NDArray[np.floating[Any]]
    _y: NDArray[np.floating[Any]]
    _weights: NDArray[np.floating[Any]] | None
    _n_dropped: int = 0

    @classmethod
    def from_formula(
        cls,
        formula: str | Formula,
        data: DataTable,
        *,
        terms: tuple[Term, ...] | None = None,
        weights: str | ArrayLike | None = None,
    ) -> FunctionDesign:
        """
        Evaluate a formula against data.

        Args:
            formula: Formula text or parsed Formula
            data: Column source
            terms: Terms that become design columns (default: all)
            weights: Prior weights, as a column name or an array

        Raises:
            InvalidFormulaError: Missing response or unknown variables
            ValidationError: Bad weights or no complete rows
        """
        formula = parse_formula(formula)
        if terms is None:
            terms = formula.terms
        frame = model_frame(formula, data, terms=terms, weights=weights)

        check_2d(frame.X, 'X')
        check_1d(frame.response, 'y')
        check_finite(frame.X, 'X')
        check_finite(frame.response, 'y')
        check_consistent_length(frame.X, frame.response, names=('X', 'y'))

        return cls(
            _formula=formula,
            _terms=terms,
            _X=frame.X,
            _y=frame.response,
            _weights=frame.weights,
            _n_dropped=frame.n_dropped,
        )

    # === Properties ===

    @property
    def formula(self) -> Formula:
        return self._formula

    @property
    def terms(self) -> tuple[Term, ...]:
        """Formula terms behind the columns of X, in column order."""
        return self._terms

    @property
    def term_labels(self) -> tuple[str, ...]:
        return tuple(t.label for t in self._terms)

    @property
    def X(self) -> NDArray[np.floating[Any]]:
        """Term columns (n x p)."""
        return self._X

    @property
    def y(self) -> NDArray[np.floating[Any]]:
        """Response vector (n,)."""
        return self._y

    @property
    def weights(self) -> NDArray[np.floating[Any]] | None:
        """Prior weights (n,), or None for unweighted fits."""
        return self._weights

    @property
    def n(self) -> int:
        """Number of observations used."""
        return self._X.shape[0]

    @property
    def p(self) -> int:
        """Number of term columns."""
        return self._X.shape[1]

    @property
    def n_dropped(self) -> int:
        """Rows dropped for missing or non-finite values."""
        return self._n_dropped
