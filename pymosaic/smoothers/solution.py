"""
Generated functions.

A FittedFunction is what every builder returns: a callable whose
parameters are the formula's input variables, in formula order, followed
by the builder's fixed options. It holds the immutable fit Result and the
backend that knows how to evaluate it; nothing in it changes after
construction.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any
import numpy as np
from numpy.typing import NDArray

from pymosaic.core.exceptions import DimensionError, FitError, FormulaArgumentError
from pymosaic.core.protocols import FunctionBackend
from pymosaic.core.result import Result
from pymosaic.formula import Formula, Term, evaluate_terms

# introspection tag of linear_model() functions
FITTED_LINEAR_MODEL = "Fitted Linear Model"


@dataclass(frozen=True)
class FittedFunction:
    """
    A mathematical function built from data.

    Call it with the input variables as positional or keyword arguments:

        >>> f = linear_model('wage ~ age + educ + 1', data=cps)
        >>> f(40, 12)
        >>> f(age=40, educ=12)
        >>> f(age=[30, 40, 50], educ=12)     # broadcasts, returns an array
        >>> f(showcoefs=True)                 # {'(Intercept)': ..., 'age': ..., 'educ': ...}

    Attributes:
        kind: Builder that made it ('smoother', 'linear_model', ...)
        formula: The parsed formula
        mosaic_type: Introspection tag; "Fitted Linear Model" for
            linear_model(), None otherwise
    """
    kind: str
    formula: Formula
    _result: Result[Any]
    _backend: FunctionBackend
    _terms: tuple[Term, ...]
    _options: tuple[tuple[str, Any], ...] = ()
    mosaic_type: str | None = None

    # === Introspection ===

    @property
    def input_names(self) -> tuple[str, ...]:
        """Input variable names, in formula order."""
        return self.formula.input_names

    @property
    def parameters(self) -> tuple[str, ...]:
        """All parameter names: inputs, then options."""
        return self.input_names + tuple(name for name, _ in self._options)

    def __post_init__(self):
        object.__setattr__(self, '__signature__', self._make_signature())

    def _make_signature(self) -> inspect.Signature:
        kind = inspect.Parameter.POSITIONAL_OR_KEYWORD
        params = [inspect.Parameter(name, kind) for name in self.input_names]
        params += [
            inspect.Parameter(name, kind, default=default)
            for name, default in self._options
        ]
        return inspect.Signature(params)

    @property
    def params(self) -> Any:
        """The backend's fitted payload."""
        return self._result.params

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    # === Calling ===

    def bind(self, *args: Any, **kwargs: Any) -> tuple[dict[str, Any], dict[str, Any]]:
        """
        Match call arguments to parameters.

        Returns:
            (inputs supplied, options with defaults filled in)

        Raises:
            FormulaArgumentError: Too many positional arguments, unknown
                names, or an argument given twice
        """
        names = self.parameters
        if len(args) > len(names):
            raise self._argument_error(
                f"takes {len(names)} argument(s) {names} but {len(args)} were given",
                kwargs,
            )

        bound = dict(zip(names, args))
        for name, value in kwargs.items():
            if name not in names:
                raise self._argument_error(f"got an unexpected argument '{name}'", kwargs)
            if name in bound:
                raise self._argument_error(f"got multiple values for argument '{name}'", kwargs)
            bound[name] = value

        inputs = {name: bound[name] for name in self.input_names if name in bound}
        options = {name: bound.get(name, default) for name, default in self._options}
        return inputs, options

    def _argument_error(self, message: str, kwargs: dict[str, Any]) -> FormulaArgumentError:
        return FormulaArgumentError(
            f"{self.kind}({', '.join(self.parameters)}) {message}",
            formula=str(self.formula),
            expected=self.parameters,
            received=tuple(kwargs),
        )

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        inputs, options = self.bind(*args, **kwargs)

        if options.pop('showcoefs', False):
            return self.coefficients()

        missing = [name for name in self.input_names if name not in inputs]
        if missing:
            raise self._argument_error(
                f"missing input(s): {', '.join(repr(m) for m in missing)}", kwargs
            )

        return self.evaluate(inputs, **options)

    def evaluate(self, inputs: dict[str, Any], **options: Any) -> Any:
        """
        Evaluate at named inputs, broadcasting them against each other.

        Returns a float when every input is a scalar, otherwise an array
        of the broadcast shape.

        Raises:
            FitError: If any output is not finite
        """
        arrays = [np.asarray(inputs[name], dtype=np.float64) for name in self.input_names]
        try:
            shape = np.broadcast_shapes(*(a.shape for a in arrays))
        except ValueError as e:
            shapes = {name: a.shape for name, a in zip(self.input_names, arrays)}
            raise DimensionError(f"inputs cannot be broadcast together: {shapes}") from e
        size = int(np.prod(shape))
        columns = {
            name: np.broadcast_to(a, shape).reshape(size)
            for name, a in zip(self.input_names, arrays)
        }

        X = evaluate_terms(self._terms, columns, size)
        values = np.asarray(
            self._backend.evaluate(self._result.params, X, **options), dtype=np.float64
        )

        bad = ~np.isfinite(values)
        if bad.any():
            first = {name: float(col[bad][0]) for name, col in columns.items()}
            raise FitError(
                f"{self.kind} '{self.formula}' is not finite at {first} "
                f"({int(bad.sum())} of {size} value(s))",
                method=self.info.get('method'),
            )

        values = values.reshape(shape)
        return float(values) if values.ndim == 0 else values

    def coefficients(self) -> dict[str, float]:
        """
        Fitted coefficients by term label.

        Raises:
            AttributeError: For functions that are not linear models
        """
        params = self._result.params
        if not hasattr(params, 'coefficients'):
            raise AttributeError(f"{self.kind} functions have no coefficients")
        return {
            label: float(value)
            for label, value in zip(params.term_labels, params.coefficients)
        }

    def fitted_values(self) -> NDArray[np.floating[Any]] | None:
        """Values at the data points, where the backend records them."""
        return getattr(self._result.params, 'fitted_values', None)

    # === Display ===

    def __repr__(self) -> str:
        return f"<{self.kind} '{self.formula}'{self.__signature__}>"

    def summary(self) -> str:
        """Generate an R-style text description."""
        lines = [
            f"Function from data: {self.kind}",
            "=" * 60,
            f"Formula: {self.formula}",
            f"Arguments: {self.__signature__}",
            f"Backend: {self.backend_name}",
        ]
        for key, value in self.info.items():
            lines.append(f"{key}: {value}")

        if self.mosaic_type == FITTED_LINEAR_MODEL:
            lines.append("")
            lines.append("Coefficients:")
            for label, value in self.coefficients().items():
                lines.append(f"  {label:<20} {value: .6g}")

        if self.warnings:
            lines.append("")
            lines.append("Warnings:")
            lines.extend(f"  {w}" for w in self.warnings)

        if self.timing is not None:
            lines.append("")
            lines.append(f"Fit time: {self.timing['total_seconds']:.4f}s")
        return "\n".join(lines)
