"""
Formula terms.

A term is a product of factors; a factor is one transformed expression of
data variables such as `age`, `log(wage)` or `I(x^2)`. The intercept is the
term with no factors.

Factor expressions are parsed into a whitelisted subset of Python syntax
(arithmetic, numeric literals, and calls to the functions in FUNCTIONS)
and the tree is walked with NumPy ufuncs against named columns.
"""

from __future__ import annotations

import ast
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable
import numpy as np
from numpy.typing import NDArray

from pymosaic.core.exceptions import InvalidFormulaError


def _log(x, base=None):
    if base is None:
        return np.log(x)
    return np.log(x) / np.log(base)


FUNCTIONS: dict[str, Callable[..., Any]] = {
    'I': lambda x: x,
    'log': _log,
    'log2': np.log2,
    'log10': np.log10,
    'log1p': np.log1p,
    'exp': np.exp,
    'expm1': np.expm1,
    'sqrt': np.sqrt,
    'abs': np.abs,
    'sin': np.sin,
    'cos': np.cos,
    'tan': np.tan,
}

INTERCEPT_LABEL = '(Intercept)'

# R identifiers: letters, digits, '.', '_'; may start with '.' unless a digit follows
_IDENTIFIER = re.compile(r'(?<![\w.])((?:[A-Za-z]|\.(?![0-9]))[A-Za-z0-9._]*)(\s*\()?')
_KEYWORD_ARGUMENT = re.compile(r'\s*=(?!=)')

_BINARY_OPERATORS: dict[type, Callable[..., Any]] = {
    ast.Add: np.add,
    ast.Sub: np.subtract,
    ast.Mult: np.multiply,
    ast.Div: np.true_divide,
    ast.Pow: np.power,
    ast.Mod: np.mod,
    ast.FloorDiv: np.floor_divide,
}

_UNARY_OPERATORS: dict[type, Callable[..., Any]] = {
    ast.USub: np.negative,
    ast.UAdd: np.positive,
}

_ALLOWED_NODES = (
    ast.Expression, ast.BinOp, ast.UnaryOp, ast.Call, ast.Name, ast.Constant,
    ast.Load, ast.keyword, *_BINARY_OPERATORS, *_UNARY_OPERATORS,
)


def _walk(node: ast.AST, namespace: Mapping[str, Any]) -> Any:
    """Evaluate a checked expression tree; names resolve in namespace."""
    if isinstance(node, ast.Expression):
        return _walk(node.body, namespace)
    if isinstance(node, ast.Constant):
        return float(node.value)
    if isinstance(node, ast.Name):
        return namespace[node.id]
    if isinstance(node, ast.BinOp):
        op = _BINARY_OPERATORS[type(node.op)]
        return op(_walk(node.left, namespace), _walk(node.right, namespace))
    if isinstance(node, ast.UnaryOp):
        return _UNARY_OPERATORS[type(node.op)](_walk(node.operand, namespace))
    if isinstance(node, ast.Call):
        args = [_walk(arg, namespace) for arg in node.args]
        kwargs = {kw.arg: _walk(kw.value, namespace) for kw in node.keywords}
        return FUNCTIONS[node.func.id](*args, **kwargs)
    raise TypeError(f"cannot evaluate {type(node).__name__}")


@dataclass(frozen=True)
class Factor:
    """
    One compiled expression of data variables.

    Attributes:
        label: Normalised source text, e.g. 'log(wage)'
        variables: Data variables referenced, in order of appearance
    """
    label: str
    variables: tuple[str, ...]
    _tree: ast.Expression = field(compare=False, repr=False)
    _aliases: tuple[tuple[str, str], ...]

    @classmethod
    def compile(cls, text: str, formula: str | None = None) -> Factor:
        """
        Compile factor source text.

        Raises:
            InvalidFormulaError: On syntax errors, unknown functions,
                or constructs outside the supported expression subset
        """
        label = ' '.join(text.split())
        aliases: dict[str, str] = {}

        def substitute(match: re.Match) -> str:
            name, call = match.group(1), match.group(2)
            if call:
                if name not in FUNCTIONS:
                    raise InvalidFormulaError(
                        f"Unknown function '{name}' in term '{label}'. "
                        f"Supported: {sorted(FUNCTIONS)}",
                        formula=formula,
                    )
                return name + call
            if _KEYWORD_ARGUMENT.match(match.string, match.end()):
                return name
            if name not in aliases:
                aliases[name] = f'_v{len(aliases)}'
            return aliases[name]

        source = _IDENTIFIER.sub(substitute, label).replace('^', '**')

        try:
            tree = ast.parse(source, mode='eval')
        except SyntaxError as e:
            raise InvalidFormulaError(
                f"Cannot parse term '{label}': {e.msg}", formula=formula
            ) from e

        for node in ast.walk(tree):
            if not isinstance(node, _ALLOWED_NODES):
                raise InvalidFormulaError(
                    f"Unsupported syntax {type(node).__name__} in term '{label}'",
                    formula=formula,
                )
            if isinstance(node, ast.Constant) and not isinstance(node.value, (int, float)):
                raise InvalidFormulaError(
                    f"Only numeric literals are allowed in term '{label}'",
                    formula=formula,
                )
            if isinstance(node, ast.Call) and not isinstance(node.func, ast.Name):
                raise InvalidFormulaError(
                    f"Unsupported call in term '{label}'", formula=formula
                )
            if isinstance(node, ast.keyword) and node.arg is None:
                raise InvalidFormulaError(
                    f"Unsupported '**' argument in term '{label}'", formula=formula
                )

        return cls(
            label=label,
            variables=tuple(aliases),
            _tree=tree,
            _aliases=tuple(aliases.items()),
        )

    def evaluate(
        self,
        columns: Mapping[str, NDArray[np.floating[Any]]],
        n: int,
    ) -> NDArray[np.floating[Any]]:
        """
        Evaluate against named columns, broadcasting to length n.

        Raises:
            InvalidFormulaError: If a referenced variable is not available
        """
        namespace: dict[str, Any] = {}
        for name, alias in self._aliases:
            if name not in columns:
                raise InvalidFormulaError(
                    f"Variable '{name}' in term '{self.label}' not found. "
                    f"Available: {sorted(columns)}"
                )
            namespace[alias] = columns[name]

        with np.errstate(all='ignore'):
            value = _walk(self._tree, namespace)

        value = np.asarray(value, dtype=np.float64)
        if value.ndim == 0:
            value = np.full(n, float(value))
        return value


@dataclass(frozen=True)
class Term:
    """
    A product of factors; the intercept is the empty product.

    Attributes:
        factors: Factors multiplied together (empty for the intercept)
    """
    factors: tuple[Factor, ...]

    @property
    def is_intercept(self) -> bool:
        return not self.factors

    @property
    def is_interaction(self) -> bool:
        return len(self.factors) > 1

    @property
    def label(self) -> str:
        """R-style term label: 'x', 'log(x)', 'a:b', '(Intercept)'."""
        if self.is_intercept:
            return INTERCEPT_LABEL
        return ':'.join(f.label for f in self.factors)

    @property
    def variables(self) -> tuple[str, ...]:
        seen: dict[str, None] = {}
        for factor in self.factors:
            seen.update(dict.fromkeys(factor.variables))
        return tuple(seen)

    def evaluate(
        self,
        columns: Mapping[str, NDArray[np.floating[Any]]],
        n: int,
    ) -> NDArray[np.floating[Any]]:
        """Evaluate the term column (length n)."""
        value = np.ones(n, dtype=np.float64)
        for factor in self.factors:
            value = value * factor.evaluate(columns, n)
        return value
