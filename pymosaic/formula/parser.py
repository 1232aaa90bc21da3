"""
R-style formula parser.

Supported right-hand-side syntax:
    - Terms: x, log(x), sqrt(age), I(x^2), I(a + b)
    - Sums and removal: a + b, a + b - b
    - Interactions: a:b
    - Crossing: a*b (expands to a + b + a:b), (a + b)*c
    - Intercept: +1 adds one; -1 and +0 remove it

No intercept is ever added implicitly: `y ~ x` is a line through the
origin. This differs from R's lm() on purpose; write `y ~ x + 1` for an
intercept.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from pymosaic.core.exceptions import InvalidFormulaError
from pymosaic.formula.terms import Factor, Term

_OPERATORS = frozenset('+-*:^')
_NUMBER = re.compile(r'^\d+(\.\d*)?$')


@dataclass(frozen=True)
class Formula:
    """
    A parsed formula.

    Attributes:
        text: Original formula text
        response: Left-hand-side factor, or None for one-sided formulas
        terms: Right-hand-side terms, intercept first, then by interaction order
        input_names: Bare right-hand-side variable names in order of first
            appearance in the formula text
    """
    text: str
    response: Factor | None
    terms: tuple[Term, ...]
    input_names: tuple[str, ...]

    @property
    def has_intercept(self) -> bool:
        return any(t.is_intercept for t in self.terms)

    @property
    def term_labels(self) -> tuple[str, ...]:
        return tuple(t.label for t in self.terms)

    @property
    def response_names(self) -> tuple[str, ...]:
        return self.response.variables if self.response is not None else ()

    def __str__(self) -> str:
        return self.text


def parse_formula(text: str | Formula) -> Formula:
    """
    Parse a formula string such as 'log(wage) ~ age + educ + 1'.

    Raises:
        InvalidFormulaError: If the formula is empty, malformed, or has
            more than one term on the left-hand side
    """
    if isinstance(text, Formula):
        return text
    if not isinstance(text, str):
        raise InvalidFormulaError(
            f"formula must be a string, got {type(text).__name__}"
        )
    return FormulaParser(text).parse()


class FormulaParser:
    """Recursive-descent parser over top-level tokens of one formula."""

    def __init__(self, text: str):
        self.text = ' '.join(text.split())
        self._tokens: list[str] = []
        self._pos = 0

    def _error(self, message: str) -> InvalidFormulaError:
        return InvalidFormulaError(f"{message} in formula '{self.text}'", formula=self.text)

    def parse(self) -> Formula:
        if not self.text:
            raise self._error("Empty formula")
        if self.text.count('~') != 1:
            raise self._error("Formula must contain exactly one '~'")

        lhs, rhs = (part.strip() for part in self.text.split('~'))
        response = self._parse_response(lhs) if lhs else None

        if not rhs:
            raise self._error("Right-hand side is empty")
        self._tokens = self._tokenize(rhs)
        self._pos = 0
        self._drop_intercept = False
        atoms = self._parse_sum()
        if self._pos != len(self._tokens):
            raise self._error(f"Unexpected '{self._tokens[self._pos]}'")
        if self._drop_intercept:
            atoms = [t for t in atoms if t]
        if not atoms:
            raise self._error("Right-hand side has no terms")

        # Compile in source order so input names follow the formula text
        compiled: dict[str, Factor] = {}
        used = {atom for atom_tuple in atoms for atom in atom_tuple}
        for token in self._tokens:
            if token in used and token not in compiled:
                compiled[token] = Factor.compile(token, formula=self.text)

        # R orders terms by interaction order, intercept first
        terms = tuple(
            Term(factors=tuple(compiled[atom] for atom in atom_tuple))
            for atom_tuple in sorted(atoms, key=len)
        )

        inputs: dict[str, None] = {}
        for factor in compiled.values():
            inputs.update(dict.fromkeys(factor.variables))

        return Formula(
            text=self.text,
            response=response,
            terms=terms,
            input_names=tuple(inputs),
        )

    def _parse_response(self, lhs: str) -> Factor:
        tokens = self._tokenize(lhs)
        if len(tokens) != 1 or tokens[0] in _OPERATORS or tokens[0] in '()':
            raise self._error(
                "Left-hand side must be a single output expression, "
                f"got '{lhs}'"
            )
        if _NUMBER.match(tokens[0]):
            raise self._error("Left-hand side must reference a variable")
        return Factor.compile(tokens[0], formula=self.text)

    def _tokenize(self, source: str) -> list[str]:
        """
        Split into operators, grouping parentheses and atoms.

        Parentheses that belong to a function call stay inside the atom.
        """
        tokens: list[str] = []
        i, n = 0, len(source)
        while i < n:
            ch = source[i]
            if ch.isspace():
                i += 1
            elif ch in _OPERATORS or ch in '()':
                tokens.append(ch)
                i += 1
            else:
                start, depth = i, 0
                while i < n:
                    ch = source[i]
                    if ch == '(':
                        depth += 1
                    elif ch == ')':
                        if depth == 0:
                            break
                        depth -= 1
                    elif depth == 0 and (ch in _OPERATORS or ch.isspace()):
                        break
                    i += 1
                if depth != 0:
                    raise self._error("Unbalanced parentheses")
                tokens.append(source[start:i])
        return tokens

    def _peek(self) -> str | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _next(self) -> str:
        token = self._peek()
        if token is None:
            raise self._error("Unexpected end of formula")
        self._pos += 1
        return token

    def _parse_sum(self) -> list[tuple[str, ...]]:
        sign = '+'
        if self._peek() in ('+', '-'):
            sign = self._next()
        result: list[tuple[str, ...]] = []
        while True:
            operand = self._parse_product()
            if sign == '+':
                result = _union(result, operand)
            else:
                removed = {frozenset(t) for t in operand}
                result = [t for t in result if frozenset(t) not in removed]
            if self._peek() not in ('+', '-'):
                return result
            sign = self._next()

    def _parse_product(self) -> list[tuple[str, ...]]:
        result = self._parse_interaction()
        while self._peek() == '*':
            self._next()
            right = self._parse_interaction()
            crossed = _interact(result, right)
            result = _union(_union(result, right), crossed)
        return result

    def _parse_interaction(self) -> list[tuple[str, ...]]:
        result = self._parse_primary()
        while self._peek() == ':':
            self._next()
            result = _interact(result, self._parse_primary())
        return result

    def _parse_primary(self) -> list[tuple[str, ...]]:
        token = self._next()
        if token == '(':
            inner = self._parse_sum()
            if self._next() != ')':
                raise self._error("Expected ')'")
            return inner
        if token == '^':
            raise self._error(
                "Powers of terms are not supported; use I(x^2) for arithmetic"
            )
        if token in _OPERATORS or token == ')':
            raise self._error(f"Unexpected '{token}'")
        if self._peek() == '^':
            raise self._error(
                f"'{token}^...' is not supported; use I({token}^...) for arithmetic"
            )
        if _NUMBER.match(token):
            if float(token) == 1:
                return [()]
            if float(token) == 0:
                self._drop_intercept = True
                return []
            raise self._error(f"Numeric term '{token}' is not allowed")
        return [(token,)]


def _union(a: list[tuple[str, ...]], b: list[tuple[str, ...]]) -> list[tuple[str, ...]]:
    # a:b and b:a are the same term; the first spelling wins
    seen = {frozenset(t) for t in a}
    result = list(a)
    for t in b:
        if frozenset(t) not in seen:
            seen.add(frozenset(t))
            result.append(t)
    return result


def _interact(a: list[tuple[str, ...]], b: list[tuple[str, ...]]) -> list[tuple[str, ...]]:
    result: list[tuple[str, ...]] = []
    for left in a:
        for right in b:
            combined = left + tuple(atom for atom in right if atom not in left)
            result = _union(result, [combined])
    return result
