"""
R-style formulas.

Public API:
    parse_formula(text) -> Formula
    model_frame(formula, data) -> ModelFrame

Example:
    >>> from pymosaic.formula import parse_formula
    >>> f = parse_formula('log(wage) ~ age + educ + 1')
    >>> f.input_names
    ('age', 'educ')
    >>> f.term_labels
    ('(Intercept)', 'age', 'educ')
"""

from pymosaic.formula.parser import Formula, FormulaParser, parse_formula
from pymosaic.formula.terms import Factor, Term, FUNCTIONS, INTERCEPT_LABEL
from pymosaic.formula.frame import ModelFrame, model_frame, evaluate_terms

__all__ = [
    "Formula",
    "FormulaParser",
    "parse_formula",
    "Factor",
    "Term",
    "FUNCTIONS",
    "INTERCEPT_LABEL",
    "ModelFrame",
    "model_frame",
    "evaluate_terms",
]
