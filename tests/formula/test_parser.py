"""
Tests for the formula parser.

Validates:
    - Input names in order of first appearance
    - No implicit intercept; +1, -1 and +0 handling
    - Interaction and crossing expansion, term ordering
    - Error reporting for malformed formulas
"""

import pytest

from pymosaic.core.exceptions import InvalidFormulaError
from pymosaic.formula import INTERCEPT_LABEL, Formula, parse_formula


# ═══════════════════════════════════════════════════════════════════════
# Inputs and response
# ═══════════════════════════════════════════════════════════════════════


class TestInputs:

    def test_simple(self):
        f = parse_formula('y ~ x')
        assert f.input_names == ('x',)
        assert f.response_names == ('y',)
        assert f.term_labels == ('x',)

    def test_order_of_appearance(self):
        f = parse_formula('wage ~ educ + age + sector')
        assert f.input_names == ('educ', 'age', 'sector')

    def test_transformed_variables_are_bare(self):
        f = parse_formula('log(wage) ~ sqrt(age) + I(educ^2)')
        assert f.input_names == ('age', 'educ')
        assert f.response_names == ('wage',)
        assert f.term_labels == ('sqrt(age)', 'I(educ^2)')

    def test_repeated_variable_listed_once(self):
        f = parse_formula('y ~ x + I(x^2)')
        assert f.input_names == ('x',)
        assert f.term_labels == ('x', 'I(x^2)')

    def test_expression_with_two_variables(self):
        f = parse_formula('y ~ I(a / b)')
        assert f.input_names == ('a', 'b')

    def test_dotted_names(self):
        f = parse_formula('wage.hr ~ age.yrs')
        assert f.input_names == ('age.yrs',)
        assert f.response_names == ('wage.hr',)

    def test_keyword_argument_is_not_a_variable(self):
        f = parse_formula('y ~ log(x, base=2)')
        assert f.input_names == ('x',)

    def test_one_sided(self):
        f = parse_formula('~ x')
        assert f.response is None
        assert f.input_names == ('x',)

    def test_parsed_formula_passthrough(self):
        f = parse_formula('y ~ x')
        assert parse_formula(f) is f
        assert isinstance(f, Formula)
        assert str(f) == 'y ~ x'

    def test_whitespace_normalised(self):
        assert str(parse_formula('y~   x  +  z')) == 'y~ x + z'


# ═══════════════════════════════════════════════════════════════════════
# Intercept
# ═══════════════════════════════════════════════════════════════════════


class TestIntercept:

    def test_no_implicit_intercept(self):
        assert not parse_formula('y ~ x').has_intercept

    def test_explicit_intercept_first(self):
        f = parse_formula('y ~ x + 1')
        assert f.has_intercept
        assert f.term_labels == (INTERCEPT_LABEL, 'x')

    def test_minus_one_removes(self):
        assert not parse_formula('y ~ 1 + x - 1').has_intercept

    def test_plus_zero_removes(self):
        assert not parse_formula('y ~ 1 + x + 0').has_intercept

    def test_intercept_only(self):
        f = parse_formula('y ~ 1')
        assert f.term_labels == (INTERCEPT_LABEL,)
        assert f.input_names == ()


# ═══════════════════════════════════════════════════════════════════════
# Interactions
# ═══════════════════════════════════════════════════════════════════════


class TestInteractions:

    def test_colon(self):
        f = parse_formula('y ~ a:b')
        assert f.term_labels == ('a:b',)
        assert f.terms[0].is_interaction

    def test_star_expands(self):
        f = parse_formula('y ~ a*b')
        assert f.term_labels == ('a', 'b', 'a:b')

    def test_grouped_crossing(self):
        f = parse_formula('y ~ (a + b)*c')
        assert f.term_labels == ('a', 'b', 'c', 'a:c', 'b:c')

    def test_main_effects_before_interactions(self):
        f = parse_formula('y ~ a:b + c + 1')
        assert f.term_labels == (INTERCEPT_LABEL, 'c', 'a:b')

    def test_duplicate_terms_collapse(self):
        assert parse_formula('y ~ a + a + a:b + b:a').term_labels == ('a', 'a:b')

    def test_removal(self):
        f = parse_formula('y ~ a*b - a:b')
        assert f.term_labels == ('a', 'b')
        assert f.input_names == ('a', 'b')

    def test_removed_variable_not_an_input(self):
        assert parse_formula('y ~ a + b - b').input_names == ('a',)


# ═══════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════


class TestErrors:

    @pytest.mark.parametrize("text", [
        '',
        'y = x',
        'y ~ x ~ z',
        'y ~',
        'y ~ x +',
        'y ~ (x + z',
        'y ~ log(x',
    ])
    def test_malformed(self, text):
        with pytest.raises(InvalidFormulaError):
            parse_formula(text)

    def test_multi_term_response(self):
        with pytest.raises(InvalidFormulaError, match="Left-hand side"):
            parse_formula('y + z ~ x')

    def test_numeric_response(self):
        with pytest.raises(InvalidFormulaError):
            parse_formula('3 ~ x')

    def test_power_needs_I(self):
        with pytest.raises(InvalidFormulaError, match=r"I\(x\^"):
            parse_formula('y ~ x^2')

    def test_numeric_term(self):
        with pytest.raises(InvalidFormulaError, match="Numeric term"):
            parse_formula('y ~ x + 2')

    def test_unknown_function(self):
        with pytest.raises(InvalidFormulaError, match="Unknown function 'poly'"):
            parse_formula('y ~ poly(x, 2)')

    def test_unsafe_syntax_rejected(self):
        with pytest.raises(InvalidFormulaError):
            parse_formula('y ~ I(x[0])')

    def test_string_literal_rejected(self):
        with pytest.raises(InvalidFormulaError):
            parse_formula("y ~ I('a')")

    def test_not_a_string(self):
        with pytest.raises(InvalidFormulaError, match="must be a string"):
            parse_formula(42)

    def test_error_carries_formula(self):
        with pytest.raises(InvalidFormulaError) as exc_info:
            parse_formula('y ~ x + 2')
        assert exc_info.value.formula == 'y ~ x + 2'
