"""
Tests for connector(): connect-the-dots interpolation.
"""

import inspect

import numpy as np
import pytest

from pymosaic.core.exceptions import FitError, FormulaArgumentError, UnsupportedArityError
from pymosaic.smoothers import connector


class TestLinear:

    def test_passes_through_data(self, five_points):
        f = connector('y ~ x', five_points)
        np.testing.assert_array_equal(f(five_points['x']), five_points['y'])

    def test_between_points(self, five_points):
        f = connector('y ~ x', five_points)
        assert f(1.5) == pytest.approx(1.5)
        assert f(4.5) == pytest.approx(8.1)

    def test_clamps_outside_range(self, five_points):
        f = connector('y ~ x', five_points)
        np.testing.assert_array_equal(f(x=[-10.0, 0.0, 6.0, 100.0]), [1.0, 1.0, 8.2, 8.2])

    def test_inverse_direction(self, five_points):
        f = connector('x ~ y', five_points)
        assert f.input_names == ('y',)
        assert f(y=6.0) == pytest.approx(3.5)

    def test_unsorted_input(self):
        f = connector('y ~ x', {'x': [3.0, 1.0, 2.0], 'y': [30.0, 10.0, 20.0]})
        assert f(2.5) == pytest.approx(25.0)

    def test_info(self, five_points):
        f = connector('y ~ x', five_points)
        assert f.info['rule'] == 2
        assert f.info['n_knots'] == 5
        assert f.backend_name == 'cpu_approx'


class TestConstant:

    def test_steps(self, five_points):
        f = connector('y ~ x', five_points, method='constant')
        np.testing.assert_array_equal(f([1.0, 1.5, 2.0, 4.99, 5.0]), [1.0, 1.0, 2.0, 8.0, 8.2])

    def test_clamps(self, five_points):
        f = connector('y ~ x', five_points, method='constant')
        assert f(0.0) == 1.0
        assert f(9.0) == 8.2

    def test_single_point(self):
        f = connector('y ~ x', {'x': [2.0], 'y': [7.0]}, method='constant')
        assert f(-1.0) == 7.0


class TestSignature:

    def test_no_deriv_parameter(self, five_points):
        f = connector('y ~ x', five_points)
        assert f.parameters == ('x',)
        assert str(inspect.signature(f)) == '(x)'
        with pytest.raises(FormulaArgumentError):
            f(1.0, deriv=1)


class TestErrors:

    def test_too_few_points(self):
        with pytest.raises(FitError, match="at least 2"):
            connector('y ~ x', {'x': [1.0], 'y': [1.0]})

    def test_duplicates(self):
        with pytest.raises(FitError, match="duplicated"):
            connector('y ~ x', {'x': [1.0, 1.0, 2.0], 'y': [1.0, 2.0, 3.0]})

    def test_ties(self):
        with pytest.warns(UserWarning, match="collapsing"):
            f = connector('y ~ x', {'x': [1.0, 1.0, 2.0], 'y': [1.0, 2.0, 3.0]}, ties='mean')
        assert f(1.0) == pytest.approx(1.5)

    def test_arity(self, regression_table):
        with pytest.raises(UnsupportedArityError):
            connector('y ~ a:b', regression_table)
