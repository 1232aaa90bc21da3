"""
Tests for linear_model(): least squares on exactly the given terms.
"""

import numpy as np
import pytest

from pymosaic.core.datasource import DataSource
from pymosaic.core.exceptions import FitError, InvalidFormulaError
from pymosaic.smoothers import FITTED_LINEAR_MODEL, linearModel, linear_model


class TestCoefficients:

    def test_matches_lstsq(self, regression_table, simple_regression_data):
        X, y, _ = simple_regression_data
        g = linear_model('y ~ a + b + c', regression_table)
        expected, *_ = np.linalg.lstsq(X, y, rcond=None)
        np.testing.assert_allclose(list(g.coefficients().values()), expected, rtol=1e-10)

    def test_recovers_truth(self, regression_table, simple_regression_data):
        _, _, beta_true = simple_regression_data
        g = linear_model('y ~ a + b + c', regression_table)
        np.testing.assert_allclose(list(g.coefficients().values()), beta_true, atol=0.05)

    def test_no_implicit_intercept(self, regression_table):
        g = linear_model('y ~ a + b', regression_table)
        assert list(g(showcoefs=True)) == ['a', 'b']

    def test_explicit_intercept(self, regression_table):
        g = linear_model('y ~ a + b + 1', regression_table)
        assert list(g(showcoefs=True)) == ['(Intercept)', 'a', 'b']

    def test_transformed_response(self):
        x = np.linspace(0.0, 2.0, 20)
        g = linear_model('log(y) ~ x + 1', {'x': x, 'y': np.exp(1.0 + 2.0 * x)})
        coefs = g(showcoefs=True)
        assert coefs['(Intercept)'] == pytest.approx(1.0)
        assert coefs['x'] == pytest.approx(2.0)

    def test_interaction(self, rng):
        a = rng.standard_normal(40)
        b = rng.standard_normal(40)
        g = linear_model('y ~ a*b', {'a': a, 'b': b, 'y': a * b})
        coefs = g(showcoefs=True)
        assert list(coefs) == ['a', 'b', 'a:b']
        assert coefs['a:b'] == pytest.approx(1.0)
        assert coefs['a'] == pytest.approx(0.0, abs=1e-10)

    def test_weights(self, regression_table, simple_regression_data, rng):
        X, y, _ = simple_regression_data
        w = rng.uniform(0.5, 2.0, len(y))
        g = linear_model('y ~ a + b + c', regression_table, weights=w)
        sw = np.sqrt(w)
        expected, *_ = np.linalg.lstsq(X * sw[:, None], y * sw, rcond=None)
        np.testing.assert_allclose(list(g.coefficients().values()), expected, rtol=1e-10)
        assert g.info['weighted']


class TestPrediction:

    def test_prediction(self, regression_table):
        g = linear_model('y ~ a + b + c', regression_table)
        coefs = g(showcoefs=True)
        assert g(1.0, 0.0, 0.0) == pytest.approx(coefs['a'])
        assert g(a=1.0, b=1.0, c=1.0) == pytest.approx(sum(coefs.values()))

    def test_fitted_values(self, regression_table):
        g = linear_model('y ~ a + b + c', regression_table)
        np.testing.assert_allclose(
            g.fitted_values(),
            g(regression_table['a'], regression_table['b'], regression_table['c']),
        )

    def test_transformed_input(self):
        x = np.linspace(1.0, 5.0, 10)
        g = linear_model('y ~ I(x^2)', {'x': x, 'y': 3.0 * x ** 2})
        assert g.input_names == ('x',)
        assert g(x=2.0) == pytest.approx(12.0)

    def test_intercept_only(self):
        g = linear_model('y ~ 1', {'y': [1.0, 2.0, 3.0]})
        assert g.input_names == ()
        assert g() == pytest.approx(2.0)


class TestIntrospection:

    def test_mosaic_type(self, regression_table):
        g = linear_model('y ~ a', regression_table)
        assert g.mosaic_type == FITTED_LINEAR_MODEL == "Fitted Linear Model"

    def test_alias(self):
        assert linearModel is linear_model

    def test_backend_name(self, regression_table):
        g = linear_model('y ~ a', regression_table, backend='cpu')
        assert g.backend_name == 'cpu_qr'
        assert g.info['rank'] == 1

    def test_summary(self, regression_table):
        text = linear_model('y ~ a + 1', regression_table).summary()
        assert "Coefficients:" in text
        assert "(Intercept)" in text

    def test_timing(self, regression_table):
        g = linear_model('y ~ a', regression_table)
        assert 'total_seconds' in g.timing


class TestErrors:

    def test_collinear(self, collinear_data):
        X, y = collinear_data
        ds = DataSource.from_arrays(a=X[:, 0], b=X[:, 1], c=X[:, 2], y=y)
        with pytest.raises(FitError, match="rank-deficient"):
            linear_model('y ~ a + b + c', ds)

    def test_too_few_rows(self):
        with pytest.raises(FitError):
            linear_model('y ~ a + b + 1', {'a': [1.0, 2.0], 'b': [3.0, 1.0], 'y': [1.0, 2.0]})

    def test_no_response(self, regression_table):
        with pytest.raises(InvalidFormulaError, match="left-hand side"):
            linear_model('~ a', regression_table)

    def test_missing_variable(self, regression_table):
        with pytest.raises(InvalidFormulaError, match="educ"):
            linear_model('y ~ educ', regression_table)

    def test_unknown_backend(self, regression_table):
        with pytest.raises(ValueError, match="Unknown backend"):
            linear_model('y ~ a', regression_table, backend='tpu')

    def test_non_finite_prediction(self):
        x = np.linspace(1.0, 5.0, 10)
        g = linear_model('y ~ log(x)', {'x': x, 'y': 2.0 * np.log(x)})
        with pytest.raises(FitError, match="not finite"):
            g(x=-1.0)


class TestDataFrame:

    def test_dataframe_input(self, simple_regression_data):
        pd = pytest.importorskip("pandas")
        X, y, _ = simple_regression_data
        df = pd.DataFrame({'a': X[:, 0], 'b': X[:, 1], 'label': ['u'] * len(y), 'y': y})
        g = linear_model('y ~ a + b', df)
        assert g.parameters == ('a', 'b', 'showcoefs')


class TestTensors:

    def test_cpu_tensor_columns(self, simple_regression_data):
        torch = pytest.importorskip("torch")
        X, y, _ = simple_regression_data
        g = linear_model('y ~ a', {'a': X[:, 0], 'y': y})
        ds = DataSource.from_tensors(a=torch.from_numpy(X[:, 0]), y=torch.from_numpy(y))
        h = linear_model('y ~ a', ds)
        assert h.backend_name == 'cpu_qr'
        assert h(showcoefs=True)['a'] == pytest.approx(g(showcoefs=True)['a'])
