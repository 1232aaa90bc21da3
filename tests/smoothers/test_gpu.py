"""
GPU tests for linear_model().

Validates the PyTorch backend against the CPU QR reference. GPU uses FP32
by default, so tolerances follow the GPU_FP32 tier.

Skipped automatically when no GPU is available.
"""

import numpy as np
import pytest

from pymosaic.core.compute.tolerances import GPU_FP32
from pymosaic.core.datasource import DataSource
from pymosaic.core.exceptions import FitError
from pymosaic.smoothers import linear_model


def _gpu_available():
    try:
        import torch
        return (torch.cuda.is_available() or
                (hasattr(torch.backends, 'mps') and torch.backends.mps.is_available()))
    except ImportError:
        return False


pytestmark = pytest.mark.skipif(
    not _gpu_available(), reason="No GPU available"
)


class TestGPUBackend:

    def test_backend_name(self, regression_table):
        g = linear_model('y ~ a + b + c', regression_table, backend='gpu')
        assert 'gpu' in g.backend_name

    def test_matches_cpu(self, regression_table):
        cpu = linear_model('y ~ a + b + c + 1', regression_table, backend='cpu')
        gpu = linear_model('y ~ a + b + c + 1', regression_table, backend='gpu')
        np.testing.assert_allclose(
            list(gpu.coefficients().values()),
            list(cpu.coefficients().values()),
            rtol=GPU_FP32.rtol, atol=GPU_FP32.atol,
        )

    def test_predictions_match_cpu(self, regression_table):
        cpu = linear_model('y ~ a + b', regression_table, backend='cpu')
        gpu = linear_model('y ~ a + b', regression_table, backend='gpu')
        assert gpu(a=1.0, b=2.0) == pytest.approx(cpu(a=1.0, b=2.0), rel=1e-3)

    def test_refuses_ill_conditioned(self, rng):
        n, p = 100, 5
        U, _ = np.linalg.qr(rng.standard_normal((n, p)))
        V, _ = np.linalg.qr(rng.standard_normal((p, p)))
        X = U @ np.diag([1e7, 1e4, 1e2, 1e1, 1.0]) @ V.T
        ds = DataSource.from_arrays(
            **{f'x{j}': X[:, j] for j in range(p)}, y=rng.standard_normal(n)
        )
        with pytest.raises(FitError, match="ill-conditioned"):
            linear_model('y ~ x0 + x1 + x2 + x3 + x4', ds, backend='gpu')

    def test_auto_selects_gpu_for_tensors(self, simple_regression_data):
        import torch
        from pymosaic.core.compute import detect_gpu

        X, y, _ = simple_regression_data
        device = detect_gpu().device_type
        ds = DataSource.from_tensors(
            a=torch.from_numpy(X[:, 0]).float().to(device),
            y=torch.from_numpy(y).float().to(device),
        )
        g = linear_model('y ~ a', ds)
        assert 'gpu' in g.backend_name
