"""
Backends the generated functions delegate to.

Available backends:
    CPULoessBackend: direct-surface local regression via scikit-misc
    CPUQRBackend: least squares via QR (reference)
    GPUCholeskyBackend: least squares on PyTorch (optional, import lazily)
    CPUSplineBackend: interpolating splines via SciPy
    CPUApproxBackend: piecewise-linear and step interpolation
"""

from pymosaic.smoothers.backends.cpu import CPUQRBackend, LinearParams
from pymosaic.smoothers.backends.cpu_loess import CPULoessBackend, LoessParams
from pymosaic.smoothers.backends.cpu_spline import CPUSplineBackend, SplineParams
from pymosaic.smoothers.backends.cpu_approx import CPUApproxBackend, ApproxParams

__all__ = [
    "CPUQRBackend",
    "LinearParams",
    "CPULoessBackend",
    "LoessParams",
    "CPUSplineBackend",
    "SplineParams",
    "CPUApproxBackend",
    "ApproxParams",
]
