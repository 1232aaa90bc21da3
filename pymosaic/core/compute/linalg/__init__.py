"""
Linear algebra kernels for PyMosaic.

CPU functions use NumPy/SciPy (LAPACK under the hood), return structured
results, and raise immediately with clear messages.
"""

from pymosaic.core.compute.linalg.qr import QRResult, qr_cpu, qr_solve_cpu

__all__ = [
    "QRResult",
    "qr_cpu",
    "qr_solve_cpu",
]
