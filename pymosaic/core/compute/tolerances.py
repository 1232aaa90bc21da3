"""
Tolerance tiers for numerical comparison.

Defines precision expectations for the different compute paths and the
thresholds backends use to refuse ill-conditioned problems. Used by the
test suite and by the GPU least-squares backend.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ToleranceTier:
    """Tolerance specification for numerical comparison."""
    rtol: float
    atol: float
    name: str


# CPU double precision: interpolants and QR fits are exact to rounding
CPU_FP64 = ToleranceTier(rtol=1e-10, atol=1e-12, name='cpu_fp64')

# Local regression accumulates many small weighted solves
CPU_FP64_LOCAL = ToleranceTier(rtol=1e-8, atol=1e-10, name='cpu_fp64_local')

GPU_FP64 = ToleranceTier(rtol=1e-10, atol=1e-12, name='gpu_fp64')

# Consumer GPUs and MPS run in single precision
GPU_FP32 = ToleranceTier(rtol=1e-4, atol=1e-5, name='gpu_fp32')

# At cond(X) = 1e6, cond(X'X) = 1e12: past float32 usability
GPU_CONDITION_THRESHOLD = 1e6


def select_tolerance(backend_name: str) -> ToleranceTier:
    """Select appropriate tolerance tier for a given backend."""
    if 'gpu' in backend_name:
        return GPU_FP64 if 'fp64' in backend_name else GPU_FP32
    if 'loess' in backend_name:
        return CPU_FP64_LOCAL
    return CPU_FP64
