"""
What a DataSource can do, as string flags.

Backends ask DataSource.supports(flag) instead of inspecting column types.
Use these constants rather than the raw strings.
"""

# Columns are NumPy arrays in host memory
CAPABILITY_MATERIALIZED = 'materialized'

# Columns are PyTorch tensors on a GPU; linear_model(backend='auto') stays there
CAPABILITY_GPU_NATIVE = 'gpu_native'

ALL_CAPABILITIES = frozenset({
    CAPABILITY_MATERIALIZED,
    CAPABILITY_GPU_NATIVE,
})

__all__ = [
    'CAPABILITY_MATERIALIZED',
    'CAPABILITY_GPU_NATIVE',
    'ALL_CAPABILITIES',
]
