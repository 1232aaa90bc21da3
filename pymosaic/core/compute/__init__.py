"""
Shared compute infrastructure for PyMosaic.

Hardware detection, timing, tolerances and linear algebra kernels shared
by all backends. Backends themselves live in {domain}/backends/.
"""

from pymosaic.core.compute.device import DeviceInfo, detect_gpu, select_device
from pymosaic.core.compute.timing import Timer

__all__ = [
    "DeviceInfo",
    "detect_gpu",
    "select_device",
    "Timer",
]
