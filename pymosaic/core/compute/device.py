"""
Hardware detection for the optional PyTorch backends.

PyTorch is imported lazily; nothing here fails when it is not installed.
"""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class DeviceInfo:
    """
    A compute device a backend can run on.

    Attributes:
        device_type: 'cpu', 'cuda' or 'mps'
        name: Human-readable device name
    """
    device_type: Literal['cpu', 'cuda', 'mps']
    name: str

    def __str__(self) -> str:
        return f"{self.device_type.upper()} ({self.name})"

    @property
    def is_gpu(self) -> bool:
        """True if this is a GPU device."""
        return self.device_type in ('cuda', 'mps')


CPU = DeviceInfo(device_type='cpu', name='host')


def detect_gpu() -> DeviceInfo | None:
    """
    Detect an available GPU, if any.

    Priority: CUDA > MPS (Apple Silicon). Returns None when PyTorch is
    missing or reports no device.
    """
    try:
        import torch
    except ImportError:
        return None

    if torch.cuda.is_available():
        idx = torch.cuda.current_device()
        return DeviceInfo(
            device_type='cuda',
            name=torch.cuda.get_device_properties(idx).name,
        )

    if hasattr(torch.backends, 'mps') and torch.backends.mps.is_available():
        return DeviceInfo(device_type='mps', name='Apple Silicon GPU')

    return None


def select_device(prefer: Literal['cpu', 'gpu', 'auto'] = 'auto') -> DeviceInfo:
    """
    Select compute device based on preference and availability.

    Args:
        prefer:
            - 'cpu': Always use CPU
            - 'gpu': Require GPU (raises if unavailable)
            - 'auto': Use GPU if available, else CPU

    Raises:
        RuntimeError: If 'gpu' requested but no GPU available
    """
    if prefer == 'cpu':
        return CPU

    gpu = detect_gpu()

    if prefer == 'gpu' and gpu is None:
        raise RuntimeError(
            "GPU requested but no GPU available. "
            "Ensure PyTorch is installed with CUDA/MPS support, "
            "or use backend='cpu'."
        )

    return gpu if gpu is not None else CPU
