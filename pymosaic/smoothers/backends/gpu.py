"""
GPU backend for linear models using PyTorch.

Performance path validated against the CPU QR reference. Supports CUDA
(Linux/Windows) and MPS (macOS Apple Silicon). PyTorch is an optional
dependency and is imported only when this backend is constructed.
"""

from __future__ import annotations

from typing import Any
import numpy as np
from numpy.typing import NDArray

from pymosaic.core.exceptions import FitError
from pymosaic.core.result import Result
from pymosaic.core.compute.timing import Timer
from pymosaic.core.compute.tolerances import GPU_CONDITION_THRESHOLD
from pymosaic.smoothers.design import FunctionDesign
from pymosaic.smoothers.backends.cpu import LinearParams


class GPUCholeskyBackend:
    """
    Least squares on the GPU via Cholesky on the normal equations.

    Squares the condition number, so ill-conditioned designs are refused
    with FitError unless force=True. Rank-deficient designs always fail:
    a generated function must have unique coefficients.

    FP32 by default for consumer GPUs; MPS supports FP32 only.
    """

    def __init__(self, use_fp64: bool = False, device: str = 'cuda', force: bool = False):
        import torch

        if device.startswith('cuda'):
            if not torch.cuda.is_available():
                raise RuntimeError(
                    "CUDA not available. Install PyTorch with CUDA support, "
                    "or use backend='cpu'."
                )
            self.dtype = torch.float64 if use_fp64 else torch.float32
        elif device == 'mps':
            if not (hasattr(torch.backends, 'mps') and torch.backends.mps.is_available()):
                raise RuntimeError(
                    "MPS not available. Requires macOS with Apple Silicon "
                    "and PyTorch with MPS support."
                )
            if use_fp64:
                raise RuntimeError(
                    "MPS does not support float64. Use use_fp64=False "
                    "or use backend='cpu' for double precision."
                )
            self.dtype = torch.float32
        else:
            raise ValueError(f"Unknown GPU device: {device!r}. Use 'cuda' or 'mps'.")

        self.device = torch.device(device)
        self.use_fp64 = use_fp64 and device != 'mps'
        self.force = force

    @property
    def name(self) -> str:
        precision = "fp64" if self.use_fp64 else "fp32"
        return f'gpu_qr_{precision}'

    def fit(self, design: FunctionDesign) -> Result[LinearParams]:
        """
        Solve least squares on the GPU.

        Raises:
            FitError: If the design is ill-conditioned (and force=False),
                rank-deficient, or has fewer rows than terms
        """
        import torch

        sync = torch.cuda.synchronize if self.device.type == 'cuda' else None
        timer = Timer(sync=sync)
        timer.start()

        n, p = design.n, design.p
        if p == 0 or n < p:
            raise FitError(
                f"cannot fit '{design.formula}': {n} observation(s) for {p} term(s)",
                method='cholesky',
            )

        sw_np = np.sqrt(design.weights) if design.weights is not None else np.ones(n)

        with timer.section('data_transfer_to_gpu'):
            X = torch.from_numpy(design.X * sw_np[:, None]).to(device=self.device, dtype=self.dtype)
            y = torch.from_numpy(design.y * sw_np).to(device=self.device, dtype=self.dtype)

        # svdvals is not implemented on MPS; the check runs on CPU there
        with timer.section('condition_check'):
            try:
                sv = torch.linalg.svdvals(X)
            except (NotImplementedError, RuntimeError):
                sv = torch.linalg.svdvals(X.cpu()).to(X.device)
            sv_min = float(sv[-1].item())
            sv_max = float(sv[0].item())
            cond = sv_max / sv_min if sv_min > 0 else float('inf')

        threshold = max(n, p) * torch.finfo(self.dtype).eps * sv_max
        rank = int((sv > threshold).sum().item())
        if cond > GPU_CONDITION_THRESHOLD and not self.force:
            raise FitError(
                f"Design matrix is ill-conditioned (condition number: {cond:.2e}). "
                f"Use backend='cpu' for QR decomposition, or force=True.",
                method='cholesky',
            )
        if rank < p:
            raise FitError(
                f"cannot fit '{design.formula}': design matrix is rank-deficient "
                f"(rank={rank}, p={p})",
                method='cholesky',
            )

        with timer.section('cholesky_solve'):
            XtX = X.T @ X
            Xty = X.T @ y
            try:
                L = torch.linalg.cholesky(XtX)
            except RuntimeError as e:
                raise FitError(
                    f"Cholesky factorization failed: {e}", method='cholesky'
                ) from e
            z = torch.linalg.solve_triangular(L, Xty.unsqueeze(1), upper=False)
            coef_gpu = torch.linalg.solve_triangular(L.T, z, upper=True).squeeze(1)

        with timer.section('data_transfer_to_cpu'):
            coefficients = coef_gpu.cpu().numpy().astype(np.float64)

        timer.stop()

        fitted_values = design.X @ coefficients
        residuals = design.y - fitted_values

        params = LinearParams(
            coefficients=coefficients,
            term_labels=design.term_labels,
            residuals=residuals,
            fitted_values=fitted_values,
            rss=float(np.sum(sw_np ** 2 * residuals ** 2)),
            rank=rank,
            df_residual=n - rank,
        )

        return Result(
            params=params,
            info={
                'method': 'cholesky',
                'rank': rank,
                'device': str(self.device),
                'dtype': str(self.dtype),
                'condition_number': cond,
            },
            timing=timer.result(),
            backend_name=self.name,
            warnings=(),
        )

    def evaluate(
        self,
        params: LinearParams,
        inputs: NDArray[np.floating[Any]],
        **options: Any,
    ) -> NDArray[np.floating[Any]]:
        return inputs @ params.coefficients
