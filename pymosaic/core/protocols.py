"""
Core protocols for PyMosaic.

These define structural interfaces that domain-specific implementations must satisfy.
We use Protocol (structural typing) rather than ABC (nominal typing) to allow
flexibility while maintaining type safety.

Design Principles:
    - Minimal contracts: prescribe only what's truly universal
    - Capability-driven: use supports() for optional features
    - Type-safe: use generics to preserve type information through pipelines
"""

from typing import Protocol, TypeVar, Any, runtime_checkable

import numpy as np
from numpy.typing import NDArray

from pymosaic.core.result import Result

# Type variables for generic payloads
P = TypeVar('P')  # Parameter payload type
D = TypeVar('D', contravariant=True)  # Design type


@runtime_checkable
class DataTable(Protocol):
    """
    Minimal protocol for any column store a formula can be evaluated against.

    DataSource implements it; so does anything else that can hand out
    named columns and say how many rows it holds.
    """

    @property
    def n_observations(self) -> int:
        """Number of statistical units (rows)."""
        ...

    def keys(self) -> frozenset[str]:
        """Names of the available columns."""
        ...

    def __getitem__(self, key: str) -> Any:
        ...

    def __contains__(self, key: str) -> bool:
        ...

    def supports(self, capability: str) -> bool:
        """
        Check if this table supports a given capability.

        Note:
            Unknown capabilities MUST return False, never raise.
        """
        ...


@runtime_checkable
class FunctionBackend(Protocol[D, P]):
    """
    Protocol for the routines a generated function delegates to.

    A backend fits a design once, producing an immutable payload, and
    evaluates that payload at new inputs as often as it is asked. The
    builders never look inside the payload, so any backend satisfying
    this protocol can be swapped in.

    Backends are stateless: all configuration is passed at construction
    time, all data through the design.

    Type Parameters:
        D: The design type this backend accepts
        P: The parameter payload type this backend produces
    """

    @property
    def name(self) -> str:
        """
        Backend identifier.

        Convention: '{device}_{algorithm}'
        Examples: 'cpu_loess', 'cpu_qr', 'cpu_spline', 'gpu_qr_fp32'
        """
        ...

    def fit(self, design: D) -> Result[P]:
        """
        Fit the model or build the interpolant.

        Raises:
            FitError: If the routine fails or degenerates
            ValidationError: If the design is invalid for this backend
        """
        ...

    def evaluate(
        self,
        params: P,
        inputs: NDArray[np.floating[Any]],
        **options: Any,
    ) -> NDArray[np.floating[Any]]:
        """
        Evaluate a fitted payload at new inputs.

        Args:
            params: Payload from a previous fit()
            inputs: (m x k) matrix, one column per input variable
            **options: Backend-specific evaluation options (e.g. deriv)

        Returns:
            (m,) array of outputs

        Non-finite outputs are returned as they are; the caller decides
        whether they are an error.
        """
        ...
