"""
Generic result container for all PyMosaic fits.

Every backend wraps its fitted payload in the same Result envelope, so the
generated functions can expose timing, backend identity and warnings without
knowing which routine produced them.

Design decisions:
    - Generic over parameter payload P for type safety
    - info dict for flexible metadata (method, span, rank, ...)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True): a fitted model never changes after creation
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope for a fit.

    Type Parameters:
        P: The backend-specific parameter payload type

    Attributes:
        params: Fitted payload (coefficients, spline pieces, loess data, ...)
        info: Structured metadata (method, rank, span, ...)
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the backend that produced this result
        warnings: Non-fatal issues encountered during the fit

    Examples:
        >>> Result(
        ...     params=LinearParams(coefficients=beta, ...),
        ...     info={'method': 'qr', 'rank': 2},
        ...     timing={'total_seconds': 0.001},
        ...     backend_name='cpu_qr'
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
