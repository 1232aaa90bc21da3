"""
Named columns to build functions from.

A DataSource is the table a formula is evaluated against. It knows nothing
about formulas: it holds equally long 1D columns under string names and
reports where they live.

Usage:
    from pymosaic import DataSource

    ds = DataSource.from_arrays(x=[1, 2, 3], y=[2, 4, 6])
    ds = DataSource.from_dataframe(cps)
    ds = DataSource.from_mapping({'age': ages, 'wage': wages})
    ds = DataSource.build(cps)          # dispatches on type

    ds.keys()        # frozenset({'x', 'y'})
    ds['x']          # array([1., 2., 3.])
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, TYPE_CHECKING
import numpy as np
from numpy.typing import ArrayLike

from pymosaic.core.exceptions import ValidationError, DimensionError
from pymosaic.core.capabilities import CAPABILITY_MATERIALIZED, CAPABILITY_GPU_NATIVE
from pymosaic.core.validation import check_array

if TYPE_CHECKING:
    import pandas as pd
    import torch


@dataclass
class DataSource:
    """
    Column container.

    Construct via the from_* classmethods or build(), not directly.
    """
    _data: dict[str, Any]
    _capabilities: frozenset[str]
    _metadata: dict[str, Any] = field(default_factory=dict)

    # === Column Access ===

    def keys(self) -> frozenset[str]:
        """Names of all columns."""
        return frozenset(self._data)

    def __getitem__(self, key: str) -> Any:
        """
        One column by name.

        Raises:
            KeyError: If there is no such column; the message lists the
                columns that do exist
        """
        try:
            return self._data[key]
        except KeyError:
            raise KeyError(
                f"DataSource has no column '{key}'. Available: {sorted(self._data)}"
            ) from None

    def __contains__(self, key: str) -> bool:
        return key in self._data

    # === Properties ===

    @property
    def n_observations(self) -> int:
        """Number of rows."""
        return self._metadata.get('n_observations', 0)

    @property
    def metadata(self) -> dict[str, Any]:
        """Where the columns came from; a copy."""
        return self._metadata.copy()

    def supports(self, capability: str) -> bool:
        """True if the capability flag is set. Unknown flags are False."""
        return capability in self._capabilities

    # === Factory Methods ===

    @classmethod
    def from_arrays(cls, **named_arrays: ArrayLike) -> DataSource:
        """Construct from keyword columns, each a 1D array-like."""
        return cls.from_mapping(named_arrays, source='arrays')

    @classmethod
    def from_mapping(
        cls,
        columns: Mapping[str, ArrayLike],
        *,
        source: str = 'mapping',
    ) -> DataSource:
        """
        Construct from a mapping of column name to 1D array-like.

        A scalar is taken as a one-row column.

        Raises:
            ValidationError: A column is not numeric
            DimensionError: A column is not 1D, or the lengths differ
        """
        storage: dict[str, Any] = {}
        n_obs: int | None = None

        for name, values in columns.items():
            arr = np.atleast_1d(check_array(values, f"column '{name}'")).astype(np.float64)
            if arr.ndim != 1:
                raise DimensionError(
                    f"column '{name}': expected 1D array, got shape {arr.shape}"
                )
            if n_obs is None:
                n_obs = arr.shape[0]
            elif arr.shape[0] != n_obs:
                raise DimensionError(
                    f"column '{name}' has {arr.shape[0]} rows, expected {n_obs}"
                )
            storage[str(name)] = arr

        return cls(
            _data=storage,
            _capabilities=frozenset({CAPABILITY_MATERIALIZED}),
            _metadata={'n_observations': n_obs or 0, 'source': source},
        )

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> DataSource:
        """
        Construct from a pandas DataFrame.

        Numeric and boolean columns are kept. Others (strings, categories,
        dates) are left out and listed in metadata['dropped_columns']; a
        formula naming one fails with the list of usable columns.
        """
        from pandas.api.types import is_numeric_dtype

        storage: dict[str, Any] = {}
        dropped = []

        for col in df.columns:
            series = df[col]
            if is_numeric_dtype(series.dtype):
                storage[str(col)] = series.to_numpy(dtype=np.float64, na_value=np.nan)
            else:
                dropped.append(str(col))

        metadata: dict[str, Any] = {'n_observations': len(df), 'source': 'dataframe'}
        if dropped:
            metadata['dropped_columns'] = dropped

        return cls(
            _data=storage,
            _capabilities=frozenset({CAPABILITY_MATERIALIZED}),
            _metadata=metadata,
        )

    @classmethod
    def from_tensors(cls, **named_tensors: torch.Tensor) -> DataSource:
        """
        Construct from PyTorch tensors, left where they are.

        Raises:
            DimensionError: A tensor is not 1D, or the lengths differ
        """
        n_obs: int | None = None
        device: str | None = None

        for name, tensor in named_tensors.items():
            if tensor.ndim != 1:
                raise DimensionError(
                    f"column '{name}': expected 1D tensor, got shape {tuple(tensor.shape)}"
                )
            if n_obs is None:
                n_obs, device = tensor.shape[0], tensor.device.type
            elif tensor.shape[0] != n_obs:
                raise DimensionError(
                    f"column '{name}' has {tensor.shape[0]} rows, expected {n_obs}"
                )

        capabilities = frozenset()
        if device not in (None, 'cpu'):
            capabilities = frozenset({CAPABILITY_GPU_NATIVE})
        return cls(
            _data=dict(named_tensors),
            _capabilities=capabilities,
            _metadata={'n_observations': n_obs or 0, 'source': 'tensors', 'device': device},
        )

    @classmethod
    def build(cls, data: Any = None, **columns: ArrayLike) -> DataSource:
        """
        Dispatch to the matching from_* method.

        Examples:
            DataSource.build(ds)            # returned unchanged
            DataSource.build(df)            # from_dataframe
            DataSource.build({'x': x})      # from_mapping
            DataSource.build(x=x, y=y)      # from_arrays

        Raises:
            ValidationError: For anything else
        """
        if isinstance(data, DataSource):
            if columns:
                raise ValidationError(
                    "Pass either a DataSource or keyword columns, not both"
                )
            return data
        if data is None:
            return cls.from_arrays(**columns)
        if hasattr(data, 'columns') and hasattr(data, 'to_numpy'):
            return cls.from_dataframe(data)
        if isinstance(data, Mapping):
            return cls.from_mapping({**data, **columns})
        raise ValidationError(
            f"Cannot build a DataSource from {type(data).__name__}; "
            f"expected DataSource, pandas DataFrame or mapping of columns"
        )
