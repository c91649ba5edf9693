"""
Universal DataSource for PyLM.

DataSource is the "I have data" abstraction. It holds named columns and
doesn't know or care which model will consume them.

Columns are either numeric (stored as float64) or categorical (stored as
str arrays). Categorical columns are kept as labels; turning them into
dummy variables is the regression design's job.

Usage:
    from pylm import DataSource

    ds = DataSource.from_arrays(height=h, weight=w)
    ds = DataSource.from_file("fruitfly.csv")
    ds = DataSource.from_dataframe(df)

    ds.keys()        # frozenset({'height', 'weight'})
    ds['weight']     # ndarray
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from pylm.core.exceptions import ValidationError, DimensionError, UnknownColumnError


@dataclass
class DataSource:
    """
    Named-column data container. Domain-agnostic.

    Construct via factory classmethods, not directly.
    """
    _data: dict[str, NDArray]
    _metadata: dict[str, Any] = field(default_factory=dict)

    # === Column Access ===

    def keys(self) -> frozenset[str]:
        """
        Return the names of all available columns.

        Example:
            >>> ds = DataSource.from_arrays(x=[1, 2], y=[3, 4])
            >>> ds.keys()
            frozenset({'x', 'y'})
        """
        return frozenset(self._data.keys())

    @property
    def columns(self) -> list[str]:
        """Column names in insertion order."""
        return list(self._data.keys())

    def __getitem__(self, key: str) -> NDArray:
        """
        Access a named column.

        Raises:
            UnknownColumnError: If key not found, listing available columns
        """
        if key not in self._data:
            available = self.keys()
            raise UnknownColumnError(
                f"DataSource has no column '{key}'. Available: {sorted(available)}",
                column=key,
                available=available,
            )
        return self._data[key]

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return self.n_observations

    def is_categorical(self, key: str) -> bool:
        """True if the column holds labels rather than numbers."""
        return self[key].dtype.kind in ('U', 'S', 'O')

    def levels(self, key: str) -> list[str] | None:
        """Declared level order of a categorical column, if it has one."""
        return self._metadata.get('levels', {}).get(key)

    # === Properties ===

    @property
    def n_observations(self) -> int:
        """Number of statistical units (rows)."""
        return self._metadata.get('n_observations', 0)

    @property
    def metadata(self) -> dict[str, Any]:
        """Domain-agnostic metadata."""
        return self._metadata.copy()

    def to_dataframe(self) -> pd.DataFrame:
        """Return the columns as a pandas DataFrame."""
        return pd.DataFrame({k: v for k, v in self._data.items()})

    # === Factory Methods ===

    @classmethod
    def from_arrays(cls, **columns: Any) -> DataSource:
        """
        Construct from named 1D array-likes.

        Numeric inputs become float64; anything else is kept as str labels.
        """
        storage: dict[str, NDArray] = {}
        for name, values in columns.items():
            storage[name] = _as_column(np.asarray(values), name)
        n_obs = _check_lengths(storage)
        return cls(
            _data=storage,
            _metadata={'n_observations': n_obs, 'source': 'arrays'},
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> DataSource:
        """Construct from a dict of column name -> values."""
        return cls.from_arrays(**{str(k): v for k, v in data.items()})

    @classmethod
    def from_file(cls, path: str | Path, *, columns: list[str] | None = None) -> DataSource:
        """Construct from a delimited text file (CSV, TSV)."""
        path = Path(path)
        suffix = path.suffix.lower()

        if suffix == '.csv':
            df = pd.read_csv(path, usecols=columns)
        elif suffix == '.tsv':
            df = pd.read_csv(path, sep='\t', usecols=columns)
        else:
            raise ValidationError(f"Unknown file format: {suffix}")
        return cls.from_dataframe(df, source_path=str(path))

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, *, source_path: str | None = None) -> DataSource:
        """Construct from pandas DataFrame."""
        storage: dict[str, NDArray] = {}
        levels: dict[str, list[str]] = {}

        for col in df.columns:
            series = df[col]
            if isinstance(series.dtype, pd.CategoricalDtype):
                used = series.cat.remove_unused_categories().cat.categories
                levels[str(col)] = [as_label(c) for c in used]
            if pd.api.types.is_bool_dtype(series) or not pd.api.types.is_numeric_dtype(series):
                storage[str(col)] = _labels(series.to_numpy(), str(col))
            else:
                storage[str(col)] = series.to_numpy(dtype=np.float64)

        metadata = {
            'n_observations': len(df),
            'source': 'dataframe',
            'columns': [str(c) for c in df.columns],
        }
        if levels:
            metadata['levels'] = levels
        if source_path:
            metadata['source_path'] = source_path

        return cls(_data=storage, _metadata=metadata)

    @classmethod
    def build(cls, *args, **kwargs) -> DataSource:
        """
        Convenience factory that dispatches to the appropriate from_* method.

        Examples:
            DataSource.build(x=x, y=y)          # from_arrays
            DataSource.build("data.csv")        # from_file
            DataSource.build(df)                # from_dataframe
            DataSource.build({'x': x})          # from_mapping
        """
        if args:
            obj = args[0]
            if isinstance(obj, DataSource):
                return obj
            if isinstance(obj, (str, Path)):
                return cls.from_file(obj, **kwargs)
            if isinstance(obj, pd.DataFrame):
                return cls.from_dataframe(obj, **kwargs)
            if isinstance(obj, Mapping):
                return cls.from_mapping(obj)
            raise ValidationError(
                f"Cannot build DataSource from {type(obj).__name__}"
            )
        return cls.from_arrays(**kwargs)


def _as_column(arr: NDArray, name: str) -> NDArray:
    if arr.ndim == 0:
        arr = arr.reshape(1)
    if arr.ndim != 1:
        raise DimensionError(
            f"{name}: expected 1D column, got {arr.ndim}D with shape {arr.shape}"
        )
    if np.issubdtype(arr.dtype, np.number) and arr.dtype.kind != 'b':
        return arr.astype(np.float64)
    return _labels(arr, name)


def as_label(value: Any) -> str:
    """
    Canonical text form of a categorical value.

    Whole numbers are written without a decimal part, so 6, 6.0 and
    np.float64(6) all map to '6'. Everything else goes through str().
    """
    if isinstance(value, (bool, np.bool_, str)):
        return str(value)
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    if isinstance(value, (float, np.floating)) and np.isfinite(value) and float(value).is_integer():
        return str(int(value))
    return str(value)


def _labels(values: NDArray, name: str) -> NDArray:
    missing = pd.isna(values)
    if missing.any():
        rows = np.flatnonzero(missing)
        raise ValidationError(
            f"{name}: {len(rows)} missing label(s) at rows {rows[:5].tolist()}; "
            f"drop or fill them before fitting"
        )
    return np.array([as_label(v) for v in values], dtype=str)


def _check_lengths(storage: dict[str, NDArray]) -> int:
    lengths = {name: len(arr) for name, arr in storage.items()}
    if len(set(lengths.values())) > 1:
        details = ", ".join(f"{k}={v}" for k, v in lengths.items())
        raise DimensionError(f"Inconsistent column lengths: {details}")
    return next(iter(lengths.values()), 0)
