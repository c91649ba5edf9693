"""
Datasets for the linear model practicals.

Synthetic generators reproduce the data-generating processes used in
the exercises; load_fruitfly() reads the supplied fruitfly table.
All randomness comes from numpy.random.default_rng(seed), so a given
seed always yields the same frame.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd

from pylm.core.datasource import DataSource
from pylm.core.exceptions import ValidationError
from pylm.core.validation import check_columns_exist

# Companion treatments of the fruitfly experiment, control group first
FRUITFLY_TYPES = ('isolated', 'one', 'low', 'many', 'high')
FRUITFLY_COLUMNS = ('longevity', 'thorax', 'type')

# Mean effect of each companion type on longevity (days), relative to isolated
_TYPE_EFFECTS = {
    'isolated': 0.0,
    'one': 1.0,
    'low': -7.0,
    'many': 2.0,
    'high': -20.0,
}


def _check_n(n: int) -> int:
    if int(n) != n or n < 3:
        raise ValidationError(f"n: need an integer of at least 3, got {n!r}")
    return int(n)


def simulate_height_weight(n: int = 100, seed: int = 1453) -> pd.DataFrame:
    """
    Simple regression data.

    weight ~ U(60, 100) kg
    height = 2.2 · weight + N(0, 10) cm

    Returns:
        DataFrame with columns height, weight
    """
    n = _check_n(n)
    rng = np.random.default_rng(seed)
    weight = rng.uniform(60, 100, size=n)
    height = 2.2 * weight + rng.normal(0, 10, size=n)
    return pd.DataFrame({'height': height, 'weight': weight})


def simulate_height_parents(n: int = 100, seed: int = 451) -> pd.DataFrame:
    """
    Multiple regression data.

    weight ~ U(60, 100) kg, heightParents ~ U(130, 210) cm
    height = 0.1 · weight + 1.05 · heightParents + N(0, 10) cm

    Returns:
        DataFrame with columns weight, heightParents, height
    """
    n = _check_n(n)
    rng = np.random.default_rng(seed)
    weight = rng.uniform(60, 100, size=n)
    height_parents = rng.uniform(130, 210, size=n)
    height = 0.1 * weight + 1.05 * height_parents + rng.normal(0, 10, size=n)
    return pd.DataFrame({
        'weight': weight,
        'heightParents': height_parents,
        'height': height,
    })


def simulate_fruitfly(n_per_type: int = 25, seed: int = 2022) -> pd.DataFrame:
    """
    Fruitfly longevity experiment with the same layout as the real one.

    Five companion types with n_per_type males each. Thorax length
    (mm) drives longevity, the companion type shifts it, and the
    percentage of the day spent sleeping has a small positive effect.

    Returns:
        DataFrame with columns thorax, longevity, type, sleep; `type`
        is an ordered pandas Categorical with 'isolated' first
    """
    n_per_type = _check_n(n_per_type)
    rng = np.random.default_rng(seed)
    n = n_per_type * len(FRUITFLY_TYPES)

    types = np.repeat(FRUITFLY_TYPES, n_per_type)
    thorax = np.round(rng.uniform(0.64, 0.94, size=n), 2)
    sleep = np.clip(rng.normal(22, 6, size=n), 0, 100).round(0)
    effect = np.array([_TYPE_EFFECTS[t] for t in types])
    longevity = -55.0 + 135.0 * thorax + effect + 0.15 * sleep + rng.normal(0, 10, size=n)

    return pd.DataFrame({
        'thorax': thorax,
        'longevity': np.round(longevity, 0),
        'type': pd.Categorical(types, categories=list(FRUITFLY_TYPES)),
        'sleep': sleep,
    })


def load_fruitfly(path: str | Path) -> pd.DataFrame:
    """
    Load the fruitfly table from a CSV or TSV file.

    The file must contain longevity, thorax and type columns; any
    others (e.g. sleep) are kept.

    Raises:
        UnknownColumnError: If a required column is missing
        ValidationError: On an unsupported file format or a blank label
    """
    source = DataSource.from_file(path)
    check_columns_exist(FRUITFLY_COLUMNS, source.keys(), str(path))
    df = source.to_dataframe()
    observed = set(df['type'])
    ordered = [t for t in FRUITFLY_TYPES if t in observed]
    ordered += sorted(observed - set(ordered))
    df['type'] = pd.Categorical(df['type'], categories=ordered)
    return df
