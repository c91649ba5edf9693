"""
Tests for DataSource.

Validates:
    - Factory methods (arrays, mapping, DataFrame, CSV/TSV, build)
    - Numeric vs categorical column storage
    - Unknown column access
    - Level order recorded from pandas Categoricals
    - Label normalisation and rejection of missing labels
"""

import numpy as np
import pandas as pd
import pytest

from pylm.core.datasource import DataSource, as_label
from pylm.core.exceptions import DimensionError, UnknownColumnError, ValidationError


class TestFromArrays:

    def test_numeric_columns_are_float(self):
        ds = DataSource.from_arrays(x=[1, 2, 3], y=np.array([4, 5, 6], dtype=np.int32))
        assert ds['x'].dtype == np.float64
        assert ds['y'].dtype == np.float64
        assert ds.n_observations == 3
        assert len(ds) == 3

    def test_labels_are_categorical(self):
        ds = DataSource.from_arrays(g=['a', 'b', 'a'], x=[1.0, 2.0, 3.0])
        assert ds.is_categorical('g')
        assert not ds.is_categorical('x')
        assert list(ds['g']) == ['a', 'b', 'a']

    def test_booleans_are_labels(self):
        ds = DataSource.from_arrays(flag=[True, False, True])
        assert ds.is_categorical('flag')

    def test_scalar_becomes_single_row(self):
        ds = DataSource.from_arrays(weight=85)
        assert ds.n_observations == 1
        np.testing.assert_array_equal(ds['weight'], [85.0])

    def test_inconsistent_lengths(self):
        with pytest.raises(DimensionError, match="Inconsistent column lengths"):
            DataSource.from_arrays(x=[1, 2, 3], y=[1, 2])

    def test_2d_column_rejected(self):
        with pytest.raises(DimensionError, match="expected 1D"):
            DataSource.from_arrays(x=np.zeros((3, 2)))

    def test_keys_and_columns(self):
        ds = DataSource.from_arrays(b=[1, 2], a=[3, 4])
        assert ds.keys() == frozenset({'a', 'b'})
        assert ds.columns == ['b', 'a']
        assert 'a' in ds
        assert 'z' not in ds


class TestColumnAccess:

    def test_unknown_column(self):
        ds = DataSource.from_arrays(x=[1, 2], y=[3, 4])
        with pytest.raises(UnknownColumnError) as excinfo:
            ds['z']
        assert excinfo.value.column == 'z'
        assert excinfo.value.available == ('x', 'y')

    def test_unknown_column_is_key_error(self):
        ds = DataSource.from_arrays(x=[1, 2])
        with pytest.raises(KeyError):
            ds['z']

    def test_metadata_is_a_copy(self):
        ds = DataSource.from_arrays(x=[1, 2])
        ds.metadata['n_observations'] = 99
        assert ds.n_observations == 2


class TestFromDataFrame:

    def test_mixed_columns(self):
        df = pd.DataFrame({'x': [1.0, 2.0, 3.0], 'g': ['u', 'v', 'u']})
        ds = DataSource.from_dataframe(df)
        assert ds['x'].dtype == np.float64
        assert ds.is_categorical('g')
        assert ds.levels('g') is None

    def test_categorical_levels_recorded(self):
        df = pd.DataFrame({
            'g': pd.Categorical(['lo', 'hi', 'lo'], categories=['lo', 'mid', 'hi']),
        })
        ds = DataSource.from_dataframe(df)
        # unused categories are dropped, order kept
        assert ds.levels('g') == ['lo', 'hi']

    def test_round_trip_to_dataframe(self):
        df = pd.DataFrame({'x': [1.0, 2.0], 'g': ['a', 'b']})
        out = DataSource.from_dataframe(df).to_dataframe()
        assert list(out.columns) == ['x', 'g']
        assert list(out['g']) == ['a', 'b']

    def test_integer_categorical_labels(self):
        df = pd.DataFrame({'cyl': pd.Categorical([6, 4, 8, 4], categories=[8, 6, 4])})
        ds = DataSource.from_dataframe(df)
        assert list(ds['cyl']) == ['6', '4', '8', '4']
        assert ds.levels('cyl') == ['8', '6', '4']


# ═══════════════════════════════════════════════════════════════════════
# Labels
# ═══════════════════════════════════════════════════════════════════════


class TestLabels:

    @pytest.mark.parametrize("value, expected", [
        (6, '6'),
        (6.0, '6'),
        (np.float64(6.0), '6'),
        (np.int32(6), '6'),
        (6.5, '6.5'),
        ('6.0', '6.0'),
        (True, 'True'),
    ])
    def test_as_label(self, value, expected):
        assert as_label(value) == expected

    @pytest.mark.parametrize("missing", [None, np.nan])
    def test_missing_label_in_arrays(self, missing):
        with pytest.raises(ValidationError, match="g: 1 missing label"):
            DataSource.from_arrays(g=np.array(['a', missing, 'b'], dtype=object))

    @pytest.mark.parametrize("missing", [None, np.nan])
    def test_missing_label_in_dataframe(self, missing):
        df = pd.DataFrame({'y': [1.0, 2.0, 3.0], 'g': ['a', missing, 'b']})
        with pytest.raises(ValidationError, match="g: 1 missing label"):
            DataSource.from_dataframe(df)

    def test_missing_in_categorical(self):
        df = pd.DataFrame({'g': pd.Categorical(['a', None, 'b'])})
        with pytest.raises(ValidationError, match="g"):
            DataSource.from_dataframe(df)

    def test_blank_csv_cell(self, tmp_path):
        path = tmp_path / "data.csv"
        path.write_text("x,g\n1.5,a\n2.5,\n3.5,b\n")
        with pytest.raises(ValidationError, match="g"):
            DataSource.from_file(path)


class TestFromFile:

    def test_csv(self, tmp_path):
        path = tmp_path / "data.csv"
        path.write_text("x,g\n1.5,a\n2.5,b\n")
        ds = DataSource.from_file(path)
        np.testing.assert_array_equal(ds['x'], [1.5, 2.5])
        assert ds.is_categorical('g')
        assert ds.metadata['source_path'] == str(path)

    def test_tsv(self, tmp_path):
        path = tmp_path / "data.tsv"
        path.write_text("x\ty\n1\t2\n3\t4\n")
        ds = DataSource.from_file(path)
        np.testing.assert_array_equal(ds['y'], [2.0, 4.0])

    def test_unknown_format(self, tmp_path):
        with pytest.raises(ValidationError, match="Unknown file format"):
            DataSource.from_file(tmp_path / "data.xlsx")


class TestBuild:

    def test_passthrough(self):
        ds = DataSource.from_arrays(x=[1, 2])
        assert DataSource.build(ds) is ds

    def test_from_kwargs(self):
        ds = DataSource.build(x=[1, 2], y=[3, 4])
        assert ds.keys() == frozenset({'x', 'y'})

    def test_from_mapping(self):
        ds = DataSource.build({'x': [1, 2]})
        assert ds.n_observations == 2

    def test_from_dataframe(self):
        ds = DataSource.build(pd.DataFrame({'x': [1, 2, 3]}))
        assert ds.n_observations == 3

    def test_from_path(self, tmp_path):
        path = tmp_path / "d.csv"
        path.write_text("a\n1\n2\n")
        assert DataSource.build(str(path)).n_observations == 2

    def test_unsupported_type(self):
        with pytest.raises(ValidationError, match="Cannot build DataSource"):
            DataSource.build(42)
