"""
Tests for predictor encoding.

Validates:
    - Treatment coding against the first level
    - Level order: explicit, pandas Categorical, numeric-aware sort
    - Unseen levels raise instead of encoding as the reference
    - Column naming follows R ("(Intercept)", "typemany")
"""

import numpy as np
import pandas as pd
import pytest

from pylm.core.datasource import DataSource
from pylm.core.exceptions import UnknownColumnError, UnseenLevelError, ValidationError
from pylm.regression import FactorEncoding, PredictorEncoder


# ═══════════════════════════════════════════════════════════════════════
# FactorEncoding
# ═══════════════════════════════════════════════════════════════════════


class TestFactorEncoding:

    def test_sorted_levels_and_reference(self):
        enc = FactorEncoding.from_values('g', np.array(['c', 'a', 'b', 'a']))
        assert enc.levels == ('a', 'b', 'c')
        assert enc.reference == 'a'
        assert enc.column_names == ['gb', 'gc']

    def test_numeric_labels_sort_numerically(self):
        enc = FactorEncoding.from_values('dose', np.array(['10', '2', '1']))
        assert enc.levels == ('1', '2', '10')

    def test_explicit_levels(self):
        enc = FactorEncoding.from_values('g', np.array(['a', 'b']), levels=['b', 'a', 'z'])
        assert enc.levels == ('b', 'a', 'z')
        assert enc.reference == 'b'

    def test_explicit_levels_must_cover_data(self):
        with pytest.raises(ValidationError, match="not in levels"):
            FactorEncoding.from_values('g', np.array(['a', 'b', 'c']), levels=['a', 'b'])

    def test_duplicate_levels(self):
        with pytest.raises(ValidationError, match="duplicate"):
            FactorEncoding.from_values('g', np.array(['a']), levels=['a', 'a'])

    def test_single_level_rejected(self):
        with pytest.raises(ValidationError, match="at least 2 levels"):
            FactorEncoding.from_values('g', np.array(['a', 'a', 'a']))

    def test_encode(self):
        enc = FactorEncoding.from_values('g', np.array(['a', 'b', 'c']))
        np.testing.assert_array_equal(
            enc.encode(np.array(['a', 'c', 'b'])),
            [[0.0, 0.0], [0.0, 1.0], [1.0, 0.0]],
        )

    def test_encode_empty(self):
        enc = FactorEncoding.from_values('g', np.array(['a', 'b']))
        assert enc.encode(np.array([], dtype=str)).shape == (0, 1)

    def test_unseen_level(self):
        enc = FactorEncoding.from_values('type', np.array(['one', 'many']))
        with pytest.raises(UnseenLevelError) as excinfo:
            enc.encode(np.array(['one', 'Other']))
        assert excinfo.value.factor == 'type'
        assert excinfo.value.level == 'Other'
        assert excinfo.value.known_levels == ('many', 'one')
        assert "'Other'" in str(excinfo.value)

    def test_lookup_is_read_only(self):
        enc = FactorEncoding.from_values('g', np.array(['a', 'b']))
        with pytest.raises(TypeError):
            enc.lookup['c'] = (1.0,)


# ═══════════════════════════════════════════════════════════════════════
# PredictorEncoder
# ═══════════════════════════════════════════════════════════════════════


class TestPredictorEncoder:

    def test_mixed_predictors(self, small_factor_frame):
        source = DataSource.from_dataframe(small_factor_frame)
        enc = PredictorEncoder.from_source(source, ['x', 'g'])
        assert enc.column_names == ['(Intercept)', 'x', 'gb', 'gc']
        assert list(enc.factors) == ['g']

        X = enc.transform(source)
        assert X.shape == (9, 4)
        np.testing.assert_array_equal(X[:, 0], 1.0)
        np.testing.assert_array_equal(X[:, 1], small_factor_frame['x'])
        # row 0 is level 'b'
        np.testing.assert_array_equal(X[0, 2:], [1.0, 0.0])

    def test_without_intercept(self, small_factor_frame):
        source = DataSource.from_dataframe(small_factor_frame)
        enc = PredictorEncoder.from_source(source, ['x'], intercept=False)
        assert enc.column_names == ['x']
        assert enc.transform(source).shape == (9, 1)

    def test_categorical_dtype_order(self, fruitfly):
        source = DataSource.from_dataframe(fruitfly)
        enc = PredictorEncoder.from_source(source, ['type'])
        assert enc.factors['type'].levels == ('isolated', 'one', 'low', 'many', 'high')
        assert enc.column_names[1:] == ['typeone', 'typelow', 'typemany', 'typehigh']

    def test_explicit_levels_override(self, small_factor_frame):
        source = DataSource.from_dataframe(small_factor_frame)
        enc = PredictorEncoder.from_source(source, ['g'], levels={'g': ['c', 'b', 'a']})
        assert enc.factors['g'].reference == 'c'

    def test_numeric_column_as_factor(self):
        source = DataSource.from_arrays(y=[1.0, 2.0, 3.0, 4.0], cyl=[4, 6, 4, 8])
        enc = PredictorEncoder.from_source(source, ['cyl'], factors=['cyl'])
        assert enc.factors['cyl'].levels == ('4', '6', '8')
        assert enc.factors['cyl'].column_names == ['cyl6', 'cyl8']
        X = enc.transform(DataSource.from_arrays(cyl=[8]))
        np.testing.assert_array_equal(X, [[1.0, 0.0, 1.0]])

    def test_numeric_factor_with_integer_levels(self):
        source = DataSource.from_arrays(cyl=[4.0, 6.0, 4.0, 6.0])
        enc = PredictorEncoder.from_source(source, ['cyl'], levels={'cyl': [6, 4]})
        assert enc.factors['cyl'].levels == ('6', '4')
        assert enc.factors['cyl'].reference == '6'

    def test_integer_categorical_accepts_numeric_request(self):
        frame = pd.DataFrame({'cyl': pd.Categorical([4, 6, 8, 6])})
        enc = PredictorEncoder.from_source(DataSource.from_dataframe(frame), ['cyl'])
        assert enc.factors['cyl'].levels == ('4', '6', '8')
        X = enc.transform(DataSource.from_mapping({'cyl': [6.0]}))
        np.testing.assert_array_equal(X, [[1.0, 1.0, 0.0]])

    def test_forced_factor_rejects_nan(self):
        source = DataSource.from_arrays(cyl=[4.0, np.nan, 6.0])
        with pytest.raises(ValidationError, match='cyl'):
            PredictorEncoder.from_source(source, ['cyl'], factors=['cyl'])

    def test_factor_key_must_be_predictor(self, small_factor_frame):
        source = DataSource.from_dataframe(small_factor_frame)
        with pytest.raises(UnknownColumnError):
            PredictorEncoder.from_source(source, ['x'], factors=['g'])

    def test_unknown_predictor(self, small_factor_frame):
        source = DataSource.from_dataframe(small_factor_frame)
        with pytest.raises(UnknownColumnError):
            PredictorEncoder.from_source(source, ['x', 'w'])

    def test_transform_missing_column(self, small_factor_frame):
        source = DataSource.from_dataframe(small_factor_frame)
        enc = PredictorEncoder.from_source(source, ['x', 'g'])
        with pytest.raises(UnknownColumnError, match="newdata"):
            enc.transform(DataSource.from_arrays(x=[1.0]), name='newdata')

    def test_transform_labels_for_numeric(self, small_factor_frame):
        source = DataSource.from_dataframe(small_factor_frame)
        enc = PredictorEncoder.from_source(source, ['x'])
        with pytest.raises(ValidationError, match="was numeric"):
            enc.transform(DataSource.from_arrays(x=['big']))

    def test_transform_unseen_level(self, small_factor_frame):
        source = DataSource.from_dataframe(small_factor_frame)
        enc = PredictorEncoder.from_source(source, ['g'])
        with pytest.raises(UnseenLevelError):
            enc.transform(DataSource.from_arrays(g=['d']))

    def test_transform_does_not_refit(self, small_factor_frame):
        """A subset of levels in new data still yields all dummy columns."""
        source = DataSource.from_dataframe(small_factor_frame)
        enc = PredictorEncoder.from_source(source, ['g'])
        X = enc.transform(DataSource.from_dataframe(pd.DataFrame({'g': ['c']})))
        np.testing.assert_array_equal(X, [[1.0, 0.0, 1.0]])
