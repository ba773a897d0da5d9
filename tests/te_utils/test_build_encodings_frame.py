import unittest

import numpy as np
import polars as pl
from polars.testing import assert_frame_equal

from te_utils.data_structures.frame import Frame
from te_utils.feature_engineering_build_encodings_frame import build_encodings_frame
from te_utils.other_exceptions import PreconditionError


class TestBuildEncodingsFrame(unittest.TestCase):

    def setUp(self):
        self.df = pl.DataFrame({
            'cat':  ['A', 'B', 'A', 'B', 'A', 'C'],
            'fold': [0, 0, 1, 1, 1, 0],
            'y':    [1.0, 0.0, 3.0, None, 2.0, 5.0],
        })
        self.frame = Frame(self.df, n_partitions=2)

    def test_without_folds(self):
        encodings = build_encodings_frame(self.frame, 'cat', 'y')
        expected = pl.DataFrame({
            'cat': ['A', 'B', 'C'],
            'numerator': [6.0, 0.0, 5.0],
            'denominator': [3, 1, 1],
        })
        assert_frame_equal(encodings.df, expected)
        self.assertEqual(encodings.n_partitions, 2)

    def test_with_folds(self):
        encodings = build_encodings_frame(self.frame, 0, 2, fold_column=1)
        self.assertEqual(encodings.names, ['cat', 'fold', 'numerator', 'denominator'])
        self.assertEqual(encodings.find('denominator'), encodings.find('numerator') + 1)
        expected = pl.DataFrame({
            'cat': ['A', 'B', 'A', 'B', 'C'],
            'fold': [0, 0, 1, 1, 0],
            'numerator': [1.0, 0.0, 5.0, 0.0, 5.0],
            'denominator': [1, 1, 2, 0, 1],
        })
        assert_frame_equal(encodings.df, expected)

    def test_ratio_is_category_mean(self):
        rng = np.random.default_rng(0)
        df = pl.DataFrame({
            'cat': rng.choice(['A', 'B', 'C', 'D'], 200).tolist(),
            'y': rng.random(200),
        })
        encodings = build_encodings_frame(Frame(df), 'cat', 'y').df
        means = df.group_by('cat').agg(pl.col('y').mean().alias('mean'))
        joined = encodings.join(means, on='cat')
        np.testing.assert_allclose(
            (joined['numerator'] / joined['denominator']).to_numpy(),
            joined['mean'].to_numpy(),
            rtol=1e-12
        )

    def test_nan_target_is_missing(self):
        df = pl.DataFrame({'cat': ['A', 'A'], 'y': [1.0, float('nan')]})
        encodings = build_encodings_frame(Frame(df), 'cat', 'y').df
        self.assertEqual(encodings['numerator'].to_list(), [1.0])
        self.assertEqual(encodings['denominator'].to_list(), [1])

    def test_boolean_target(self):
        df = pl.DataFrame({'cat': ['A', 'A', 'B'], 'y': [True, False, True]})
        encodings = build_encodings_frame(Frame(df), 'cat', 'y').df
        self.assertEqual(encodings['numerator'].to_list(), [1.0, 1.0])
        self.assertEqual(encodings['denominator'].to_list(), [2, 1])

    def test_invalid_columns(self):
        with self.assertRaises(pl.exceptions.ColumnNotFoundError):
            build_encodings_frame(self.frame, 'missing', 'y')
        with self.assertRaises(pl.exceptions.ColumnNotFoundError):
            build_encodings_frame(self.frame, 'cat', 'y', fold_column='missing')
        with self.assertRaises(PreconditionError):
            build_encodings_frame(self.frame, 'cat', 'cat')

if __name__ == '__main__':
    unittest.main()
