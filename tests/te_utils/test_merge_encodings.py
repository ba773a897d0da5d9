import unittest

import numpy as np
import polars as pl
from polars.testing import assert_frame_equal

from te_utils.data_structures.frame import Frame
from te_utils.feature_engineering_build_encodings_frame import build_encodings_frame
from te_utils.feature_engineering_merge_encodings import merge_encodings
from te_utils.other_exceptions import PreconditionError


class TestMergeEncodings(unittest.TestCase):

    def setUp(self):
        self.stats = Frame(pl.DataFrame({
            'cat': ['A', 'B'],
            'numerator': [5.0, 2.0],
            'denominator': [10, 10],
        }))
        # Out-of-fold fixture: folds {0, 1}
        self.oof_df = pl.DataFrame({
            'cat':  ['A', 'A', 'A', 'B', 'B', 'C'],
            'fold': [0, 1, 1, 0, 1, 0],
            'y':    [1.0, 2.0, 3.0, 4.0, 5.0, 6.0],
        })

    def test_plain_merge(self):
        frame = Frame(pl.DataFrame({'id': [0, 1, 2, 3, 4], 'cat': ['A', 'B', 'Z', 'A', None]}), n_partitions=2)
        merged = merge_encodings(frame, self.stats, 'cat')
        expected = pl.DataFrame({
            'id': [0, 1, 2, 3, 4],
            'cat': ['A', 'B', 'Z', 'A', None],
            'numerator': [5.0, 2.0, None, 5.0, None],
            'denominator': [10, 10, None, 10, None],
        })
        assert_frame_equal(merged.df, expected)
        # input frame untouched
        self.assertEqual(frame.names, ['id', 'cat'])

    def test_categorical_keys_match_by_label(self):
        frame = Frame(pl.DataFrame({
            'cat': pl.Series(['B', 'A', 'B'], dtype=pl.Enum(['A', 'B', 'C']))
        }))
        merged = merge_encodings(frame, self.stats, 'cat')
        self.assertEqual(merged.column('numerator').to_list(), [2.0, 5.0, 2.0])

    def test_numeric_keys_of_different_dtypes(self):
        stats = Frame(pl.DataFrame({
            'k': pl.Series([1, 2], dtype=pl.Int64),
            'numerator': [5.0, 2.0],
            'denominator': [10, 10],
        }))
        frame = Frame(pl.DataFrame({'k': pl.Series([2.0, 1.0, 2.5], dtype=pl.Float64)}))
        merged = merge_encodings(frame, stats, 'k')
        self.assertEqual(merged.column('numerator').to_list(), [2.0, 5.0, None])
        self.assertEqual(merged.dtype('k'), pl.Float64)

        int32_frame = Frame(pl.DataFrame({'k': pl.Series([1, 3], dtype=pl.Int32)}))
        merged = merge_encodings(int32_frame, stats, 'k')
        self.assertEqual(merged.column('denominator').to_list(), [10, None])

    def test_out_of_fold_excludes_own_fold(self):
        frame = Frame(self.oof_df)
        encodings = build_encodings_frame(frame, 'cat', 'y', fold_column='fold')
        merged = merge_encodings(
            frame, encodings, 'cat',
            fold_column='fold', encodings_fold_column='fold', max_fold=1
        )
        # Row 0 (A, fold 0) only sees fold 1 of A: y = 2 + 3
        self.assertEqual(merged.column('numerator').to_list(), [5.0, 1.0, 1.0, 5.0, 4.0, 0.0])
        self.assertEqual(merged.column('denominator').to_list(), [2, 1, 1, 1, 1, 0])

    def test_out_of_fold_matches_explicit_exclusion(self):
        rng = np.random.default_rng(7)
        n = 300
        df = pl.DataFrame({
            'cat': rng.choice(['A', 'B', 'C', 'D', 'E'], n).tolist(),
            # Fold 3 exists in the range but has no rows.
            'fold': rng.choice([0, 1, 2, 4], n).tolist(),
            'y': rng.random(n),
        })
        max_fold = 4
        frame = Frame(df, n_partitions=4, n_jobs=2)
        encodings = build_encodings_frame(frame, 'cat', 'y', fold_column='fold')
        merged = merge_encodings(
            frame, encodings, 'cat',
            fold_column='fold', encodings_fold_column='fold', max_fold=max_fold
        ).df

        stats = {(r['cat'], r['fold']): (r['numerator'], r['denominator'])
                 for r in encodings.df.iter_rows(named=True)}
        for row in merged.iter_rows(named=True):
            expected_num, expected_den = 0.0, 0
            for j in range(max_fold + 1):
                if j == row['fold']:
                    continue
                num, den = stats.get((row['cat'], j), (0.0, 0))
                expected_num += num
                expected_den += den
            self.assertAlmostEqual(row['numerator'], expected_num, places=9)
            self.assertEqual(row['denominator'], expected_den)

    def test_max_fold_bounds_considered_folds(self):
        frame = Frame(self.oof_df)
        encodings = build_encodings_frame(frame, 'cat', 'y', fold_column='fold')
        merged = merge_encodings(
            frame, encodings, 'cat',
            fold_column='fold', encodings_fold_column='fold', max_fold=0
        )
        # Fold 1 is out of range: rows of fold 0 see nothing, rows of fold 1 see fold 0.
        self.assertEqual(merged.column('numerator').to_list(), [0.0, 1.0, 1.0, 0.0, 4.0, 0.0])
        self.assertEqual(merged.column('denominator').to_list(), [0, 1, 1, 0, 1, 0])

    def test_partitioning_does_not_change_result(self):
        results = []
        for n_partitions in (1, 3, 6):
            frame = Frame(self.oof_df, n_partitions=n_partitions, n_jobs=2)
            encodings = build_encodings_frame(frame, 'cat', 'y', fold_column='fold')
            results.append(merge_encodings(
                frame, encodings, 'cat', fold_column='fold', encodings_fold_column='fold'
            ).df)
        assert_frame_equal(results[0], results[1])
        assert_frame_equal(results[0], results[2])

    def test_preconditions(self):
        frame = Frame(self.oof_df)
        per_fold = build_encodings_frame(frame, 'cat', 'y', fold_column='fold')
        with self.assertRaises(PreconditionError):
            merge_encodings(frame, per_fold, 'cat')
        with self.assertRaises(PreconditionError):
            merge_encodings(frame, per_fold, 'cat', fold_column='fold')
        with self.assertRaises(PreconditionError):
            merge_encodings(frame, Frame(pl.DataFrame({'cat': ['A']})), 'cat')
        merged = merge_encodings(frame, self.stats, 'cat')
        with self.assertRaises(PreconditionError):
            merge_encodings(merged, self.stats, 'cat')
        with self.assertRaises(pl.exceptions.ColumnNotFoundError):
            merge_encodings(frame, self.stats, 'missing')

if __name__ == '__main__':
    unittest.main()
