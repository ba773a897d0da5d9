import unittest

import polars as pl
from polars.testing import assert_frame_equal

from te_utils.data_structures.aggregation_spec import AggregationSpec
from te_utils.other_group_by_with_aggregations import group_by_with_aggregations


class TestGroupByWithAggregations(unittest.TestCase):

    def setUp(self):
        self.df = pl.DataFrame({
            'key': ['a', 'a', 'b', 'b', 'c'],
            'value': [1.0, None, 2.0, float('nan'), 4.0],
        })

    def test_ignore_missing(self):
        result = group_by_with_aggregations(self.df, ['key'], [
            AggregationSpec('sum', 'value'),
            AggregationSpec('count', 'value', alias='n'),
        ])
        expected = pl.DataFrame({
            'key': ['a', 'b', 'c'],
            'sum_value': [1.0, 2.0, 4.0],
            'n': [1, 1, 1],
        })
        assert_frame_equal(result, expected)

    def test_keep_missing(self):
        result = group_by_with_aggregations(self.df, ['key'], [
            AggregationSpec('sum', 'value', na_policy='all'),
            AggregationSpec('count', 'value', na_policy='all', alias='rows'),
        ])
        expected = pl.DataFrame({
            'key': ['a', 'b', 'c'],
            'sum_value': [None, None, 4.0],
            'rows': [2, 2, 1],
        })
        assert_frame_equal(result, expected)

    def test_invalid_specs(self):
        with self.assertRaises(ValueError):
            AggregationSpec('mean', 'value')
        with self.assertRaises(ValueError):
            AggregationSpec('sum', 'value', na_policy='drop')
        with self.assertRaises(ValueError):
            group_by_with_aggregations(self.df, [], [AggregationSpec('sum', 'value')])
        with self.assertRaises(ValueError):
            group_by_with_aggregations(self.df, ['key'], [])
        with self.assertRaises(pl.exceptions.ColumnNotFoundError):
            group_by_with_aggregations(self.df, ['key'], [AggregationSpec('sum', 'nope')])

if __name__ == '__main__':
    unittest.main()
