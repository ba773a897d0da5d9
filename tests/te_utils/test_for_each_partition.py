import unittest

import polars as pl

from te_utils.data_structures.frame import Frame
from te_utils.other_exceptions import PreconditionError, StageExecutionError
from te_utils.other_for_each_partition import concat_partition_results, for_each_partition


class TestForEachPartition(unittest.TestCase):

    def setUp(self):
        self.frame = Frame(pl.DataFrame({'x': list(range(10))}), n_partitions=4, n_jobs=2)

    def test_results_in_partition_order(self):
        results = for_each_partition(self.frame, lambda offset, part: (offset, part['x'].to_list()), 'test')
        self.assertEqual([r[0] for r in results], [0, 3, 6, 9])
        self.assertEqual(sum((r[1] for r in results), []), list(range(10)))

    def test_concat_partition_results(self):
        results = for_each_partition(self.frame, lambda offset, part: part['x'] * 2, 'double')
        doubled = concat_partition_results(results, 'doubled')
        self.assertEqual(doubled.name, 'doubled')
        self.assertEqual(doubled.to_list(), [2 * i for i in range(10)])

    def test_partition_failure_fails_stage(self):
        def fail_on_second(offset, part):
            if offset == 3:
                raise ZeroDivisionError("boom")
            return part.height

        with self.assertRaises(StageExecutionError) as cm:
            for_each_partition(self.frame, fail_on_second, 'failing_stage')
        self.assertEqual(cm.exception.operation, 'failing_stage')
        self.assertIsInstance(cm.exception.__cause__, ZeroDivisionError)

    def test_package_errors_pass_through(self):
        def raise_precondition(offset, part):
            raise PreconditionError("bad input", operation='inner')

        with self.assertRaises(PreconditionError):
            for_each_partition(self.frame, raise_precondition, 'outer')

if __name__ == '__main__':
    unittest.main()
