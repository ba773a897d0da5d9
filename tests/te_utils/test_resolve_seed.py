import unittest

from te_utils.other_resolve_seed import resolve_seed


class TestResolveSeed(unittest.TestCase):

    def test_fixed_seed_is_returned(self):
        self.assertEqual(resolve_seed(42), 42)
        self.assertEqual(resolve_seed(0), 0)

    def test_none_generates_seed(self):
        with self.assertLogs('te_utils.other_resolve_seed', level='INFO') as cm:
            seed = resolve_seed(None)
        self.assertIsInstance(seed, int)
        self.assertGreaterEqual(seed, 0)
        self.assertIn(str(seed), cm.output[0])

    def test_negative_seed(self):
        with self.assertRaises(ValueError):
            resolve_seed(-1)

if __name__ == '__main__':
    unittest.main()
