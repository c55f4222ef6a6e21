import unittest

from listbatch.batch import partition
from listbatch.errors import InvalidArgumentError


class TestPartition(unittest.TestCase):
    def test_five_items_by_two(self) -> None:
        chunks = partition([1, 2, 3, 4, 5], 2)
        self.assertEqual([len(c) for c in chunks], [2, 2, 1])
        self.assertEqual(chunks, [[1, 2], [3, 4], [5]])

    def test_order_preserving_and_bounded(self) -> None:
        items = list(range(253))
        for size in (1, 7, 100, 253, 1000):
            chunks = partition(items, size)
            self.assertEqual([x for c in chunks for x in c], items)
            self.assertTrue(all(0 < len(c) <= size for c in chunks))

    def test_exact_multiple(self) -> None:
        self.assertEqual([len(c) for c in partition(list(range(200)), 100)], [100, 100])

    def test_empty(self) -> None:
        self.assertEqual(partition([], 100), [])

    def test_invalid_size(self) -> None:
        for size in (0, -1, True, 2.5):
            with self.assertRaises(InvalidArgumentError):
                partition([1], size)  # type: ignore[arg-type]


if __name__ == "__main__":
    unittest.main()
