import unittest

import numpy as np

from detect_kit.errors import UnsupportedShapeError
from detect_kit.normalize import TensorLayout, classify_layout, normalize_output
from detect_kit.types import RawTensor


class TestClassifyLayout(unittest.TestCase):
    def test_ranks(self) -> None:
        self.assertIs(classify_layout((84, 8400)), TensorLayout.FLAT)
        self.assertIs(classify_layout((1, 84, 8400)), TensorLayout.BATCHED)
        self.assertIs(classify_layout((1, 84, 80, 80)), TensorLayout.SPATIAL)

    def test_unsupported_ranks(self) -> None:
        for shape in [(), (10,), (1, 1, 5, 2, 3)]:
            with self.assertRaises(UnsupportedShapeError):
                classify_layout(shape)


class TestNormalizeOutput(unittest.TestCase):
    def test_rank2_used_as_is(self) -> None:
        arr = np.arange(60, dtype=np.float32).reshape(6, 10)
        out = normalize_output(arr)
        self.assertEqual(out.table.shape, (6, 10))
        self.assertTrue(np.array_equal(out.table, arr))
        self.assertEqual(out.num_classes, 2)
        self.assertEqual(out.num_detections, 10)

    def test_rank3_takes_first_batch(self) -> None:
        arr = np.arange(120, dtype=np.float32).reshape(2, 6, 10)
        out = normalize_output(arr)
        self.assertEqual(out.table.shape, (6, 10))
        self.assertTrue(np.array_equal(out.table, arr[0]))

    def test_rank4_flattens_grid_row_major(self) -> None:
        arr = np.arange(1 * 5 * 2 * 3, dtype=np.float32).reshape(1, 5, 2, 3)
        out = normalize_output(arr)
        self.assertEqual(out.table.shape, (5, 6))

        expected_order = [(0, 0), (0, 1), (0, 2), (1, 0), (1, 1), (1, 2)]
        for col, (h, w) in enumerate(expected_order):
            self.assertTrue(np.array_equal(out.table[:, col], arr[0, :, h, w]))
        self.assertTrue(np.array_equal(out.table[0], np.array([0, 1, 2, 3, 4, 5], dtype=np.float32)))

    def test_accepts_raw_tensor(self) -> None:
        flat = np.arange(12, dtype=np.float32)
        raw = RawTensor(data=flat, shape=(1, 6, 2))
        self.assertEqual(raw.rank, 3)
        out = normalize_output(raw)
        self.assertTrue(np.array_equal(out.table, flat.reshape(6, 2)))

    def test_unsupported_rank_raises(self) -> None:
        with self.assertRaises(UnsupportedShapeError):
            normalize_output(np.zeros((5,), dtype=np.float32))
        with self.assertRaises(UnsupportedShapeError):
            normalize_output(np.zeros((1, 1, 5, 2, 2), dtype=np.float32))

    def test_empty_batch_raises(self) -> None:
        with self.assertRaises(UnsupportedShapeError):
            normalize_output(np.zeros((0, 6, 3), dtype=np.float32))

    def test_buffer_shape_mismatch_raises(self) -> None:
        with self.assertRaises(UnsupportedShapeError):
            RawTensor(data=np.zeros(10, dtype=np.float32), shape=(2, 6))


if __name__ == "__main__":
    unittest.main()
