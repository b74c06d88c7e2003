import unittest

import numpy as np

from detect_kit.errors import InvalidImageError
from detect_kit.preprocess import Preprocessor, image_size, to_planar_blob
from detect_kit.types import DimensionPlan, NormalizationParams


class TestPlanarBlob(unittest.TestCase):
    def test_channel_major_layout(self) -> None:
        img = np.zeros((2, 3, 3), dtype=np.uint8)
        img[:, :, 0] = [[0, 51, 102], [153, 204, 255]]  # R
        img[:, :, 1] = 255  # G
        img[:, :, 2] = 0  # B

        blob = to_planar_blob(img)
        self.assertEqual(blob.shape, (1, 3, 2, 3))
        self.assertEqual(blob.dtype, np.float32)

        flat = blob.reshape(-1)
        self.assertEqual(flat.size, 18)
        self.assertTrue(np.allclose(flat[0:6], np.array([0, 0.2, 0.4, 0.6, 0.8, 1.0], dtype=np.float32)))
        self.assertTrue(np.allclose(flat[6:12], 1.0))
        self.assertTrue(np.allclose(flat[12:18], 0.0))

    def test_mean_std_applied_per_channel(self) -> None:
        img = np.zeros((1, 2, 3), dtype=np.uint8)
        img[0, 0] = [255, 255, 255]
        norm = NormalizationParams(mean=(0.5, 0.5, 0.0), std=(0.5, 0.5, 2.0))
        blob = to_planar_blob(img, norm)
        self.assertTrue(np.allclose(blob[0, 0, 0], [1.0, -1.0]))
        self.assertTrue(np.allclose(blob[0, 1, 0], [1.0, -1.0]))
        self.assertTrue(np.allclose(blob[0, 2, 0], [0.5, 0.0]))


class TestNormalizationParams(unittest.TestCase):
    def test_defaults_pass_through(self) -> None:
        norm = NormalizationParams()
        self.assertEqual(norm.mean, (0.0, 0.0, 0.0))
        self.assertEqual(norm.std, (1.0, 1.0, 1.0))

    def test_zero_std_rejected(self) -> None:
        with self.assertRaises(ValueError):
            NormalizationParams(std=(1.0, 0.0, 1.0))

    def test_wrong_length_rejected(self) -> None:
        with self.assertRaises(ValueError):
            NormalizationParams(mean=(0.0, 0.0))


class TestPreprocessor(unittest.TestCase):
    def test_resizes_to_plan(self) -> None:
        img = np.zeros((100, 200, 3), dtype=np.uint8)
        img[:, :] = [10, 20, 30]
        plan = DimensionPlan(target_width=640, target_height=320)

        result = Preprocessor().run(img, plan)
        self.assertEqual(result.orig_size, (200, 100))
        self.assertEqual(result.blob.shape, (1, 3, 320, 640))
        self.assertEqual(result.buffer.size, 3 * 320 * 640)
        self.assertTrue(np.allclose(result.blob[0, 0], 10 / 255.0, atol=1e-6))
        self.assertTrue(np.allclose(result.blob[0, 1], 20 / 255.0, atol=1e-6))
        self.assertTrue(np.allclose(result.blob[0, 2], 30 / 255.0, atol=1e-6))

    def test_downscale(self) -> None:
        img = np.full((1080, 1920, 3), 128, dtype=np.uint8)
        result = Preprocessor().run(img, DimensionPlan(target_width=640, target_height=384))
        self.assertEqual(result.blob.shape, (1, 3, 384, 640))
        self.assertTrue(np.allclose(result.blob, 128 / 255.0, atol=1e-6))

    def test_bgr_input_is_reordered(self) -> None:
        img = np.zeros((32, 32, 3), dtype=np.uint8)
        img[:, :] = [30, 20, 10]  # B, G, R
        result = Preprocessor().run(img, DimensionPlan(32, 32), color_order="bgr")
        self.assertTrue(np.allclose(result.blob[0, 0], 10 / 255.0, atol=1e-6))
        self.assertTrue(np.allclose(result.blob[0, 2], 30 / 255.0, atol=1e-6))

    def test_grayscale_expands_to_three_channels(self) -> None:
        img = np.full((32, 64), 200, dtype=np.uint8)
        result = Preprocessor().run(img, DimensionPlan(64, 32))
        self.assertEqual(result.blob.shape, (1, 3, 32, 64))
        for c in range(3):
            self.assertTrue(np.allclose(result.blob[0, c], 200 / 255.0, atol=1e-6))

    def test_rgba_drops_alpha(self) -> None:
        img = np.zeros((32, 32, 4), dtype=np.uint8)
        img[:, :] = [255, 0, 0, 7]
        result = Preprocessor().run(img, DimensionPlan(32, 32))
        self.assertEqual(result.blob.shape, (1, 3, 32, 32))
        self.assertTrue(np.allclose(result.blob[0, 0], 1.0))
        self.assertTrue(np.allclose(result.blob[0, 1], 0.0))

    def test_invalid_images(self) -> None:
        with self.assertRaises(InvalidImageError):
            image_size(np.zeros((0, 10, 3), dtype=np.uint8))
        with self.assertRaises(InvalidImageError):
            image_size(np.zeros((10, 10, 2), dtype=np.uint8))
        with self.assertRaises(InvalidImageError):
            image_size(np.zeros((10,), dtype=np.uint8))
        with self.assertRaises(TypeError):
            image_size([[1, 2, 3]])

    def test_unknown_color_order(self) -> None:
        img = np.zeros((8, 8, 3), dtype=np.uint8)
        with self.assertRaises(ValueError):
            Preprocessor().run(img, DimensionPlan(32, 32), color_order="hsv")


if __name__ == "__main__":
    unittest.main()
