import unittest

import numpy as np

from detkit.preprocess import allocate_input_buffer, preprocess_frame


class TestPreprocessFrame(unittest.TestCase):
    def test_bgr_to_rgb_planar_normalized(self) -> None:
        frame = np.zeros((2, 2, 3), dtype=np.uint8)
        frame[0, 0] = (255, 0, 0)  # blue in BGR
        frame[1, 1] = (0, 0, 51)  # dark red in BGR

        blob = preprocess_frame(frame, (2, 2))

        self.assertEqual(blob.shape, (1, 3, 2, 2))
        self.assertEqual(blob.dtype, np.float32)
        self.assertAlmostEqual(float(blob[0, 2, 0, 0]), 1.0)
        self.assertAlmostEqual(float(blob[0, 0, 0, 0]), 0.0)
        self.assertAlmostEqual(float(blob[0, 0, 1, 1]), 0.2, places=6)
        self.assertAlmostEqual(float(blob[0, 2, 1, 1]), 0.0)

    def test_resizes_to_input_width_height(self) -> None:
        frame = np.full((48, 64, 3), 128, dtype=np.uint8)
        blob = preprocess_frame(frame, (32, 16))
        self.assertEqual(blob.shape, (1, 3, 16, 32))
        self.assertTrue(np.allclose(blob, 128 / 255.0))

    def test_reuses_output_buffer_without_touching_frame(self) -> None:
        frame = np.full((10, 10, 3), 255, dtype=np.uint8)
        before = frame.copy()
        buf = allocate_input_buffer((4, 4))

        first = preprocess_frame(frame, (4, 4), out=buf)
        second = preprocess_frame(np.zeros((10, 10, 3), dtype=np.uint8), (4, 4), out=buf)

        self.assertIs(first, buf)
        self.assertIs(second, buf)
        self.assertTrue(np.all(buf == 0.0))
        self.assertTrue(np.array_equal(frame, before))

    def test_rejects_bad_buffer(self) -> None:
        frame = np.zeros((4, 4, 3), dtype=np.uint8)
        with self.assertRaises(ValueError):
            preprocess_frame(frame, (4, 4), out=np.zeros((1, 3, 4, 5), dtype=np.float32))
        with self.assertRaises(ValueError):
            preprocess_frame(frame, (4, 4), out=np.zeros((1, 3, 4, 4), dtype=np.float64))

    def test_rejects_bad_frames(self) -> None:
        with self.assertRaises(TypeError):
            preprocess_frame(None, (4, 4))
        with self.assertRaises(ValueError):
            preprocess_frame(np.zeros((4, 4), dtype=np.uint8), (4, 4))
        with self.assertRaises(ValueError):
            preprocess_frame(np.zeros((0, 4, 3), dtype=np.uint8), (4, 4))
        with self.assertRaises(TypeError):
            preprocess_frame(np.full((4, 4, 3), 1000, dtype=np.uint16), (4, 4))
        with self.assertRaises(TypeError):
            preprocess_frame(np.zeros((4, 4, 3), dtype=np.float32), (4, 4))


if __name__ == "__main__":
    unittest.main()
