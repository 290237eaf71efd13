import unittest

import numpy as np

from detkit.types import Detection, Rect
from detkit.visualize import draw_detections, format_caption


class TestDrawDetections(unittest.TestCase):
    def test_caption_is_label_and_percent(self) -> None:
        det = Detection(rect=Rect(0, 0, 1, 1), label="person", confidence=0.874, class_id=0)
        self.assertEqual(format_caption(det), "person 87%")

    def test_draws_on_a_copy(self) -> None:
        frame = np.zeros((120, 160, 3), dtype=np.uint8)
        dets = [
            Detection(rect=Rect(20, 30, 60, 50), label="person", confidence=0.9, class_id=0),
            Detection(rect=Rect(100, 10, 40, 40), label="cls42", confidence=0.5, class_id=42),
        ]
        out = draw_detections(frame, dets)

        self.assertEqual(out.shape, frame.shape)
        self.assertFalse(np.any(frame))
        self.assertTrue(np.any(out))

    def test_rejects_non_color_image(self) -> None:
        with self.assertRaises(ValueError):
            draw_detections(np.zeros((10, 10), dtype=np.uint8), [])


if __name__ == "__main__":
    unittest.main()
