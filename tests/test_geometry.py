import unittest

import numpy as np

from detkit.geometry import clamp_to_frame, iou, iou_one_to_many, scale_factors
from detkit.types import Rect


class TestClampToFrame(unittest.TestCase):
    def test_inside_box_unchanged(self) -> None:
        self.assertEqual(clamp_to_frame(10, 20, 110, 70, 640, 480), Rect(10.0, 20.0, 100.0, 50.0))

    def test_swapped_corners_are_reordered(self) -> None:
        self.assertEqual(clamp_to_frame(110, 70, 10, 20, 640, 480), Rect(10.0, 20.0, 100.0, 50.0))

    def test_clipped_to_last_pixel(self) -> None:
        rect = clamp_to_frame(-50, -10, 700, 500, 640, 480)
        self.assertEqual(rect, Rect(0.0, 0.0, 639.0, 479.0))

    def test_outside_box_collapses_to_zero_extent(self) -> None:
        rect = clamp_to_frame(700, 500, 800, 600, 640, 480)
        self.assertEqual(rect.width, 0.0)
        self.assertEqual(rect.height, 0.0)
        self.assertLessEqual(rect.right, 640)
        self.assertLessEqual(rect.bottom, 480)


class TestIou(unittest.TestCase):
    def test_identical_and_disjoint(self) -> None:
        a = Rect(0, 0, 10, 10)
        self.assertAlmostEqual(iou(a, a), 1.0, places=6)
        self.assertEqual(iou(a, Rect(20, 20, 5, 5)), 0.0)

    def test_zero_area_boxes_do_not_divide_by_zero(self) -> None:
        a = Rect(5, 5, 0, 0)
        self.assertEqual(iou(a, a), 0.0)

    def test_partial_overlap(self) -> None:
        self.assertAlmostEqual(iou(Rect(0, 0, 100, 100), Rect(0, 0, 100, 90)), 0.9, places=6)

    def test_vectorised_matches_scalar(self) -> None:
        box = Rect(10, 10, 50, 40)
        others = [Rect(0, 0, 30, 30), Rect(30, 20, 50, 50), Rect(200, 200, 1, 1)]
        got = iou_one_to_many(
            np.array([box.x, box.y, box.width, box.height]),
            np.array([[r.x, r.y, r.width, r.height] for r in others]),
        )
        for value, other in zip(got, others):
            self.assertAlmostEqual(float(value), iou(box, other))


class TestScaleFactors(unittest.TestCase):
    def test_frame_over_input(self) -> None:
        self.assertEqual(scale_factors((640, 480), (320, 320)), (2.0, 1.5))


if __name__ == "__main__":
    unittest.main()
