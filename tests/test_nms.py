import unittest

import numpy as np

from detkit.nms import nms, suppress_per_class
from detkit.types import Detection, Rect


def _det(x, y, w, h, conf, class_id=0, label="obj") -> Detection:
    return Detection(rect=Rect(x, y, w, h), label=label, confidence=conf, class_id=class_id)


class TestNms(unittest.TestCase):
    def test_empty(self) -> None:
        keep = nms(np.zeros((0, 4)), np.zeros((0,)), 0.45)
        self.assertEqual(keep.shape, (0,))

    def test_overlapping_lower_score_suppressed(self) -> None:
        boxes = np.array([[0, 0, 100, 90], [0, 0, 100, 100]], dtype=np.float64)
        scores = np.array([0.8, 0.9])
        self.assertEqual(nms(boxes, scores, 0.45).tolist(), [1])

    def test_threshold_compares_against_epsilon_iou(self) -> None:
        boxes = np.array([[0, 0, 10, 10], [0, 0, 10, 10]], dtype=np.float64)
        scores = np.array([0.9, 0.8])
        # IoU is just below 1 because of the epsilon in the denominator.
        self.assertEqual(nms(boxes, scores, 0.999).tolist(), [0])
        self.assertEqual(nms(boxes, scores, 1.0).tolist(), [0, 1])

    def test_ties_keep_source_order(self) -> None:
        boxes = np.array([[0, 0, 10, 10], [100, 100, 10, 10], [200, 200, 10, 10]], dtype=np.float64)
        scores = np.array([0.5, 0.7, 0.5])
        self.assertEqual(nms(boxes, scores, 0.45).tolist(), [1, 0, 2])

    def test_suppressed_box_does_not_suppress_others(self) -> None:
        # B overlaps both A and C, A and C do not overlap each other.
        boxes = np.array([[0, 0, 10, 10], [3, 0, 10, 10], [8, 0, 10, 10]], dtype=np.float64)
        scores = np.array([0.9, 0.8, 0.7])
        self.assertEqual(nms(boxes, scores, 0.3).tolist(), [0, 2])


class TestSuppressPerClass(unittest.TestCase):
    def test_only_stronger_same_class_box_survives(self) -> None:
        dets = [_det(0, 0, 100, 100, 0.9), _det(0, 0, 100, 90, 0.8)]
        kept = suppress_per_class(dets, 0.45)
        self.assertEqual(len(kept), 1)
        self.assertAlmostEqual(kept[0].confidence, 0.9)

    def test_classes_do_not_suppress_each_other(self) -> None:
        dets = [_det(0, 0, 100, 100, 0.9, class_id=0), _det(0, 0, 100, 100, 0.8, class_id=1)]
        self.assertEqual(len(suppress_per_class(dets, 0.45)), 2)

    def test_grouped_by_first_seen_class_then_confidence(self) -> None:
        dets = [
            _det(0, 0, 10, 10, 0.3, class_id=2),
            _det(100, 0, 10, 10, 0.95, class_id=0),
            _det(200, 0, 10, 10, 0.6, class_id=2),
            _det(300, 0, 10, 10, 0.5, class_id=0),
        ]
        kept = suppress_per_class(dets, 0.45)
        self.assertEqual([(d.class_id, d.confidence) for d in kept], [(2, 0.6), (2, 0.3), (0, 0.95), (0, 0.5)])

    def test_empty_input(self) -> None:
        self.assertEqual(suppress_per_class([], 0.45), [])


if __name__ == "__main__":
    unittest.main()
