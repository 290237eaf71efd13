from typing import Dict, List, Sequence

import numpy as np

from .geometry import iou_one_to_many
from .types import Detection


def nms(boxes: np.ndarray, scores: np.ndarray, iou_threshold: float) -> np.ndarray:
    """
    Greedy NumPy NMS. Expects boxes shape (N,4) in xywh and scores shape (N,).
    Returns indices of boxes to keep, highest score first.

    Ties keep source order. A candidate is dropped when its IoU with an already kept box
    is >= iou_threshold.
    """

    if boxes.size == 0:
        return np.empty((0,), dtype=np.int64)

    order = np.argsort(-scores, kind="stable")
    sorted_boxes = boxes[order]
    suppressed = np.zeros(order.shape[0], dtype=bool)
    keep: List[int] = []

    for pos in range(order.shape[0]):
        if suppressed[pos]:
            continue
        keep.append(int(order[pos]))

        rest = pos + 1
        if rest >= order.shape[0]:
            break
        overlaps = iou_one_to_many(sorted_boxes[pos], sorted_boxes[rest:])
        suppressed[rest:] |= overlaps >= iou_threshold

    return np.array(keep, dtype=np.int64)


def suppress_per_class(detections: Sequence[Detection], iou_threshold: float) -> List[Detection]:
    """
    Run NMS independently for each class id.

    Output is grouped by class in first-seen order; inside a group detections are sorted by
    descending confidence. There is no re-sort across classes.
    """

    groups: Dict[int, List[Detection]] = {}
    for det in detections:
        groups.setdefault(det.class_id, []).append(det)

    kept: List[Detection] = []
    for group in groups.values():
        boxes = np.array(
            [[d.rect.x, d.rect.y, d.rect.width, d.rect.height] for d in group],
            dtype=np.float64,
        )
        scores = np.array([d.confidence for d in group], dtype=np.float64)
        keep_idx = nms(boxes, scores, iou_threshold)
        kept.extend(group[i] for i in keep_idx)

    return kept
