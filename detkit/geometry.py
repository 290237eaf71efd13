from typing import Tuple

import numpy as np

from .types import Rect

IOU_EPS = 1e-6


def scale_factors(frame_size: Tuple[int, int], input_size: Tuple[int, int]) -> Tuple[float, float]:
    """
    (sx, sy) mapping model input pixels onto frame pixels. Both sizes are (width, height).
    """

    frame_w, frame_h = frame_size
    input_w, input_h = input_size
    return float(frame_w) / input_w, float(frame_h) / input_h


def clamp_to_frame(x1: float, y1: float, x2: float, y2: float, frame_w: int, frame_h: int) -> Rect:
    """
    Build a Rect from two corners in any order, clipped to [0, w-1] x [0, h-1].

    Degenerate or fully out-of-frame boxes collapse to a zero-extent rect on the frame edge.
    """

    left = min(max(0.0, min(x1, x2)), frame_w - 1.0)
    top = min(max(0.0, min(y1, y2)), frame_h - 1.0)
    right = min(frame_w - 1.0, max(x1, x2))
    bottom = min(frame_h - 1.0, max(y1, y2))
    return Rect(
        x=float(left),
        y=float(top),
        width=float(max(0.0, right - left)),
        height=float(max(0.0, bottom - top)),
    )


def iou(a: Rect, b: Rect) -> float:
    x1 = max(a.x, b.x)
    y1 = max(a.y, b.y)
    x2 = min(a.right, b.right)
    y2 = min(a.bottom, b.bottom)
    inter = max(0.0, x2 - x1) * max(0.0, y2 - y1)
    return inter / (a.area + b.area - inter + IOU_EPS)


def iou_one_to_many(box: np.ndarray, boxes: np.ndarray) -> np.ndarray:
    """
    IoU of one (x, y, w, h) box against an (N, 4) array of (x, y, w, h) boxes.
    """

    if boxes.size == 0:
        return np.empty((0,), dtype=np.float64)

    xx1 = np.maximum(box[0], boxes[:, 0])
    yy1 = np.maximum(box[1], boxes[:, 1])
    xx2 = np.minimum(box[0] + box[2], boxes[:, 0] + boxes[:, 2])
    yy2 = np.minimum(box[1] + box[3], boxes[:, 1] + boxes[:, 3])

    w = np.maximum(0.0, xx2 - xx1)
    h = np.maximum(0.0, yy2 - yy1)
    inter = w * h
    union = box[2] * box[3] + boxes[:, 2] * boxes[:, 3] - inter + IOU_EPS
    return inter / union
