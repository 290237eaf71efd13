from __future__ import annotations

import logging
from typing import List, Mapping, Sequence, Tuple

import numpy as np

from .geometry import clamp_to_frame, scale_factors
from .nms import suppress_per_class
from .schema import FLAT_ROW_SIZE, OutputSchema, SchemaMatch, match_schema
from .types import BoxFormat, Detection, ModelConfig, RawDetection

logger = logging.getLogger(__name__)

# Boxes whose leading values never exceed this are read as normalized fractions.
NORMALIZED_MAX_VALUE = 1.5
NORMALIZED_PROBE_VALUES = 100

# Class id given to rows whose class value is NaN or infinite.
INVALID_CLASS_ID = -1


def _class_id(value) -> int:
    value = float(value)
    if not np.isfinite(value):
        return INVALID_CLASS_ID
    return int(value)


class DetectionPostprocessor:
    """
    Turns named model outputs into labeled detections in original frame coordinates.

    Supported layouts (per image):
    - boxes/scores/labels triple: boxes (N, 4), scores (N,), labels (N,)
      boxes are normalized [x, y, w, h] of the frame, or absolute [x1, y1, x2, y2] in model input
      pixels; the choice is made once per call from the first 100 box values.
    - flat (N, 6): [x1, y1, x2, y2, score, class_id] in model input pixels.

    Anything else decodes to no detections.
    """

    def __init__(self, model_config: ModelConfig):
        self.model_config = model_config

    def process(
        self,
        outputs: Mapping[str, np.ndarray],
        frame_size: Tuple[int, int],
        score_threshold: float,
        nms_threshold: float,
    ) -> List[Detection]:
        """
        Decode, clamp to the frame and run per-class NMS.

        Args:
            outputs: model outputs by name, in declaration order
            frame_size: (width, height) of the original frame
            score_threshold: detections scoring below this are dropped
            nms_threshold: IoU at or above which a weaker same-class box is suppressed
        """

        raw = self.decode(outputs, frame_size, score_threshold)
        if not raw:
            return []

        detections = self.to_detections(raw, frame_size)
        return suppress_per_class(detections, nms_threshold)

    def decode(
        self,
        outputs: Mapping[str, np.ndarray],
        frame_size: Tuple[int, int],
        score_threshold: float,
    ) -> List[RawDetection]:
        match = match_schema(outputs)

        if match.schema is OutputSchema.BOXES_SCORES_LABELS:
            return self._decode_boxes_scores_labels(outputs, match, frame_size, score_threshold)
        if match.schema is OutputSchema.FLAT_NX6:
            return self._decode_flat(outputs, match, frame_size, score_threshold)

        logger.debug("Unrecognized detection outputs %s; no detections decoded.", list(outputs.keys()))
        return []

    def to_detections(self, raw: Sequence[RawDetection], frame_size: Tuple[int, int]) -> List[Detection]:
        frame_w, frame_h = frame_size
        return [
            Detection(
                rect=clamp_to_frame(r.x1, r.y1, r.x2, r.y2, frame_w, frame_h),
                label=self.model_config.label_for(r.class_id),
                confidence=float(r.score),
                class_id=int(r.class_id),
            )
            for r in raw
        ]

    # ------------------------------------------------------------------ #
    # Helper internal
    # ------------------------------------------------------------------ #
    def _decode_boxes_scores_labels(
        self,
        outputs: Mapping[str, np.ndarray],
        match: SchemaMatch,
        frame_size: Tuple[int, int],
        score_threshold: float,
    ) -> List[RawDetection]:
        boxes = np.asarray(outputs[match.boxes], dtype=np.float64).reshape(-1)
        scores = np.asarray(outputs[match.scores], dtype=np.float64).reshape(-1)
        labels = np.asarray(outputs[match.labels]).reshape(-1)

        n = scores.shape[0]
        available = min(n, labels.shape[0], boxes.shape[0] // 4)
        if available < n:
            logger.warning(
                "Output lengths disagree (boxes=%d, scores=%d, labels=%d); decoding first %d.",
                boxes.shape[0],
                n,
                labels.shape[0],
                available,
            )
            n = available
        if n == 0:
            return []

        normalized = boxes.shape[0] >= 4 and float(boxes[:NORMALIZED_PROBE_VALUES].max()) <= NORMALIZED_MAX_VALUE
        boxes = boxes[: n * 4].reshape(n, 4)
        frame_w, frame_h = frame_size

        if normalized:
            x, y, w, h = boxes.T
            xyxy = np.stack([x * frame_w, y * frame_h, (x + w) * frame_w, (y + h) * frame_h], axis=1)
            box_format = BoxFormat.NORMALIZED_XYWH
        else:
            xyxy = self._scale_model_xyxy(boxes, frame_size)
            box_format = BoxFormat.MODEL_XYXY

        # `score < threshold` rather than `>=` so NaN scores pass through unfiltered.
        keep = np.flatnonzero(~(scores[:n] < score_threshold))
        return [
            RawDetection(
                x1=float(xyxy[i, 0]),
                y1=float(xyxy[i, 1]),
                x2=float(xyxy[i, 2]),
                y2=float(xyxy[i, 3]),
                score=float(scores[i]),
                class_id=_class_id(labels[i]),
                box_format=box_format,
            )
            for i in keep
        ]

    def _decode_flat(
        self,
        outputs: Mapping[str, np.ndarray],
        match: SchemaMatch,
        frame_size: Tuple[int, int],
        score_threshold: float,
    ) -> List[RawDetection]:
        arr = np.asarray(outputs[match.flat], dtype=np.float64)

        rows = arr.reshape(-1, FLAT_ROW_SIZE)

        if rows.shape[0] == 0:
            return []

        xyxy = self._scale_model_xyxy(rows[:, 0:4], frame_size)
        scores = rows[:, 4]
        class_ids = rows[:, 5]

        keep = np.flatnonzero(~(scores < score_threshold))
        return [
            RawDetection(
                x1=float(xyxy[i, 0]),
                y1=float(xyxy[i, 1]),
                x2=float(xyxy[i, 2]),
                y2=float(xyxy[i, 3]),
                score=float(scores[i]),
                class_id=_class_id(class_ids[i]),
                box_format=BoxFormat.MODEL_XYXY,
            )
            for i in keep
        ]

    def _scale_model_xyxy(self, boxes: np.ndarray, frame_size: Tuple[int, int]) -> np.ndarray:
        """
        Map model-input pixel corners onto the frame. Plain resize, no padding offset.
        """

        sx, sy = scale_factors(frame_size, self.model_config.input_size)
        out = np.array(boxes, dtype=np.float64, copy=True)
        out[:, [0, 2]] *= sx
        out[:, [1, 3]] *= sy
        return out
