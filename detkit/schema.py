"""
Classification of raw model outputs into one of the supported detection layouts.

Two export conventions are understood:

- boxes/scores/labels: three named outputs, boxes (N, 4), scores (N,), labels (N,)
  (Custom Vision / torchvision style exports)
- flat N x 6: a single output of rows [x1, y1, x2, y2, score, class_id]
  (end-to-end YOLO exports with NMS baked out)

Matching happens once per inference call on the output names, case-insensitively.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

import numpy as np

FLAT_ROW_SIZE = 6


class OutputSchema(Enum):
    BOXES_SCORES_LABELS = "boxes_scores_labels"
    FLAT_NX6 = "flat_nx6"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class SchemaMatch:
    schema: OutputSchema
    boxes: Optional[str] = None
    scores: Optional[str] = None
    labels: Optional[str] = None
    flat: Optional[str] = None


UNRECOGNIZED = SchemaMatch(OutputSchema.UNRECOGNIZED)


def _first_containing(names, part: str) -> Optional[str]:
    part = part.lower()
    for name in names:
        if part in name.lower():
            return name
    return None


def match_schema(outputs: Mapping[str, np.ndarray]) -> SchemaMatch:
    """
    Decide which layout `outputs` follows.

    Output order matters: for each role the first output (in model declaration order) whose
    name contains the role substring is used, and the flat layout always reads the first output.
    """

    names = list(outputs.keys())
    if not names:
        return UNRECOGNIZED

    boxes = _first_containing(names, "boxes")
    scores = _first_containing(names, "scores")
    labels = _first_containing(names, "labels")
    if boxes is not None and scores is not None and labels is not None:
        return SchemaMatch(OutputSchema.BOXES_SCORES_LABELS, boxes=boxes, scores=scores, labels=labels)

    first = names[0]
    size = int(np.asarray(outputs[first]).size)
    if size > 0 and size % FLAT_ROW_SIZE == 0:
        return SchemaMatch(OutputSchema.FLAT_NX6, flat=first)

    return UNRECOGNIZED
