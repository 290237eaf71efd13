from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class BoxFormat(Enum):
    """Source space a raw box was decoded from."""

    NORMALIZED_XYWH = "normalized_xywh"
    MODEL_XYXY = "model_xyxy"


@dataclass(frozen=True)
class ModelConfig:
    """
    Static description of a loaded model, fixed for the lifetime of an engine.

    `labels` is indexed by class id.
    """

    input_name: str
    input_width: int
    input_height: int
    labels: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.input_name:
            raise ValueError("input_name must not be empty")
        if self.input_width <= 0 or self.input_height <= 0:
            raise ValueError(f"input size must be positive, got {self.input_width}x{self.input_height}")

    @property
    def input_size(self) -> Tuple[int, int]:
        return self.input_width, self.input_height

    def label_for(self, class_id: int) -> str:
        if 0 <= class_id < len(self.labels):
            return self.labels[class_id]
        return f"cls{class_id}"


@dataclass
class RawDetection:
    """
    Decoded box in frame pixel space, before clamping.

    Corners may come in any order; `box_format` records which output layout produced it.
    """

    x1: float
    y1: float
    x2: float
    y2: float
    score: float
    class_id: int
    box_format: BoxFormat = BoxFormat.MODEL_XYXY

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.x1, self.y1, self.x2, self.y2


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.x, self.y, self.right, self.bottom


@dataclass(frozen=True)
class Detection:
    """
    Final detection in original frame pixel coordinates.
    """

    rect: Rect
    label: str
    confidence: float
    class_id: int

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.rect.as_xyxy()
