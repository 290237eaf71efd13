"""
Decode object-detection model outputs into labeled, frame-space boxes.

Works with the NumPy arrays emitted by ONNX Runtime. Two output conventions are understood
(boxes/scores/labels triple and flat N x 6 rows); boxes are mapped back to the original frame,
clamped, and de-duplicated with per-class NMS. Core functionality needs only NumPy and OpenCV;
ONNX Runtime is imported when an engine is built without a custom runner.
"""

from .types import BoxFormat, Detection, ModelConfig, RawDetection, Rect
from .geometry import clamp_to_frame, iou
from .nms import nms, suppress_per_class
from .schema import OutputSchema, SchemaMatch, match_schema
from .preprocess import allocate_input_buffer, preprocess_frame
from .postprocess import DetectionPostprocessor
from .metadata import load_labels
from .engine import InferenceEngine, find_project_root, infer_input_size, load_engine, resolve_path
from .config import DetectorSettings, load_detector_settings
from .log import setup_logging
from .visualize import draw_detections

__all__ = [
    "BoxFormat",
    "Detection",
    "ModelConfig",
    "RawDetection",
    "Rect",
    "clamp_to_frame",
    "iou",
    "nms",
    "suppress_per_class",
    "OutputSchema",
    "SchemaMatch",
    "match_schema",
    "allocate_input_buffer",
    "preprocess_frame",
    "DetectionPostprocessor",
    "load_labels",
    "InferenceEngine",
    "find_project_root",
    "infer_input_size",
    "load_engine",
    "resolve_path",
    "DetectorSettings",
    "load_detector_settings",
    "setup_logging",
    "draw_detections",
]
