from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class DetectorSettings:
    model_path: str = "model/model.onnx"
    labels_path: str = "model/labels.txt"
    camera_index: int = 0
    score_threshold: float = 0.40
    nms_threshold: float = 0.45
    # Set both to skip reading the size from the model's input shape.
    input_width: Optional[int] = None
    input_height: Optional[int] = None
    providers: Optional[Tuple[str, ...]] = None

    def __post_init__(self) -> None:
        if not self.model_path:
            raise ValueError("model_path must not be empty")
        if not self.labels_path:
            raise ValueError("labels_path must not be empty")
        if self.camera_index < 0:
            raise ValueError("camera_index must be >= 0")
        if not 0.0 <= self.score_threshold <= 1.0:
            raise ValueError("score_threshold must be in [0, 1]")
        if not 0.0 <= self.nms_threshold <= 1.0:
            raise ValueError("nms_threshold must be in [0, 1]")
        if (self.input_width is None) != (self.input_height is None):
            raise ValueError("input_width and input_height must be set together")
        if self.input_width is not None and (self.input_width <= 0 or self.input_height <= 0):
            raise ValueError("input_width and input_height must be > 0")

    @property
    def input_size(self) -> Optional[Tuple[int, int]]:
        if self.input_width is None or self.input_height is None:
            return None
        return self.input_width, self.input_height


def _optional_number(payload: Dict[str, Any], key: str, default: float) -> float:
    value = payload.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _optional_int(payload: Dict[str, Any], key: str) -> Optional[int]:
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def _optional_str(payload: Dict[str, Any], key: str, default: str) -> str:
    value = payload.get(key, default)
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value.strip()


def load_detector_settings(path: Path) -> DetectorSettings:
    if not path.exists():
        raise FileNotFoundError(f"Detector settings not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid detector settings JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Detector settings must be a JSON object")

    allowed = {
        "model_path",
        "labels_path",
        "camera_index",
        "score_threshold",
        "nms_threshold",
        "input_width",
        "input_height",
        "providers",
    }
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown detector settings keys: {unknown}")

    defaults = DetectorSettings()
    camera_index = _optional_int(payload, "camera_index")

    providers = payload.get("providers")
    if providers is not None:
        if not isinstance(providers, list) or not all(isinstance(p, str) and p.strip() for p in providers):
            raise ValueError("providers must be a list of non-empty strings")
        providers = tuple(p.strip() for p in providers)

    return DetectorSettings(
        model_path=_optional_str(payload, "model_path", defaults.model_path),
        labels_path=_optional_str(payload, "labels_path", defaults.labels_path),
        camera_index=defaults.camera_index if camera_index is None else camera_index,
        score_threshold=_optional_number(payload, "score_threshold", defaults.score_threshold),
        nms_threshold=_optional_number(payload, "nms_threshold", defaults.nms_threshold),
        input_width=_optional_int(payload, "input_width"),
        input_height=_optional_int(payload, "input_height"),
        providers=providers,
    )
