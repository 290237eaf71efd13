from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .backends.base import ModelRunner
from .metadata import load_labels
from .postprocess import DetectionPostprocessor
from .preprocess import allocate_input_buffer, preprocess_frame
from .types import Detection, ModelConfig


PathLike = Union[str, Path]
RunnerFactory = Callable[[Path], ModelRunner]

DEFAULT_INPUT_SIZE = (640, 640)
ROOT_MARKERS = ("pyproject.toml", ".git", "model")

logger = logging.getLogger(__name__)


def find_project_root(
    start: Optional[PathLike] = None,
    markers: Sequence[str] = ROOT_MARKERS,
) -> Path:
    """
    Nearest directory at or above `start` (default: cwd) holding one of `markers`.

    A bare `model/` directory counts, so a checkout with `model/model.onnx` and `model/labels.txt`
    is found even without packaging files. Falls back to `start` itself.
    """

    here = Path.cwd() if start is None else Path(start)
    here = here.resolve()
    if here.is_file():
        here = here.parent

    return next(
        (d for d in (here, *here.parents) if any((d / m).exists() for m in markers)),
        here,
    )


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """
    Absolute form of a model or labels path; relative paths hang off `root`, or off
    `find_project_root()` when root is "auto" or None.
    """

    candidate = Path(path)
    if candidate.is_absolute():
        return candidate
    base = find_project_root() if root in ("auto", None) else Path(root).resolve()
    return (base / candidate).resolve()


def infer_input_size(shape: Sequence[Optional[int]]) -> Tuple[int, int]:
    """
    (width, height) from a declared input shape such as [1, 3, H, W].

    Dynamic or non-positive dims count as unknown; if either side stays unknown the default
    640x640 is used.
    """

    dims = [int(d) if d is not None and int(d) > 0 else 0 for d in shape]
    height = dims[-2] if len(dims) >= 3 else DEFAULT_INPUT_SIZE[1]
    width = dims[-1] if len(dims) >= 4 else DEFAULT_INPUT_SIZE[0]
    if width == 0 or height == 0:
        return DEFAULT_INPUT_SIZE
    return width, height


def _onnxruntime_factory(providers: Optional[Sequence[str]]) -> RunnerFactory:
    def factory(model_path: Path) -> ModelRunner:
        from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

        return OnnxRuntimeBackend(model_path, OnnxRuntimeBackendConfig(providers=providers))

    return factory


class InferenceEngine:
    """
    Frame in, labeled boxes out: preprocess -> model -> decode -> clamp -> per-class NMS.

    The engine expects BGR frames (OpenCV-style) as `np.ndarray` and returns a list of `Detection`
    in original frame coordinates.

    One instance owns one model session and one reusable input buffer, so calls to `detect` must
    not overlap. Use one engine per worker thread or guard `detect` with a lock.
    """

    def __init__(
        self,
        model_path: PathLike,
        labels_path: PathLike,
        input_size: Optional[Tuple[int, int]] = None,
        *,
        runner_factory: Optional[RunnerFactory] = None,
        providers: Optional[Sequence[str]] = None,
    ):
        model_path = Path(model_path)
        labels_path = Path(labels_path)
        if not model_path.exists():
            raise FileNotFoundError(f"ONNX model not found: {model_path}")
        if not labels_path.exists():
            raise FileNotFoundError(f"Labels file not found: {labels_path}")

        labels = load_labels(labels_path)
        factory = runner_factory or _onnxruntime_factory(providers)
        self._runner: Optional[ModelRunner] = factory(model_path)

        try:
            if input_size is not None:
                width, height = input_size
            else:
                width, height = infer_input_size(self._runner.input_shape)
                logger.info("Model input size inferred as %dx%d", width, height)

            self.model_config = ModelConfig(
                input_name=self._runner.input_name,
                input_width=int(width),
                input_height=int(height),
                labels=tuple(labels),
            )
            self.post = DetectionPostprocessor(self.model_config)
            self._blob = allocate_input_buffer(self.model_config.input_size)
        except BaseException:
            self.close()
            raise

        self.model_path = model_path
        self.labels_path = labels_path

    @property
    def labels(self) -> Tuple[str, ...]:
        return self.model_config.labels

    @property
    def closed(self) -> bool:
        return self._runner is None

    def detect(self, image_bgr: np.ndarray, score_threshold: float, nms_threshold: float) -> List[Detection]:
        """
        Run one detection cycle on a frame.

        Errors raised by the model runner propagate; outputs in an unknown layout give [].
        """

        if self._runner is None:
            raise RuntimeError("InferenceEngine is closed.")

        blob = preprocess_frame(image_bgr, self.model_config.input_size, out=self._blob)
        outputs = self._runner.run(blob)

        frame_h, frame_w = image_bgr.shape[:2]
        return self.post.process(
            outputs,
            frame_size=(frame_w, frame_h),
            score_threshold=score_threshold,
            nms_threshold=nms_threshold,
        )

    def close(self) -> None:
        runner, self._runner = self._runner, None
        if runner is not None:
            runner.close()

    def __enter__(self) -> "InferenceEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def load_engine(
    model_path: PathLike,
    labels_path: PathLike,
    *,
    input_size: Optional[Tuple[int, int]] = None,
    root: Optional[PathLike] = "auto",
    onnx_providers: Optional[Sequence[str]] = None,
) -> InferenceEngine:
    """
    Create an engine for a model and label file on disk.

    Typical usage:
        engine = load_engine("model/model.onnx", "model/labels.txt")  # resolves from project root

    Args:
        model_path: path to the .onnx file; relative paths resolve against project root by default
        labels_path: path to labels.txt, resolved the same way
        input_size: (width, height) if known; otherwise read from the model's input shape
        root: base directory for resolving relative paths ("auto" uses best-effort project root)
        onnx_providers: ORT execution providers, None for the ORT default
    """

    return InferenceEngine(
        resolve_path(model_path, root=root),
        resolve_path(labels_path, root=root),
        input_size=input_size,
        providers=onnx_providers,
    )
