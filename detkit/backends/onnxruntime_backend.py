from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np


PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    Configuration for ONNX Runtime inference.

    - providers: ORT execution providers (e.g., ["CUDAExecutionProvider", "CPUExecutionProvider"]);
      None lets ORT choose (CPU on a stock install)
    - input_name: override the auto-selected (first) input
    - log_severity_level: ORT session log level, 2 = warning
    """

    providers: Optional[Sequence[str]] = None
    input_name: Optional[str] = None
    log_severity_level: int = 2


class OnnxRuntimeBackend:
    """
    ONNX Runtime model runner.

    Expects an NCHW float32 blob, typically shaped (1, 3, H, W).
    Returns every model output as a NumPy array keyed by output name.
    """

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime` "
                "(or `onnxruntime-gpu`)."
            ) from e

        self._ort = ort
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(f"ONNX model not found: {self.model_path}")

        sess_opts = ort.SessionOptions()
        sess_opts.log_severity_level = cfg.log_severity_level
        providers = list(cfg.providers) if cfg.providers is not None else None
        self.session = ort.InferenceSession(str(self.model_path), sess_options=sess_opts, providers=providers)

        inputs = {i.name: i for i in self.session.get_inputs()}
        self.input_name = cfg.input_name or self.session.get_inputs()[0].name
        if self.input_name not in inputs:
            raise ValueError(f"Input name {self.input_name!r} not found. Available: {list(inputs)}")
        self._input_shape = _static_dims(inputs[self.input_name].shape)
        self.output_names: List[str] = [o.name for o in self.session.get_outputs()]

        logger.info(
            "Loaded %s (input=%s %s, outputs=%s, providers=%s)",
            self.model_path.name,
            self.input_name,
            list(self._input_shape),
            self.output_names,
            list(self.providers_in_use),
        )

    @property
    def input_shape(self) -> Sequence[Optional[int]]:
        return self._input_shape

    @property
    def providers_in_use(self) -> Sequence[str]:
        # ORT returns providers in priority order for this session.
        return tuple(self.session.get_providers())

    @property
    def available_providers(self) -> Sequence[str]:
        return tuple(self._ort.get_available_providers())

    def run(self, blob: np.ndarray) -> Dict[str, np.ndarray]:
        outputs = self.session.run(self.output_names, {self.input_name: blob})
        return {name: np.asarray(value) for name, value in zip(self.output_names, outputs)}

    def close(self) -> None:
        # ORT has no explicit release; dropping the last reference frees the session.
        self.session = None


def _static_dims(shape: Sequence[Any]) -> tuple:
    """
    ORT reports dynamic dims as strings ("batch") or None; map those to None.
    """

    dims = []
    for d in shape:
        dims.append(int(d) if isinstance(d, int) and d > 0 else None)
    return tuple(dims)
