from __future__ import annotations

from typing import Dict, Optional, Protocol, Sequence

import numpy as np


class ModelRunner(Protocol):
    """
    What the engine needs from an inference runtime.

    - input_name: name the preprocessed blob is bound to
    - input_shape: declared input dims, with dynamic dims reported as None
    - run: execute once and return every output by name, in model declaration order
    """

    input_name: str

    @property
    def input_shape(self) -> Sequence[Optional[int]]:
        ...

    def run(self, blob: np.ndarray) -> Dict[str, np.ndarray]:
        ...

    def close(self) -> None:
        ...
