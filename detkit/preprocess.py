from typing import Optional, Tuple

import numpy as np


def allocate_input_buffer(input_size: Tuple[int, int]) -> np.ndarray:
    """
    Zeroed (1, 3, H, W) float32 buffer for `preprocess_frame(..., out=...)`.
    """

    input_w, input_h = input_size
    return np.zeros((1, 3, input_h, input_w), dtype=np.float32)


def preprocess_frame(
    image_bgr: np.ndarray,
    input_size: Tuple[int, int],
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Resize a BGR frame to the model input size and lay it out as a normalized NCHW blob.

    Args:
        image_bgr: (H, W, 3) uint8 frame in OpenCV channel order; never modified
        input_size: (width, height) expected by the model
        out: optional reusable (1, 3, height, width) float32 buffer, written in place

    Returns:
        the filled blob (``out`` itself when given)
    """
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for preprocess_frame(). Install with `pip install opencv-python`.") from e

    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")
    if image_bgr.dtype != np.uint8:
        raise TypeError(f"image_bgr must be uint8, got {image_bgr.dtype}")
    if image_bgr.shape[0] == 0 or image_bgr.shape[1] == 0:
        raise ValueError("image_bgr must not be empty.")

    input_w, input_h = input_size
    expected = (1, 3, input_h, input_w)
    if out is None:
        out = allocate_input_buffer(input_size)
    elif out.shape != expected or out.dtype != np.float32:
        raise ValueError(f"out buffer must be float32 with shape {expected}, got {out.dtype} {out.shape}")

    resized = cv2.resize(image_bgr, (input_w, input_h), interpolation=cv2.INTER_LINEAR)

    # BGR -> RGB, HWC -> CHW, normalize
    out[0] = np.transpose(resized[:, :, ::-1], (2, 0, 1))
    out /= 255.0
    return out
