from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .errors import InvalidImageError
from .types import DimensionPlan, NormalizationParams


def _cv2():
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for preprocessing. Install with `pip install opencv-python`.") from e
    return cv2


@dataclass(frozen=True)
class PreprocessResult:
    blob: np.ndarray
    orig_size: Tuple[int, int]
    plan: DimensionPlan

    @property
    def buffer(self) -> np.ndarray:
        """Flat planar view (R plane, then G, then B)."""
        return self.blob.reshape(-1)


def image_size(image: np.ndarray) -> Tuple[int, int]:
    """
    (width, height) of an image array, validating its layout.
    """

    if image is None or not hasattr(image, "shape"):
        raise TypeError("image must be a NumPy array.")
    if image.ndim not in (2, 3):
        raise InvalidImageError(f"Expected image shape (H, W), (H, W, 3) or (H, W, 4), got {image.shape}")
    if image.ndim == 3 and image.shape[2] not in (1, 3, 4):
        raise InvalidImageError(f"Unsupported channel count {image.shape[2]} (expected 1, 3 or 4)")
    h, w = image.shape[:2]
    if w <= 0 or h <= 0:
        raise InvalidImageError(f"Image dimensions must be positive, got {w}x{h}")
    return int(w), int(h)


def to_rgb(image: np.ndarray, color_order: str = "rgb") -> np.ndarray:
    """
    Bring grey / RGB / BGR / RGBA / BGRA input to a 3-channel RGB array.
    """

    order = color_order.lower()
    if order not in ("rgb", "bgr"):
        raise ValueError(f"color_order must be 'rgb' or 'bgr', got {color_order!r}")

    image_size(image)
    cv2 = _cv2()

    img = image
    if img.dtype not in (np.uint8, np.float32):
        img = img.astype(np.float32)
    if img.ndim == 3 and img.shape[2] == 1:
        img = img[:, :, 0]
    img = np.ascontiguousarray(img)

    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2RGB)
    if img.shape[2] == 4:
        return cv2.cvtColor(img, cv2.COLOR_BGRA2RGB if order == "bgr" else cv2.COLOR_RGBA2RGB)
    if order == "bgr":
        return cv2.cvtColor(img, cv2.COLOR_BGR2RGB)
    return img


def resize_to_plan(image_rgb: np.ndarray, plan: DimensionPlan) -> np.ndarray:
    cv2 = _cv2()
    h, w = image_rgb.shape[:2]
    new_w, new_h = plan.target_width, plan.target_height
    if (w, h) == (new_w, new_h):
        return image_rgb
    # INTER_AREA antialiases when shrinking; bilinear when enlarging.
    shrinking = new_w * new_h < w * h
    interpolation = cv2.INTER_AREA if shrinking else cv2.INTER_LINEAR
    return cv2.resize(image_rgb, (new_w, new_h), interpolation=interpolation)


def to_planar_blob(image_rgb: np.ndarray, norm: NormalizationParams = NormalizationParams()) -> np.ndarray:
    """
    HWC RGB pixels -> float32 NCHW blob with `(v / 255 - mean[c]) / std[c]` per channel.
    """

    x = image_rgb.astype(np.float32) / 255.0
    mean = np.asarray(norm.mean, dtype=np.float32)
    std = np.asarray(norm.std, dtype=np.float32)
    x = (x - mean) / std
    return np.ascontiguousarray(np.transpose(x, (2, 0, 1))[None, ...], dtype=np.float32)


class Preprocessor:
    """
    Resize to the planned size and convert to the planar buffer the engine expects.
    """

    def __init__(self, normalization: NormalizationParams = NormalizationParams()):
        self.normalization = normalization

    def run(self, image: np.ndarray, plan: DimensionPlan, color_order: str = "rgb") -> PreprocessResult:
        orig_w, orig_h = image_size(image)
        rgb = to_rgb(image, color_order=color_order)
        resized = resize_to_plan(rgb, plan)
        blob = to_planar_blob(resized, self.normalization)
        return PreprocessResult(blob=blob, orig_size=(orig_w, orig_h), plan=plan)
