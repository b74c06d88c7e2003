from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np

from .errors import UnsupportedShapeError


@dataclass(frozen=True)
class Detection:
    """
    Single detection in original image coordinates (xyxy corners).
    """

    x1: float
    y1: float
    x2: float
    y2: float
    confidence: float
    class_id: int
    class_name: str

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x1 + self.x2) / 2, (self.y1 + self.y2) / 2

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.x1, self.y1, self.x2, self.y2

    def as_dict(self) -> Dict[str, Any]:
        return {
            "x1": self.x1,
            "y1": self.y1,
            "x2": self.x2,
            "y2": self.y2,
            "confidence": self.confidence,
            "class_id": self.class_id,
            "class_name": self.class_name,
        }

    def __str__(self) -> str:
        return (
            f"Detection[x1={self.x1:.1f}, y1={self.y1:.1f}, x2={self.x2:.1f}, y2={self.y2:.1f}, "
            f"conf={self.confidence:.3f}, class={self.class_id}({self.class_name})]"
        )


@dataclass(frozen=True)
class DimensionPlan:
    target_width: int
    target_height: int

    @property
    def input_shape(self) -> Tuple[int, int, int, int]:
        # NCHW, single image
        return 1, 3, self.target_height, self.target_width


@dataclass(frozen=True)
class NormalizationParams:
    """
    Per-channel (R, G, B) mean/std applied after scaling pixels to 0..1.
    The defaults leave the 0..1 values untouched.
    """

    mean: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    std: Tuple[float, float, float] = (1.0, 1.0, 1.0)

    def __post_init__(self) -> None:
        mean = tuple(float(v) for v in self.mean)
        std = tuple(float(v) for v in self.std)
        if len(mean) != 3 or len(std) != 3:
            raise ValueError("mean and std must have exactly 3 values (R, G, B)")
        if any(v == 0.0 for v in std):
            raise ValueError("std values must be non-zero")
        object.__setattr__(self, "mean", mean)
        object.__setattr__(self, "std", std)


@dataclass(frozen=True)
class RawTensor:
    """
    Output of the inference engine: flat value buffer plus its shape.
    """

    data: np.ndarray
    shape: Tuple[int, ...]

    def __post_init__(self) -> None:
        shape = tuple(int(d) for d in self.shape)
        data = np.asarray(self.data).reshape(-1)
        expected = int(np.prod(shape)) if shape else 1
        if data.size != expected:
            raise UnsupportedShapeError(
                f"Buffer holds {data.size} values but shape {list(shape)} needs {expected}"
            )
        object.__setattr__(self, "shape", shape)
        object.__setattr__(self, "data", data)

    @classmethod
    def from_array(cls, arr: Any) -> "RawTensor":
        a = np.asarray(arr)
        return cls(data=a.reshape(-1), shape=tuple(a.shape))

    @property
    def rank(self) -> int:
        return len(self.shape)

    def as_array(self) -> np.ndarray:
        return self.data.reshape(self.shape)


@dataclass(frozen=True)
class CanonicalOutput:
    """
    2-D table, rows = [cx, cy, w, h, class_0, ..., class_{K-1}], columns = candidates.
    """

    table: np.ndarray

    def __post_init__(self) -> None:
        table = np.asarray(self.table)
        # float32 at least; float64 engine output keeps its precision.
        table = table.astype(np.result_type(table.dtype, np.float32), copy=False)
        if table.ndim != 2:
            raise UnsupportedShapeError(f"Canonical output must be 2-D, got shape {table.shape}")
        object.__setattr__(self, "table", table)

    @property
    def num_features(self) -> int:
        return int(self.table.shape[0])

    @property
    def num_detections(self) -> int:
        return int(self.table.shape[1])

    @property
    def num_classes(self) -> int:
        return self.num_features - 4


@dataclass(frozen=True)
class DetectionConfig:
    """
    Thresholds and class names for decoding one model's output.

    `class_names` may disagree with the model's class count; the decoder then
    falls back to generated `class_<i>` names for that call.
    """

    conf_threshold: float = 0.25
    nms_threshold: float = 0.45
    class_names: Sequence[str] = field(default_factory=tuple)
    # Optional cap applied after suppression; None keeps everything.
    max_detections: Optional[int] = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.conf_threshold <= 1.0:
            raise ValueError("conf_threshold must be in [0, 1]")
        if not 0.0 <= self.nms_threshold <= 1.0:
            raise ValueError("nms_threshold must be in [0, 1]")
        if self.max_detections is not None and self.max_detections < 0:
            raise ValueError("max_detections must be >= 0")
        object.__setattr__(self, "class_names", tuple(str(n) for n in self.class_names))
