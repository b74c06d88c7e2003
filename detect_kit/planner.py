from __future__ import annotations

import math
from dataclasses import dataclass

from .errors import InvalidImageError
from .types import DimensionPlan


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _ceil_to_stride(value: int, stride: int) -> int:
    return ((value + stride - 1) // stride) * stride


def plan_dimensions(width: int, height: int, target_size: int = 640, stride: int = 32) -> DimensionPlan:
    """
    Pick the model input size for a `width` x `height` image.

    The longer side is pinned at `target_size`, the shorter side keeps the aspect
    ratio and is rounded up to the next multiple of `stride`. Square images take
    the portrait branch.

    Example: 1920x1080 -> 640x384 (640 / 1.778 = 360, rounded up to 384).
    """

    if width <= 0 or height <= 0:
        raise InvalidImageError(f"Image dimensions must be positive, got {width}x{height}")

    ratio = width / height
    if ratio > 1.0:
        target_w = target_size
        target_h = _ceil_to_stride(_round_half_up(target_size / ratio), stride)
    else:
        target_h = target_size
        target_w = _ceil_to_stride(_round_half_up(target_size * ratio), stride)

    # Extreme aspect ratios can round the short side down to zero.
    return DimensionPlan(target_width=max(target_w, stride), target_height=max(target_h, stride))


@dataclass(frozen=True)
class DimensionPlanner:
    target_size: int = 640
    stride: int = 32

    def __post_init__(self) -> None:
        if self.stride <= 0:
            raise ValueError("stride must be > 0")
        if self.target_size <= 0 or self.target_size % self.stride != 0:
            raise ValueError("target_size must be a positive multiple of stride")

    def plan(self, width: int, height: int) -> DimensionPlan:
        return plan_dimensions(width, height, target_size=self.target_size, stride=self.stride)
