from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

import numpy as np

from .errors import UnsupportedShapeError
from .types import CanonicalOutput, Detection, DetectionConfig, DimensionPlan

logger = logging.getLogger(__name__)

UNKNOWN_CLASS_NAME = "Unknown"


def placeholder_class_names(num_classes: int) -> Tuple[str, ...]:
    return tuple(f"class_{i}" for i in range(num_classes))


def resolve_class_names(class_names: Sequence[str], num_classes: int) -> Tuple[str, ...]:
    """
    Names to use for a model emitting `num_classes` scores.

    A list of the wrong length is replaced by `class_0..class_{K-1}`; the caller's
    sequence is never modified.
    """

    if len(class_names) == num_classes:
        return tuple(class_names)
    logger.debug("Updating class names from %d to %d classes", len(class_names), num_classes)
    return placeholder_class_names(num_classes)


class Decoder:
    """
    Canonical table -> thresholded detections in original image coordinates.

    Per candidate column:
    - best class by argmax over rows 4.. (the first index wins ties)
    - kept only when its score is strictly above `conf_threshold`
    - (cx, cy, w, h) in model-input pixels -> xyxy scaled to the original image and clamped
    """

    def __init__(self, cfg: DetectionConfig):
        self.cfg = cfg

    def decode(
        self,
        output: CanonicalOutput,
        orig_size: Tuple[int, int],
        plan: DimensionPlan,
    ) -> List[Detection]:
        table = output.table
        num_classes = output.num_classes
        if num_classes < 1:
            raise UnsupportedShapeError(
                f"Canonical output needs at least 5 rows (4 box + 1 class), got {output.num_features}"
            )

        class_names = resolve_class_names(self.cfg.class_names, num_classes)
        logger.debug(
            "Decoding %d candidates, %d classes, conf_threshold=%s",
            output.num_detections,
            num_classes,
            self.cfg.conf_threshold,
        )
        if output.num_detections == 0:
            return []

        class_scores = table[4:, :]
        best = np.argmax(class_scores, axis=0)
        max_conf = class_scores[best, np.arange(class_scores.shape[1])]

        keep = max_conf > self.cfg.conf_threshold
        if not np.any(keep):
            return []

        cx, cy, w, h = table[0:4, keep].astype(np.float64)
        best = best[keep]
        max_conf = max_conf[keep]

        orig_w, orig_h = orig_size
        scale_x = orig_w / plan.target_width
        scale_y = orig_h / plan.target_height

        x1 = np.clip((cx - w / 2) * scale_x, 0, orig_w)
        y1 = np.clip((cy - h / 2) * scale_y, 0, orig_h)
        x2 = np.clip((cx + w / 2) * scale_x, 0, orig_w)
        y2 = np.clip((cy + h / 2) * scale_y, 0, orig_h)

        detections: List[Detection] = []
        for i in range(best.shape[0]):
            class_id = int(best[i])
            name = class_names[class_id] if class_id < len(class_names) else UNKNOWN_CLASS_NAME
            detections.append(
                Detection(
                    x1=float(x1[i]),
                    y1=float(y1[i]),
                    x2=float(x2[i]),
                    y2=float(y2[i]),
                    confidence=float(max_conf[i]),
                    class_id=class_id,
                    class_name=name,
                )
            )
        return detections
