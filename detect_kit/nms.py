from __future__ import annotations

import logging
from typing import List, Sequence

import numpy as np

from .types import Detection

logger = logging.getLogger(__name__)


def iou(a: Detection, b: Detection) -> float:
    """
    Intersection over union of two xyxy boxes; 0.0 when they do not overlap.
    """

    ix1 = max(a.x1, b.x1)
    iy1 = max(a.y1, b.y1)
    ix2 = min(a.x2, b.x2)
    iy2 = min(a.y2, b.y2)
    if ix2 <= ix1 or iy2 <= iy1:
        return 0.0

    inter = (ix2 - ix1) * (iy2 - iy1)
    area_a = (a.x2 - a.x1) * (a.y2 - a.y1)
    area_b = (b.x2 - b.x1) * (b.y2 - b.y1)
    return inter / (area_a + area_b - inter)


def nms(boxes: np.ndarray, scores: np.ndarray, iou_threshold: float) -> np.ndarray:
    """
    Greedy class-agnostic NMS. Expects boxes shape (N,4) in xyxy and scores shape (N,).
    Returns indices of boxes to keep, highest score first.

    A later box is dropped only when its IoU with an accepted box is strictly greater
    than `iou_threshold`. Equal scores keep their input order.
    """

    boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
    scores = np.asarray(scores, dtype=np.float64).reshape(-1)
    if boxes.shape[0] == 0:
        return np.empty((0,), dtype=np.int64)

    x1 = boxes[:, 0]
    y1 = boxes[:, 1]
    x2 = boxes[:, 2]
    y2 = boxes[:, 3]
    areas = (x2 - x1) * (y2 - y1)

    order = np.argsort(-scores, kind="stable")
    keep = []

    while order.size > 0:
        i = order[0]
        keep.append(i)
        rest = order[1:]

        iw = np.minimum(x2[i], x2[rest]) - np.maximum(x1[i], x1[rest])
        ih = np.minimum(y2[i], y2[rest]) - np.maximum(y1[i], y1[rest])
        overlaps = (iw > 0) & (ih > 0)
        inter = np.where(overlaps, iw * ih, 0.0)
        union = np.where(overlaps, areas[i] + areas[rest] - inter, 1.0)
        ious = inter / union

        order = rest[ious <= iou_threshold]

    return np.array(keep, dtype=np.int64)


class Suppressor:
    """
    Removes overlapping detections across all classes (a box of one class can
    suppress a box of another).
    """

    def __init__(self, nms_threshold: float):
        self.nms_threshold = nms_threshold

    def apply(self, detections: Sequence[Detection]) -> List[Detection]:
        if not detections:
            return []

        boxes = np.array([d.as_xyxy() for d in detections], dtype=np.float64)
        scores = np.array([d.confidence for d in detections], dtype=np.float64)
        keep_idx = nms(boxes, scores, self.nms_threshold)
        kept = [detections[int(i)] for i in keep_idx]
        logger.debug("NMS kept %d of %d detections", len(kept), len(detections))
        return sorted(kept, key=lambda d: d.confidence, reverse=True)
