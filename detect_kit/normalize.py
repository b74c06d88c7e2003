from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Dict, Sequence, Union

import numpy as np

from .errors import UnsupportedShapeError
from .types import CanonicalOutput, RawTensor

logger = logging.getLogger(__name__)


class TensorLayout(Enum):
    """
    Output layouts seen from detection heads.

    - FLAT:    [features, detections]
    - BATCHED: [batch, features, detections]
    - SPATIAL: [batch, features, H, W] (one candidate per grid cell)
    """

    FLAT = 2
    BATCHED = 3
    SPATIAL = 4


def classify_layout(shape: Sequence[int]) -> TensorLayout:
    try:
        return TensorLayout(len(shape))
    except ValueError:
        raise UnsupportedShapeError(
            f"Unsupported output shape {list(shape)}: expected rank 2, 3 or 4"
        ) from None


def _first_batch(arr: np.ndarray) -> np.ndarray:
    if arr.shape[0] == 0:
        raise UnsupportedShapeError(f"Output has an empty batch dimension: {list(arr.shape)}")
    if arr.shape[0] > 1:
        logger.debug("Output batch size is %d; using the first image only", arr.shape[0])
    return arr[0]


def _from_flat(arr: np.ndarray) -> np.ndarray:
    return arr


def _from_batched(arr: np.ndarray) -> np.ndarray:
    return _first_batch(arr)


def _from_spatial(arr: np.ndarray) -> np.ndarray:
    grid = _first_batch(arr)  # (features, H, W)
    features, h, w = grid.shape
    # Row-major over (h, w): column h * W + w holds grid[:, h, w].
    return grid.reshape(features, h * w)


_NORMALIZERS: Dict[TensorLayout, Callable[[np.ndarray], np.ndarray]] = {
    TensorLayout.FLAT: _from_flat,
    TensorLayout.BATCHED: _from_batched,
    TensorLayout.SPATIAL: _from_spatial,
}


def normalize_output(raw: Union[RawTensor, np.ndarray]) -> CanonicalOutput:
    """
    Turn an engine output of rank 2, 3 or 4 into the canonical [features, detections] table.
    """

    tensor = raw if isinstance(raw, RawTensor) else RawTensor.from_array(raw)
    layout = classify_layout(tensor.shape)
    logger.debug("Output shape %s -> %s layout", list(tensor.shape), layout.name)
    table = _NORMALIZERS[layout](tensor.as_array())
    return CanonicalOutput(table=table)
