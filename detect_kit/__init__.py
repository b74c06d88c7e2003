"""
Object-detection post-processing for single-image YOLO-style models.

Turns a raw output tensor (rank 2, 3 or 4) into scaled, de-duplicated
detections. Pre/post-processing needs NumPy and OpenCV only; inference
runtimes (ONNX Runtime, PyTorch) are optional backends.
"""

import logging

from .config import DetectorProfile, load_detector_profile
from .decode import Decoder, resolve_class_names
from .errors import (
    DetectionFailedError,
    DetectKitError,
    FeatureNotPermittedError,
    InvalidImageError,
    UnsupportedShapeError,
)
from .metadata import load_class_names
from .nms import Suppressor, iou, nms
from .normalize import TensorLayout, classify_layout, normalize_output
from .planner import DimensionPlanner, plan_dimensions
from .policy import AllowAllPolicy, FeaturePolicy, StaticFeaturePolicy
from .preprocess import PreprocessResult, Preprocessor, to_planar_blob
from .runtime import Detector, ModelInfo, find_project_root, load_detector, resolve_path
from .types import CanonicalOutput, Detection, DetectionConfig, DimensionPlan, NormalizationParams, RawTensor
from .visualize import draw_detections

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "CanonicalOutput",
    "Detection",
    "DetectionConfig",
    "DimensionPlan",
    "NormalizationParams",
    "RawTensor",
    "DetectKitError",
    "InvalidImageError",
    "UnsupportedShapeError",
    "DetectionFailedError",
    "FeatureNotPermittedError",
    "DimensionPlanner",
    "plan_dimensions",
    "Preprocessor",
    "PreprocessResult",
    "to_planar_blob",
    "TensorLayout",
    "classify_layout",
    "normalize_output",
    "Decoder",
    "resolve_class_names",
    "Suppressor",
    "iou",
    "nms",
    "FeaturePolicy",
    "AllowAllPolicy",
    "StaticFeaturePolicy",
    "Detector",
    "ModelInfo",
    "load_detector",
    "find_project_root",
    "resolve_path",
    "DetectorProfile",
    "load_detector_profile",
    "load_class_names",
    "draw_detections",
]
