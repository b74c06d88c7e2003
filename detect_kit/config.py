from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .metadata import load_class_names
from .types import DetectionConfig, NormalizationParams


@dataclass(frozen=True)
class DetectorProfile:
    detection: DetectionConfig
    normalization: NormalizationParams = NormalizationParams()
    model: Optional[str] = None


def _require_number(payload: Dict[str, Any], key: str) -> float:
    if key not in payload:
        raise ValueError(f"Missing required key: {key}")
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _require_int(payload: Dict[str, Any], key: str) -> int:
    if key not in payload:
        raise ValueError(f"Missing required key: {key}")
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def _triple(value: Any, key: str) -> Tuple[float, float, float]:
    if not isinstance(value, list) or len(value) != 3:
        raise ValueError(f"{key} must be a list of 3 numbers")
    if any(isinstance(v, bool) or not isinstance(v, (int, float)) for v in value):
        raise ValueError(f"{key} must be a list of 3 numbers")
    return float(value[0]), float(value[1]), float(value[2])


def _class_names(payload: Dict[str, Any], base_dir: Path) -> List[str]:
    if "class_names" in payload and "metadata" in payload:
        raise ValueError("Use either 'class_names' or 'metadata', not both.")
    if "class_names" in payload:
        names = payload["class_names"]
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            raise ValueError("class_names must be a list of strings")
        return list(names)
    if "metadata" in payload:
        metadata = payload["metadata"]
        if not isinstance(metadata, str) or not metadata.strip():
            raise ValueError("metadata must be a non-empty string")
        path = Path(metadata)
        if not path.is_absolute():
            path = base_dir / path
        if not path.exists():
            raise FileNotFoundError(f"Class metadata not found: {path}")
        return load_class_names(path)
    return []


def load_detector_profile(path: Path) -> DetectorProfile:
    """
    Load a detector profile (JSON):

        {
          "schema_version": 1,
          "conf_threshold": 0.25,
          "nms_threshold": 0.45,
          "class_names": ["person", "car"],     # or "metadata": "metadata.yaml"
          "max_detections": 100,                # optional
          "normalization": {"mean": [0, 0, 0], "std": [1, 1, 1]},  # optional
          "model": "models/yolov8n.onnx"        # optional
        }
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Detector profile not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid detector profile JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Detector profile must be a JSON object")

    allowed = {
        "schema_version",
        "conf_threshold",
        "nms_threshold",
        "class_names",
        "metadata",
        "max_detections",
        "normalization",
        "model",
    }
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown detector profile keys: {unknown}")

    if _require_int(payload, "schema_version") != 1:
        raise ValueError("detector profile schema_version must be 1")

    max_detections = payload.get("max_detections")
    if max_detections is not None and (isinstance(max_detections, bool) or not isinstance(max_detections, int)):
        raise ValueError("max_detections must be an integer if provided")

    detection = DetectionConfig(
        conf_threshold=_require_number(payload, "conf_threshold"),
        nms_threshold=_require_number(payload, "nms_threshold"),
        class_names=_class_names(payload, path.parent),
        max_detections=max_detections,
    )

    normalization = NormalizationParams()
    norm = payload.get("normalization")
    if norm is not None:
        if not isinstance(norm, dict):
            raise ValueError("normalization must be an object")
        norm_unknown = sorted(set(norm.keys()) - {"mean", "std"})
        if norm_unknown:
            raise ValueError(f"Unknown normalization keys: {norm_unknown}")
        normalization = NormalizationParams(
            mean=_triple(norm.get("mean", [0, 0, 0]), "normalization.mean"),
            std=_triple(norm.get("std", [1, 1, 1]), "normalization.std"),
        )

    model = payload.get("model")
    if model is not None and (not isinstance(model, str) or not model.strip()):
        raise ValueError("model must be a non-empty string if provided")
    if model is not None:
        model_path = Path(model)
        if not model_path.is_absolute():
            model_path = path.resolve().parent / model_path
        model = str(model_path)

    return DetectorProfile(detection=detection, normalization=normalization, model=model)
