from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, Union

import numpy as np

from .decode import Decoder
from .errors import DetectionFailedError, DetectKitError, UnsupportedShapeError
from .nms import Suppressor
from .normalize import normalize_output
from .planner import DimensionPlanner
from .policy import OBJECT_DETECTION, AllowAllPolicy, FeaturePolicy
from .preprocess import Preprocessor, image_size
from .types import Detection, DetectionConfig, DimensionPlan, NormalizationParams, RawTensor

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
InferFn = Callable[[np.ndarray], Union[RawTensor, np.ndarray]]


def find_project_root(
    start: Optional[PathLike] = None,
    markers: Sequence[str] = ("pyproject.toml", "setup.py", ".git", "requirements.txt"),
) -> Path:
    """
    Best-effort project root discovery, used to resolve relative model paths.
    """

    p = Path(start) if start is not None else Path.cwd()
    p = p.resolve()

    if p.is_file():
        p = p.parent

    for parent in (p, *p.parents):
        for m in markers:
            if (parent / m).exists():
                return parent
    return p


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """
    Resolve `path` to an absolute Path.

    - Absolute paths are returned as-is.
    - Relative paths are resolved against `root` if provided, the project root otherwise.
    """

    p = Path(path)
    if p.is_absolute():
        return p

    if root == "auto" or root is None:
        base = find_project_root()
    else:
        base = Path(root).resolve()

    return (base / p).resolve()


@dataclass(frozen=True)
class ModelInfo:
    backend_name: Optional[str]
    model_path: Optional[str]
    input_name: Optional[str] = None
    output_name: Optional[str] = None
    # False once the backend session/model has been released.
    loaded: bool = True


class Detector:
    """
    One-image pipeline: plan size -> preprocess -> inference -> normalize -> decode -> NMS.

    `detect()` takes an RGB `np.ndarray` (H, W, 3); calling the detector directly
    takes an OpenCV-style BGR frame. Both return detections in original image
    coordinates, highest confidence first.

    Error boundary:
    - InvalidImageError / FeatureNotPermittedError propagate unchanged
    - an unsupported output shape is logged and yields []
    - anything else is re-raised as DetectionFailedError
    """

    def __init__(
        self,
        infer_fn: InferFn,
        config: DetectionConfig = DetectionConfig(),
        *,
        normalization: NormalizationParams = NormalizationParams(),
        planner: DimensionPlanner = DimensionPlanner(),
        policy: Optional[FeaturePolicy] = None,
        backend: Optional[object] = None,
        backend_name: Optional[str] = None,
    ):
        self._infer_fn = infer_fn
        self.config = config
        self.normalization = normalization
        self.planner = planner
        self.policy: FeaturePolicy = policy if policy is not None else AllowAllPolicy()
        self.backend = backend
        self.backend_name = backend_name

    # ------------------------------------------------------------------ #
    # Configuration
    # ------------------------------------------------------------------ #
    def update_config(self, **changes: Any) -> None:
        """Swap in a copy of the config with `changes` applied (e.g. conf_threshold=0.4)."""
        self.config = replace(self.config, **changes)

    def set_normalization(self, mean: Sequence[float], std: Sequence[float]) -> None:
        self.normalization = NormalizationParams(mean=tuple(mean), std=tuple(std))

    def plan_for(self, width: int, height: int) -> DimensionPlan:
        return self.planner.plan(width, height)

    def model_info(self) -> ModelInfo:
        path = getattr(self.backend, "model_path", None)
        return ModelInfo(
            backend_name=self.backend_name,
            model_path=str(path) if path is not None else None,
            input_name=getattr(self.backend, "input_name", None),
            output_name=getattr(self.backend, "output_name", None),
            loaded=bool(getattr(self.backend, "loaded", True)),
        )

    # ------------------------------------------------------------------ #
    # Detection
    # ------------------------------------------------------------------ #
    def detect(self, image: np.ndarray, *, color_order: str = "rgb") -> List[Detection]:
        self.policy.check(OBJECT_DETECTION)

        cfg = self.config
        orig_w, orig_h = image_size(image)
        plan = self.plan_for(orig_w, orig_h)
        logger.debug("Processing image %dx%d, model input %dx%d", orig_w, orig_h, plan.target_width, plan.target_height)

        try:
            prep = Preprocessor(self.normalization).run(image, plan, color_order=color_order)

            start = time.perf_counter()
            raw = self._infer_fn(prep.blob)
            logger.debug("Inference time: %.1f ms", (time.perf_counter() - start) * 1000.0)

            canonical = normalize_output(raw)
            candidates = Decoder(cfg).decode(canonical, prep.orig_size, plan)
            logger.debug("Valid detections before NMS: %d", len(candidates))
            detections = Suppressor(cfg.nms_threshold).apply(candidates)
        except UnsupportedShapeError as exc:
            logger.warning("Unsupported model output, returning no detections: %s", exc)
            return []
        except DetectKitError:
            raise
        except Exception as exc:
            raise DetectionFailedError(f"Detection failed: {exc}") from exc

        if cfg.max_detections is not None:
            detections = detections[: cfg.max_detections]

        logger.debug("Final detections after NMS: %d", len(detections))
        for det in detections:
            logger.debug("  %s", det)
        return detections

    def __call__(self, image_bgr: np.ndarray) -> List[Detection]:
        return self.detect(image_bgr, color_order="bgr")

    # ------------------------------------------------------------------ #
    # Resources
    # ------------------------------------------------------------------ #
    def close(self) -> None:
        close = getattr(self.backend, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> "Detector":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def load_detector(
    model_path: PathLike,
    config: DetectionConfig = DetectionConfig(),
    *,
    backend: Optional[str] = None,
    root: Optional[PathLike] = "auto",
    normalization: NormalizationParams = NormalizationParams(),
    planner: DimensionPlanner = DimensionPlanner(),
    policy: Optional[FeaturePolicy] = None,
    onnx_providers: Optional[Sequence[str]] = None,
    onnx_input_name: Optional[str] = None,
    onnx_output_name: Optional[str] = None,
    torch_device: str = "cpu",
    torch_half: bool = False,
    torch_output_index: int = 0,
) -> Detector:
    """
    Create a detector for a model on disk.

    Typical usage:
        det = load_detector("models/yolov8n.onnx", DetectionConfig(class_names=names))

    Args:
        model_path: path to the model file; relative paths resolve against the project root by default
        backend: "onnxruntime" / "torchscript", or None to infer from the file extension
        root: base directory for resolving relative model paths ("auto" uses best-effort project root)
    """

    if policy is not None:
        policy.check(OBJECT_DETECTION)

    resolved = resolve_path(model_path, root=root)
    chosen = backend
    if chosen is None:
        suffix = resolved.suffix.lower()
        if suffix == ".onnx":
            chosen = "onnxruntime"
        elif suffix in {".torchscript", ".ts", ".pt"}:
            chosen = "torchscript"
        else:
            raise ValueError(
                f"Could not infer backend from extension '{suffix}'. Pass backend=... explicitly."
            )

    chosen = chosen.lower()
    if chosen == "onnxruntime":
        from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

        engine: Any = OnnxRuntimeBackend(
            resolved,
            OnnxRuntimeBackendConfig(
                providers=onnx_providers,
                input_name=onnx_input_name,
                output_name=onnx_output_name,
            ),
        )
    elif chosen == "torchscript":
        from .backends.torchscript_backend import TorchScriptBackend, TorchScriptBackendConfig

        engine = TorchScriptBackend(
            resolved,
            TorchScriptBackendConfig(device=torch_device, half=torch_half, output_index=torch_output_index),
        )
    else:
        raise ValueError(f"Unsupported backend: {backend!r}")

    return Detector(
        engine.infer,
        config,
        normalization=normalization,
        planner=planner,
        policy=policy,
        backend=engine,
        backend_name=chosen,
    )
