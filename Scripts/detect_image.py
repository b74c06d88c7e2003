from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

import cv2

from detect_kit import (
    DetectionConfig,
    NormalizationParams,
    draw_detections,
    load_class_names,
    load_detector,
    load_detector_profile,
)


def read_image(path: str):
    img = cv2.imread(path)
    if img is None:
        raise FileNotFoundError(f"Could not read image at path: {path}")
    return img


def main() -> int:
    parser = argparse.ArgumentParser(description="Run object detection on one image.")
    parser.add_argument("--image", required=True, help="Path to an input image.")
    parser.add_argument("--model", default=None, help="Path to a model (.onnx / .pt / .torchscript).")
    parser.add_argument("--profile", default=None, help="Detector profile JSON (thresholds, class names, model).")
    parser.add_argument("--metadata", default=None, help="Class metadata (names mapping); overrides the profile.")
    parser.add_argument("--conf", type=float, default=None, help="Confidence threshold.")
    parser.add_argument("--iou", type=float, default=None, help="IoU threshold for NMS.")
    parser.add_argument("--backend", default=None, help="Force backend: onnxruntime / torchscript.")
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CUDAExecutionProvider,CPUExecutionProvider".',
    )
    parser.add_argument("--out", default=None, help="Optional output path for the annotated image.")
    parser.add_argument("--json", default=None, help="Optional output path for detections as JSON.")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ...).")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    config = DetectionConfig()
    normalization = NormalizationParams()
    model_path = args.model
    if args.profile:
        profile = load_detector_profile(Path(args.profile))
        config = profile.detection
        normalization = profile.normalization
        model_path = model_path or profile.model
    if model_path is None:
        parser.error("--model is required when the profile does not name one")

    overrides = {}
    if args.metadata:
        overrides["class_names"] = load_class_names(args.metadata)
    if args.conf is not None:
        overrides["conf_threshold"] = args.conf
    if args.iou is not None:
        overrides["nms_threshold"] = args.iou

    onnx_providers = None
    if args.onnx_providers:
        onnx_providers = [p.strip() for p in str(args.onnx_providers).split(",") if p.strip()]

    img = read_image(args.image)
    with load_detector(
        model_path,
        config,
        backend=args.backend,
        normalization=normalization,
        onnx_providers=onnx_providers,
    ) as detector:
        if overrides:
            detector.update_config(**overrides)
        detections = detector(img)

    for det in detections:
        print(det)
    print(f"{len(detections)} detection(s)")

    if args.json:
        Path(args.json).write_text(json.dumps([d.as_dict() for d in detections], indent=2), encoding="utf-8")
    if args.out:
        vis = draw_detections(img, detections, show_score=True)
        if not cv2.imwrite(args.out, vis):
            raise RuntimeError(f"Failed to write output image: {args.out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
