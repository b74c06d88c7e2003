from __future__ import annotations


class DetectKitError(RuntimeError):
    """Base error for the detection pipeline."""


class InvalidImageError(DetectKitError, ValueError):
    """Image has no usable pixels (zero/negative size or wrong channel layout)."""


class UnsupportedShapeError(DetectKitError, ValueError):
    """Model output tensor cannot be turned into a canonical [features, detections] table."""


class DetectionFailedError(DetectKitError):
    """Unexpected failure while running one detect() call."""


class FeatureNotPermittedError(DetectKitError, PermissionError):
    """A feature policy refused the requested capability."""
