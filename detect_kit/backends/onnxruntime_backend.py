from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np

from ..types import RawTensor

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    Configuration for ONNX Runtime inference.

    - providers: ORT execution providers (e.g., ["CUDAExecutionProvider", "CPUExecutionProvider"])
    - input_name/output_name: override the first input/output of the graph
    """

    providers: Optional[Sequence[str]] = None
    input_name: Optional[str] = None
    output_name: Optional[str] = None


class OnnxRuntimeBackend:
    """
    ONNX Runtime session wrapper.

    Expects an NCHW float32 blob shaped (1, 3, H, W); returns the selected output
    as a `RawTensor`.
    """

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime` "
                "(or `onnxruntime-gpu`)."
            ) from e

        self._ort = ort
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        providers = list(cfg.providers) if cfg.providers is not None else None
        if providers is not None:
            missing = [p for p in providers if p not in self.available_providers]
            if missing:
                logger.warning(
                    "Requested ONNX Runtime provider(s) not available: %s. Available providers: %s",
                    missing,
                    list(self.available_providers),
                )
                # Fall back to ORT's default order if none of the requested ones exist.
                providers = [p for p in providers if p not in missing] or None

        sess_opts = ort.SessionOptions()
        self.session = ort.InferenceSession(str(self.model_path), sess_options=sess_opts, providers=providers)

        self.input_name = cfg.input_name or self.session.get_inputs()[0].name
        self.output_name = cfg.output_name or self.session.get_outputs()[0].name
        logger.info(
            "Loaded ONNX model %s (input=%s, output=%s, providers=%s)",
            self.model_path,
            self.input_name,
            self.output_name,
            self.providers_in_use,
        )

    @property
    def loaded(self) -> bool:
        return self.session is not None

    @property
    def providers_in_use(self) -> Sequence[str]:
        return tuple(self.session.get_providers())

    @property
    def available_providers(self) -> Sequence[str]:
        return tuple(self._ort.get_available_providers())

    def infer(self, blob: np.ndarray) -> RawTensor:
        if self.session is None:
            raise RuntimeError("ONNX session is closed")
        outputs = self.session.run([self.output_name], {self.input_name: blob})
        return RawTensor.from_array(outputs[0])

    def close(self) -> None:
        # ORT sessions release their resources once unreferenced.
        self.session = None
