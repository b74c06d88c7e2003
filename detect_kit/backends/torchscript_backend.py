from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np

from ..types import RawTensor

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class TorchScriptBackendConfig:
    """
    Configuration for TorchScript inference.

    - device: "cpu" or "cuda" (if available)
    - half: cast input to float16 (only if the model expects it)
    - output_index: if the model returns multiple outputs, select this index
    """

    device: str = "cpu"
    half: bool = False
    output_index: int = 0


class TorchScriptBackend:
    """
    TorchScript backend using `torch.jit.load`; needs no model class code.
    """

    def __init__(self, model_path: PathLike, cfg: TorchScriptBackendConfig = TorchScriptBackendConfig()):
        try:
            import torch  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError("torch is required for the TorchScript backend. Install with `pip install torch`.") from e

        self._torch = torch
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        self.device = torch.device(cfg.device)
        self.half = cfg.half
        self.output_index = cfg.output_index

        model = torch.jit.load(str(self.model_path), map_location=self.device)
        model.eval()
        self.model = model
        logger.info("Loaded TorchScript model %s on %s", self.model_path, self.device)

    @property
    def loaded(self) -> bool:
        return self.model is not None

    def infer(self, blob: np.ndarray) -> RawTensor:
        if self.model is None:
            raise RuntimeError("TorchScript model is closed")
        torch = self._torch
        x = torch.as_tensor(blob, device=self.device)
        x = x.half() if self.half else x.float()
        x = x.contiguous()

        with torch.no_grad():
            y = self.model(x)

        if isinstance(y, (tuple, list)):
            y = y[self.output_index]

        if hasattr(y, "detach"):
            y = y.detach()
        return RawTensor.from_array(y.float().to("cpu").numpy())

    def close(self) -> None:
        self.model = None
