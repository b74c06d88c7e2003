"""
Inference engine adapters for detect_kit.

Each backend turns a (1, 3, H, W) float32 blob into a `RawTensor` for one named
output. Runtimes are imported lazily so the pre/post-processing core can be used
without installing any of them.
"""

from __future__ import annotations

__all__ = []
