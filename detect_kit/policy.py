"""
Capability checks run by the `Detector` before any work is done.

Access control (licenses, quotas, ...) lives outside this package; callers wrap
whatever they use in a policy object and inject it into the detector.
"""

from __future__ import annotations

from typing import Iterable, Optional, Protocol

from .errors import FeatureNotPermittedError

OBJECT_DETECTION = "object_detection"


class FeaturePolicy(Protocol):
    def check(self, feature: str) -> None:
        """Raise FeatureNotPermittedError if `feature` may not be used."""


class AllowAllPolicy:
    def check(self, feature: str) -> None:
        return None


class StaticFeaturePolicy:
    """
    Fixed allow-list of feature names.
    """

    def __init__(self, allowed: Iterable[str], message: Optional[str] = None):
        self.allowed = frozenset(allowed)
        self.message = message

    def check(self, feature: str) -> None:
        if feature not in self.allowed:
            raise FeatureNotPermittedError(self.message or f"Feature not permitted: {feature}")
