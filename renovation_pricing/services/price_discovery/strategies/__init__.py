"""Search strategies tried in order for each supplier."""

from .base import BaseSearchStrategy
from .detected_platform import DetectedPlatformStrategy
from .domain_override import DomainOverrideStrategy
from .generic import GenericPatternStrategy

__all__ = [
    "BaseSearchStrategy",
    "DetectedPlatformStrategy",
    "DomainOverrideStrategy",
    "GenericPatternStrategy",
]
