"""Language detection."""

from .language_detector import (
    BASE_HINTS,
    DetectionResult,
    detect,
    detect_with_confidence,
    rank_hypotheses,
)

__all__ = [
    "BASE_HINTS",
    "DetectionResult",
    "detect",
    "detect_with_confidence",
    "rank_hypotheses",
]
