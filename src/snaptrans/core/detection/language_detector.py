"""
Source language detection.

Wraps langdetect, restricting candidates to the supported languages and
biasing the ranking with per-language prior weights. Detection is a pure
function of the text and hints; the loaded language profiles are the only
cached state.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, List, Optional, Tuple

from langdetect import DetectorFactory
from langdetect.detector_factory import PROFILES_DIRECTORY
from langdetect.lang_detect_exception import LangDetectException

from ...utils.logger import get_logger
from ...utils.text import text_length
from ..languages import SUPPORTED_CODES

logger = get_logger(__name__)

DEFAULT_THRESHOLD = 0.3
SHORT_TEXT_LENGTH = 5
SHORT_TEXT_MIN_THRESHOLD = 0.5
MAX_HYPOTHESES = 5

# Base priors reflecting how often each language shows up in practice.
BASE_HINTS: Dict[str, float] = {
    "en": 1.5,
    "zh-Hans": 1.2,
    "zh-Hant": 0.8,
    "ja": 0.6,
    "ko": 0.5,
    "fr": 0.4,
    "es": 0.4,
    "it": 0.4,
    "pt-BR": 0.3,
    "de": 0.3,
    "ru": 0.3,
    "ar": 0.2,
    "th": 0.2,
    "vi": 0.2,
}

# BCP-47 codes whose langdetect profile name differs.
_BCP47_TO_PROFILE = {
    "zh-Hans": "zh-cn",
    "zh-Hant": "zh-tw",
    "pt-BR": "pt",
}
_PROFILE_TO_BCP47 = {v: k for k, v in _BCP47_TO_PROFILE.items()}


@dataclass(frozen=True)
class DetectionResult:
    language: Optional[str]
    confidence: float
    is_reliable: bool


def to_profile_code(code: str) -> Optional[str]:
    """Map a BCP-47 code to a langdetect profile name, or None if unsupported."""
    if code not in SUPPORTED_CODES:
        return None
    return _BCP47_TO_PROFILE.get(code, code)


def to_bcp47(profile_code: str) -> str:
    return _PROFILE_TO_BCP47.get(profile_code, profile_code)


@lru_cache(maxsize=1)
def _get_factory() -> DetectorFactory:
    factory = DetectorFactory()
    factory.load_profile(PROFILES_DIRECTORY)
    # Deterministic sampling so identical text always yields identical output
    factory.set_seed(0)
    logger.debug(f"Loaded {len(factory.get_lang_list())} language profiles")
    return factory


def _build_prior_map(preferred_hints: Optional[Dict[str, float]]) -> Dict[str, float]:
    hints = dict(BASE_HINTS)
    if preferred_hints:
        for code, weight in preferred_hints.items():
            if code in hints:
                hints[code] += weight
            else:
                logger.debug(f"Ignoring hint for unsupported language {code!r}")

    return {to_profile_code(code): max(weight, 0.0) for code, weight in hints.items()}


def rank_hypotheses(
    text: str, preferred_hints: Optional[Dict[str, float]] = None
) -> List[Tuple[str, float]]:
    """Return up to five (language, confidence) pairs, best first."""
    detector = _get_factory().create()
    detector.set_prior_map(_build_prior_map(preferred_hints))
    detector.append(text)

    try:
        probabilities = detector.get_probabilities()
    except LangDetectException as e:
        logger.debug(f"No detectable features in text: {e}")
        return []

    ranked = sorted(
        ((to_bcp47(p.lang), p.prob) for p in probabilities),
        key=lambda item: item[1],
        reverse=True,
    )
    return [(lang, conf) for lang, conf in ranked if lang in SUPPORTED_CODES][
        :MAX_HYPOTHESES
    ]


def effective_threshold(text: str, threshold: float) -> float:
    if text_length(text) <= SHORT_TEXT_LENGTH:
        return max(threshold, SHORT_TEXT_MIN_THRESHOLD)
    return threshold


def detect_with_confidence(
    text: str,
    threshold: float = DEFAULT_THRESHOLD,
    preferred_hints: Optional[Dict[str, float]] = None,
) -> DetectionResult:
    hypotheses = rank_hypotheses(text, preferred_hints)
    if not hypotheses:
        return DetectionResult(language=None, confidence=0.0, is_reliable=False)

    language, confidence = hypotheses[0]
    is_reliable = confidence >= effective_threshold(text, threshold)

    return DetectionResult(
        language=language if is_reliable else None,
        confidence=confidence,
        is_reliable=is_reliable,
    )


def detect(text: str) -> Optional[str]:
    return detect_with_confidence(text, DEFAULT_THRESHOLD).language
