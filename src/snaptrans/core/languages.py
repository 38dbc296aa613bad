"""Languages SnapTrans can detect and translate between."""

from typing import List, Optional, Tuple

# (BCP-47 code, display name)
SUPPORTED_LANGUAGES: List[Tuple[str, str]] = [
    ("en", "English"),
    ("zh-Hans", "Chinese (Simplified)"),
    ("zh-Hant", "Chinese (Traditional)"),
    ("ja", "Japanese"),
    ("ko", "Korean"),
    ("fr", "French"),
    ("de", "German"),
    ("es", "Spanish"),
    ("pt-BR", "Portuguese (Brazil)"),
    ("ru", "Russian"),
    ("ar", "Arabic"),
    ("it", "Italian"),
    ("th", "Thai"),
    ("vi", "Vietnamese"),
]

SUPPORTED_CODES = [code for code, _ in SUPPORTED_LANGUAGES]

AUTO_DETECT = "auto"


def is_supported(code: str) -> bool:
    return code in SUPPORTED_CODES


def get_display_name(code: Optional[str]) -> str:
    if code is None:
        return "Auto Detect"
    for lang_code, name in SUPPORTED_LANGUAGES:
        if lang_code == code:
            return name
    return code


def language_family(code: str) -> str:
    """Primary subtag of a code, e.g. 'zh' for 'zh-Hant'."""
    return code.split("-", 1)[0].lower()


def is_chinese(code: str) -> bool:
    return language_family(code) == "zh"
