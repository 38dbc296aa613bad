from typing import Optional

from ..languages import is_chinese, language_family


def _alternate_for(language: str) -> str:
    return "en" if is_chinese(language) else "zh-Hans"


def resolve_target_language(
    detected: Optional[str], preferred: str, detection_ran: bool = True
) -> str:
    """
    Pick the language to translate into.

    Returns the preferred target unless that would translate text into the
    language it is already written in, in which case an alternate is used:
    Chinese text goes to English, anything else to Simplified Chinese.

    Args:
        detected: Source language, or None if unknown
        preferred: User's preferred target language
        detection_ran: False when detection was skipped and no source is known
    """
    if detected is None:
        if detection_ran:
            return preferred
        return _alternate_for(preferred)

    if language_family(detected) == language_family(preferred):
        return _alternate_for(detected)

    return preferred
