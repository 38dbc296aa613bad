"""Text helpers shared by logging and language detection."""

import unicodedata

ZERO_WIDTH_JOINER = "\u200d"

# Code points that attach to the preceding character instead of starting a
# new user-perceived character.
_EXTENDERS = {"\ufe0e", "\ufe0f"}
_SKIN_TONES = range(0x1F3FB, 0x1F400)


def _extends_previous(char: str) -> bool:
    return (
        unicodedata.category(char) in ("Mn", "Mc", "Me")
        or char in _EXTENDERS
        or ord(char) in _SKIN_TONES
    )


def text_length(text: str) -> int:
    """
    Count user-perceived characters.

    Combining marks, variation selectors and emoji modifiers belong to the
    character before them, and anything joined with a zero width joiner is
    part of the same emoji sequence.
    """
    count = 0
    joined = False

    for char in text:
        if char == ZERO_WIDTH_JOINER:
            joined = count > 0
            continue
        if joined:
            joined = False
            continue
        if count and _extends_previous(char):
            continue
        count += 1

    return count


def shorten(text: str, limit: int = 50) -> str:
    """Truncate text for log lines."""
    return f"{text[:limit]}{'...' if len(text) > limit else ''}"
