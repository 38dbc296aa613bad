"""Failures that can end a translation operation."""


class TranslationError(Exception):
    """Base class for translation failures surfaced to the user."""

    @property
    def message(self) -> str:
        return str(self)

    @property
    def should_fallback(self) -> bool:
        return False


class PermissionDeniedError(TranslationError):
    pass


class NoInputError(TranslationError):
    pass


class EmptyInputError(TranslationError):
    def __init__(self, message: str = "Empty text"):
        super().__init__(message)


class CaptureCancelledError(TranslationError):
    """User dismissed the screen capture. Not a failure."""

    def __init__(self, message: str = "Capture cancelled"):
        super().__init__(message)


class CaptureFailedError(TranslationError):
    pass


class BackendError(TranslationError):
    """A backend could not produce a translation."""

    def __init__(self, message: str, should_fallback: bool = True):
        super().__init__(message)
        self._should_fallback = should_fallback

    @property
    def should_fallback(self) -> bool:
        return self._should_fallback


class EmptyResultError(TranslationError):
    """The stream finished without producing any text."""

    def __init__(self, message: str = "Translation returned an empty result"):
        super().__init__(message)

    @property
    def should_fallback(self) -> bool:
        return True
