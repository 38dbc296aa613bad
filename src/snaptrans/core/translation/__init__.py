from .backends import (
    ArgosBackend,
    BackendType,
    TranslationBackend,
    create_backend,
    local_supported_pairs,
    select_backend,
)
from .coordinator import TranslationCoordinator
from .errors import (
    BackendError,
    CaptureCancelledError,
    CaptureFailedError,
    EmptyInputError,
    EmptyResultError,
    NoInputError,
    PermissionDeniedError,
    TranslationError,
)
from .llm_backend import PROVIDERS, LiteLLMBackend
from .state import (
    Completed,
    Error,
    Grabbing,
    Idle,
    Streaming,
    Translating,
    TranslationResult,
    TranslationState,
    is_terminal,
)
from .target_resolver import resolve_target_language
from .worker import TranslationWorkerThread

__all__ = [
    "ArgosBackend",
    "BackendType",
    "TranslationBackend",
    "create_backend",
    "local_supported_pairs",
    "select_backend",
    "TranslationCoordinator",
    "BackendError",
    "CaptureCancelledError",
    "CaptureFailedError",
    "EmptyInputError",
    "EmptyResultError",
    "NoInputError",
    "PermissionDeniedError",
    "TranslationError",
    "PROVIDERS",
    "LiteLLMBackend",
    "Completed",
    "Error",
    "Grabbing",
    "Idle",
    "Streaming",
    "Translating",
    "TranslationResult",
    "TranslationState",
    "is_terminal",
    "resolve_target_language",
    "TranslationWorkerThread",
]
