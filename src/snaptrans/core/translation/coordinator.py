"""
Translation coordinator.

Orchestrates one translation operation at a time:
text grabbing -> language detection -> target resolution -> backend
selection -> streaming translation -> optional one-shot fallback.
Every transition is published through the state_changed signal.
"""

import itertools
import threading
from typing import Callable, Dict, Optional, Tuple

from PySide6.QtCore import QObject, Signal

from ...utils.logger import get_logger
from ...utils.text import shorten
from ..credentials import CredentialStore
from ..detection import DetectionResult, detect_with_confidence
from ..settings import Settings
from .backends import (
    BackendType,
    TranslationBackend,
    create_backend,
    local_supported_pairs,
    select_backend,
)
from .errors import (
    CaptureCancelledError,
    CaptureFailedError,
    EmptyInputError,
    EmptyResultError,
    NoInputError,
    PermissionDeniedError,
    TranslationError,
)
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

logger = get_logger(__name__)

Detector = Callable[[str, float, Optional[Dict[str, float]]], DetectionResult]
BackendFactory = Callable[[BackendType, Settings, CredentialStore], TranslationBackend]

PERMISSION_DENIED_MESSAGE = (
    "Accessibility permission not granted. Open Settings to enable it."
)
NO_SELECTION_MESSAGE = "No text selected. Select some text and try again."
OCR_UNAVAILABLE_MESSAGE = "Screen OCR is not available on this system."


class _Operation:
    """Token for one entry action. Cancelled tokens never write state."""

    _ids = itertools.count(1)

    def __init__(self, kind: str):
        self.id = next(self._ids)
        self.kind = kind
        self.final_state: Optional[TranslationState] = None
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()


class TranslationCoordinator(QObject):
    """
    Owns the translation state machine.

    States: Idle -> Grabbing -> Translating -> Streaming* -> Completed | Error.
    The coordinator is the only writer of state; callers read `state` or
    connect to `state_changed`.

    Entry actions block until the operation ends and are meant to run on a
    TranslationWorkerThread. Each returns the terminal state it published, or
    None if it was superseded or dismissed first. Starting a new operation or
    calling dismiss() cancels the one in flight: its backend stream is closed
    at the next chunk and its results are discarded.

    Signals:
        state_changed: Emitted with the new TranslationState on every transition
    """

    state_changed = Signal(object)

    def __init__(
        self,
        settings: Settings,
        credentials: CredentialStore,
        grab_selected_text: Callable[[], Optional[str]],
        is_permission_granted: Callable[[], bool],
        capture_text: Optional[Callable[[], str]] = None,
        detector: Optional[Detector] = None,
        backend_factory: Optional[BackendFactory] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._settings = settings
        self._credentials = credentials
        self._grab_selected_text = grab_selected_text
        self._is_permission_granted = is_permission_granted
        self._capture_text = capture_text
        self._detector = detector or detect_with_confidence
        self._backend_factory = backend_factory or create_backend

        self._lock = threading.RLock()
        self._state: TranslationState = Idle()
        self._operation: Optional[_Operation] = None
        self._last_detection: Optional[DetectionResult] = None

    @property
    def state(self) -> TranslationState:
        return self._state

    @property
    def last_detection(self) -> Optional[DetectionResult]:
        return self._last_detection

    def update_settings(self, settings: Settings) -> None:
        self._settings = settings

    # -- Entry actions -------------------------------------------------------

    def translate_selection(self) -> Optional[TranslationState]:
        """Grab the selected text from the focused app and translate it."""
        op = self._begin("selection")
        self._grab_and_translate(op)
        return op.final_state

    def ocr_and_translate(self) -> Optional[TranslationState]:
        """Capture a screen region, recognize its text and translate it."""
        op = self._begin("ocr")
        self._capture_and_translate(op)
        return op.final_state

    def translate(self, text: str) -> Optional[TranslationState]:
        """Translate arbitrary text, e.g. from manual input."""
        op = self._begin("text")
        self._translate(op, text)
        return op.final_state

    def dismiss(self) -> None:
        """Return to Idle and stop whatever operation is running."""
        with self._lock:
            if self._operation is not None:
                logger.debug(f"Dismissing operation #{self._operation.id}")
                self._operation.cancel()
                self._operation = None

            if isinstance(self._state, Idle):
                return

            self._set_state(Idle())

    # -- Pipeline ------------------------------------------------------------

    def _grab_and_translate(self, op: _Operation) -> None:
        if not self._is_permission_granted():
            self._fail(op, PermissionDeniedError(PERMISSION_DENIED_MESSAGE))
            return

        self._publish(op, Grabbing())

        try:
            text = self._grab_selected_text()
        except Exception as e:
            logger.exception(f"Reading the selection failed: {e}")
            self._fail(op, NoInputError(f"Could not read the selected text: {e}"))
            return

        if not text:
            self._fail(op, NoInputError(NO_SELECTION_MESSAGE))
            return

        self._translate(op, text)

    def _capture_and_translate(self, op: _Operation) -> None:
        if self._capture_text is None:
            self._publish(op, Error(OCR_UNAVAILABLE_MESSAGE))
            return

        self._publish(op, Grabbing())

        try:
            text = self._capture_text()
        except CaptureCancelledError:
            logger.info("Screen capture cancelled by user")
            self._publish(op, Idle())
            return
        except Exception as e:
            logger.error(f"OCR failed: {e}", exc_info=True)
            self._fail(op, CaptureFailedError(f"OCR failed: {e}"))
            return

        self._translate(op, text)

    def _translate(self, op: _Operation, text: Optional[str]) -> None:
        trimmed = (text or "").strip()
        if not trimmed:
            self._fail(op, EmptyInputError())
            return

        if not self._publish(op, Translating(source_text=trimmed)):
            return

        try:
            source_lang, detection_ran = self._detect_source(op, trimmed)
            target_lang = resolve_target_language(
                source_lang, self._settings.target_language, detection_ran
            )
            backend = self._create_primary_backend(source_lang, target_lang)
        except Exception as e:
            logger.exception(f"Could not prepare translation: {e}")
            self._publish(op, Error(str(e) or "Could not prepare translation"))
            return

        logger.info(
            f"Operation #{op.id}: '{shorten(trimmed)}' "
            f"{source_lang or 'unknown'} -> {target_lang} via {backend.name}"
        )

        try:
            result = self._perform_streaming(
                op, backend, trimmed, source_lang, target_lang
            )
        except TranslationError as e:
            if e.should_fallback:
                self._attempt_fallback(op, trimmed, source_lang, target_lang, e)
            else:
                self._fail(op, e)
            return
        except Exception as e:
            logger.exception(f"Translation with {backend.name} failed: {e}")
            self._publish(op, Error(str(e) or "Translation failed"))
            return

        if result is not None:
            self._complete(op, result)

    def _detect_source(
        self, op: _Operation, text: str
    ) -> Tuple[Optional[str], bool]:
        settings = self._settings
        fixed_source = settings.fixed_source_language

        if not settings.language_detection_enabled:
            self._record_detection(op, None)
            return fixed_source, fixed_source is not None

        hints = {fixed_source: 1.0} if fixed_source else None
        detection = self._detector(
            text, settings.detection_confidence_threshold, hints
        )
        self._record_detection(op, detection)

        logger.debug(
            f"Detected {detection.language or 'unknown'} "
            f"(confidence={detection.confidence:.2f}, reliable={detection.is_reliable})"
        )
        return detection.language, True

    def _create_primary_backend(
        self, source_lang: Optional[str], target_lang: str
    ) -> TranslationBackend:
        settings = self._settings

        local_pairs = []
        if settings.preferred_service == BackendType.LOCAL.value:
            local_pairs = local_supported_pairs(settings)

        backend_type = select_backend(
            settings.preferred_service, source_lang, target_lang, local_pairs
        )
        return self._backend_factory(backend_type, settings, self._credentials)

    def _perform_streaming(
        self,
        op: _Operation,
        backend: TranslationBackend,
        text: str,
        source_lang: Optional[str],
        target_lang: str,
    ) -> Optional[TranslationResult]:
        """Drive one backend stream. Returns None if the operation was cancelled."""
        accumulated = ""
        stream = backend.translate_stream(text, source_lang, target_lang)

        try:
            for chunk in stream:
                if op.cancelled:
                    logger.info(f"Operation #{op.id} cancelled, closing stream")
                    return None
                accumulated += chunk
                self._publish(op, Streaming(source_text=text, partial_text=accumulated))
        finally:
            close = getattr(stream, "close", None)
            if close is not None:
                close()

        if op.cancelled:
            return None

        if not accumulated:
            raise EmptyResultError()

        return TranslationResult(
            source_text=text,
            translated_text=accumulated,
            source_lang=source_lang or "unknown",
            target_lang=target_lang,
            service_name=backend.name,
        )

    def _attempt_fallback(
        self,
        op: _Operation,
        text: str,
        source_lang: Optional[str],
        target_lang: str,
        original_error: TranslationError,
    ) -> None:
        if op.cancelled:
            return

        try:
            fallback = self._backend_factory(
                BackendType.REMOTE, self._settings, self._credentials
            )
        except Exception as e:
            logger.error(f"Could not create fallback backend: {e}", exc_info=True)
            self._fail(op, original_error)
            return

        key = fallback.credential_key
        if key is not None and not self._credentials.load(key):
            logger.warning(
                f"No credential for fallback {fallback.name}, "
                f"giving up after: {original_error.message}"
            )
            self._fail(op, original_error)
            return

        logger.warning(
            f"Primary backend failed ({original_error.message}), "
            f"retrying once with {fallback.name}"
        )

        try:
            result = self._perform_streaming(
                op, fallback, text, source_lang, target_lang
            )
        except TranslationError as e:
            self._fail(op, e)
            return
        except Exception as e:
            logger.exception(f"Fallback translation failed: {e}")
            self._publish(op, Error(str(e) or "Translation failed"))
            return

        if result is not None:
            self._complete(op, result)

    # -- State ---------------------------------------------------------------

    def _begin(self, kind: str) -> _Operation:
        with self._lock:
            if self._operation is not None:
                self._operation.cancel()
            self._operation = _Operation(kind)
            logger.debug(f"Starting {kind} operation #{self._operation.id}")
            return self._operation

    def _complete(self, op: _Operation, result: TranslationResult) -> None:
        logger.info(
            f"Operation #{op.id} completed by {result.service_name}: "
            f"{len(result.source_text)} -> {len(result.translated_text)} chars"
        )
        self._publish(op, Completed(result=result))

    def _fail(self, op: _Operation, error: TranslationError) -> None:
        if op.cancelled:
            logger.debug(f"Operation #{op.id} ended after cancellation: {error.message}")
            return
        logger.warning(f"Operation #{op.id} failed: {error.message}")
        self._publish(op, Error(error.message))

    def _publish(self, op: _Operation, state: TranslationState) -> bool:
        with self._lock:
            if op is not self._operation or op.cancelled:
                return False
            if is_terminal(state):
                op.final_state = state
            self._set_state(state)
            return True

    def _record_detection(
        self, op: _Operation, detection: Optional[DetectionResult]
    ) -> None:
        with self._lock:
            if op is self._operation and not op.cancelled:
                self._last_detection = detection

    def _set_state(self, state: TranslationState) -> None:
        self._state = state
        self.state_changed.emit(state)
