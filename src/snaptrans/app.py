"""Application runtime."""

import argparse
import signal
import sys
from typing import Callable, List, Optional

from PySide6.QtCore import QCoreApplication, QObject, QTimer, Signal

from snaptrans import __app_name__, __version__
from snaptrans.core.credentials import SettingsCredentialStore
from snaptrans.core.input import PermissionManager, SelectionGrabber
from snaptrans.core.languages import SUPPORTED_CODES
from snaptrans.core.settings import Settings, get_settings
from snaptrans.core.translation import (
    Completed,
    Error,
    Streaming,
    TranslationCoordinator,
    TranslationState,
    TranslationWorkerThread,
)
from snaptrans.utils.logger import get_logger
from snaptrans.utils.text import shorten

logger = get_logger(__name__)


class TranslatorApp(QObject):
    """
    Wires settings, collaborators and the coordinator together, and runs
    each translation on a background worker thread.

    Signals:
        state_changed: Forwarded coordinator state, delivered on the GUI thread
        operation_finished: Emitted with the terminal state of each operation that
            ran to the end; superseded or dismissed operations emit nothing
    """

    state_changed = Signal(object)
    operation_finished = Signal(object)

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__()

        self._settings = settings or get_settings()
        self._permissions = PermissionManager(self)
        self._credentials = SettingsCredentialStore(self._settings)
        self._selection = SelectionGrabber()
        self._coordinator = TranslationCoordinator(
            settings=self._settings,
            credentials=self._credentials,
            grab_selected_text=self._selection.grab_selected_text,
            is_permission_granted=lambda: self._permissions.is_accessibility_granted,
            parent=self,
        )
        self._workers: List[TranslationWorkerThread] = []

        self._coordinator.state_changed.connect(self._on_state_changed)
        self._permissions.permissions_changed.connect(self._on_permissions_changed)

        if not self._permissions.is_accessibility_granted:
            logger.warning("Accessibility permission missing, waiting for grant")
            self._permissions.start_polling()

    @property
    def coordinator(self) -> TranslationCoordinator:
        return self._coordinator

    def translate_text(self, text: str) -> None:
        self._start_worker(lambda: self._coordinator.translate(text))

    def translate_selection(self) -> None:
        self._start_worker(self._coordinator.translate_selection)

    def ocr_and_translate(self) -> None:
        self._start_worker(self._coordinator.ocr_and_translate)

    def dismiss(self) -> None:
        self._coordinator.dismiss()

    def on_settings_changed(self) -> None:
        self._settings = get_settings()
        self._credentials.update_settings(self._settings)
        self._coordinator.update_settings(self._settings)
        logger.info(
            f"Settings updated: target={self._settings.target_language}, "
            f"service={self._settings.preferred_service}"
        )

    def shutdown(self) -> None:
        logger.info("Shutting down application")
        self._coordinator.dismiss()
        self._permissions.stop_polling()
        for worker in list(self._workers):
            worker.wait()
        logger.info("Application shutdown complete")

    def _start_worker(
        self, action: Callable[[], Optional[TranslationState]]
    ) -> None:
        worker = TranslationWorkerThread(action, parent=self)
        worker.done.connect(self._on_worker_done)
        worker.finished.connect(self._release_finished_workers)
        self._workers.append(worker)
        worker.start()

    def _release_finished_workers(self) -> None:
        for worker in [w for w in self._workers if w.isFinished()]:
            self._workers.remove(worker)
            worker.deleteLater()

    def _on_worker_done(self, state: TranslationState) -> None:
        self.operation_finished.emit(state)

    def _on_state_changed(self, state: TranslationState) -> None:
        if isinstance(state, Completed):
            logger.info(f"Translation ready: '{shorten(state.result.translated_text)}'")
        elif isinstance(state, Error):
            logger.error(f"Translation error: {state.message}")
        elif not isinstance(state, Streaming):
            logger.debug(f"State -> {type(state).__name__}")
        self.state_changed.emit(state)

    def _on_permissions_changed(self, granted: bool) -> None:
        if granted:
            logger.info("Accessibility permission granted")
        else:
            logger.warning("Accessibility permission revoked")


class ConsolePrinter:
    """Writes streamed partial translations to a text stream."""

    def __init__(self, out=None, err=None):
        self._out = out or sys.stdout
        self._err = err or sys.stderr
        self._printed = ""

    def on_state_changed(self, state: TranslationState) -> None:
        if isinstance(state, Streaming):
            self._write_partial(state.partial_text)
        elif isinstance(state, Completed):
            self._write_partial(state.result.translated_text)
            self._out.write("\n")
            self._out.flush()
        elif isinstance(state, Error):
            if self._printed:
                self._out.write("\n")
            self._err.write(f"Error: {state.message}\n")
            self._err.flush()

    def _write_partial(self, partial: str) -> None:
        if not partial.startswith(self._printed):
            # A fallback attempt restarted the stream
            self._out.write("\n")
            self._printed = ""
        self._out.write(partial[len(self._printed):])
        self._out.flush()
        self._printed = partial


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snaptrans",
        description="Translate text or the current selection, streaming the result.",
    )
    parser.add_argument("text", nargs="*", help="Text to translate")
    parser.add_argument(
        "--selection",
        action="store_true",
        help="Translate the text selected in the focused application",
    )
    parser.add_argument(
        "--target", choices=SUPPORTED_CODES, help="Override the target language"
    )
    parser.add_argument(
        "--version", action="version", version=f"{__app_name__} {__version__}"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    if not args.text and not args.selection:
        _build_parser().error("give some text or --selection")

    app = QCoreApplication.instance() or QCoreApplication(sys.argv)
    app.setApplicationName(__app_name__)
    signal.signal(signal.SIGINT, lambda *args: QCoreApplication.quit())

    settings = get_settings()
    if args.target:
        settings = settings.model_copy(update={"target_language": args.target})

    logger.info(f"Starting {__app_name__} v{__version__}")

    translator = TranslatorApp(settings)
    printer = ConsolePrinter()
    translator.state_changed.connect(printer.on_state_changed)
    translator.operation_finished.connect(
        lambda state: app.exit(0 if isinstance(state, Completed) else 1)
    )

    if args.selection:
        QTimer.singleShot(0, translator.translate_selection)
    else:
        text = " ".join(args.text)
        QTimer.singleShot(0, lambda: translator.translate_text(text))

    exit_code = app.exec()
    translator.shutdown()
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
