from typing import Callable, Optional

from PySide6.QtCore import QThread, Signal

from ...utils.logger import get_logger
from .state import Error, TranslationState

logger = get_logger(__name__)


class TranslationWorkerThread(QThread):
    """
    Background thread for one coordinator entry action.

    The coordinator's state_changed signal is emitted from this thread and
    delivered to GUI-thread slots through queued connections.

    Signals:
        done: Emitted with the terminal state of this thread's own operation.
            Not emitted when the operation was superseded or dismissed.
    """

    done = Signal(object)

    def __init__(
        self,
        action: Callable[[], Optional[TranslationState]],
        parent=None,
    ):
        super().__init__(parent)
        self._action = action

    def run(self):
        import time

        start_time = time.time()
        final_state = None

        try:
            final_state = self._action()
        except Exception as e:
            logger.exception(f"Background translation error: {e}")
            final_state = Error(str(e) or "Translation failed")

        duration = time.time() - start_time

        if final_state is None:
            logger.info(f"Translation operation superseded after {duration:.2f}s")
            return

        logger.info(
            f"Translation operation finished in {duration:.2f}s "
            f"({type(final_state).__name__})"
        )
        self.done.emit(final_state)
