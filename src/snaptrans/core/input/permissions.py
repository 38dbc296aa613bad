from typing import Optional

from PySide6.QtCore import QObject, QTimer, Signal

from ...utils.logger import get_logger
from ...utils.platform import (
    check_accessibility_permissions,
    request_accessibility_permissions,
)
from ..settings.config import PERMISSION_POLL_INTERVAL_MS

logger = get_logger(__name__)


class PermissionManager(QObject):
    """
    Tracks whether the app may read the selection in other applications.

    Signals:
        permissions_changed: Emitted with the new grant state when it flips
    """

    permissions_changed = Signal(bool)

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._granted = check_accessibility_permissions()
        self._poll_timer: Optional[QTimer] = None

    @property
    def is_accessibility_granted(self) -> bool:
        self._refresh()
        return self._granted

    def request_accessibility(self) -> None:
        logger.info("Opening accessibility settings")
        request_accessibility_permissions()
        self.start_polling()

    def start_polling(self) -> None:
        if self._poll_timer is not None:
            return
        self._poll_timer = QTimer(self)
        self._poll_timer.setInterval(PERMISSION_POLL_INTERVAL_MS)
        self._poll_timer.timeout.connect(self._poll)
        self._poll_timer.start()

    def stop_polling(self) -> None:
        if self._poll_timer is not None:
            self._poll_timer.stop()
            self._poll_timer.deleteLater()
            self._poll_timer = None

    @property
    def is_polling(self) -> bool:
        return self._poll_timer is not None

    def _poll(self) -> None:
        self._refresh()
        if self._granted:
            self.stop_polling()

    def _refresh(self) -> None:
        granted = check_accessibility_permissions()
        if granted != self._granted:
            self._granted = granted
            logger.info(f"Accessibility permission changed: granted={granted}")
            self.permissions_changed.emit(granted)
