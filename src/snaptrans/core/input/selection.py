"""
Selected-text grabbing.

Reads the text currently selected in the focused application. On Linux the
X11 PRIMARY selection already holds it; elsewhere the copy shortcut is sent
and the clipboard is read, then restored.
"""

import platform
import subprocess
import time
from typing import List, Optional

from ...utils.logger import get_logger
from ...utils.text import shorten
from ...utils.platform import get_subprocess_kwargs

logger = get_logger(__name__)


class SelectionGrabber:

    def __init__(self, copy_delay: float = 0.15):
        self._keyboard = None
        self._copy_delay = copy_delay

    def grab_selected_text(self) -> Optional[str]:
        system = platform.system()

        if system == "Linux":
            text = self._get_clipboard(["xclip", "-selection", "primary", "-o"])
            return self._clean(text)
        elif system == "Darwin":  # macOS
            copy_cmd = ["pbcopy"]
            paste_cmd = ["pbpaste"]
            copy_key = "cmd"
        elif system == "Windows":
            copy_cmd = ["clip"]
            paste_cmd = ["powershell", "-command", "Get-Clipboard"]
            copy_key = "ctrl"
        else:
            logger.warning(f"Unknown platform {system}, cannot read selection")
            return None

        old_clipboard = self._get_clipboard(paste_cmd)

        # Clear first so an empty selection is not mistaken for stale clipboard text
        self._set_clipboard(copy_cmd, "")

        self._send_copy_shortcut(copy_key)

        time.sleep(self._copy_delay)

        text = self._get_clipboard(paste_cmd)

        if old_clipboard:
            self._set_clipboard(copy_cmd, old_clipboard)

        return self._clean(text)

    def _send_copy_shortcut(self, modifier: str) -> None:
        from pynput.keyboard import Controller as KeyboardController
        from pynput.keyboard import Key

        if self._keyboard is None:
            self._keyboard = KeyboardController()

        with self._keyboard.pressed(getattr(Key, modifier)):
            self._keyboard.tap("c")

    def _clean(self, text: str) -> Optional[str]:
        if not text or not text.strip():
            logger.debug("No selected text found")
            return None
        logger.debug(f"Grabbed selection: '{shorten(text)}'")
        return text

    def _get_clipboard(self, paste_cmd: List[str]) -> str:
        try:
            result = subprocess.run(
                paste_cmd,
                **get_subprocess_kwargs(capture_output=True, text=True, timeout=1),
            )
            return result.stdout if result.returncode == 0 else ""
        except (subprocess.TimeoutExpired, FileNotFoundError):
            return ""

    def _set_clipboard(self, copy_cmd: List[str], text: str) -> bool:
        try:
            subprocess.run(
                copy_cmd,
                **get_subprocess_kwargs(input=text, text=True, timeout=1, check=True),
            )
            return True
        except (
            subprocess.TimeoutExpired,
            FileNotFoundError,
            subprocess.CalledProcessError,
        ) as e:
            logger.error(f"Failed to set clipboard: {e}")
            return False
