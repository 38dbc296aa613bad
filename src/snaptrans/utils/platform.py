"""Platform-specific utilities for cross-platform compatibility."""

import platform
import subprocess

from .logger import get_logger

logger = get_logger(__name__)


def get_platform() -> str:
    system = platform.system()
    if system == "Darwin":
        return "macos"
    return system.lower()


def get_subprocess_kwargs(**kwargs) -> dict:
    """Add flags that keep helper processes from flashing a console on Windows."""
    if get_platform() == "windows":
        kwargs.setdefault("creationflags", getattr(subprocess, "CREATE_NO_WINDOW", 0))
    return kwargs


def check_accessibility_permissions() -> bool:

    if get_platform() != "macos":
        return True

    try:
        # Attempt a minimal System Events interaction to test accessibility
        result = subprocess.run(
            ["osascript", "-e", 'tell application "System Events" to keystroke ""'],
            capture_output=True,
            timeout=5,
        )
        return result.returncode == 0
    except subprocess.TimeoutExpired:
        logger.warning("Accessibility permission check timed out")
        return False
    except Exception as e:
        logger.warning(f"Failed to check accessibility permissions: {e}")
        return False


def request_accessibility_permissions() -> None:

    if get_platform() != "macos":
        return

    subprocess.run(
        [
            "open",
            "x-apple.systempreferences:com.apple.preference.security?Privacy_Accessibility",
        ],
        check=False,
    )
