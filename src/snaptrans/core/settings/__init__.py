"""Settings and persistence utilities."""

from .settings import (
    DEFAULT_SYSTEM_PROMPT,
    LLMProviderSettings,
    Settings,
    get_config_dir,
    get_settings,
)

__all__ = [
    "DEFAULT_SYSTEM_PROMPT",
    "LLMProviderSettings",
    "Settings",
    "get_config_dir",
    "get_settings",
]
