"""
API credential lookup.

Keys are stored per provider in the settings file, with the provider's
environment variable as a fallback. Lookup is local and never fails
partially: a key is either present or absent.
"""

import os
from typing import Optional, Protocol

from .settings import Settings


class CredentialStore(Protocol):
    def load(self, key: str) -> Optional[str]: ...


class SettingsCredentialStore:
    def __init__(self, settings: Settings):
        self._settings = settings

    def update_settings(self, settings: Settings) -> None:
        self._settings = settings

    def load(self, key: str) -> Optional[str]:
        from .translation.llm_backend import PROVIDERS

        api_key = self._settings.get_provider_settings(key).api_key
        if api_key and api_key.strip():
            return api_key.strip()

        provider = PROVIDERS.get(key)
        env_var = provider[2] if provider else None
        if env_var:
            value = os.environ.get(env_var, "").strip()
            if value:
                return value

        return None
