"""Tests for API credential lookup."""

from unittest.mock import patch

from snaptrans.core.credentials import SettingsCredentialStore
from snaptrans.core.settings import LLMProviderSettings, Settings


def store_with(provider, api_key):
    settings = Settings()
    settings.set_provider_settings(provider, LLMProviderSettings(api_key=api_key))
    return SettingsCredentialStore(settings)


class TestSettingsCredentialStore:
    def test_key_from_settings(self):
        store = store_with("openai", "  sk-settings  ")
        with patch.dict("os.environ", {"OPENAI_API_KEY": "sk-env"}):
            assert store.load("openai") == "sk-settings"

    def test_env_fallback(self):
        store = SettingsCredentialStore(Settings())
        with patch.dict("os.environ", {"ANTHROPIC_API_KEY": "sk-ant-env"}):
            assert store.load("anthropic") == "sk-ant-env"

    def test_blank_settings_key_uses_env(self):
        store = store_with("gemini", "   ")
        with patch.dict("os.environ", {"GEMINI_API_KEY": "g-env"}):
            assert store.load("gemini") == "g-env"

    def test_absent(self):
        store = SettingsCredentialStore(Settings())
        with patch.dict("os.environ", {}, clear=True):
            assert store.load("openai") is None

    def test_provider_without_env_var(self):
        store = SettingsCredentialStore(Settings())
        with patch.dict("os.environ", {}, clear=True):
            assert store.load("ollama") is None
            assert store.load("unknown-provider") is None

    def test_update_settings(self):
        store = SettingsCredentialStore(Settings())
        settings = Settings()
        settings.set_provider_settings("openai", LLMProviderSettings(api_key="sk-new"))

        store.update_settings(settings)

        with patch.dict("os.environ", {}, clear=True):
            assert store.load("openai") == "sk-new"
