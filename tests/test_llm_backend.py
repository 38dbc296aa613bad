"""
Tests for the litellm translation backend.

Verifies message construction, streaming and error mapping.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from litellm.exceptions import (
    APIConnectionError,
    AuthenticationError,
    BadRequestError,
    RateLimitError,
    Timeout,
)

from snaptrans.core.settings import LLMProviderSettings, Settings
from snaptrans.core.translation import BackendError, LiteLLMBackend

COMPLETION = "snaptrans.core.translation.llm_backend.completion"


def chunk(content):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


def keys(**values):
    store = MagicMock()
    store.load.side_effect = lambda key: values.get(key)
    return store


class TestModelName:
    def test_known_prefix_kept(self):
        assert LiteLLMBackend.format_model_name("ollama/qwen2", "ollama") == "ollama/qwen2"

    def test_provider_prefix_added(self):
        assert (
            LiteLLMBackend.format_model_name("gemini-2.5-flash", "gemini")
            == "gemini/gemini-2.5-flash"
        )

    def test_openai_unprefixed(self):
        assert LiteLLMBackend.format_model_name("gpt-4o-mini", "openai") == "gpt-4o-mini"


class TestFromSettings:
    def test_default_model_for_provider(self):
        backend = LiteLLMBackend.from_settings(Settings(), keys())
        assert backend.provider == "openai"
        assert backend.model == "gpt-4o-mini"
        assert backend.timeout == 30.0

    def test_provider_settings_applied(self):
        settings = Settings(llm_provider="ollama", request_timeout=5.0)
        settings.set_provider_settings(
            "ollama", LLMProviderSettings(model="qwen2", api_base="http://gpu:11434")
        )

        backend = LiteLLMBackend.from_settings(settings, keys())

        assert backend.model == "ollama/qwen2"
        assert backend.api_base == "http://gpu:11434"
        assert backend.timeout == 5.0
        assert backend.name == "Ollama (Local)"
        assert backend.credential_key is None

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown LLM provider"):
            LiteLLMBackend(provider="nope")


class TestBuildMessages:
    def test_system_prompt_mentions_languages(self):
        backend = LiteLLMBackend()
        messages = backend.build_messages("hello", "en", "zh-Hans")

        assert messages[0]["role"] == "system"
        assert "Chinese (Simplified)" in messages[0]["content"]
        assert "The source text is in English." in messages[0]["content"]
        assert messages[1] == {"role": "user", "content": "hello"}

    def test_unknown_source_not_mentioned(self):
        backend = LiteLLMBackend()
        messages = backend.build_messages("hello", None, "ja")
        assert "source text" not in messages[0]["content"]

    def test_merged_prompt_without_system_support(self):
        backend = LiteLLMBackend()
        backend._supports_system_messages = False

        messages = backend.build_messages("hello", "en", "fr")

        assert len(messages) == 1
        assert messages[0]["role"] == "user"
        assert messages[0]["content"].endswith("\n\nhello")
        assert "French" in messages[0]["content"]


class TestTranslateStream:
    """Tests for streaming and error mapping."""

    @patch(COMPLETION)
    def test_streams_content(self, mock_completion):
        mock_completion.return_value = iter(
            [chunk("你好"), SimpleNamespace(choices=[]), chunk(None), chunk("世界")]
        )
        backend = LiteLLMBackend(credentials=keys(openai="sk-test"))

        chunks = list(backend.translate_stream("hello world", "en", "zh-Hans"))

        assert chunks == ["你好", "世界"]
        kwargs = mock_completion.call_args.kwargs
        assert kwargs["stream"] is True
        assert kwargs["api_key"] == "sk-test"
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["timeout"] == 30.0
        assert "api_base" not in kwargs

    @patch(COMPLETION)
    def test_missing_api_key(self, mock_completion):
        backend = LiteLLMBackend(credentials=keys())

        with pytest.raises(BackendError, match="No API key configured for OpenAI"):
            list(backend.translate_stream("hello", "en", "zh-Hans"))

        mock_completion.assert_not_called()

    @patch(COMPLETION)
    def test_keyless_provider_uses_default_base(self, mock_completion):
        mock_completion.return_value = iter([chunk("hola")])
        backend = LiteLLMBackend(provider="ollama", model="ollama/llama3.3")

        assert list(backend.translate_stream("hello", "en", "es")) == ["hola"]

        kwargs = mock_completion.call_args.kwargs
        assert kwargs["api_base"] == "http://localhost:11434"
        assert "api_key" not in kwargs

    @patch(COMPLETION)
    def test_bad_request_is_not_retried(self, mock_completion):
        mock_completion.side_effect = BadRequestError(
            message="invalid model", model="gpt-4o-mini", llm_provider="openai"
        )
        backend = LiteLLMBackend(credentials=keys(openai="sk-test"))

        with pytest.raises(BackendError) as exc_info:
            list(backend.translate_stream("hello", "en", "fr"))

        assert not exc_info.value.should_fallback
        assert "rejected the request" in exc_info.value.message

    @pytest.mark.parametrize(
        "error, expected",
        [
            (
                AuthenticationError(
                    message="bad key", llm_provider="openai", model="gpt-4o-mini"
                ),
                "authentication failed",
            ),
            (
                RateLimitError(
                    message="slow down", llm_provider="openai", model="gpt-4o-mini"
                ),
                "rate limit",
            ),
            (
                Timeout(message="timed out", model="gpt-4o-mini", llm_provider="openai"),
                "did not respond",
            ),
            (
                APIConnectionError(
                    message="refused", llm_provider="openai", model="gpt-4o-mini"
                ),
                "Could not connect",
            ),
            (RuntimeError("unexpected"), "translation failed"),
        ],
    )
    def test_errors_allow_fallback(self, error, expected):
        backend = LiteLLMBackend(credentials=keys(openai="sk-test"))

        with patch(COMPLETION, side_effect=error):
            with pytest.raises(BackendError) as exc_info:
                list(backend.translate_stream("hello", "en", "fr"))

        assert exc_info.value.should_fallback
        assert expected in exc_info.value.message

    @patch(COMPLETION)
    def test_error_mid_stream(self, mock_completion):
        def stream():
            yield chunk("Bon")
            raise APIConnectionError(
                message="reset", llm_provider="openai", model="gpt-4o-mini"
            )

        mock_completion.return_value = stream()
        backend = LiteLLMBackend(credentials=keys(openai="sk-test"))
        received = []

        with pytest.raises(BackendError, match="Could not connect"):
            for piece in backend.translate_stream("hello", "en", "fr"):
                received.append(piece)

        assert received == ["Bon"]
