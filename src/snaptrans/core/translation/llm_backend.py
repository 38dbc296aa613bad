from typing import TYPE_CHECKING, Dict, Iterator, List, Optional

import litellm
from litellm import completion
from litellm.exceptions import (
    APIConnectionError,
    AuthenticationError,
    BadRequestError,
    RateLimitError,
    Timeout,
)

from ...utils.logger import get_logger
from ..languages import get_display_name
from ..settings.settings import DEFAULT_SYSTEM_PROMPT
from .backends import TranslationBackend
from .errors import BackendError

if TYPE_CHECKING:
    from ..credentials import CredentialStore
    from ..settings import Settings

logger = get_logger(__name__)


# provider id -> (display name, default api base, api key env var)
PROVIDERS: Dict[str, tuple] = {
    "openai": ("OpenAI", None, "OPENAI_API_KEY"),
    "anthropic": ("Anthropic", None, "ANTHROPIC_API_KEY"),
    "openrouter": ("OpenRouter", None, "OPENROUTER_API_KEY"),
    "ollama": ("Ollama (Local)", "http://localhost:11434", None),
    "gemini": ("Google Gemini", None, "GEMINI_API_KEY"),
    "other": ("Other", None, None),
}

DEFAULT_MODELS: Dict[str, str] = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-haiku-20241022",
    "openrouter": "openrouter/auto",
    "ollama": "ollama/llama3.3",
    "gemini": "gemini/gemini-2.5-flash",
    "other": "gpt-4o-mini",
}


class LiteLLMBackend(TranslationBackend):
    """Streams translations from a chat completion model via litellm."""

    @staticmethod
    def format_model_name(model: str, provider: str) -> str:
        known_prefixes = (
            "openrouter/",
            "ollama/",
            "gemini/",
            "openai/",
            "anthropic/",
            "azure/",
            "huggingface/",
        )

        if model.startswith(known_prefixes):
            return model

        prefix_map = {
            "openrouter": "openrouter/",
            "ollama": "ollama/",
            "gemini": "gemini/",
        }

        prefix = prefix_map.get(provider)
        if prefix:
            return f"{prefix}{model}"

        return model

    @classmethod
    def from_settings(
        cls, settings: "Settings", credentials: "CredentialStore"
    ) -> "LiteLLMBackend":
        provider = settings.llm_provider
        model = settings.llm_model or DEFAULT_MODELS.get(provider, "gpt-4o-mini")
        return cls(
            provider=provider,
            model=cls.format_model_name(model, provider),
            credentials=credentials,
            api_base=settings.llm_api_base,
            system_prompt=settings.system_prompt_template,
            timeout=settings.request_timeout,
        )

    def __init__(
        self,
        provider: str = "openai",
        model: str = "gpt-4o-mini",
        credentials: Optional["CredentialStore"] = None,
        api_base: Optional[str] = None,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        timeout: float = 30.0,
    ):
        if provider not in PROVIDERS:
            raise ValueError(f"Unknown LLM provider: {provider!r}")

        self.provider = provider
        self.model = model
        self.api_base = api_base or PROVIDERS[provider][1]
        self.system_prompt = system_prompt
        self.timeout = timeout
        self._credentials = credentials

        model_info = litellm.model_cost.get(model, {})
        self._supports_system_messages = model_info.get(
            "supports_system_messages", True
        )

    @property
    def name(self) -> str:
        return PROVIDERS[self.provider][0]

    @property
    def credential_key(self) -> Optional[str]:
        if PROVIDERS[self.provider][2] is None:
            return None
        return self.provider

    def build_messages(
        self, text: str, source_lang: Optional[str], target_lang: str
    ) -> List[dict]:
        prompt = self.system_prompt.replace(
            "{target_lang}", get_display_name(target_lang)
        )
        if source_lang is not None:
            prompt += f"\nThe source text is in {get_display_name(source_lang)}."

        if self._supports_system_messages:
            return [
                {"role": "system", "content": prompt},
                {"role": "user", "content": text},
            ]

        logger.debug(f"Merged system prompt with user prompt for {self.model}")
        return [{"role": "user", "content": f"{prompt}\n\n{text}"}]

    def _load_api_key(self) -> Optional[str]:
        key = self.credential_key
        if key is None or self._credentials is None:
            return None
        return self._credentials.load(key)

    def translate_stream(
        self, text: str, source_lang: Optional[str], target_lang: str
    ) -> Iterator[str]:
        api_key = self._load_api_key()
        if self.credential_key is not None and not api_key:
            raise BackendError(f"No API key configured for {self.name}")

        kwargs = {
            "model": self.model,
            "messages": self.build_messages(text, source_lang, target_lang),
            "stream": True,
            "timeout": self.timeout,
        }
        if api_key:
            kwargs["api_key"] = api_key
        if self.api_base:
            kwargs["api_base"] = self.api_base

        logger.info(
            f"Requesting translation from {self.model} ({len(text)} chars -> {target_lang})"
        )

        try:
            response = completion(**kwargs)
            for chunk in response:
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    yield content
        except BadRequestError as e:
            raise BackendError(
                f"{self.name} rejected the request: {e}", should_fallback=False
            ) from e
        except AuthenticationError as e:
            raise BackendError(
                f"{self.name} authentication failed. Check your API key."
            ) from e
        except RateLimitError as e:
            raise BackendError(f"{self.name} rate limit or quota exceeded") from e
        except Timeout as e:
            raise BackendError(
                f"{self.name} did not respond within {self.timeout:.0f}s"
            ) from e
        except APIConnectionError as e:
            raise BackendError(f"Could not connect to {self.name}: {e}") from e
        except Exception as e:
            logger.error(f"LLM translation failed: {e}", exc_info=True)
            raise BackendError(f"{self.name} translation failed: {e}") from e
