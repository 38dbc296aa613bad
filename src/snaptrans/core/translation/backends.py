"""
Translation Backend Abstraction Layer.

Provides a unified streaming interface for the translation engines:
- Remote: any OpenAI-compatible chat model reached through litellm
- Local: offline Argos Translate packages installed on this machine

The coordinator picks a backend with select_backend() and drives it through
translate_stream() without knowing which engine is behind it.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Iterator, List, Optional, Sequence, Tuple

from ...utils.logger import get_logger
from .errors import BackendError

if TYPE_CHECKING:
    from ..credentials import CredentialStore
    from ..settings import Settings

logger = get_logger(__name__)


class BackendType(Enum):
    """Supported translation backends, keyed by their settings value."""

    REMOTE = "remote"
    LOCAL = "local"


class TranslationBackend(ABC):
    """
    Abstract base class for translation backends.

    Every backend yields the translation as a finite sequence of text chunks.
    A stream is consumed once; any failure while producing it is raised as
    BackendError rather than ending the stream early.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable service name used to attribute results."""
        pass

    @property
    def credential_key(self) -> Optional[str]:
        """Key to look up in the credential store, or None if none is needed."""
        return None

    @abstractmethod
    def translate_stream(
        self, text: str, source_lang: Optional[str], target_lang: str
    ) -> Iterator[str]:
        """
        Translate text, yielding chunks as they become available.

        Args:
            text: Text to translate (already trimmed)
            source_lang: BCP-47 source code, or None if unknown
            target_lang: BCP-47 target code

        Raises:
            BackendError: If the translation cannot be produced
        """
        pass


# BCP-47 codes whose Argos package code differs.
_ARGOS_CODES = {
    "zh-Hans": "zh",
    "zh-Hant": "zt",
    "pt-BR": "pt",
}
_ARGOS_TO_BCP47 = {v: k for k, v in _ARGOS_CODES.items()}


def to_argos_code(code: str) -> str:
    return _ARGOS_CODES.get(code, code)


def from_argos_code(code: str) -> str:
    return _ARGOS_TO_BCP47.get(code, code)


class ArgosBackend(TranslationBackend):
    """
    Offline translation with Argos Translate.

    Argos has no token streaming, so the text is translated line by line and
    each line is yielded as soon as it is done.
    """

    @property
    def name(self) -> str:
        return "Argos Translate"

    @staticmethod
    def installed_pairs() -> List[Tuple[str, str]]:
        try:
            import argostranslate.package

            packages = argostranslate.package.get_installed_packages()
        except Exception as e:
            logger.warning(f"Could not list installed Argos packages: {e}")
            return []

        return [
            (from_argos_code(pkg.from_code), from_argos_code(pkg.to_code))
            for pkg in packages
        ]

    def translate_stream(
        self, text: str, source_lang: Optional[str], target_lang: str
    ) -> Iterator[str]:
        if source_lang is None:
            raise BackendError(
                "Offline translation needs a known source language",
                should_fallback=True,
            )

        import argostranslate.translate

        from_code = to_argos_code(source_lang)
        to_code = to_argos_code(target_lang)

        try:
            translation = argostranslate.translate.get_translation_from_codes(
                from_code, to_code
            )
        except Exception as e:
            raise BackendError(
                f"Offline language pair {source_lang} -> {target_lang} is not installed"
            ) from e

        if translation is None:
            raise BackendError(
                f"Offline language pair {source_lang} -> {target_lang} is not installed"
            )

        logger.debug(f"Argos translating {source_lang} -> {target_lang}")

        for index, line in enumerate(text.split("\n")):
            prefix = "\n" if index > 0 else ""
            if not line.strip():
                if prefix:
                    yield prefix
                continue

            try:
                translated = translation.translate(line)
            except Exception as e:
                raise BackendError(f"Offline translation failed: {e}") from e

            if translated or prefix:
                yield prefix + translated


def local_supported_pairs(settings: "Settings") -> List[Tuple[str, str]]:
    """Language pairs the local backend can handle right now."""
    if settings.local_supported_pairs:
        return [tuple(pair) for pair in settings.local_supported_pairs]
    return ArgosBackend.installed_pairs()


def select_backend(
    preferred_service: str,
    source_lang: Optional[str],
    target_lang: str,
    local_pairs: Sequence[Tuple[str, str]],
) -> BackendType:
    """
    Choose the backend for a request.

    The local backend is used only when it is the preferred service and the
    language pair is available offline; everything else goes remote.
    """
    if preferred_service != BackendType.LOCAL.value:
        return BackendType.REMOTE

    if source_lang is None:
        return BackendType.REMOTE

    if (source_lang, target_lang) in {tuple(pair) for pair in local_pairs}:
        return BackendType.LOCAL

    logger.info(
        f"Local pair {source_lang} -> {target_lang} unavailable, using remote backend"
    )
    return BackendType.REMOTE


def create_backend(
    backend_type: BackendType,
    settings: "Settings",
    credentials: "CredentialStore",
) -> TranslationBackend:
    if backend_type == BackendType.LOCAL:
        return ArgosBackend()

    from .llm_backend import LiteLLMBackend

    return LiteLLMBackend.from_settings(settings, credentials)
