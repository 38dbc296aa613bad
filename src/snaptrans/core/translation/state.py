"""Observable translation states and the result record."""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class TranslationResult:
    source_text: str
    translated_text: str
    source_lang: str  # detected code or "unknown"
    target_lang: str
    service_name: str


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Grabbing:
    pass


@dataclass(frozen=True)
class Translating:
    source_text: str


@dataclass(frozen=True)
class Streaming:
    source_text: str
    partial_text: str


@dataclass(frozen=True)
class Completed:
    result: TranslationResult


@dataclass(frozen=True)
class Error:
    message: str


TranslationState = Union[Idle, Grabbing, Translating, Streaming, Completed, Error]

TERMINAL_STATES = (Idle, Completed, Error)


def is_terminal(state: TranslationState) -> bool:
    return isinstance(state, TERMINAL_STATES)
