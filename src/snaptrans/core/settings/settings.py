"""
Settings management with JSON persistence.

Handles loading, saving, and validating application settings.
Uses platformdirs for cross-platform directory resolution.
"""

import json
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from platformdirs import user_config_path
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...utils.logger import get_logger
from ..languages import AUTO_DETECT, is_supported

logger = get_logger(__name__)

APP_NAME = "snaptrans"

DEFAULT_SYSTEM_PROMPT = (
    "You are a professional translator. Translate the user's text into "
    "{target_lang}. Preserve formatting and line breaks. Reply with the "
    "translation only, without explanations."
)


def get_config_dir() -> Path:
    return user_config_path(APP_NAME, ensure_exists=True)


class LLMProviderSettings(BaseModel):
    model_config = ConfigDict(extra="ignore", validate_assignment=False)

    model: str = ""
    api_key: Optional[str] = None
    api_base: Optional[str] = None

    def to_dict(self) -> dict:
        return self.model_dump()

    @classmethod
    def from_dict(cls, data: dict) -> "LLMProviderSettings":
        return cls.model_validate(data)


class Settings(BaseModel):
    model_config = ConfigDict(validate_assignment=False)

    target_language: str = "zh-Hans"
    source_language: str = AUTO_DETECT
    language_detection_enabled: bool = True
    detection_confidence_threshold: float = Field(default=0.3, ge=0.1, le=0.8)

    preferred_service: str = "remote"
    local_supported_pairs: List[Tuple[str, str]] = Field(default_factory=list)

    llm_provider: str = "openai"
    llm_provider_settings: Dict[str, dict] = Field(default_factory=dict)
    system_prompt_template: str = DEFAULT_SYSTEM_PROMPT
    request_timeout: float = Field(default=30.0, gt=0)

    @field_validator("target_language")
    @classmethod
    def target_language_supported(cls, v):
        if not isinstance(v, str) or not is_supported(v):
            raise ValueError(f"Unsupported target language: {v!r}")
        return v

    @field_validator("source_language")
    @classmethod
    def source_language_supported(cls, v):
        if not isinstance(v, str) or (v != AUTO_DETECT and not is_supported(v)):
            raise ValueError(f"Unsupported source language: {v!r}")
        return v

    @field_validator("preferred_service")
    @classmethod
    def preferred_service_known(cls, v):
        if v not in ("remote", "local"):
            raise ValueError("preferred_service must be 'remote' or 'local'")
        return v

    @field_validator("system_prompt_template")
    @classmethod
    def prompt_not_empty(cls, v):
        if not isinstance(v, str) or not v.strip():
            raise ValueError("system_prompt_template must be a non-empty string")
        return v

    @property
    def fixed_source_language(self) -> Optional[str]:
        if self.source_language == AUTO_DETECT:
            return None
        return self.source_language

    @classmethod
    def load(cls) -> "Settings":
        config_file = get_config_dir() / "settings.json"

        if config_file.exists():
            try:
                with open(config_file, "r", encoding="utf-8") as f:
                    data = json.load(f)

                if not isinstance(data, dict):
                    raise TypeError("settings.json must contain an object")

                # Filter to valid keys only
                valid_keys = cls.model_fields.keys()
                filtered_data = {k: v for k, v in data.items() if k in valid_keys}

                return cls._load_with_fallbacks(filtered_data)
            except (json.JSONDecodeError, TypeError) as e:
                logger.warning(
                    f"Could not load settings: {e}. Using defaults.", exc_info=True
                )
                return cls()

        return cls()

    @classmethod
    def _load_with_fallbacks(cls, data: dict) -> "Settings":
        """Load settings with field-level fallback to defaults on validation errors."""
        defaults = cls()
        result_data = {}

        for field_name in cls.model_fields:
            if field_name in data:
                try:
                    validated = cls.model_validate(
                        {**defaults.model_dump(), field_name: data[field_name]}
                    )
                    result_data[field_name] = getattr(validated, field_name)
                except Exception:
                    default_val = getattr(defaults, field_name)
                    logger.warning(
                        f"Invalid {field_name} {data[field_name]!r}, resetting to {default_val}"
                    )
                    result_data[field_name] = default_val
            else:
                result_data[field_name] = getattr(defaults, field_name)

        return cls.model_construct(**result_data)

    def save(self) -> None:
        config_file = get_config_dir() / "settings.json"

        data = self.model_dump()

        with open(config_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def reset_to_defaults(self) -> None:
        default = Settings()
        for key, value in default.model_dump().items():
            setattr(self, key, value)

    def get_provider_settings(self, provider_id: str) -> LLMProviderSettings:
        if provider_id in self.llm_provider_settings:
            return LLMProviderSettings.model_validate(
                self.llm_provider_settings[provider_id]
            )
        return LLMProviderSettings()

    def set_provider_settings(
        self, provider_id: str, settings: LLMProviderSettings
    ) -> None:
        self.llm_provider_settings[provider_id] = settings.model_dump()

    @property
    def llm_model(self) -> str:
        return self.get_provider_settings(self.llm_provider).model

    @llm_model.setter
    def llm_model(self, value: str) -> None:
        settings = self.get_provider_settings(self.llm_provider)
        settings.model = value
        self.set_provider_settings(self.llm_provider, settings)

    @property
    def llm_api_key(self) -> Optional[str]:
        return self.get_provider_settings(self.llm_provider).api_key

    @llm_api_key.setter
    def llm_api_key(self, value: Optional[str]) -> None:
        settings = self.get_provider_settings(self.llm_provider)
        settings.api_key = value
        self.set_provider_settings(self.llm_provider, settings)

    @property
    def llm_api_base(self) -> Optional[str]:
        return self.get_provider_settings(self.llm_provider).api_base

    @llm_api_base.setter
    def llm_api_base(self, value: Optional[str]) -> None:
        settings = self.get_provider_settings(self.llm_provider)
        settings.api_base = value
        self.set_provider_settings(self.llm_provider, settings)


_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings.load()
    return _settings_instance
