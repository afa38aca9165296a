"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class LLMSettings:
    """
    Reasoning service settings shared by every oracle-backed stage.
    """

    adapter: str = "openai"
    api_key: str | None = None
    base_url: str | None = None
    primary_model: str = "gpt-4o"
    light_model: str = "gpt-4o-mini"
    max_tokens: int = 4096
    max_retries: int = 2
    backoff_seconds: float = 1.0


@dataclass(frozen=True)
class GoogleSheetsSettings:
    """
    Service-account credentials for the Sheets API.

    Either a credentials file path or an inline email + private key pair.
    """

    credentials_path: str | None = None
    service_account_email: str | None = None
    private_key: str | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.credentials_path or (self.service_account_email and self.private_key))


@dataclass(frozen=True)
class ExternalHTTPSettings:
    """
    Shared HTTP behavior settings for external connectors.
    """

    timeout_seconds: float = 30.0
    max_retries: int = 2
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0


@dataclass(frozen=True)
class PipelineSettings:
    """
    Runtime bounds for one pipeline execution.
    """

    timeout_seconds: float = 120.0
    loader_workers: int = 5
    lock_writes: bool = True


@lru_cache(maxsize=1)
def get_llm_settings() -> LLMSettings:
    """
    Return cached LLM settings from environment variables.
    """

    return LLMSettings(
        adapter=_get_str_env("LLM_ADAPTER", "openai").lower(),
        api_key=_get_optional_str_env("LLM_API_KEY") or _get_optional_str_env("OPENAI_API_KEY"),
        base_url=_get_optional_str_env("LLM_BASE_URL"),
        primary_model=_get_str_env("LLM_MODEL_PRIMARY", "gpt-4o"),
        light_model=_get_str_env("LLM_MODEL_LIGHT", "gpt-4o-mini"),
        max_tokens=max(256, _get_int_env("LLM_MAX_TOKENS", 4096)),
        max_retries=max(0, _get_int_env("LLM_MAX_RETRIES", 2)),
        backoff_seconds=max(0.0, _get_float_env("LLM_BACKOFF_SECONDS", 1.0)),
    )


@lru_cache(maxsize=1)
def get_google_sheets_settings() -> GoogleSheetsSettings:
    """
    Return cached Google service-account settings.

    GOOGLE_PRIVATE_KEY may carry escaped newlines when set through a
    single-line env file.
    """

    private_key = _get_optional_str_env("GOOGLE_PRIVATE_KEY")
    if private_key is not None:
        private_key = private_key.replace("\\n", "\n")
    return GoogleSheetsSettings(
        credentials_path=_get_optional_str_env("GOOGLE_APPLICATION_CREDENTIALS"),
        service_account_email=_get_optional_str_env("GOOGLE_SERVICE_ACCOUNT_EMAIL"),
        private_key=private_key,
    )


@lru_cache(maxsize=1)
def get_external_http_settings() -> ExternalHTTPSettings:
    """
    Return shared connector HTTP settings from environment variables.
    """

    return ExternalHTTPSettings(
        timeout_seconds=max(1.0, _get_float_env("EXTERNAL_HTTP_TIMEOUT_SECONDS", 30.0)),
        max_retries=max(0, _get_int_env("EXTERNAL_HTTP_MAX_RETRIES", 2)),
        backoff_initial_seconds=max(0.1, _get_float_env("EXTERNAL_HTTP_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("EXTERNAL_HTTP_BACKOFF_MULTIPLIER", 2.0)),
    )


@lru_cache(maxsize=1)
def get_pipeline_settings() -> PipelineSettings:
    """
    Return cached pipeline runtime settings.
    """

    return PipelineSettings(
        timeout_seconds=max(1.0, _get_float_env("PIPELINE_TIMEOUT_SECONDS", 120.0)),
        loader_workers=max(1, _get_int_env("PIPELINE_LOADER_WORKERS", 5)),
        lock_writes=_get_bool_env("PIPELINE_LOCK_WRITES", True),
    )


def get_log_level() -> str:
    return _get_str_env("LOG_LEVEL", "INFO").upper()

