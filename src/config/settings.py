# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for LLM routing, chunking budgets, streaming
behaviour, repository reading and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === LLM PROVIDERS ===
    llm_default_provider: str = "openai"
    llm_default_model: str = "gpt-4o-mini"
    llm_request_timeout_s: float = 120.0

    # Provider API keys
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    groq_api_key: str = ""
    groq_base_url: str = "https://api.groq.com/openai/v1"
    ollama_base_url: str = "http://localhost:11434"

    # Per-component LLM assignment ("provider:model", highest priority)
    llm_batch_analyzer: str = ""
    llm_synthesizer: str = ""

    # === Chunking ===
    chunk_max_tokens: int = 3000
    chars_per_token: int = 4

    # === Batch analysis ===
    analysis_temperature: float = 0.3
    analysis_max_tokens: int = 1000

    # === Synthesis ===
    synthesis_temperature: float = 0.3
    synthesis_max_tokens: int = 2000
    synthesis_max_retries: int = 2

    # === Output stream ===
    stream_batch_analysis: bool = False
    output_chunk_size: int = 512

    # === Repository reader ===
    reader_max_file_bytes: int = 1_000_000
    reader_follow_symlinks: bool = False

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator(
        "chunk_max_tokens",
        "chars_per_token",
        "analysis_max_tokens",
        "synthesis_max_tokens",
        "output_chunk_size",
        "reader_max_file_bytes",
    )
    @classmethod
    def validate_positive(cls, v: int, info) -> int:  # noqa: N805
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @field_validator("analysis_temperature", "synthesis_temperature")
    @classmethod
    def validate_temperature(cls, v: float, info) -> float:  # noqa: N805
        if not 0.0 <= v <= 2.0:
            raise ValueError(f"{info.field_name} must be within [0, 2]")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        for field_name in ("llm_batch_analyzer", "llm_synthesizer"):
            value = getattr(self, field_name)
            if value and ":" not in value:
                errors.append(
                    f"{field_name.upper()} must use the 'provider:model' form, got {value!r}"
                )

        if self.synthesis_max_retries < 0:
            errors.append("SYNTHESIS_MAX_RETRIES must be >= 0")

        if self.llm_request_timeout_s <= 0:
            errors.append("LLM_REQUEST_TIMEOUT_S must be > 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def chunk_max_chars(self) -> int:
        """Largest slice of raw text that fits one token budget."""
        return self.chunk_max_tokens * self.chars_per_token


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-run config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
