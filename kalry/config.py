"""Configuration utilities.

Settings come from environment variables, optionally loaded from a .env
file. Timeouts are per purpose: transcription is short, analysis longer.
"""

from __future__ import annotations

import os
from typing import Optional, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from kalry.domain.extraction.catalog import (
    GEMINI_CATALOG,
    GEMINI_TEXT_CATALOG,
    OPENAI_AUDIO_CATALOG,
    OPENAI_CATALOG,
    ModelCatalog,
)
from kalry.domain.extraction.models import PipelinePurpose
from kalry.domain.shared.errors import ConfigurationError

DEFAULT_TRANSCRIBE_TIMEOUT = 12.0
DEFAULT_ANALYZE_TIMEOUT = 30.0
PROVIDERS = ("gemini", "openai")


def load_environment(path: Optional[str] = None) -> None:
    """Load a .env file into os.environ without overriding set variables."""
    load_dotenv(path, override=False)


def get_model_provider() -> str:
    """
    Get the model provider.

    Returns:
        "gemini" (default) or "openai"

    Raises:
        ConfigurationError: Unknown provider
    """
    provider = os.getenv("KALRY_MODEL_PROVIDER", "gemini").strip().lower()
    if provider not in PROVIDERS:
        raise ConfigurationError(f"Unknown model provider: {provider}")
    return provider


def get_api_key(provider: str) -> str:
    """
    Get the API key of a provider.

    Raises:
        ConfigurationError: Key not set
    """
    name = "GOOGLE_API_KEY" if provider == "gemini" else "OPENAI_API_KEY"
    key = os.getenv(name)
    if not key:
        raise ConfigurationError(f"{name} not found in environment")
    return key


def _get_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


def _get_catalog(name: str, default: ModelCatalog) -> ModelCatalog:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return ModelCatalog.from_csv(raw)


class PipelineSettings(BaseModel):
    """
    Pipeline settings.

    Attributes:
        provider: "gemini" or "openai"
        model_priority: Candidates for audio
        text_model_priority: Candidates for typed meal text
        vision_model_priority: Candidates for photos
        transcribe_timeout: Seconds per transcription attempt
        analyze_timeout: Seconds per analysis attempt
        overall_budget: Optional seconds for a whole fallback chain

    Example:
        >>> settings = PipelineSettings.from_env()
        >>> settings.timeout_for(PipelinePurpose.TRANSCRIBE)
        12.0
    """

    model_config = ConfigDict(frozen=True)

    provider: str = "gemini"
    model_priority: Tuple[str, ...] = GEMINI_CATALOG.priority
    text_model_priority: Tuple[str, ...] = GEMINI_TEXT_CATALOG.priority
    vision_model_priority: Tuple[str, ...] = GEMINI_CATALOG.priority
    transcribe_timeout: float = Field(DEFAULT_TRANSCRIBE_TIMEOUT, gt=0)
    analyze_timeout: float = Field(DEFAULT_ANALYZE_TIMEOUT, gt=0)
    overall_budget: Optional[float] = Field(None, gt=0)

    @classmethod
    def from_env(cls) -> PipelineSettings:
        """Read settings from environment variables."""
        provider = get_model_provider()
        if provider == "openai":
            default_catalog = OPENAI_AUDIO_CATALOG
            default_text_catalog = OPENAI_CATALOG
            default_vision_catalog = OPENAI_CATALOG
        else:
            default_catalog = GEMINI_CATALOG
            default_text_catalog = None
            default_vision_catalog = None

        catalog = _get_catalog("KALRY_MODEL_PRIORITY", default_catalog)
        text_catalog = _get_catalog(
            "KALRY_TEXT_MODEL_PRIORITY",
            default_text_catalog or catalog.first(2),
        )
        vision_catalog = _get_catalog(
            "KALRY_VISION_MODEL_PRIORITY", default_vision_catalog or catalog
        )

        return cls(
            provider=provider,
            model_priority=catalog.priority,
            text_model_priority=text_catalog.priority,
            vision_model_priority=vision_catalog.priority,
            transcribe_timeout=_get_float("KALRY_TRANSCRIBE_TIMEOUT", DEFAULT_TRANSCRIBE_TIMEOUT),
            analyze_timeout=_get_float("KALRY_ANALYZE_TIMEOUT", DEFAULT_ANALYZE_TIMEOUT),
            overall_budget=_get_float("KALRY_OVERALL_BUDGET", None),
        )

    def timeout_for(self, purpose: PipelinePurpose) -> float:
        if purpose is PipelinePurpose.TRANSCRIBE:
            return self.transcribe_timeout
        return self.analyze_timeout

    def priority_for(self, purpose: PipelinePurpose) -> Tuple[str, ...]:
        if purpose is PipelinePurpose.ANALYZE_TEXT:
            return self.text_model_priority
        if purpose is PipelinePurpose.ANALYZE_PHOTO:
            return self.vision_model_priority
        return self.model_priority
