"""
Transport factory.

Creates the model transport for the configured provider.
"""

from typing import Optional

from kalry.config import get_api_key, get_model_provider
from kalry.domain.extraction.ports import IModelTransport
from kalry.domain.shared.errors import ConfigurationError
from kalry.infrastructure.ai.gemini_transport import GeminiTransport
from kalry.infrastructure.ai.openai_transport import OpenAITransport


def create_transport(provider: Optional[str] = None) -> IModelTransport:
    """
    Create a transport from environment configuration.

    Args:
        provider: "gemini" or "openai" (default: KALRY_MODEL_PROVIDER)

    Returns:
        Configured IModelTransport

    Raises:
        ConfigurationError: Unknown provider or missing API key
    """
    provider = (provider or get_model_provider()).lower()
    if provider == "gemini":
        return GeminiTransport(api_key=get_api_key("gemini"))
    if provider == "openai":
        return OpenAITransport(api_key=get_api_key("openai"))
    raise ConfigurationError(f"Unknown model provider: {provider}")
