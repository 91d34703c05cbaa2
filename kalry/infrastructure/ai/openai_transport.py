"""
OpenAI model transport.

Chat completions with images as data URLs and audio as input_audio parts.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from kalry.domain.extraction.models import InlineMedia
from kalry.domain.shared.errors import ModelServiceError, ModelTransportError

logger = structlog.get_logger(__name__)

_AUDIO_FORMATS = {
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
}


def build_content(prompt: str, media: Optional[InlineMedia]) -> List[Dict[str, Any]]:
    """
    Build user message content parts.

    Example:
        >>> build_content("Describe", None)
        [{'type': 'text', 'text': 'Describe'}]
    """
    parts: List[Dict[str, Any]] = [{"type": "text", "text": prompt}]
    if media is None:
        return parts

    if media.mime_type.startswith("image/"):
        parts.append(
            {
                "type": "image_url",
                "image_url": {"url": f"data:{media.mime_type};base64,{media.base64_data}"},
            }
        )
    else:
        subtype = media.mime_type.split("/")[-1]
        parts.append(
            {
                "type": "input_audio",
                "input_audio": {
                    "data": media.base64_data,
                    "format": _AUDIO_FORMATS.get(media.mime_type, subtype),
                },
            }
        )
    return parts


class OpenAITransport:
    """
    IModelTransport adapter for OpenAI.

    The SDK's own retries are disabled; one generate() is one request.

    Example:
        >>> transport = OpenAITransport(api_key="sk-...")
        >>> text = await transport.generate("gpt-4o-mini", prompt, media)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
        temperature: float = 0.2,
        max_tokens: int = 2000,
    ):
        """
        Initialize transport.

        Args:
            api_key: OpenAI API key (ignored when client is given)
            client: Optional pre-configured AsyncOpenAI client (for testing)
            temperature: Sampling temperature
            max_tokens: Max tokens in response

        Raises:
            ValueError: Neither api_key nor client provided
        """
        if client is None:
            if not api_key:
                raise ValueError("OPENAI_API_KEY is required for OpenAITransport")
            client = AsyncOpenAI(api_key=api_key, max_retries=0)
        self._client = client
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def generate(
        self,
        model_id: str,
        prompt: str,
        media: Optional[InlineMedia] = None,
    ) -> str:
        """
        Generate text from an OpenAI model.

        Raises:
            ModelServiceError: OpenAI answered with an error status
            ModelTransportError: OpenAI could not be reached
        """
        params: Dict[str, Any] = {
            "model": model_id,
            "messages": [{"role": "user", "content": build_content(prompt, media)}],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

        logger.debug(
            "OpenAI request",
            model_id=model_id,
            mime_type=media.mime_type if media else None,
        )
        try:
            completion = await self._client.chat.completions.create(**params)
        except APIStatusError as e:
            raise ModelServiceError(f"{e.status_code} {e.message}", status_code=e.status_code) from e
        except APIConnectionError as e:
            raise ModelTransportError(f"{type(e).__name__}: {e}") from e

        if not completion.choices:
            return ""
        return completion.choices[0].message.content or ""
