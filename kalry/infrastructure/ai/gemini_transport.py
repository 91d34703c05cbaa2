"""
Gemini model transport.

Sends prompts with inline audio or images to Gemini through the
google-genai async client.
"""

from __future__ import annotations

from typing import Any, List, Optional

import httpx
import structlog
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from kalry.domain.extraction.models import InlineMedia
from kalry.domain.shared.errors import ModelServiceError, ModelTransportError

logger = structlog.get_logger(__name__)


class GeminiTransport:
    """
    IModelTransport adapter for Gemini.

    One call per generate(); retries and timeouts belong to the caller.

    Example:
        >>> transport = GeminiTransport(api_key="...")
        >>> text = await transport.generate("gemini-2.0-flash", prompt, media)
    """

    def __init__(self, api_key: Optional[str] = None, client: Optional[genai.Client] = None):
        """
        Initialize transport.

        Args:
            api_key: Google API key (ignored when client is given)
            client: Optional pre-configured genai.Client (for testing)

        Raises:
            ValueError: Neither api_key nor client provided
        """
        if client is None:
            if not api_key:
                raise ValueError("GOOGLE_API_KEY is required for GeminiTransport")
            client = genai.Client(api_key=api_key)
        self._client = client

    async def generate(
        self,
        model_id: str,
        prompt: str,
        media: Optional[InlineMedia] = None,
    ) -> str:
        """
        Generate text from a Gemini model.

        Raises:
            ModelServiceError: Gemini answered with an error status
            ModelTransportError: Gemini could not be reached
        """
        contents: List[Any] = [prompt]
        if media is not None:
            contents.append(types.Part.from_bytes(data=media.data, mime_type=media.mime_type))

        logger.debug(
            "Gemini request",
            model_id=model_id,
            mime_type=media.mime_type if media else None,
        )
        try:
            response = await self._client.aio.models.generate_content(
                model=model_id,
                contents=contents,
            )
        except genai_errors.APIError as e:
            raise ModelServiceError(f"{e.code} {e.message or e}", status_code=e.code) from e
        except httpx.TransportError as e:
            raise ModelTransportError(f"{type(e).__name__}: {e}") from e
        except OSError as e:
            raise ModelTransportError(str(e)) from e

        return response.text or ""
