"""
Ports (Interfaces) for nutrition extraction.

Defines the model service boundary used by the TimedInvoker. Adapters
live in kalry.infrastructure.ai.

Design Pattern: Ports & Adapters (Hexagonal Architecture)
"""

from typing import Optional, Protocol, runtime_checkable

from kalry.domain.extraction.models import InlineMedia


@runtime_checkable
class IModelTransport(Protocol):
    """
    Port for a generative model service.

    Sends a prompt (plus optional inline media) to a named model and
    returns its free-form text. The output contract in the prompt is
    advisory; callers must sanitize and validate.

    Implementations must translate SDK failures into:
    - ModelServiceError: the service answered with an error
    - ModelTransportError: the request never reached the service
    """

    async def generate(
        self,
        model_id: str,
        prompt: str,
        media: Optional[InlineMedia] = None,
    ) -> str:
        """
        Generate text from a model.

        Args:
            model_id: Candidate model identifier
            prompt: Prompt text
            media: Optional audio or image

        Returns:
            Raw response text (may be empty)

        Raises:
            ModelServiceError: Service-side error
            ModelTransportError: Connectivity error
        """
        ...
