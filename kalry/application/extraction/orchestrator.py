"""
Fallback orchestrator.

Tries candidate models strictly in priority order until one returns
usable text.
"""

from __future__ import annotations

import time
from typing import Callable, List

import structlog

from kalry.application.extraction.invoker import TimedInvoker
from kalry.domain.extraction.models import (
    InferenceRequest,
    ModelAttemptResult,
    OrchestrationSuccess,
)
from kalry.domain.shared.errors import AllModelsFailedError, ConfigurationError

logger = structlog.get_logger(__name__)


class FallbackOrchestrator:
    """
    Sequential model fallback.

    Invariants:
    - One outstanding call at a time, in model_priority order
    - Stops at the first usable attempt (success with non-blank text)
    - Every attempt is recorded, in order
    - With overall_budget, each attempt's timeout is clipped to the
      remaining budget; once it is spent the remaining candidates are
      recorded as TIMEOUT without being called

    Example:
        >>> orchestrator = FallbackOrchestrator(TimedInvoker(transport))
        >>> success = await orchestrator.run(request)
        >>> success.model_id
        'gemini-1.5-flash'
    """

    def __init__(self, invoker: TimedInvoker, clock: Callable[[], float] = time.monotonic):
        self.invoker = invoker
        self._clock = clock

    async def run(self, request: InferenceRequest) -> OrchestrationSuccess:
        """
        Run the fallback chain.

        Args:
            request: Inference request with a non-empty model_priority

        Returns:
            OrchestrationSuccess with the winning text and all attempts

        Raises:
            ConfigurationError: Empty model priority list
            AllModelsFailedError: Every candidate failed
        """
        if not request.model_priority:
            raise ConfigurationError("No AI models configured")

        attempts: List[ModelAttemptResult] = []
        started = self._clock()

        for model_id in request.model_priority:
            timeout = request.per_attempt_timeout

            if request.overall_budget is not None:
                remaining = request.overall_budget - (self._clock() - started)
                if remaining <= 0:
                    attempts.append(
                        ModelAttemptResult.timeout(model_id, "Overall time budget exhausted")
                    )
                    continue
                timeout = min(timeout, remaining)

            attempt = await self.invoker.invoke(model_id, request, timeout=timeout)
            attempts.append(attempt)

            if attempt.is_usable():
                logger.info(
                    "Model fallback succeeded",
                    model_id=model_id,
                    attempts=len(attempts),
                )
                return OrchestrationSuccess(
                    raw_text=attempt.text or "",
                    model_id=model_id,
                    attempts=tuple(attempts),
                )

            logger.warning(
                "Model attempt failed, trying next",
                model_id=model_id,
                outcome=attempt.outcome.value,
                detail=attempt.detail,
            )

        logger.error("All models failed", attempts=len(attempts))
        raise AllModelsFailedError(attempts)
