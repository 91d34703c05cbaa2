"""
Timed model invoker.

Races one model call against a timeout and reports the outcome as a
ModelAttemptResult instead of raising.
"""

from __future__ import annotations

import asyncio
import time
from typing import Optional

import structlog

from kalry.domain.extraction.models import InferenceRequest, ModelAttemptResult
from kalry.domain.extraction.ports import IModelTransport
from kalry.domain.shared.errors import ModelServiceError

logger = structlog.get_logger(__name__)


class TimedInvoker:
    """
    Single model call with a deadline.

    No retries: one invoke is exactly one transport call. On expiry the
    in-flight call is cancelled and any late result is never observed.

    Example:
        >>> invoker = TimedInvoker(transport)
        >>> attempt = await invoker.invoke("gemini-2.0-flash", request)
        >>> attempt.outcome
        <AttemptOutcome.SUCCESS: 'SUCCESS'>
    """

    def __init__(self, transport: IModelTransport):
        self.transport = transport

    async def invoke(
        self,
        model_id: str,
        request: InferenceRequest,
        timeout: Optional[float] = None,
    ) -> ModelAttemptResult:
        """
        Call one model under a timeout.

        Args:
            model_id: Candidate model identifier
            request: Inference request (prompt + payload)
            timeout: Seconds allowed; defaults to request.per_attempt_timeout

        Returns:
            ModelAttemptResult with SUCCESS, TIMEOUT, TRANSPORT_ERROR or
            SERVICE_ERROR
        """
        deadline = request.per_attempt_timeout if timeout is None else timeout
        started = time.perf_counter()

        try:
            text = await asyncio.wait_for(
                self.transport.generate(
                    model_id,
                    request.prompt,
                    request.payload.media,
                ),
                timeout=deadline,
            )
        except asyncio.TimeoutError:
            attempt = ModelAttemptResult.timeout(
                model_id,
                f"Request timed out after {deadline:g}s",
                _elapsed_ms(started),
            )
        except ModelServiceError as e:
            attempt = ModelAttemptResult.service_error(
                model_id, str(e), e.status_code, _elapsed_ms(started)
            )
        except Exception as e:
            attempt = ModelAttemptResult.transport_error(
                model_id, f"{type(e).__name__}: {e}", _elapsed_ms(started)
            )
        else:
            attempt = ModelAttemptResult.success(model_id, text or "", _elapsed_ms(started))

        logger.info(
            "Model attempt finished",
            model_id=model_id,
            outcome=attempt.outcome.value,
            latency_ms=attempt.latency_ms,
            purpose=request.purpose.value,
        )
        if attempt.text is not None:
            logger.debug("Raw model response", model_id=model_id, text=attempt.text)
        return attempt


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
