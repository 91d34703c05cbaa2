"""
Nutrition pipeline.

Single entry point for callers: captured input in, PipelineResult out.
Wires the fallback orchestrator, sanitizer, validator and classifier.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Tuple

import structlog

from kalry.application.extraction.invoker import TimedInvoker
from kalry.application.extraction.orchestrator import FallbackOrchestrator
from kalry.config import PipelineSettings
from kalry.domain.extraction.classifier import ErrorClassifier, user_message
from kalry.domain.extraction.models import (
    CapturedInput,
    InferenceRequest,
    PipelinePurpose,
    PipelineResult,
    TranscriptionResult,
)
from kalry.domain.extraction.ports import IModelTransport
from kalry.domain.extraction.prompts import build_prompt
from kalry.domain.extraction.sanitizer import ResponseSanitizer
from kalry.domain.extraction.validator import SchemaValidator
from kalry.domain.shared.errors import ValidationError

logger = structlog.get_logger(__name__)


class NutritionPipeline:
    """
    Captured meal to validated nutrition record.

    Flow:
    1. Build an InferenceRequest (prompt, priority, timeouts) for the purpose
    2. FallbackOrchestrator tries models in order
    3. ResponseSanitizer cuts the payload out of the winning text
    4. SchemaValidator builds the NutritionRecord (analysis purposes)
    5. Any failure is classified and paired with a user message

    Only exhaustion of the model list, or a rejected winning response,
    surfaces as a failed result. Callers never see raw exceptions.

    Example:
        >>> pipeline = NutritionPipeline(transport, PipelineSettings())
        >>> result = await pipeline.run(CapturedInput.from_text("200g black beans"),
        ...                             PipelinePurpose.ANALYZE_TEXT)
        >>> result.record.total.calories
        240.0
    """

    def __init__(
        self,
        transport: IModelTransport,
        settings: Optional[PipelineSettings] = None,
        sanitizer: Optional[ResponseSanitizer] = None,
        validator: Optional[SchemaValidator] = None,
        classifier: Optional[ErrorClassifier] = None,
    ):
        self.settings = settings or PipelineSettings()
        self.orchestrator = FallbackOrchestrator(TimedInvoker(transport))
        self.sanitizer = sanitizer or ResponseSanitizer()
        self.validator = validator or SchemaValidator()
        self.classifier = classifier or ErrorClassifier()

    def build_request(
        self, captured: CapturedInput, purpose: PipelinePurpose
    ) -> InferenceRequest:
        """
        Build the immutable request for one user action.

        Raises:
            ValidationError: Payload kind does not fit the purpose
        """
        if purpose is PipelinePurpose.ANALYZE_TEXT and captured.text is None:
            raise ValidationError("Text analysis needs typed meal text")
        if purpose is not PipelinePurpose.ANALYZE_TEXT and captured.media is None:
            raise ValidationError(f"{purpose.value} needs an audio or image payload")

        return InferenceRequest(
            payload=captured,
            prompt=build_prompt(purpose, captured),
            model_priority=self.settings.priority_for(purpose),
            per_attempt_timeout=self.settings.timeout_for(purpose),
            overall_budget=self.settings.overall_budget,
            purpose=purpose,
        )

    async def run(
        self,
        captured: CapturedInput,
        purpose: PipelinePurpose = PipelinePurpose.ANALYZE,
    ) -> PipelineResult:
        """
        Run the pipeline for one purpose.

        Args:
            captured: Audio, photo or typed text
            purpose: What to produce

        Returns:
            PipelineResult (ok with record/transcription, or failed with
            category and user message)
        """
        try:
            request = self.build_request(captured, purpose)
            success = await self.orchestrator.run(request)

            if not purpose.is_structured():
                payload = self.sanitizer.extract_transcription(success.raw_text)
                logger.info("Transcription succeeded", model_id=success.model_id)
                return PipelineResult.transcribed(
                    TranscriptionResult(text=payload.text, model_id=success.model_id)
                )

            payload = self.sanitizer.extract(success.raw_text, structured=True)
            record = self.validator.validate(payload.text, model_id=success.model_id)
        except Exception as e:
            return self._failure(purpose, e)

        logger.info(
            "Nutrition analysis succeeded",
            purpose=purpose.value,
            model_id=record.model_id,
            items=len(record.items),
            calories=record.total.calories,
        )
        return PipelineResult.succeeded(purpose, record)

    async def transcribe_and_analyze(
        self, captured: CapturedInput
    ) -> Tuple[PipelineResult, PipelineResult]:
        """
        Transcribe and analyze one recording concurrently.

        The runs are independent; either may fail alone.

        Returns:
            (transcription result, analysis result)
        """
        transcription, analysis = await asyncio.gather(
            self.run(captured, PipelinePurpose.TRANSCRIBE),
            self.run(captured, PipelinePurpose.ANALYZE),
        )
        return transcription, analysis

    def _failure(self, purpose: PipelinePurpose, error: Exception) -> PipelineResult:
        category = self.classifier.classify(error)
        logger.warning(
            "Pipeline failed",
            purpose=purpose.value,
            category=category.value,
            error_type=type(error).__name__,
            error=str(error),
        )
        return PipelineResult.failed(
            purpose,
            category,
            user_message(category, purpose),
            detail=str(error),
        )
