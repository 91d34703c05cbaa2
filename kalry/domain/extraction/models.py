"""
Domain models for nutrition extraction.

Request, attempt and result models for turning a captured meal description
into a validated nutrition record.
"""

from __future__ import annotations

import base64
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class PipelinePurpose(str, Enum):
    """What a pipeline run is asked to produce."""

    TRANSCRIBE = "transcribe"  # Spoken words only
    ANALYZE = "analyze"  # Full nutrition record from audio
    ANALYZE_PHOTO = "analyze_photo"  # Full nutrition record from a photo
    ANALYZE_TEXT = "analyze_text"  # Full nutrition record from typed text

    def is_structured(self) -> bool:
        """True when the response must be a JSON nutrition record."""
        return self is not PipelinePurpose.TRANSCRIBE


class ErrorCategory(str, Enum):
    """
    Closed failure taxonomy.

    Used only to pick a user-facing message, never persisted.
    """

    NETWORK_UNREACHABLE = "NETWORK_UNREACHABLE"
    TIMED_OUT = "TIMED_OUT"
    NO_FOOD_DETECTED = "NO_FOOD_DETECTED"
    MALFORMED_OUTPUT = "MALFORMED_OUTPUT"
    SERVICE_OVERLOADED = "SERVICE_OVERLOADED"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    UNCLASSIFIED = "UNCLASSIFIED"


class AttemptOutcome(str, Enum):
    """Outcome of a single model call."""

    SUCCESS = "SUCCESS"
    TIMEOUT = "TIMEOUT"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"  # Never reached the service
    SERVICE_ERROR = "SERVICE_ERROR"  # Service answered with an error


class SanitizationStep(str, Enum):
    """Cleanup steps applied by the ResponseSanitizer, in order."""

    FENCE_REMOVAL = "FENCE_REMOVAL"
    QUOTE_TRIM = "QUOTE_TRIM"
    TRANSCRIPTION_UNWRAP = "TRANSCRIPTION_UNWRAP"
    LABEL_STRIP = "LABEL_STRIP"
    BRACE_SPAN = "BRACE_SPAN"


# ═══════════════════════════════════════════════════════════
# INPUT
# ═══════════════════════════════════════════════════════════


class InlineMedia(BaseModel):
    """
    Media sent inline with the prompt.

    Attributes:
        mime_type: e.g. "audio/m4a", "image/jpeg"
        data: Raw bytes (base64-encoded at the transport boundary)
    """

    model_config = ConfigDict(frozen=True)

    mime_type: str = Field(..., min_length=1, description="MIME type")
    data: bytes = Field(..., description="Raw media bytes")

    @property
    def base64_data(self) -> str:
        """Base64 encoding of data."""
        return base64.b64encode(self.data).decode("ascii")


class CapturedInput(BaseModel):
    """
    What the user captured: audio, a photo, or typed text.

    Exactly one of media or text is set.

    Example:
        >>> captured = CapturedInput.from_audio(b"...", mime_type="audio/m4a")
        >>> captured.media.mime_type
        'audio/m4a'
        >>> CapturedInput.from_text("2 eggs and toast").text
        '2 eggs and toast'
    """

    model_config = ConfigDict(frozen=True)

    media: Optional[InlineMedia] = Field(None, description="Audio or image payload")
    text: Optional[str] = Field(None, description="Plain text payload")

    @field_validator("text")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        """Treat whitespace-only text as missing."""
        if v is None:
            return None
        return v.strip() or None

    @model_validator(mode="after")
    def exactly_one_payload(self) -> CapturedInput:
        """Ensure exactly one of media or text."""
        if (self.media is None) == (self.text is None):
            raise ValueError("Captured input needs exactly one of media or text")
        return self

    @classmethod
    def from_audio(cls, data: bytes, mime_type: str = "audio/m4a") -> CapturedInput:
        """Wrap a voice recording."""
        return cls(media=InlineMedia(mime_type=mime_type, data=data))

    @classmethod
    def from_image(cls, data: bytes, mime_type: str = "image/jpeg") -> CapturedInput:
        """Wrap a photo."""
        return cls(media=InlineMedia(mime_type=mime_type, data=data))

    @classmethod
    def from_text(cls, text: str) -> CapturedInput:
        """Wrap typed meal text."""
        return cls(text=text)


class InferenceRequest(BaseModel):
    """
    One user action's request to the model service.

    Created once and never mutated. Timeouts are per purpose, not global.

    Attributes:
        payload: Captured input
        prompt: Instructions plus output contract
        model_priority: Candidate model ids, fastest first
        per_attempt_timeout: Seconds allowed per model call
        overall_budget: Optional seconds allowed for the whole fallback chain
        purpose: What the run should produce
    """

    model_config = ConfigDict(frozen=True)

    payload: CapturedInput
    prompt: str = Field(..., min_length=1, description="Prompt text")
    model_priority: Tuple[str, ...] = Field(..., description="Fallback order")
    per_attempt_timeout: float = Field(..., gt=0, description="Seconds per attempt")
    overall_budget: Optional[float] = Field(None, gt=0, description="Seconds for all attempts")
    purpose: PipelinePurpose = Field(PipelinePurpose.ANALYZE, description="Run purpose")


# ═══════════════════════════════════════════════════════════
# ATTEMPTS
# ═══════════════════════════════════════════════════════════


class ModelAttemptResult(BaseModel):
    """
    Result of one candidate model call.

    Ephemeral: discarded once the orchestrator picks a winner or runs out
    of candidates.

    Example:
        >>> attempt = ModelAttemptResult.success("gemini-2.0-flash", '{"items": []}', 840)
        >>> attempt.is_usable()
        True
    """

    model_config = ConfigDict(frozen=True)

    model_id: str = Field(..., min_length=1)
    outcome: AttemptOutcome
    text: Optional[str] = Field(None, description="Response text on success")
    detail: Optional[str] = Field(None, description="Failure detail")
    status_code: Optional[int] = Field(None, description="HTTP status of a service error")
    latency_ms: int = Field(0, ge=0)

    def is_usable(self) -> bool:
        """Success with non-blank text."""
        return self.outcome is AttemptOutcome.SUCCESS and bool((self.text or "").strip())

    @classmethod
    def success(cls, model_id: str, text: str, latency_ms: int = 0) -> ModelAttemptResult:
        return cls(model_id=model_id, outcome=AttemptOutcome.SUCCESS, text=text, latency_ms=latency_ms)

    @classmethod
    def timeout(cls, model_id: str, detail: str, latency_ms: int = 0) -> ModelAttemptResult:
        return cls(model_id=model_id, outcome=AttemptOutcome.TIMEOUT, detail=detail, latency_ms=latency_ms)

    @classmethod
    def transport_error(cls, model_id: str, detail: str, latency_ms: int = 0) -> ModelAttemptResult:
        return cls(
            model_id=model_id,
            outcome=AttemptOutcome.TRANSPORT_ERROR,
            detail=detail,
            latency_ms=latency_ms,
        )

    @classmethod
    def service_error(
        cls,
        model_id: str,
        detail: str,
        status_code: Optional[int] = None,
        latency_ms: int = 0,
    ) -> ModelAttemptResult:
        return cls(
            model_id=model_id,
            outcome=AttemptOutcome.SERVICE_ERROR,
            detail=detail,
            status_code=status_code,
            latency_ms=latency_ms,
        )


class OrchestrationSuccess(BaseModel):
    """Winning raw text plus every attempt made to get it."""

    model_config = ConfigDict(frozen=True)

    raw_text: str
    model_id: str
    attempts: Tuple[ModelAttemptResult, ...]


class ExtractedPayload(BaseModel):
    """
    Best candidate payload cut out of a raw response.

    Attributes:
        text: Cleaned text (JSON candidate or transcription)
        steps: Sanitization steps that changed the text, in order applied
    """

    model_config = ConfigDict(frozen=True)

    text: str
    steps: Tuple[SanitizationStep, ...] = ()


# ═══════════════════════════════════════════════════════════
# NUTRITION RECORD
# ═══════════════════════════════════════════════════════════


class Macros(BaseModel):
    """
    Energy and macronutrients.

    Attributes:
        calories: Energy in kcal
        protein: Protein in grams
        carbs: Carbohydrates in grams
        fat: Fat in grams
        fiber: Fiber in grams (optional)
    """

    model_config = ConfigDict(frozen=True)

    calories: float = Field(..., ge=0, description="Energy in kcal")
    protein: float = Field(..., ge=0, description="Protein in g")
    carbs: float = Field(..., ge=0, description="Carbohydrates in g")
    fat: float = Field(..., ge=0, description="Fat in g")
    fiber: Optional[float] = Field(None, ge=0, description="Fiber in g")


class FoodItem(Macros):
    """
    Single food item with its quantity kept in the name.

    Example:
        >>> item = FoodItem(name="200g black beans", calories=240, protein=16, carbs=44, fat=1)
        >>> item.fiber is None
        True
    """

    name: str = Field(..., min_length=1, description="Quantity + food, e.g. '200g black beans'")

    @field_validator("name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        """Ensure not just whitespace."""
        if not v.strip():
            raise ValueError("Food name cannot be empty or whitespace")
        return v.strip()


class NutritionRecord(BaseModel):
    """
    Validated result of a successful pipeline run.

    total is trusted as returned by the model; it is not recomputed from
    items. A retry produces a new record.

    Example:
        >>> record.food_name()
        '200g black beans, 1 juice'
    """

    model_config = ConfigDict(frozen=True)

    transcription: str = Field(..., min_length=1)
    items: Tuple[FoodItem, ...] = Field(..., min_length=1)
    total: Macros
    model_id: Optional[str] = Field(None, description="Model that produced the record")

    def food_name(self) -> str:
        """Item names joined for display and logging."""
        return ", ".join(item.name for item in self.items)


class TranscriptionResult(BaseModel):
    """Spoken words recovered from a recording."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., min_length=1)
    model_id: Optional[str] = None


class UserMessage(BaseModel):
    """Short, action-oriented message shown for a failure category."""

    model_config = ConfigDict(frozen=True)

    title: str
    body: str
    recoverable: bool = True


class PipelineResult(BaseModel):
    """
    Outcome handed to the caller.

    Either ok with a record (analysis) or transcription (transcribe), or
    not ok with an ErrorCategory and its user message.
    """

    model_config = ConfigDict(frozen=True)

    ok: bool
    purpose: PipelinePurpose
    record: Optional[NutritionRecord] = None
    transcription: Optional[TranscriptionResult] = None
    category: Optional[ErrorCategory] = None
    message: Optional[UserMessage] = None
    detail: Optional[str] = Field(None, description="Technical detail, for logs only")

    @classmethod
    def succeeded(cls, purpose: PipelinePurpose, record: NutritionRecord) -> PipelineResult:
        return cls(ok=True, purpose=purpose, record=record)

    @classmethod
    def transcribed(cls, transcription: TranscriptionResult) -> PipelineResult:
        return cls(ok=True, purpose=PipelinePurpose.TRANSCRIBE, transcription=transcription)

    @classmethod
    def failed(
        cls,
        purpose: PipelinePurpose,
        category: ErrorCategory,
        message: UserMessage,
        detail: Optional[str] = None,
    ) -> PipelineResult:
        return cls(ok=False, purpose=purpose, category=category, message=message, detail=detail)
