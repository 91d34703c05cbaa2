"""
Domain exceptions.

Typed exceptions for explicit error handling.
Pipeline errors carry the ErrorCategory used to pick a user-facing message.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from kalry.domain.extraction.models import ErrorCategory, ModelAttemptResult


# ═══════════════════════════════════════════════════════════
# BASE EXCEPTION
# ═══════════════════════════════════════════════════════════


class DomainError(Exception):
    """
    Base exception for all domain errors.

    All domain-specific exceptions inherit from this.
    Allows catching all domain errors with single except clause.
    """

    pass


# ═══════════════════════════════════════════════════════════
# PIPELINE EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class PipelineError(DomainError):
    """
    Nutrition extraction failed.

    Carries an optional ErrorCategory decided at the point of failure.
    When category is None the ErrorClassifier infers one from the message.

    Example:
        >>> raise PipelineError("No JSON object found", category=ErrorCategory.MALFORMED_OUTPUT)
    """

    def __init__(self, message: str, category: Optional["ErrorCategory"] = None) -> None:
        super().__init__(message)
        self.message = message
        self.category = category


class SanitizationError(PipelineError):
    """
    Raw model text has no usable payload.

    Raised when:
    - No {...} span exists in a structured response
    - A transcription is empty after cleanup
    """

    pass


class RecordValidationError(PipelineError):
    """
    Extracted payload does not match the nutrition record contract.

    Raised when:
    - Candidate is not valid JSON
    - Model returned an explicit error field
    - Required fields are missing
    - items is an empty list
    """

    pass


class AllModelsFailedError(PipelineError):
    """
    Every candidate model failed.

    Holds every attempt in priority order. The last attempt drives
    classification.

    Example:
        >>> error = AllModelsFailedError(attempts)
        >>> error.last_attempt.outcome
        'TIMEOUT'
    """

    def __init__(self, attempts: Sequence["ModelAttemptResult"]) -> None:
        self.attempts = tuple(attempts)
        last = self.attempts[-1] if self.attempts else None
        if last is None:
            message = "All AI models are currently unavailable."
        else:
            message = (
                f"All AI models are currently unavailable. "
                f"Last attempt {last.model_id}: {last.outcome.value} {last.detail or ''}".rstrip()
            )
        super().__init__(message)

    @property
    def last_attempt(self) -> Optional["ModelAttemptResult"]:
        """Most recent attempt, or None when nothing was tried."""
        return self.attempts[-1] if self.attempts else None


# ═══════════════════════════════════════════════════════════
# VALIDATION EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class ValidationError(DomainError):
    """
    Input validation failed.

    Raised when:
    - Negative duration, weight or step count
    - Captured input has neither media nor text

    Example:
        >>> raise ValidationError("weight_kg must be positive: -70")
    """

    pass


class ConfigurationError(DomainError):
    """
    Pipeline is misconfigured.

    Raised when:
    - API key missing
    - Empty model priority list
    - Unknown model provider

    Example:
        >>> raise ConfigurationError("GOOGLE_API_KEY not found in environment")
    """

    pass


class AuthenticationRequiredError(DomainError):
    """
    Operation needs a signed-in user.

    Raised when a food log write is attempted without a user id.

    Example:
        >>> raise AuthenticationRequiredError("You must be logged in to log food.")
    """

    pass


class InvalidTransitionError(DomainError):
    """
    Capture session moved to a state it cannot reach.

    Example:
        >>> raise InvalidTransitionError("Cannot submit from IDLE")
    """

    pass


# ═══════════════════════════════════════════════════════════
# EXTERNAL SERVICE EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class ExternalServiceError(DomainError):
    """
    External service call failed.

    Base class for all model transport errors.
    """

    pass


class ModelServiceError(ExternalServiceError):
    """
    The model service answered with an error.

    The request reached the service; status_code holds the HTTP status
    when the SDK exposes it.

    Example:
        >>> raise ModelServiceError("503 The model is overloaded", status_code=503)
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ModelTransportError(ExternalServiceError):
    """
    The request never reached the model service.

    Raised when:
    - Connection refused
    - DNS resolution failed
    - Internet disconnected

    Example:
        >>> raise ModelTransportError("ENOTFOUND generativelanguage.googleapis.com")
    """

    pass
