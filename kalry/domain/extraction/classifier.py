"""
Error classifier.

Maps any pipeline failure to the closed ErrorCategory taxonomy and picks
the user-facing message. Consulted for presentation only.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Tuple, Union

from kalry.domain.extraction.models import (
    AttemptOutcome,
    ErrorCategory,
    ModelAttemptResult,
    PipelinePurpose,
    UserMessage,
)
from kalry.domain.shared.errors import (
    AllModelsFailedError,
    ConfigurationError,
    ModelServiceError,
    ModelTransportError,
    PipelineError,
)

Failure = Union[BaseException, ModelAttemptResult]


# ═══════════════════════════════════════════════════════════
# SIGNALS (checked in this order)
# ═══════════════════════════════════════════════════════════

_TIMEOUT_MARKERS = ("timed out", "timeout", "deadline exceeded", "deadline_exceeded")
_TIMEOUT_CODES = (408, 504)

_NETWORK_MARKERS = (
    "fetch",
    "network",
    "econnrefused",
    "enotfound",
    "err_internet_disconnected",
    "connection refused",
    "connection reset",
    "connecterror",
    "name or service not known",
    "temporary failure in name resolution",
    "nodename nor servname",
    "unreachable",
    "disconnected",
)

_NO_FOOD_MARKERS = (
    "no food",
    "unclear",
    "invalid json",
    "no json object",
    "empty",
    "silence",
    "404",
    "not found",
    "models/",
    "generatecontent",
    "api version",
    "all ai models are currently unavailable",
)
_NO_FOOD_CODES = (404,)

_OVERLOADED_MARKERS = (
    "503",
    "429",
    "overloaded",
    "unavailable",
    "resource exhausted",
    "resource_exhausted",
    "rate limit",
    "quota",
)
_OVERLOADED_CODES = (429, 500, 502, 503)

_CONFIGURATION_MARKERS = (
    "api key",
    "api_key",
    "permission denied",
    "permission_denied",
    "unauthenticated",
    "401",
    "403",
)
_CONFIGURATION_CODES = (401, 403)

_RULES: Tuple[Tuple[ErrorCategory, Tuple[str, ...], Tuple[int, ...]], ...] = (
    (ErrorCategory.TIMED_OUT, _TIMEOUT_MARKERS, _TIMEOUT_CODES),
    (ErrorCategory.NETWORK_UNREACHABLE, _NETWORK_MARKERS, ()),
    (ErrorCategory.NO_FOOD_DETECTED, _NO_FOOD_MARKERS, _NO_FOOD_CODES),
    (ErrorCategory.SERVICE_OVERLOADED, _OVERLOADED_MARKERS, _OVERLOADED_CODES),
    (ErrorCategory.CONFIGURATION_ERROR, _CONFIGURATION_MARKERS, _CONFIGURATION_CODES),
)


# ═══════════════════════════════════════════════════════════
# USER MESSAGES
# ═══════════════════════════════════════════════════════════

_SPEAK_CLEARLY = UserMessage(
    title="Please speak more clearly",
    body="We couldn't recognize the audio. Try moving closer to the mic and speaking a bit louder.",
)
_RETAKE_PHOTO = UserMessage(
    title="Couldn't recognize food",
    body="We couldn't find food in this photo. Please retake it with the meal clearly visible.",
)
_DESCRIBE_AGAIN = UserMessage(
    title="Couldn't recognize food",
    body="We couldn't find food in that description. Please enter a valid meal.",
)

_MESSAGES = {
    ErrorCategory.TIMED_OUT: UserMessage(
        title="Network Error",
        body="Connection is slow or timed out. Please check your internet connection and try again.",
    ),
    ErrorCategory.NETWORK_UNREACHABLE: UserMessage(
        title="Network Error",
        body="Unable to connect. Please check your internet connection and try again.",
    ),
    ErrorCategory.SERVICE_OVERLOADED: UserMessage(
        title="AI busy",
        body="Service is temporarily overloaded. Please try again in a few moments.",
    ),
    ErrorCategory.CONFIGURATION_ERROR: UserMessage(
        title="Configuration issue",
        body="AI service configuration error. Please check your settings.",
        recoverable=False,
    ),
}


class ErrorClassifier:
    """
    Pure mapping from failure to ErrorCategory.

    Precedence when several signals apply:
    timeout -> network -> no food / invalid structure -> overloaded ->
    configuration -> unclassified. A request that timed out because the
    network dropped reports TIMED_OUT, never NO_FOOD_DETECTED.

    Example:
        >>> classifier = ErrorClassifier()
        >>> classifier.classify(ModelAttemptResult.timeout("gemini-2.0-flash", "Timed out after 30s"))
        <ErrorCategory.TIMED_OUT: 'TIMED_OUT'>
        >>> classifier.classify(RuntimeError("503 The model is overloaded"))
        <ErrorCategory.SERVICE_OVERLOADED: 'SERVICE_OVERLOADED'>
    """

    def classify(self, failure: Failure) -> ErrorCategory:
        """
        Categorize a failure.

        Args:
            failure: Exception raised by the pipeline, or a failed attempt

        Returns:
            ErrorCategory (UNCLASSIFIED when nothing matches)
        """
        if isinstance(failure, AllModelsFailedError):
            last = failure.last_attempt
            if last is None:
                return self.classify_text(failure.message)
            return self.classify(last)

        if isinstance(failure, PipelineError) and failure.category is not None:
            return failure.category

        if isinstance(failure, ModelAttemptResult):
            return self._classify_attempt(failure)

        if isinstance(failure, (asyncio.TimeoutError, TimeoutError)):
            return ErrorCategory.TIMED_OUT

        if isinstance(failure, (ModelTransportError, ConnectionError)):
            category = self.classify_text(str(failure))
            if category is ErrorCategory.TIMED_OUT:
                return category
            return ErrorCategory.NETWORK_UNREACHABLE

        if isinstance(failure, ConfigurationError):
            return ErrorCategory.CONFIGURATION_ERROR

        status_code = failure.status_code if isinstance(failure, ModelServiceError) else None
        return self.classify_text(str(failure), status_code)

    def classify_text(self, text: str, status_code: Optional[int] = None) -> ErrorCategory:
        """
        Categorize from a message and optional HTTP status.

        Args:
            text: Error message or detail
            status_code: HTTP status when known

        Returns:
            First matching category in precedence order
        """
        lowered = (text or "").lower()
        for category, markers, codes in _RULES:
            if status_code is not None and status_code in codes:
                return category
            if any(marker in lowered for marker in markers):
                return category
        return ErrorCategory.UNCLASSIFIED

    def _classify_attempt(self, attempt: ModelAttemptResult) -> ErrorCategory:
        if attempt.outcome is AttemptOutcome.TIMEOUT:
            return ErrorCategory.TIMED_OUT

        if attempt.outcome is AttemptOutcome.TRANSPORT_ERROR:
            if self.classify_text(attempt.detail or "") is ErrorCategory.TIMED_OUT:
                return ErrorCategory.TIMED_OUT
            return ErrorCategory.NETWORK_UNREACHABLE

        if attempt.outcome is AttemptOutcome.SERVICE_ERROR:
            return self.classify_text(attempt.detail or "", attempt.status_code)

        # Success with blank text
        return ErrorCategory.NO_FOOD_DETECTED


def user_message(
    category: ErrorCategory, purpose: PipelinePurpose = PipelinePurpose.ANALYZE
) -> UserMessage:
    """
    Short, action-oriented message for a category.

    NO_FOOD_DETECTED, MALFORMED_OUTPUT and UNCLASSIFIED share one message
    (ask the user to retry more clearly) worded for the capture kind.

    Args:
        category: Failure category
        purpose: Purpose of the failed run

    Returns:
        UserMessage; only CONFIGURATION_ERROR is not user-recoverable
    """
    message = _MESSAGES.get(category)
    if message is not None:
        return message
    if purpose is PipelinePurpose.ANALYZE_PHOTO:
        return _RETAKE_PHOTO
    if purpose is PipelinePurpose.ANALYZE_TEXT:
        return _DESCRIBE_AGAIN
    return _SPEAK_CLEARLY
