"""
Response sanitizer.

Deterministic cleanup of free-form model text before structural parsing.
Steps run in a fixed order; later steps assume earlier ones already ran.
"""

from __future__ import annotations

import json
import re
from typing import Callable, List

import structlog

from kalry.domain.extraction.models import ErrorCategory, ExtractedPayload, SanitizationStep
from kalry.domain.shared.errors import SanitizationError

logger = structlog.get_logger(__name__)

# Opening or closing fence, with or without a language tag
_FENCE_RE = re.compile(r"```[\w+-]*[ \t]*\r?\n?")
_QUOTES = "\"'"
_WRAPPED_TRANSCRIPTION_RE = re.compile(r'\{[\s\S]*?"transcription"\s*:\s*"((?:[^"\\]|\\.)*)"')
_LABEL_RE = re.compile(r"^transcription[:\s]*", re.IGNORECASE)


class ResponseSanitizer:
    """
    Extracts the best-candidate payload from raw model text.

    Order of steps:
    1. Remove fenced code-block markers, whatever the language tag
    2. Trim surrounding quote characters
    3. Unwrap a JSON fragment's "transcription" value (transcription mode)
    4. Strip a leading "transcription:" label (transcription mode)
    5. Take the first "{" through the last "}" (structured mode)

    Example:
        >>> sanitizer = ResponseSanitizer()
        >>> sanitizer.extract('Sure! ```json\\n{"total": {}}\\n```').text
        '{"total": {}}'
        >>> sanitizer.extract_transcription('Transcription: "I had rice"').text
        'I had rice'
    """

    def extract(self, raw_text: str, structured: bool = True) -> ExtractedPayload:
        """
        Extract a payload from raw model text.

        Args:
            raw_text: Response text as returned by the model
            structured: True for JSON records, False for transcriptions

        Returns:
            ExtractedPayload with cleaned text and the steps that changed it

        Raises:
            SanitizationError: Structured mode and no {...} span found
                (MALFORMED_OUTPUT), or transcription empty after cleanup
                (NO_FOOD_DETECTED)
        """
        steps: List[SanitizationStep] = []
        text = (raw_text or "").strip()

        text = self._apply(text, self._remove_fences, SanitizationStep.FENCE_REMOVAL, steps)
        text = self._apply(text, self._trim_quotes, SanitizationStep.QUOTE_TRIM, steps)

        if structured:
            text = self._apply(text, self._brace_span, SanitizationStep.BRACE_SPAN, steps)
        else:
            text = self._apply(
                text, self._unwrap_transcription, SanitizationStep.TRANSCRIPTION_UNWRAP, steps
            )
            text = self._apply(text, self._strip_label, SanitizationStep.LABEL_STRIP, steps)
            if not text:
                raise SanitizationError(
                    "Transcription is empty", category=ErrorCategory.NO_FOOD_DETECTED
                )

        logger.debug("Sanitized response", structured=structured, steps=[s.value for s in steps])
        return ExtractedPayload(text=text, steps=tuple(steps))

    def extract_transcription(self, raw_text: str) -> ExtractedPayload:
        """Shortcut for transcription mode."""
        return self.extract(raw_text, structured=False)

    @staticmethod
    def _apply(
        text: str,
        step_fn: Callable[[str], str],
        step: SanitizationStep,
        steps: List[SanitizationStep],
    ) -> str:
        cleaned = step_fn(text)
        if cleaned != text:
            steps.append(step)
        return cleaned

    @staticmethod
    def _remove_fences(text: str) -> str:
        return _FENCE_RE.sub("", text).strip()

    @staticmethod
    def _trim_quotes(text: str) -> str:
        if text and text[0] in _QUOTES:
            text = text[1:]
        if text and text[-1] in _QUOTES:
            text = text[:-1]
        return text.strip()

    @staticmethod
    def _unwrap_transcription(text: str) -> str:
        match = _WRAPPED_TRANSCRIPTION_RE.search(text)
        if not match:
            return text
        value = match.group(1)
        try:
            return str(json.loads(f'"{value}"')).strip()
        except json.JSONDecodeError:
            return value.strip()

    @classmethod
    def _strip_label(cls, text: str) -> str:
        return cls._trim_quotes(_LABEL_RE.sub("", text).strip())

    @staticmethod
    def _brace_span(text: str) -> str:
        start = text.find("{")
        end = text.rfind("}")
        if start == -1 or end <= start:
            raise SanitizationError(
                "Invalid JSON format from API. No JSON object found.",
                category=ErrorCategory.MALFORMED_OUTPUT,
            )
        return text[start : end + 1]

