"""
Unit tests for ResponseSanitizer.

Covers fence removal, quote trimming, brace span and transcription cleanup.
"""

import pytest

from kalry.domain.extraction.models import ErrorCategory, SanitizationStep
from kalry.domain.extraction.sanitizer import ResponseSanitizer
from kalry.domain.shared.errors import SanitizationError


class TestStructuredExtraction:
    """Test JSON candidate extraction."""

    @pytest.fixture
    def sanitizer(self) -> ResponseSanitizer:
        return ResponseSanitizer()

    def test_plain_json_unchanged(self, sanitizer: ResponseSanitizer, black_beans_json: str) -> None:
        """Test clean JSON passes through without steps."""
        payload = sanitizer.extract(black_beans_json)

        assert payload.text == black_beans_json
        assert payload.steps == ()

    def test_fenced_json_matches_plain(
        self, sanitizer: ResponseSanitizer, black_beans_json: str, fenced_black_beans: str
    ) -> None:
        """Test fenced response with prose yields the same candidate as plain JSON."""
        fenced = sanitizer.extract(fenced_black_beans)
        plain = sanitizer.extract(black_beans_json)

        assert fenced.text == plain.text
        assert SanitizationStep.FENCE_REMOVAL in fenced.steps
        assert SanitizationStep.BRACE_SPAN in fenced.steps

    def test_fence_without_language_tag(self, sanitizer: ResponseSanitizer) -> None:
        """Test bare ``` fences are removed."""
        payload = sanitizer.extract('```\n{"total": 1}\n```')
        assert payload.text == '{"total": 1}'

    def test_quoted_json(self, sanitizer: ResponseSanitizer) -> None:
        """Test surrounding quotes are trimmed."""
        payload = sanitizer.extract('"{\"total\": 1}"')

        assert payload.text == '{"total": 1}'
        assert payload.steps[0] == SanitizationStep.QUOTE_TRIM

    def test_brace_span_first_to_last(self, sanitizer: ResponseSanitizer) -> None:
        """Test span runs from the first { to the last }."""
        payload = sanitizer.extract('Result: {"a": {"b": 1}} done.')
        assert payload.text == '{"a": {"b": 1}}'

    def test_idempotent(self, sanitizer: ResponseSanitizer, fenced_black_beans: str) -> None:
        """Test sanitizing an already sanitized candidate changes nothing."""
        once = sanitizer.extract(fenced_black_beans)
        twice = sanitizer.extract(once.text)

        assert twice.text == once.text
        assert twice.steps == ()

    def test_no_braces_is_malformed(self, sanitizer: ResponseSanitizer) -> None:
        """Test text without a JSON object raises MALFORMED_OUTPUT."""
        with pytest.raises(SanitizationError) as exc_info:
            sanitizer.extract("I could not analyze this meal.")

        assert exc_info.value.category == ErrorCategory.MALFORMED_OUTPUT
        assert "No JSON object found" in exc_info.value.message

    def test_reversed_braces_is_malformed(self, sanitizer: ResponseSanitizer) -> None:
        """Test } before { is not a span."""
        with pytest.raises(SanitizationError):
            sanitizer.extract("} nothing {")

    def test_structured_keeps_transcription_key(
        self, sanitizer: ResponseSanitizer, black_beans_json: str
    ) -> None:
        """Test a record with a transcription field is not unwrapped."""
        payload = sanitizer.extract(black_beans_json, structured=True)
        assert payload.text.startswith("{")
        assert SanitizationStep.TRANSCRIPTION_UNWRAP not in payload.steps


class TestTranscriptionExtraction:
    """Test spoken-text cleanup."""

    @pytest.fixture
    def sanitizer(self) -> ResponseSanitizer:
        return ResponseSanitizer()

    def test_plain_text(self, sanitizer: ResponseSanitizer) -> None:
        """Test plain transcription is returned as is."""
        payload = sanitizer.extract_transcription("I had two eggs and toast")
        assert payload.text == "I had two eggs and toast"

    def test_json_wrapped(self, sanitizer: ResponseSanitizer) -> None:
        """Test {"transcription": "..."} is unwrapped."""
        payload = sanitizer.extract_transcription('{"transcription": "I had rice"}')

        assert payload.text == "I had rice"
        assert SanitizationStep.TRANSCRIPTION_UNWRAP in payload.steps

    def test_json_wrapped_with_escapes(self, sanitizer: ResponseSanitizer) -> None:
        """Test escaped quotes inside the wrapped value are decoded."""
        payload = sanitizer.extract_transcription('{"transcription": "a \\"big\\" salad"}')
        assert payload.text == 'a "big" salad'

    def test_fenced_json_wrapped(self, sanitizer: ResponseSanitizer) -> None:
        """Test fences are removed before unwrapping."""
        raw = '```json\n{"transcription": "pasta with pesto"}\n```'
        assert sanitizer.extract_transcription(raw).text == "pasta with pesto"

    def test_label_and_quotes(self, sanitizer: ResponseSanitizer) -> None:
        """Test 'Transcription:' label and quotes are stripped."""
        payload = sanitizer.extract_transcription('Transcription: "I had rice"')

        assert payload.text == "I had rice"
        assert SanitizationStep.LABEL_STRIP in payload.steps

    def test_label_case_insensitive(self, sanitizer: ResponseSanitizer) -> None:
        """Test label match ignores case."""
        assert sanitizer.extract_transcription("TRANSCRIPTION: soup").text == "soup"

    @pytest.mark.parametrize("raw", ["", "   ", '""', "Transcription:", "```\n```"])
    def test_empty_is_no_food(self, sanitizer: ResponseSanitizer, raw: str) -> None:
        """Test empty transcription raises NO_FOOD_DETECTED."""
        with pytest.raises(SanitizationError) as exc_info:
            sanitizer.extract_transcription(raw)

        assert exc_info.value.category == ErrorCategory.NO_FOOD_DETECTED
