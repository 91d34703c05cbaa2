"""
Unit tests for ModelCatalog and prompts.
"""

import pytest

from kalry.domain.extraction.catalog import GEMINI_CATALOG, GEMINI_TEXT_CATALOG, ModelCatalog
from kalry.domain.extraction.models import CapturedInput, PipelinePurpose
from kalry.domain.extraction.prompts import (
    AUDIO_ANALYSIS_PROMPT,
    PHOTO_ANALYSIS_PROMPT,
    TRANSCRIPTION_PROMPT,
    build_prompt,
)
from kalry.domain.shared.errors import ConfigurationError


class TestModelCatalog:
    """Test catalog ordering and parsing."""

    def test_default_priority(self) -> None:
        """Test fastest model comes first."""
        assert GEMINI_CATALOG.priority == (
            "gemini-2.0-flash",
            "gemini-1.5-flash",
            "gemini-1.5-pro",
        )

    def test_text_catalog_is_prefix(self) -> None:
        assert GEMINI_TEXT_CATALOG.priority == GEMINI_CATALOG.priority[:2]

    def test_from_csv_strips_and_dedupes(self) -> None:
        """Test parsing keeps order and drops blanks and duplicates."""
        catalog = ModelCatalog.from_csv(" a, b,,a , c ")
        assert catalog.priority == ("a", "b", "c")
        assert len(catalog) == 3
        assert list(catalog) == ["a", "b", "c"]

    def test_empty_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            ModelCatalog.from_csv(" , ")


class TestPrompts:
    """Test prompt selection."""

    def test_prompt_per_purpose(self) -> None:
        audio = CapturedInput.from_audio(b"x")
        assert build_prompt(PipelinePurpose.TRANSCRIBE, audio) == TRANSCRIPTION_PROMPT
        assert build_prompt(PipelinePurpose.ANALYZE, audio) == AUDIO_ANALYSIS_PROMPT
        assert build_prompt(PipelinePurpose.ANALYZE_PHOTO, audio) == PHOTO_ANALYSIS_PROMPT

    def test_text_prompt_embeds_meal(self) -> None:
        """Test typed meal text is embedded with double quotes neutralized."""
        prompt = build_prompt(
            PipelinePurpose.ANALYZE_TEXT, CapturedInput.from_text('a "large" pizza')
        )
        assert "a 'large' pizza" in prompt

    def test_analysis_prompts_ask_for_json(self) -> None:
        for prompt in (AUDIO_ANALYSIS_PROMPT, PHOTO_ANALYSIS_PROMPT):
            assert "JSON" in prompt
            assert '"items"' in prompt
