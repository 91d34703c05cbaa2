"""
Shared fixtures for kalry tests.

Provides a scripted model transport and sample model responses so the
pipeline can be exercised end to end without network access.
"""

import asyncio
import json
from typing import Any, Dict, List, Optional, Tuple

import pytest

from kalry.config import PipelineSettings
from kalry.domain.extraction.models import (
    CapturedInput,
    InferenceRequest,
    InlineMedia,
    Macros,
    FoodItem,
    NutritionRecord,
    PipelinePurpose,
)
from kalry.domain.food_log.models import UserSession
from kalry.domain.shared.value_objects import UserId


# ═══════════════════════════════════════════════════════════
# SCRIPTED TRANSPORT
# ═══════════════════════════════════════════════════════════


class Delayed:
    """Scripted step that answers (or raises) after a delay."""

    def __init__(self, seconds: float, then: Any = "") -> None:
        self.seconds = seconds
        self.then = then


class ScriptedTransport:
    """
    Fake IModelTransport driven by a per-model script.

    Each model id maps to a step or a list of steps consumed in order:
    - str: returned as the response text
    - BaseException: raised
    - Delayed: sleeps, then applies its own step
    - callable: called with (prompt, media), its result applied

    Unscripted models raise ConnectionError.
    """

    def __init__(self, script: Optional[Dict[str, Any]] = None) -> None:
        self.script: Dict[str, List[Any]] = {}
        for model_id, steps in (script or {}).items():
            self.script[model_id] = list(steps) if isinstance(steps, list) else [steps]
        self.calls: List[Tuple[str, str, Optional[InlineMedia]]] = []
        self.completed: List[str] = []

    @property
    def called_models(self) -> List[str]:
        return [model_id for model_id, _, _ in self.calls]

    async def generate(
        self,
        model_id: str,
        prompt: str,
        media: Optional[InlineMedia] = None,
    ) -> str:
        self.calls.append((model_id, prompt, media))
        steps = self.script.get(model_id)
        if not steps:
            raise ConnectionError(f"connection refused: {model_id}")
        step = steps.pop(0) if len(steps) > 1 else steps[0]
        return await self._apply(model_id, step)

    async def _apply(self, model_id: str, step: Any) -> str:
        if isinstance(step, Delayed):
            await asyncio.sleep(step.seconds)
            return await self._apply(model_id, step.then)
        if callable(step):
            return await self._apply(model_id, step(self.calls[-1][1], self.calls[-1][2]))
        if isinstance(step, BaseException):
            raise step
        self.completed.append(model_id)
        return step


# ═══════════════════════════════════════════════════════════
# SAMPLE RESPONSES
# ═══════════════════════════════════════════════════════════


BLACK_BEANS_RECORD: Dict[str, Any] = {
    "transcription": "I had 200 grams of black beans and a glass of orange juice",
    "items": [
        {"name": "200g black beans", "calories": 264, "protein": 17.7, "carbs": 47.4, "fat": 1.1},
        {"name": "1 glass orange juice", "calories": 112, "protein": 1.7, "carbs": 25.8, "fat": 0.5},
    ],
    "total": {"calories": 376, "protein": 19.4, "carbs": 73.2, "fat": 1.6},
}


@pytest.fixture
def black_beans_json() -> str:
    """Valid nutrition record JSON."""
    return json.dumps(BLACK_BEANS_RECORD)


@pytest.fixture
def fenced_black_beans(black_beans_json: str) -> str:
    """Record wrapped in prose and a markdown fence."""
    return f"Here is the analysis:\n```json\n{black_beans_json}\n```\nEnjoy!"


@pytest.fixture
def no_food_json() -> str:
    """Model found nothing to analyze."""
    return json.dumps({"transcription": "hmm", "items": [], "total": {"calories": 0}})


# ═══════════════════════════════════════════════════════════
# DOMAIN MODEL FIXTURES
# ═══════════════════════════════════════════════════════════


@pytest.fixture
def audio_input() -> CapturedInput:
    return CapturedInput.from_audio(b"fake-m4a-bytes", mime_type="audio/m4a")


@pytest.fixture
def text_input() -> CapturedInput:
    return CapturedInput.from_text("200 grams of black beans and a glass of orange juice")


@pytest.fixture
def analyze_request(audio_input: CapturedInput) -> InferenceRequest:
    """Request over three candidates with a 1s per-attempt timeout."""
    return InferenceRequest(
        payload=audio_input,
        prompt="Analyze",
        model_priority=("model-a", "model-b", "model-c"),
        per_attempt_timeout=1.0,
        purpose=PipelinePurpose.ANALYZE,
    )


@pytest.fixture
def sample_record() -> NutritionRecord:
    return NutritionRecord(
        transcription="I had 200 grams of black beans",
        items=(
            FoodItem(name="200g black beans", calories=264, protein=17.7, carbs=47.4, fat=1.1),
        ),
        total=Macros(calories=264, protein=17.7, carbs=47.4, fat=1.1, fiber=17.0),
        model_id="gemini-2.0-flash",
    )


@pytest.fixture
def signed_in() -> UserSession:
    return UserSession(user_id=UserId(value="user_123"))


@pytest.fixture
def fast_settings() -> PipelineSettings:
    """Gemini defaults with short timeouts."""
    return PipelineSettings(transcribe_timeout=0.5, analyze_timeout=0.5)


# ═══════════════════════════════════════════════════════════
# TRANSPORT FIXTURES
# ═══════════════════════════════════════════════════════════


@pytest.fixture
def make_transport():
    """Factory: make_transport({"model-a": "text", "model-b": TimeoutError()})."""
    return ScriptedTransport


@pytest.fixture
def delayed():
    """Factory for a delayed script step: delayed(2.0, "late text")."""
    return Delayed
