"""
Model catalog.

Ordered candidate model identifiers. Earlier entries are faster and cheaper,
later ones slower but more robust. Read-only after import.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Tuple

from kalry.domain.shared.errors import ConfigurationError


class ModelCatalog:
    """
    Immutable fallback priority of candidate models.

    Example:
        >>> catalog = ModelCatalog(["gemini-2.0-flash", "gemini-1.5-flash"])
        >>> catalog.priority
        ('gemini-2.0-flash', 'gemini-1.5-flash')
        >>> catalog.first(1).priority
        ('gemini-2.0-flash',)
    """

    __slots__ = ("_models",)

    def __init__(self, models: Iterable[str]) -> None:
        cleaned = []
        for model_id in models:
            model_id = model_id.strip()
            if model_id and model_id not in cleaned:
                cleaned.append(model_id)
        if not cleaned:
            raise ConfigurationError("Model catalog needs at least one model id")
        self._models: Tuple[str, ...] = tuple(cleaned)

    @property
    def priority(self) -> Tuple[str, ...]:
        """Model ids in fallback order."""
        return self._models

    def first(self, count: int) -> ModelCatalog:
        """Catalog restricted to the first count models."""
        return ModelCatalog(self._models[: max(1, count)])

    @classmethod
    def from_csv(cls, value: str) -> ModelCatalog:
        """Parse a comma-separated list, e.g. from an environment variable."""
        return cls(value.split(","))

    def __iter__(self) -> Iterator[str]:
        return iter(self._models)

    def __len__(self) -> int:
        return len(self._models)

    def __repr__(self) -> str:
        return f"ModelCatalog({list(self._models)!r})"


GEMINI_CATALOG = ModelCatalog(["gemini-2.0-flash", "gemini-1.5-flash", "gemini-1.5-pro"])

# Re-analysis of edited meal text only needs the two fast models
GEMINI_TEXT_CATALOG = GEMINI_CATALOG.first(2)

OPENAI_CATALOG = ModelCatalog(["gpt-4o-mini", "gpt-4o"])

# Audio input needs the audio-capable chat models
OPENAI_AUDIO_CATALOG = ModelCatalog(["gpt-4o-mini-audio-preview", "gpt-4o-audio-preview"])
