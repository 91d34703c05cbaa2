"""
Schema validator.

Checks that an extracted JSON candidate matches the nutrition record
contract. Only shape is validated: total is trusted, not recomputed.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from kalry.domain.extraction.models import ErrorCategory, NutritionRecord
from kalry.domain.shared.errors import RecordValidationError

logger = structlog.get_logger(__name__)

NO_FOOD_MESSAGE = "No food items detected. Please speak clearly about what you ate."
INVALID_STRUCTURE_MESSAGE = "Invalid JSON structure from API."


class SchemaValidator:
    """
    Turns a JSON candidate into a NutritionRecord or rejects it.

    Rejections:
    - Not valid JSON, or not an object -> MALFORMED_OUTPUT
    - Explicit "error" field -> NO_FOOD_DETECTED, or the model's own error
      text passed through uncategorized
    - Missing total / items / transcription -> MALFORMED_OUTPUT
    - items == [] -> NO_FOOD_DETECTED
    - Items or total with the wrong numeric shape -> MALFORMED_OUTPUT

    Example:
        >>> validator = SchemaValidator()
        >>> record = validator.validate(
        ...     '{"transcription": "I had an apple",'
        ...     ' "items": [{"name": "1 apple", "calories": 95, "protein": 0.5, "carbs": 25, "fat": 0.3}],'
        ...     ' "total": {"calories": 95, "protein": 0.5, "carbs": 25, "fat": 0.3}}'
        ... )
        >>> record.items[0].name
        '1 apple'
    """

    def validate(self, candidate_text: str, model_id: Optional[str] = None) -> NutritionRecord:
        """
        Validate a JSON candidate.

        Args:
            candidate_text: Output of ResponseSanitizer.extract
            model_id: Model that produced the text (kept on the record)

        Returns:
            Validated, immutable NutritionRecord

        Raises:
            RecordValidationError: With MALFORMED_OUTPUT or NO_FOOD_DETECTED
        """
        data = self._parse(candidate_text)

        error = data.get("error")
        if error:
            # Any other error text is left for the ErrorClassifier to categorize
            error_text = str(error)
            category = ErrorCategory.NO_FOOD_DETECTED if "no food" in error_text.lower() else None
            raise RecordValidationError(error_text, category=category)

        items = data.get("items")
        if (
            not data.get("total")
            or not isinstance(items, list)
            or not str(data.get("transcription") or "").strip()
        ):
            raise RecordValidationError(
                INVALID_STRUCTURE_MESSAGE, category=ErrorCategory.MALFORMED_OUTPUT
            )

        if len(items) == 0:
            raise RecordValidationError(NO_FOOD_MESSAGE, category=ErrorCategory.NO_FOOD_DETECTED)

        try:
            record = NutritionRecord(
                transcription=str(data["transcription"]).strip(),
                items=tuple(items),
                total=data["total"],
                model_id=model_id,
            )
        except PydanticValidationError as e:
            logger.warning("Record shape rejected", model_id=model_id, errors=e.error_count())
            raise RecordValidationError(
                f"{INVALID_STRUCTURE_MESSAGE} {e.errors()[0].get('msg', '')}".strip(),
                category=ErrorCategory.MALFORMED_OUTPUT,
            ) from e

        logger.debug("Record validated", model_id=model_id, items=len(record.items))
        return record

    @staticmethod
    def _parse(candidate_text: str) -> Dict[str, Any]:
        try:
            data = json.loads(candidate_text)
        except (json.JSONDecodeError, TypeError) as e:
            raise RecordValidationError(
                f"Invalid JSON from API: {e}", category=ErrorCategory.MALFORMED_OUTPUT
            ) from e

        if not isinstance(data, dict):
            raise RecordValidationError(
                INVALID_STRUCTURE_MESSAGE, category=ErrorCategory.MALFORMED_OUTPUT
            )
        return data
