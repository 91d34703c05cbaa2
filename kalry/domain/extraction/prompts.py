"""
Prompts for nutrition extraction.

The output contract is advisory: the model is asked for one JSON object
without markdown fences, but ResponseSanitizer and SchemaValidator still
defend against anything else.
"""

from kalry.domain.extraction.models import CapturedInput, PipelinePurpose


# ═══════════════════════════════════════════════════════════
# SHARED CONTRACT
# ═══════════════════════════════════════════════════════════

RECORD_CONTRACT = """The JSON object must have this structure:
{ "transcription": "<what was described>", "items": [ { "name": "EXACT_QUANTITY + food item", "calories": <number>, "protein": <number>, "carbs": <number>, "fat": <number>, "fiber": <number> } ], "total": { "calories": <number>, "protein": <number>, "carbs": <number>, "fat": <number>, "fiber": <number> } }"""

QUANTITY_RULES = """QUANTITY PRESERVATION RULES:
1. ALWAYS preserve EXACT quantities and units:
   - "200 grams of black beans" -> "200g black beans" (NOT "1 black beans")
   - "150 grams of chicken" -> "150g chicken" (NOT "1 chicken")
   - "1 cup of rice" -> "1 cup rice"
   - "2 slices of bread" -> "2 bread"
   - "500ml juice" -> "500ml juice"
2. Convert units: "grams" -> "g", "milliliters" -> "ml", "cups" -> "cup"
3. Drop filler words: "plate of", "bowl of", "piece of", "some", "portion of"
4. If no quantity is mentioned, assume 1 (e.g. "1 sandwich")
5. Convert words to numbers: "one" -> "1", "two" -> "2", "three" -> "3"

NUTRITION RULES:
- Calculate nutrition from the ACTUAL quantity: "200g black beans" is 2x the 100g values
- Reference per 100g: black beans ~120 kcal, 8g protein, 22g carbs, 0.5g fat, 7g fiber
- Reference per 100g: chicken ~165 kcal, 31g protein, 0g carbs, 3.6g fat, 0g fiber
- Complete dishes: chicken sandwich ~450 kcal, juice ~120 kcal, pizza slice ~280 kcal, burger ~550 kcal
- Use consistent values for similar foods (bread, slice of bread, bread slice)
- Give realistic fiber: fruit/vegetables 2-8g, whole grains 2-4g, legumes 5-15g, processed 0-2g"""


# ═══════════════════════════════════════════════════════════
# PURPOSE PROMPTS
# ═══════════════════════════════════════════════════════════

TRANSCRIPTION_PROMPT = (
    "Transcribe ONLY what the user said in this audio. Translate to English if needed, "
    "but return ONLY English text. Return ONLY the spoken words in English, no JSON, "
    "no punctuation, no explanations, no other languages."
)

AUDIO_ANALYSIS_PROMPT = f"""Analyze the food items in this audio. Your response MUST be a single valid JSON object and nothing else. Do not include markdown formatting like ```json.

LANGUAGE REQUIREMENT:
- The transcription field MUST be in English only. Translate to English if needed.
- All food item names must be in English.

If the audio does NOT contain any food items or is unclear, respond with: {{"error": "No food items detected. Please speak clearly about what you ate."}}

{QUANTITY_RULES}

{RECORD_CONTRACT}"""

PHOTO_ANALYSIS_PROMPT = f"""Analyze this food image and provide nutritional information. Your response MUST be a single valid JSON object and nothing else. Do not include markdown formatting.

If the image does NOT contain recognizable food items, respond with: {{"error": "No food items detected in this image. Please take a photo of food items."}}

Guidelines:
- Put a one-sentence description of the meal in "transcription"
- Be realistic with portion sizes and estimate a quantity for every item
- Consider cooking methods (fried foods have more calories)
- Provide nutrition for the entire visible portion

{QUANTITY_RULES}

{RECORD_CONTRACT}"""

TEXT_ANALYSIS_TEMPLATE = """Analyze the following meal text: "{meal_text}". Your response MUST be a single valid JSON object and nothing else. Do not include markdown formatting like ```json.

If the text does NOT contain any food items or is unclear, respond with: {{"error": "No food items detected. Please enter a valid meal."}}

{quantity_rules}

{contract}"""


def build_text_analysis_prompt(meal_text: str) -> str:
    """
    Prompt for re-analyzing typed or edited meal text.

    Args:
        meal_text: Text as the user typed it

    Returns:
        Prompt with the text embedded (double quotes escaped)

    Example:
        >>> prompt = build_text_analysis_prompt("2 eggs")
        >>> '"2 eggs"' in prompt
        True
    """
    return TEXT_ANALYSIS_TEMPLATE.format(
        meal_text=meal_text.replace('"', "'"),
        quantity_rules=QUANTITY_RULES,
        contract=RECORD_CONTRACT,
    )


def build_prompt(purpose: PipelinePurpose, payload: CapturedInput) -> str:
    """
    Pick the prompt for a purpose.

    Args:
        purpose: Pipeline purpose
        payload: Captured input (text is embedded for ANALYZE_TEXT)

    Returns:
        Prompt text
    """
    if purpose is PipelinePurpose.TRANSCRIBE:
        return TRANSCRIPTION_PROMPT
    if purpose is PipelinePurpose.ANALYZE_PHOTO:
        return PHOTO_ANALYSIS_PROMPT
    if purpose is PipelinePurpose.ANALYZE_TEXT:
        return build_text_analysis_prompt(payload.text or "")
    return AUDIO_ANALYSIS_PROMPT
