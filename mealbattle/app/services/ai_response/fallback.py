"""Safe placeholder records for when no strategy recovers usable data."""

from typing import Any, Dict

from mealbattle.app.services.ai_response.constants import DEFAULT_MEAL_CALORIES, NUMERIC_NUTRITION_FIELDS
from mealbattle.app.services.ai_response.models import ConfidenceTag, OperationKind, resolve_operation_kind
from mealbattle.app.services.ai_response.normalizer import nutritional_info_for_calories


def _meal_fallback(error: str) -> Dict[str, Any]:
    return {
        "title": "Meal suggestion unavailable",
        "description": "We couldn't generate this meal. Please try again.",
        "ingredients": {"Ingredients unavailable": "Please regenerate this meal"},
        "instructions": ["Instructions unavailable. Please regenerate this meal."],
        "calories": DEFAULT_MEAL_CALORIES,
        "nutritionalInfo": nutritional_info_for_calories(DEFAULT_MEAL_CALORIES),
        "servings": 1,
        "confidence": ConfidenceTag.LOW.value,
        "error": error,
        "note": f"Placeholder generated after the AI response could not be used: {error}",
    }


def _fridge_fallback(error: str) -> Dict[str, Any]:
    return {
        "ingredients": [],
        "suggestedMeals": [],
        "confidence": ConfidenceTag.LOW.value,
        "error": True,
        "message": error,
    }


def _food_fallback(error: str) -> Dict[str, Any]:
    return {
        "foodItems": [],
        "totalNutrition": {field: 0 for field in NUMERIC_NUTRITION_FIELDS},
        "suggestedMeals": [],
        "confidence": ConfidenceTag.LOW.value,
        "error": True,
        "message": error,
    }


_FALLBACK_BUILDERS = {
    OperationKind.MEAL_GENERATION: _meal_fallback,
    OperationKind.FRIDGE_ANALYSIS: _fridge_fallback,
    OperationKind.FOOD_ANALYSIS: _food_fallback,
}


def build_fallback_response(kind: Any, error: Any) -> Dict[str, Any]:
    message = str(error) if error else "Unknown error"
    builder = _FALLBACK_BUILDERS.get(resolve_operation_kind(kind))
    if builder is None:
        return {"error": True, "message": message}
    return builder(message)
