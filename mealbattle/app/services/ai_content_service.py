import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from mealbattle.app.schemas.ai import (
    AIResult,
    FoodAnalysisRequest,
    FridgeAnalysisRequest,
    MealGenerationRequest,
)
from mealbattle.app.services.ai_response import OperationKind, classify_response, process_ai_response
from mealbattle.app.services.document_store import DocumentStore
from mealbattle.app.services.llm_client import TextGenerator, generate_or_error

logger = logging.getLogger(__name__)

MEAL_SCHEMA_HINT = {
    "title": "string",
    "description": "string",
    "ingredients": {"ingredient name": "amount"},
    "instructions": ["step"],
    "calories": "number",
    "nutritionalInfo": {"calories": "number", "protein": "number", "carbs": "number", "fat": "number"},
    "cookingTime": "string",
    "difficulty": "easy|medium|hard",
    "servings": "number",
    "type": "string",
    "cuisine": "string",
    "categories": ["string"],
}

FRIDGE_SCHEMA_HINT = {
    "ingredients": [{"name": "string", "quantity": "string", "category": "string"}],
    "suggestedMeals": [{"title": "string", "description": "string", "cookingTime": "string"}],
}

FOOD_SCHEMA_HINT = {
    "foodItems": [
        {
            "name": "string",
            "estimatedWeight": "string",
            "confidence": "high|medium|low",
            "nutritionalInfo": {"calories": "number", "protein": "number", "carbs": "number", "fat": "number"},
        }
    ],
    "totalNutrition": {"calories": "number", "protein": "number", "carbs": "number", "fat": "number"},
    "healthScore": "number",
    "suggestedMeals": [{"title": "string"}],
}


def _json_only(instructions: str, schema: Dict[str, Any]) -> str:
    return (
        f"{instructions}\n\n"
        f"Schema: {json.dumps(schema)}\n\n"
        "Rules:\n"
        "- Return ONLY one JSON object, no markdown and no commentary\n"
        "- All nutrition values are plain numbers without units\n"
    )


def build_meal_prompt(request: MealGenerationRequest) -> str:
    lines = ["Create one recipe."]
    if request.ingredients:
        lines.append(f"Use these ingredients: {', '.join(request.ingredients)}.")
    if request.meal_type:
        lines.append(f"Meal type: {request.meal_type}.")
    if request.cuisine:
        lines.append(f"Cuisine: {request.cuisine}.")
    if request.dietary_preferences:
        lines.append(f"Dietary preferences: {', '.join(request.dietary_preferences)}.")
    if request.calorie_target:
        lines.append(f"Target about {request.calorie_target} calories per serving.")
    lines.append(f"Servings: {request.servings}.")
    return _json_only(" ".join(lines), MEAL_SCHEMA_HINT)


def build_fridge_prompt(request: FridgeAnalysisRequest) -> str:
    instructions = (
        "List the ingredients available in this fridge and suggest meals that can be cooked with them.\n"
        f"Fridge contents: {request.items_description}"
    )
    if request.dietary_preferences:
        instructions += f"\nDietary preferences: {', '.join(request.dietary_preferences)}"
    return _json_only(instructions, FRIDGE_SCHEMA_HINT)


def build_food_prompt(request: FoodAnalysisRequest) -> str:
    instructions = f"Estimate the nutrition of this food: {request.food_description}"
    if request.portion_notes:
        instructions += f"\nPortion notes: {request.portion_notes}"
    return _json_only(instructions, FOOD_SCHEMA_HINT)


async def _run(generator: TextGenerator, prompt: str, kind: OperationKind) -> AIResult:
    raw = await generate_or_error(generator, prompt)
    record = process_ai_response(raw, kind)
    status = classify_response(record, kind)
    logger.info("%s finished with status %s", kind.value, status.value)
    return AIResult(operation_kind=kind, status=status, record=record)


async def generate_meal(generator: TextGenerator, request: MealGenerationRequest) -> AIResult:
    return await _run(generator, build_meal_prompt(request), OperationKind.MEAL_GENERATION)


async def analyze_fridge(generator: TextGenerator, request: FridgeAnalysisRequest) -> AIResult:
    return await _run(generator, build_fridge_prompt(request), OperationKind.FRIDGE_ANALYSIS)


async def analyze_food(generator: TextGenerator, request: FoodAnalysisRequest) -> AIResult:
    return await _run(generator, build_food_prompt(request), OperationKind.FOOD_ANALYSIS)


def ai_results_collection(user_id: str) -> str:
    return f"users/{user_id}/ai_results"


def save_ai_result(
    store: DocumentStore,
    user_id: str,
    result: AIResult,
    result_id: Optional[str] = None,
) -> AIResult:
    """Merge-write the record under ``users/{uid}/ai_results``; returns the result with its id."""
    result_id = result_id or uuid.uuid4().hex
    document = {
        **result.record,
        "operationKind": result.operation_kind.value,
        "status": result.status.value,
        "createdAt": datetime.now(timezone.utc).isoformat(),
    }
    store.set(ai_results_collection(user_id), result_id, document, merge=True)
    return result.model_copy(update={"id": result_id})
