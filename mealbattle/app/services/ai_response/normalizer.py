"""Numeric coercion and per-operation defaulting for parsed AI records."""

import copy
import logging
import math
import re
from typing import Any, Dict, List, Optional, Union

from mealbattle.app.services.ai_response.constants import (
    DIFFICULTY_VALUES,
    KCAL_PER_GRAM,
    MACRO_ENERGY_SPLIT,
    MIN_SUGGESTED_MEAL_TITLE_LENGTH,
    NESTED_RECORD_LISTS,
    NUMERIC_NUTRITION_FIELDS,
    NUMERIC_SCALAR_FIELDS,
    NUTRITION_CONTAINERS,
    SUGGESTED_MEAL_FIELD_NAMES,
)
from mealbattle.app.services.ai_response.models import OperationKind, resolve_operation_kind

logger = logging.getLogger(__name__)

Number = Union[int, float]

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")
_THOUSANDS_RE = re.compile(r"(?<=\d),(?=\d{3}\b)")
_TIME_VALUE_RE = re.compile(
    r"^~?\d+(?:\s*-\s*\d+)?\s*(?:m|min|mins|minutes|h|hr|hrs|hour|hours)\.?$", re.IGNORECASE
)


def _is_finite(value: Any) -> bool:
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def coerce_number(value: Any) -> Optional[Number]:
    """Numbers pass through; numeral-like strings ("450", "40g", "1,200 kcal") become numbers."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if _is_finite(value) else None
    if not isinstance(value, str):
        return None
    match = _NUMBER_RE.search(_THOUSANDS_RE.sub("", value))
    if not match:
        return None
    literal = match.group(0)
    if not _is_finite(float(literal)):
        return None
    if "." in literal:
        return float(literal)
    return int(literal)


def _normalize_numeric_value(value: Any) -> Any:
    if isinstance(value, str):
        number = coerce_number(value)
        return 0 if number is None else number
    if isinstance(value, (int, float)) and not isinstance(value, bool) and not _is_finite(value):
        return 0
    return value


def derive_macro_split(calories: Any) -> Dict[str, int]:
    energy = coerce_number(calories) or 0
    return {
        macro: int(round(energy * share / KCAL_PER_GRAM[macro]))
        for macro, share in MACRO_ENERGY_SPLIT.items()
    }


def nutritional_info_for_calories(calories: Any) -> Dict[str, Number]:
    energy = coerce_number(calories) or 0
    return {"calories": energy, **derive_macro_split(energy)}


def sum_nutrition(items: List[Any]) -> Dict[str, Number]:
    totals: Dict[str, Number] = {field: 0 for field in NUMERIC_NUTRITION_FIELDS}
    for item in items:
        info = item.get("nutritionalInfo") if isinstance(item, dict) else None
        if not isinstance(info, dict):
            continue
        for field in NUMERIC_NUTRITION_FIELDS:
            value = coerce_number(info.get(field))
            if value is not None:
                totals[field] += value
    return totals


def normalize_numeric_fields(record: Dict[str, Any]) -> None:
    """Coerce nutrition numbers in place at every known location of ``record``."""
    for field in NUMERIC_NUTRITION_FIELDS + NUMERIC_SCALAR_FIELDS:
        if field in record:
            record[field] = _normalize_numeric_value(record[field])
    for container in NUTRITION_CONTAINERS:
        info = record.get(container)
        if isinstance(info, dict):
            for field in NUMERIC_NUTRITION_FIELDS:
                if field in info:
                    info[field] = _normalize_numeric_value(info[field])
    for list_name in NESTED_RECORD_LISTS:
        entries = record.get(list_name)
        if isinstance(entries, list):
            for entry in entries:
                if isinstance(entry, dict):
                    normalize_numeric_fields(entry)


def is_plausible_meal_title(title: Any) -> bool:
    if not isinstance(title, str):
        return False
    stripped = title.strip()
    if len(stripped) < MIN_SUGGESTED_MEAL_TITLE_LENGTH:
        return False
    if re.sub(r"[\s_-]", "", stripped).lower() in SUGGESTED_MEAL_FIELD_NAMES:
        return False
    if stripped.lower() in DIFFICULTY_VALUES:
        return False
    if _TIME_VALUE_RE.match(stripped):
        return False
    return True


def filter_suggested_meals(meals: Any) -> List[Dict[str, Any]]:
    if not isinstance(meals, list):
        return []
    kept = []
    for meal in meals:
        if isinstance(meal, str):
            meal = {"title": meal}
        if not isinstance(meal, dict):
            continue
        title = meal.get("title") or meal.get("name")
        if is_plausible_meal_title(title):
            kept.append(meal)
        else:
            logger.debug("Dropping suggested meal with implausible title: %r", title)
    return kept


def _fill_meal_nutrition(meal: Dict[str, Any]) -> None:
    if isinstance(meal.get("nutritionalInfo"), dict):
        return
    calories = coerce_number(meal.get("calories"))
    if calories is not None:
        meal["nutritionalInfo"] = nutritional_info_for_calories(calories)


def _apply_meal_defaults(record: Dict[str, Any]) -> None:
    _fill_meal_nutrition(record)
    meals = record.get("meals")
    if isinstance(meals, list):
        for meal in meals:
            if isinstance(meal, dict):
                _fill_meal_nutrition(meal)


def _food_item_to_ingredient(item: Dict[str, Any]) -> Dict[str, Any]:
    ingredient = dict(item)
    quantity = item.get("quantity") or item.get("estimatedWeight")
    if quantity is not None:
        ingredient["quantity"] = quantity
    return ingredient


def _apply_fridge_defaults(record: Dict[str, Any]) -> None:
    ingredients = record.get("ingredients")
    food_items = record.get("foodItems")
    if not ingredients and isinstance(food_items, list):
        record.pop("foodItems")
        ingredients = [_food_item_to_ingredient(item) for item in food_items if isinstance(item, dict)]
    elif isinstance(ingredients, dict):
        ingredients = [{"name": name, "quantity": amount} for name, amount in ingredients.items()]
    record["ingredients"] = ingredients if isinstance(ingredients, list) else []
    record["suggestedMeals"] = filter_suggested_meals(record.get("suggestedMeals"))


def _apply_food_defaults(record: Dict[str, Any]) -> None:
    items = record.get("foodItems")
    if not isinstance(items, list):
        items = []
    for item in items:
        if isinstance(item, dict) and not isinstance(item.get("nutritionalInfo"), dict):
            item["nutritionalInfo"] = {field: 0 for field in NUMERIC_NUTRITION_FIELDS}
    record["foodItems"] = items
    if not isinstance(record.get("totalNutrition"), dict):
        record["totalNutrition"] = sum_nutrition(items)
    if "suggestedMeals" in record:
        record["suggestedMeals"] = filter_suggested_meals(record.get("suggestedMeals"))


_KIND_DEFAULTS = {
    OperationKind.MEAL_GENERATION: _apply_meal_defaults,
    OperationKind.FRIDGE_ANALYSIS: _apply_fridge_defaults,
    OperationKind.FOOD_ANALYSIS: _apply_food_defaults,
}


def normalize_response(record: Any, kind: Any = None) -> Any:
    """Return a deep copy of ``record`` with trustworthy numbers and the kind's default structure."""
    if not isinstance(record, dict):
        return record
    normalized = copy.deepcopy(record)
    apply_defaults = _KIND_DEFAULTS.get(resolve_operation_kind(kind))
    if apply_defaults is not None:
        apply_defaults(normalized)
    normalize_numeric_fields(normalized)
    return normalized
