"""Field-level regex recovery for model output that cannot be parsed as JSON.

Truncation and formatting drift usually break the document as a whole while
individual ``"key": value`` pairs survive, so each field is matched on its own
and the matches are zipped back together by position. Positional zipping
assumes every field appears in the same relative order for each item; when the
model skips a field on one item, later items pick up their neighbour's value.
"""

import json
import re
from typing import Any, Dict, List, Optional, Tuple

from mealbattle.app.services.ai_response.constants import (
    DEFAULT_ESTIMATED_WEIGHT,
    DEFAULT_ITEM_CONFIDENCE,
    DEFAULT_MEAL_CALORIES,
    DEFAULT_MEAL_TYPE,
    MAX_PARTIAL_ITEMS,
    NUMERIC_NUTRITION_FIELDS,
)
from mealbattle.app.services.ai_response.models import ConfidenceTag, OperationKind, resolve_operation_kind
from mealbattle.app.services.ai_response.normalizer import (
    coerce_number,
    nutritional_info_for_calories,
    sum_nutrition,
)

_STRING_VALUE = r'"((?:[^"\\]|\\.)*)"'
_NUMBER_VALUE = r'"?\s*(-?\d+(?:\.\d+)?)'
_VALUE_LITERAL_RE = re.compile(_STRING_VALUE + r"(?!\s*:)")
_PAIR_RE = re.compile(_STRING_VALUE + r"\s*:\s*" + _STRING_VALUE)

_ITEM_CONFIDENCE_VALUES = {"high", "medium", "low"}

# Keys that can trail an unclosed ingredients object and are not ingredients.
_MEAL_FIELD_KEYS = {
    "title",
    "name",
    "description",
    "cookingTime",
    "prepTime",
    "difficulty",
    "cuisine",
    "type",
    "mealType",
    "servings",
    "diet",
}

_SECTION_HEADER_RE = re.compile(
    r"^[#*\s]*(ingredients|instructions|directions|steps|method)[*\s:]*$", re.IGNORECASE
)
_BULLET_RE = re.compile(r"^(?:[-*\u2022]|\d+[.)])\s+(.+)$")
_AMOUNT_PREFIX_RE = re.compile(
    r"^([\d/.\u00bc\u00bd\u00be]+(?:\s+[\d/]+)?\s*"
    r"(?:cups?|tbsp|tsp|tablespoons?|teaspoons?|g|grams?|kg|ml|l|oz|lbs?|pounds?|cloves?|cans?|pinch)?\.?)\s+(.+)$",
    re.IGNORECASE,
)

_RAW_TEXT_FIELDS = {
    "title": r'"?title"?\s*[:=]\s*"?([^"\n,{}]+)',
    "cookingTime": r'"?(?:cookingTime|cooking time|cook time)"?\s*[:=]\s*"?([^"\n,{}]+)',
    "difficulty": r'"?difficulty"?\s*[:=]\s*"?([A-Za-z]+)',
    "type": r'"?(?:mealType|type)"?\s*[:=]\s*"?([A-Za-z][A-Za-z ]*)',
    "cuisine": r'"?cuisine"?\s*[:=]\s*"?([A-Za-z][A-Za-z ]*)',
}
_RAW_CALORIES_RE = re.compile(
    r'(?:"?calories"?\s*[:=]\s*"?(\d+(?:\.\d+)?))|(?:(?<![\d.])(\d+(?:\.\d+)?)\s*(?:kcal|calories)\b)', re.IGNORECASE
)
_RAW_SERVINGS_RE = re.compile(r'"?(?:servings|serves)"?\s*[:=]?\s*"?(\d+)', re.IGNORECASE)
_RAW_CATEGORIES_RE = re.compile(r'"?categories"?\s*[:=]\s*([^\n\[\]{}]+)', re.IGNORECASE)


def _unescape(value: str) -> str:
    try:
        return json.loads(f'"{value}"')
    except ValueError:
        return value


def _find_strings(text: str, field: str) -> List[str]:
    pattern = re.compile(r'"' + re.escape(field) + r'"\s*:\s*' + _STRING_VALUE)
    return [_unescape(match.group(1)).strip() for match in pattern.finditer(text)]


def _find_numbers(text: str, field: str) -> List[Any]:
    pattern = re.compile(r'"' + re.escape(field) + r'"\s*:\s*' + _NUMBER_VALUE)
    return [coerce_number(match.group(1)) for match in pattern.finditer(text)]


def _at(values: List[Any], index: int, default: Any) -> Any:
    if index < len(values) and values[index] not in (None, ""):
        return values[index]
    return default


def _bracket_segment(text: str, field: str, opener: str) -> Optional[str]:
    """Body of the array/object assigned to ``field``, up to its closer or the end of text."""
    closer = "]" if opener == "[" else "}"
    match = re.search(r'"' + re.escape(field) + r'"\s*:\s*' + re.escape(opener), text)
    if not match:
        return None
    depth = 1
    in_string = False
    escaped = False
    start = match.end()
    for index in range(start, len(text)):
        ch = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == opener:
            depth += 1
        elif ch == closer:
            depth -= 1
            if depth == 0:
                return text[start:index]
    return text[start:]


def _value_literals(segment: str) -> List[str]:
    literals = [_unescape(match.group(1)).strip() for match in _VALUE_LITERAL_RE.finditer(segment)]
    return [literal for literal in literals if literal]


def extraction_failure(message: str) -> Dict[str, Any]:
    return {"source": True, "error": message}


def is_extraction_failure(record: Any) -> bool:
    return isinstance(record, dict) and record.get("source") is True and "error" in record


def extract_food_items(text: str) -> List[Dict[str, Any]]:
    names = _find_strings(text, "name")[:MAX_PARTIAL_ITEMS]
    if not names:
        return []
    weights = _find_strings(text, "estimatedWeight")
    confidences = [value.lower() for value in _find_strings(text, "confidence")]
    numbers = {field: _find_numbers(text, field) for field in NUMERIC_NUTRITION_FIELDS}

    items = []
    for index, name in enumerate(names):
        if not name:
            continue
        confidence = _at(confidences, index, DEFAULT_ITEM_CONFIDENCE)
        if confidence not in _ITEM_CONFIDENCE_VALUES:
            confidence = DEFAULT_ITEM_CONFIDENCE
        items.append(
            {
                "name": name,
                "estimatedWeight": _at(weights, index, DEFAULT_ESTIMATED_WEIGHT),
                "confidence": confidence,
                "nutritionalInfo": {field: _at(numbers[field], index, 0) for field in NUMERIC_NUTRITION_FIELDS},
            }
        )
    return items


def extract_total_nutrition(text: str) -> Optional[Dict[str, Any]]:
    segment = _bracket_segment(text, "totalNutrition", "{")
    if segment is None:
        return None
    totals = {}
    for field in NUMERIC_NUTRITION_FIELDS:
        values = _find_numbers(segment, field)
        if values:
            totals[field] = values[0]
    return totals or None


def extract_meals(text: str) -> List[Dict[str, Any]]:
    titles = _find_strings(text, "title")[:MAX_PARTIAL_ITEMS]
    meal_types = _find_strings(text, "mealType")
    types = _find_strings(text, "type")
    calories = _find_numbers(text, "calories")

    meals = []
    for index, title in enumerate(titles):
        if not title:
            continue
        meal_calories = _at(calories, index, None)
        meal: Dict[str, Any] = {
            "title": title,
            "mealType": _at(meal_types, index, None) or _at(types, index, DEFAULT_MEAL_TYPE),
        }
        if meal_calories is None:
            meal["calories"] = DEFAULT_MEAL_CALORIES
            meal["nutritionalInfo"] = nutritional_info_for_calories(DEFAULT_MEAL_CALORIES)
        else:
            meal["calories"] = meal_calories
            meal["nutritionalInfo"] = nutritional_info_for_calories(meal_calories)
        meals.append(meal)
    return meals


def extract_ingredient_map(text: str) -> Dict[str, str]:
    segment = _bracket_segment(text, "ingredients", "{")
    if segment is None:
        return {}
    ingredients = {}
    for match in _PAIR_RE.finditer(segment):
        name = _unescape(match.group(1)).strip()
        if not name or name in _MEAL_FIELD_KEYS:
            continue
        ingredients[name] = _unescape(match.group(2)).strip()
    return ingredients


def extract_ingredient_list(text: str) -> List[str]:
    segment = _bracket_segment(text, "ingredients", "[")
    if segment is None:
        return []
    return _value_literals(segment)


def extract_instructions(text: str) -> List[str]:
    for field in ("instructions", "steps"):
        segment = _bracket_segment(text, field, "[")
        if segment is not None:
            steps = _value_literals(segment)
            if steps:
                return steps
    return []


def extract_suggested_meals(text: str) -> List[Dict[str, Any]]:
    """Wrap each string value inside ``suggestedMeals`` as a meal stub."""
    segment = _bracket_segment(text, "suggestedMeals", "[")
    if segment is None:
        return []
    return [{"title": literal} for literal in _value_literals(segment)]


def _extract_meal_core(text: str) -> Dict[str, Any]:
    record: Dict[str, Any] = {}
    titles = _find_strings(text, "title")
    if titles and titles[0]:
        record["title"] = titles[0]
    ingredients: Any = extract_ingredient_map(text) or extract_ingredient_list(text)
    if ingredients:
        record["ingredients"] = ingredients
    instructions = extract_instructions(text)
    if instructions:
        record["instructions"] = instructions
    calories = [value for value in _find_numbers(text, "calories") if value is not None]
    if calories:
        record["calories"] = calories[0]
        nutrition_segment = _bracket_segment(text, "nutritionalInfo", "{")
        info = {}
        if nutrition_segment is not None:
            for field in NUMERIC_NUTRITION_FIELDS:
                values = _find_numbers(nutrition_segment, field)
                if values:
                    info[field] = values[0]
        record["nutritionalInfo"] = info or nutritional_info_for_calories(calories[0])
    if len(titles) > 1:
        meals = extract_meals(text)
        if meals:
            record["meals"] = meals
    return record


def extract_partial_data(text: str, kind: Optional[Any] = None) -> Dict[str, Any]:
    """Recover known fields from unparseable text; returns the failure sentinel when nothing matches."""
    if not isinstance(text, str) or not text.strip():
        return extraction_failure("No text to extract from")
    operation = resolve_operation_kind(kind)
    record: Dict[str, Any] = {}

    if operation in (None, OperationKind.FOOD_ANALYSIS, OperationKind.FRIDGE_ANALYSIS):
        items = extract_food_items(text)
        if items:
            record["foodItems"] = items
            if operation != OperationKind.FRIDGE_ANALYSIS:
                record["totalNutrition"] = extract_total_nutrition(text) or sum_nutrition(items)
        suggestions = extract_suggested_meals(text)
        if suggestions:
            record["suggestedMeals"] = suggestions

    if operation in (None, OperationKind.MEAL_GENERATION):
        for key, value in _extract_meal_core(text).items():
            record.setdefault(key, value)

    if not record:
        return extraction_failure("No recognizable fields found in model response")
    record["confidence"] = ConfidenceTag.EXTRACTED.value
    return record


def _section_lines(text: str, headers: Tuple[str, ...]) -> List[str]:
    collected: List[str] = []
    active = False
    for line in text.splitlines():
        stripped = line.strip()
        header = _SECTION_HEADER_RE.match(stripped)
        if header:
            if collected:
                break
            active = header.group(1).lower() in headers
            continue
        if not active:
            continue
        if not stripped:
            if collected:
                break
            continue
        bullet = _BULLET_RE.match(stripped)
        if bullet:
            collected.append(bullet.group(1).strip())
        elif collected:
            break
    return collected


def _split_amount(line: str) -> Tuple[str, str]:
    match = _AMOUNT_PREFIX_RE.match(line)
    if match:
        return match.group(2).strip(), match.group(1).strip()
    return line.strip(), "as needed"


def _first_match(pattern: str, text: str) -> Optional[str]:
    match = re.search(pattern, text, re.IGNORECASE)
    if not match:
        return None
    value = match.group(1).strip().strip('"').strip()
    return value or None


def extract_meal_fields(text: str) -> Dict[str, Any]:
    """Pull meal fields out of arbitrary text, JSON-shaped or not."""
    if not isinstance(text, str) or not text.strip():
        return {}
    record: Dict[str, Any] = {}

    for field, pattern in _RAW_TEXT_FIELDS.items():
        value = _first_match(pattern, text)
        if value:
            record[field] = value

    ingredients: Any = extract_ingredient_map(text) or extract_ingredient_list(text)
    if not ingredients:
        lines = _section_lines(text, ("ingredients",))
        ingredients = dict(_split_amount(line) for line in lines)
    if ingredients:
        record["ingredients"] = ingredients

    instructions = extract_instructions(text) or _section_lines(
        text, ("instructions", "directions", "steps", "method")
    )
    if instructions:
        record["instructions"] = instructions

    calories_match = _RAW_CALORIES_RE.search(text)
    if calories_match:
        calories = coerce_number(calories_match.group(1) or calories_match.group(2))
        if calories is not None:
            record["calories"] = calories
            record["nutritionalInfo"] = nutritional_info_for_calories(calories)

    servings_match = _RAW_SERVINGS_RE.search(text)
    servings = coerce_number(servings_match.group(1)) if servings_match else None
    if servings is not None:
        record["servings"] = servings

    categories_segment = _bracket_segment(text, "categories", "[")
    if categories_segment is not None:
        categories = _value_literals(categories_segment)
    else:
        raw_categories = _first_match(_RAW_CATEGORIES_RE.pattern, text)
        categories = [part.strip().strip('"') for part in raw_categories.split(",")] if raw_categories else []
    categories = [category for category in categories if category]
    if categories:
        record["categories"] = categories

    if record:
        record["confidence"] = ConfidenceTag.EXTRACTED.value
    return record
