"""Required-field rules per operation kind."""

from typing import Any, Callable, Dict, List, Optional

from mealbattle.app.services.ai_response.errors import AIResponseValidationError
from mealbattle.app.services.ai_response.models import (
    ConfidenceTag,
    OperationKind,
    ResponseStatus,
    resolve_operation_kind,
)
from mealbattle.app.services.ai_response.partial import is_extraction_failure


def has_content(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (str, list, dict, tuple)):
        return len(value) > 0
    return True


def _missing(record: Dict[str, Any], fields: List[str]) -> List[str]:
    return [field for field in fields if not has_content(record.get(field))]


def _require_meal_content(record: Dict[str, Any]) -> List[str]:
    return _missing(record, ["ingredients", "instructions"])


_REQUIRED_FIELD_RULES: Dict[OperationKind, Callable[[Dict[str, Any]], List[str]]] = {
    OperationKind.MEAL_GENERATION: _require_meal_content,
}

# Any one of these fields is enough to keep a partially recovered record.
_PARTIAL_ACCEPT_FIELDS: Dict[OperationKind, List[str]] = {
    OperationKind.MEAL_GENERATION: ["ingredients", "instructions"],
    OperationKind.FOOD_ANALYSIS: ["foodItems", "suggestedMeals"],
    OperationKind.FRIDGE_ANALYSIS: ["ingredients", "foodItems", "suggestedMeals"],
}


def _is_usable_mapping(record: Any) -> bool:
    return isinstance(record, dict) and bool(record) and not is_extraction_failure(record)


def validate_response(record: Any, kind: Any) -> None:
    operation = resolve_operation_kind(kind)
    kind_name = operation.value if operation else str(kind)
    if not _is_usable_mapping(record):
        raise AIResponseValidationError(kind_name, ["content"])
    rule = _REQUIRED_FIELD_RULES.get(operation)
    missing = rule(record) if rule else []
    if missing:
        raise AIResponseValidationError(kind_name, missing)


def is_valid_partial_response(record: Any, kind: Any) -> bool:
    if not _is_usable_mapping(record):
        return False
    fields: Optional[List[str]] = _PARTIAL_ACCEPT_FIELDS.get(resolve_operation_kind(kind))
    if fields is None:
        return any(key != "confidence" for key in record)
    return any(has_content(record.get(field)) for field in fields)


def classify_response(record: Any, kind: Any) -> ResponseStatus:
    if not _is_usable_mapping(record) or record.get("error") is True:
        return ResponseStatus.FAILURE
    # Fallback records are tagged low and carry the originating error.
    if record.get("confidence") == ConfidenceTag.LOW.value:
        return ResponseStatus.FAILURE
    try:
        validate_response(record, kind)
    except AIResponseValidationError:
        return ResponseStatus.PARTIAL if is_valid_partial_response(record, kind) else ResponseStatus.FAILURE
    if record.get("confidence") in (ConfidenceTag.MEDIUM.value, ConfidenceTag.EXTRACTED.value):
        return ResponseStatus.PARTIAL
    return ResponseStatus.SUCCESS
