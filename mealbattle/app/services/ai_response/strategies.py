"""Recovery strategies, each returning a tagged StrategyResult instead of raising."""

from typing import Callable, Optional, Sequence

from mealbattle.app.services.ai_response.errors import AIResponseParseError, AIResponseValidationError
from mealbattle.app.services.ai_response.models import OperationKind, StrategyResult
from mealbattle.app.services.ai_response.normalizer import normalize_response
from mealbattle.app.services.ai_response.partial import (
    extract_meal_fields,
    extract_partial_data,
    is_extraction_failure,
)
from mealbattle.app.services.ai_response.structural import (
    extract_structured,
    parse_json_object,
    repair_truncation,
    strip_markdown_fences,
)
from mealbattle.app.services.ai_response.validators import is_valid_partial_response, validate_response

Strategy = Callable[[str, Optional[OperationKind]], StrategyResult]


def _accept_partial(name: str, record: dict, kind: Optional[OperationKind]) -> StrategyResult:
    normalized = normalize_response(record, kind)
    if is_valid_partial_response(normalized, kind):
        return StrategyResult.ok(name, normalized)
    return StrategyResult.retry(name, "recovered fields are not enough for a usable record", record=normalized)


def parse_meal_json(text: str, kind: Optional[OperationKind]) -> StrategyResult:
    name = "parse_meal_json"
    candidate = repair_truncation(strip_markdown_fences(text))
    try:
        record = parse_json_object(candidate)
    except AIResponseParseError as exc:
        return StrategyResult.fail(name, str(exc))
    if not record:
        return StrategyResult.fail(name, "model returned an empty object")
    normalized = normalize_response(record, kind)
    try:
        validate_response(normalized, kind)
    except AIResponseValidationError as exc:
        return StrategyResult.retry(name, str(exc), record=normalized)
    return StrategyResult.ok(name, normalized)


def extract_meal_partial(text: str, kind: Optional[OperationKind]) -> StrategyResult:
    name = "extract_meal_partial"
    record = extract_partial_data(repair_truncation(strip_markdown_fences(text)), OperationKind.MEAL_GENERATION)
    if is_extraction_failure(record):
        return StrategyResult.fail(name, record["error"])
    return _accept_partial(name, record, kind)


def extract_meal_raw_fields(text: str, kind: Optional[OperationKind]) -> StrategyResult:
    name = "extract_meal_raw_fields"
    record = extract_meal_fields(strip_markdown_fences(text))
    if not record:
        return StrategyResult.fail(name, "no meal fields found in model response")
    return _accept_partial(name, record, kind)


def parse_structured(text: str, kind: Optional[OperationKind]) -> StrategyResult:
    name = "parse_structured"
    try:
        record = extract_structured(text, kind)
    except AIResponseParseError as exc:
        return StrategyResult.fail(name, str(exc))
    if not record:
        return StrategyResult.fail(name, "model returned an empty object")
    normalized = normalize_response(record, kind)
    try:
        validate_response(normalized, kind)
    except AIResponseValidationError as exc:
        return StrategyResult.retry(name, str(exc), record=normalized)
    return StrategyResult.ok(name, normalized)


def extract_partial(text: str, kind: Optional[OperationKind]) -> StrategyResult:
    name = "extract_partial"
    record = extract_partial_data(strip_markdown_fences(text), kind)
    if is_extraction_failure(record):
        return StrategyResult.fail(name, record["error"])
    return _accept_partial(name, record, kind)


MEAL_GENERATION_STRATEGIES: Sequence[Strategy] = (
    parse_meal_json,
    extract_meal_partial,
    extract_meal_raw_fields,
)

DEFAULT_STRATEGIES: Sequence[Strategy] = (
    parse_structured,
    extract_partial,
)


def strategies_for(kind: Optional[OperationKind]) -> Sequence[Strategy]:
    if kind == OperationKind.MEAL_GENERATION:
        return MEAL_GENERATION_STRATEGIES
    return DEFAULT_STRATEGIES
