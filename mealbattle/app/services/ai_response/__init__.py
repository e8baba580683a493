"""AI response recovery package.

Turns the text a language model returned into a record that can be written
straight into the document store, using a chain of strategies: structural
JSON repair, regex field extraction, and finally a safe placeholder.
"""

from mealbattle.app.services.ai_response.errors import (
    AIResponseError,
    AIResponseParseError,
    AIResponseValidationError,
)
from mealbattle.app.services.ai_response.fallback import build_fallback_response
from mealbattle.app.services.ai_response.models import (
    ConfidenceTag,
    OperationKind,
    ResponseStatus,
    StrategyResult,
    StrategyStatus,
    resolve_operation_kind,
)
from mealbattle.app.services.ai_response.normalizer import (
    coerce_number,
    derive_macro_split,
    filter_suggested_meals,
    normalize_response,
    nutritional_info_for_calories,
)
from mealbattle.app.services.ai_response.orchestrator import is_error_sentinel, process_ai_response
from mealbattle.app.services.ai_response.partial import extract_meal_fields, extract_partial_data
from mealbattle.app.services.ai_response.sanitizer import sanitize_json_text
from mealbattle.app.services.ai_response.structural import (
    aggressive_cleanup,
    extract_structured,
    repair_truncation,
    strip_markdown_fences,
)
from mealbattle.app.services.ai_response.validators import (
    classify_response,
    is_valid_partial_response,
    validate_response,
)

__all__ = [
    # Models
    "ConfidenceTag",
    "OperationKind",
    "ResponseStatus",
    "StrategyResult",
    "StrategyStatus",
    "resolve_operation_kind",
    # Errors
    "AIResponseError",
    "AIResponseParseError",
    "AIResponseValidationError",
    # Repair and extraction
    "aggressive_cleanup",
    "extract_meal_fields",
    "extract_partial_data",
    "extract_structured",
    "repair_truncation",
    "sanitize_json_text",
    "strip_markdown_fences",
    # Validation and normalization
    "classify_response",
    "coerce_number",
    "derive_macro_split",
    "filter_suggested_meals",
    "is_valid_partial_response",
    "normalize_response",
    "nutritional_info_for_calories",
    "validate_response",
    # Entry points
    "build_fallback_response",
    "is_error_sentinel",
    "process_ai_response",
]
