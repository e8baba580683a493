"""Single entry point that turns raw model text into a storable record."""

import logging
from typing import Any, Dict, Optional, Sequence

from mealbattle.app.services.ai_response.constants import ERROR_SENTINEL_PREFIXES
from mealbattle.app.services.ai_response.fallback import build_fallback_response
from mealbattle.app.services.ai_response.models import (
    ConfidenceTag,
    OperationKind,
    StrategyResult,
    StrategyStatus,
    resolve_operation_kind,
)
from mealbattle.app.services.ai_response.normalizer import normalize_response
from mealbattle.app.services.ai_response.strategies import Strategy, strategies_for
from mealbattle.app.services.ai_response.validators import has_content, is_valid_partial_response

logger = logging.getLogger(__name__)

_LOG_PREVIEW_CHARS = 500


def is_error_sentinel(text: str) -> bool:
    return text.strip().lower().startswith(ERROR_SENTINEL_PREFIXES)


def _run_strategy(strategy: Strategy, text: str, kind: Optional[OperationKind]) -> StrategyResult:
    name = getattr(strategy, "__name__", repr(strategy))
    try:
        return strategy(text, kind)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Strategy %s raised unexpectedly", name)
        return StrategyResult.fail(name, f"{type(exc).__name__}: {exc}")


def run_strategies(
    text: str,
    kind: Optional[OperationKind],
    strategies: Sequence[Strategy],
) -> tuple[Optional[StrategyResult], Optional[StrategyResult], Optional[str]]:
    """Try each strategy in order.

    Returns ``(accepted, best_effort, last_reason)``. ``accepted`` is the first
    ``ok`` result; ``best_effort`` is the first ``retry`` result that carried a
    parsed but incomplete record.
    """
    best_effort: Optional[StrategyResult] = None
    last_reason: Optional[str] = None
    for strategy in strategies:
        result = _run_strategy(strategy, text, kind)
        if result.is_ok:
            logger.info("AI response recovered by %s", result.strategy)
            return result, best_effort, last_reason
        last_reason = f"{result.strategy}: {result.reason}"
        logger.warning("Strategy %s did not produce a usable record: %s", result.strategy, result.reason)
        if result.status == StrategyStatus.RETRY and best_effort is None and result.record:
            best_effort = result
    return None, best_effort, last_reason


def _merge_best_effort(
    fallback: Dict[str, Any], best_effort: Dict[str, Any], kind: Optional[OperationKind]
) -> Dict[str, Any]:
    merged = dict(fallback)
    if "calories" in best_effort and "nutritionalInfo" not in best_effort:
        merged.pop("nutritionalInfo", None)
    for key, value in best_effort.items():
        if key == "confidence" or not has_content(value):
            continue
        merged[key] = value
    merged["confidence"] = ConfidenceTag.MEDIUM.value
    return normalize_response(merged, kind)


def _preview(text: str) -> str:
    return text[:_LOG_PREVIEW_CHARS]


def process_ai_response(text: Any, operation_kind: Any) -> Dict[str, Any]:
    """Return a record for ``text``; falls back to a placeholder instead of raising."""
    kind = resolve_operation_kind(operation_kind)
    try:
        if not isinstance(text, str) or not text.strip():
            logger.warning("Empty AI response for %s", operation_kind)
            return build_fallback_response(kind or operation_kind, "Empty response from AI")
        if is_error_sentinel(text):
            logger.warning("AI call reported an error for %s: %s", operation_kind, _preview(text))
            return build_fallback_response(kind or operation_kind, text.strip())

        accepted, best_effort, last_reason = run_strategies(text, kind, strategies_for(kind))
        if accepted is not None and accepted.record is not None:
            return accepted.record

        logger.warning(
            "All strategies failed for %s; raw response: %s", operation_kind, _preview(text)
        )
        fallback = build_fallback_response(kind or operation_kind, last_reason or "Unparseable AI response")
        # Only merge when the parsed record brings a required field; anything less stays a low fallback.
        if best_effort is not None and is_valid_partial_response(best_effort.record, kind):
            return _merge_best_effort(fallback, best_effort.record, kind)
        return fallback
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unexpected failure while processing AI response for %s", operation_kind)
        return build_fallback_response(kind or operation_kind, str(exc))
