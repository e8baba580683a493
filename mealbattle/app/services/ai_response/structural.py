"""Locate and parse the JSON object inside raw model text."""

import json
import logging
import math
import re
from typing import Any, Dict, Optional

from mealbattle.app.services.ai_response.errors import AIResponseParseError
from mealbattle.app.services.ai_response.models import OperationKind
from mealbattle.app.services.ai_response.partial import extract_partial_data, is_extraction_failure
from mealbattle.app.services.ai_response.sanitizer import is_structurally_complete, sanitize_json_text

logger = logging.getLogger(__name__)

_LEADING_FENCE_RE = re.compile(r"^```[a-zA-Z0-9_-]*\s*")

_SMART_QUOTES = {
    "\u201c": '"',
    "\u201d": '"',
    "\u201e": '"',
    "\u2018": "'",
    "\u2019": "'",
}

# "chop the" "onions" -> one string; "Step one" "Step two" -> two elements
_BROKEN_STRING_RE = re.compile(r'(?<=[^\s\\,\[:{])"\s+"(?=[a-z])')
_MISSING_ELEMENT_COMMA_RE = re.compile(r'(?<=[^\s\\,\[:{])"\s+"(?=[^\s,:\]}])')
_MISSING_KEY_COMMA_RE = re.compile(r'("|\d|true|false|null|[}\]])\s+("[^"]*"\s*:)')
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_LEADING_COMMA_RE = re.compile(r"([{\[])\s*,")
_DOUBLE_COMMA_RE = re.compile(r",\s*(?:,\s*)+")
_ADJACENT_OBJECTS_RE = re.compile(r"}\s*{")
_ADJACENT_ARRAYS_RE = re.compile(r"]\s*\[")

# Dangling fragments left behind when generation stops mid-token.
_DANGLING_ELEMENT_RE = re.compile(r',\s*"[^"]*$')
_DANGLING_KEY_RE = re.compile(r',\s*"[^"]*"\s*:\s*$')
_DANGLING_COMMA_RE = re.compile(r",\s*$")


def strip_markdown_fences(text: str) -> str:
    cleaned = (text or "").strip()
    cleaned = _LEADING_FENCE_RE.sub("", cleaned, count=1)
    # No regex for the closing fence: a trailing \s* rescans long whitespace runs.
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def repair_truncation(text: str) -> str:
    """Trim half-written trailing tokens so bracket balancing yields valid JSON."""
    repaired = (text or "").rstrip()
    if not repaired or is_structurally_complete(repaired):
        return repaired
    repaired = _DANGLING_KEY_RE.sub("", repaired)
    repaired = _DANGLING_ELEMENT_RE.sub("", repaired)
    repaired = _DANGLING_COMMA_RE.sub("", repaired)
    return repaired


def aggressive_cleanup(text: str) -> str:
    cleaned = text
    for smart, plain in _SMART_QUOTES.items():
        cleaned = cleaned.replace(smart, plain)
    cleaned = cleaned.replace("\u00a0", " ")
    cleaned = re.sub(r"\s+", " ", cleaned)
    cleaned = _BROKEN_STRING_RE.sub(" ", cleaned)
    cleaned = _MISSING_ELEMENT_COMMA_RE.sub('", "', cleaned)
    cleaned = _MISSING_KEY_COMMA_RE.sub(r"\1, \2", cleaned)
    cleaned = _ADJACENT_OBJECTS_RE.sub("}, {", cleaned)
    cleaned = _ADJACENT_ARRAYS_RE.sub("], [", cleaned)
    cleaned = _DOUBLE_COMMA_RE.sub(",", cleaned)
    cleaned = _LEADING_COMMA_RE.sub(r"\1", cleaned)
    cleaned = _TRAILING_COMMA_RE.sub(r"\1", cleaned)
    return sanitize_json_text(cleaned)


def _finite_float(literal: str) -> float:
    value = float(literal)
    return value if math.isfinite(value) else 0.0


def _non_finite_constant(name: str) -> int:
    # NaN, Infinity and -Infinity cannot be stored; treat them like a missing number.
    return 0


def _loads_object(text: str) -> Dict[str, Any]:
    try:
        data = json.loads(text, parse_float=_finite_float, parse_constant=_non_finite_constant)
    except RecursionError as exc:
        raise ValueError("JSON nested too deeply") from exc
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data


def _slice_outer_object(text: str) -> Optional[str]:
    start = text.find("{")
    if start == -1:
        return None
    end = text.rfind("}")
    if end > start:
        return text[start : end + 1]
    return text[start:]


def parse_json_object(text: str) -> Dict[str, Any]:
    """Fence strip, sanitize, parse; then retry on the outermost ``{...}`` span after cleanup."""
    cleaned = strip_markdown_fences(text)
    if not cleaned:
        raise AIResponseParseError("empty response", "markdown_strip")
    # Valid JSON is returned as is; the sanitizer collapses whitespace inside strings.
    try:
        return _loads_object(cleaned)
    except ValueError:
        pass
    try:
        return _loads_object(sanitize_json_text(cleaned))
    except ValueError as exc:
        logger.debug("Standard parse failed: %s", exc)

    snippet = _slice_outer_object(cleaned)
    if snippet is None:
        raise AIResponseParseError("no JSON object found in response", "brace_slice")
    try:
        return _loads_object(aggressive_cleanup(snippet))
    except ValueError as exc:
        raise AIResponseParseError(f"cleanup parse failed: {exc}", "aggressive_cleanup") from exc


def extract_structured(text: str, kind: Optional[OperationKind] = None) -> Dict[str, Any]:
    """Return a JSON object from model text, or the partially extracted record when parsing fails."""
    try:
        return parse_json_object(text)
    except AIResponseParseError as exc:
        if exc.strategy != "aggressive_cleanup":
            raise
        logger.warning("Structured parse failed, trying partial extraction: %s", exc)

    snippet = _slice_outer_object(strip_markdown_fences(text)) or ""
    partial = extract_partial_data(snippet, kind)
    if is_extraction_failure(partial):
        raise AIResponseParseError(str(partial.get("error")), "partial_extraction")
    return partial
