"""String-level repair of the JSON malformations language models tend to produce.

Every rule is a pure ``str -> str`` function. ``sanitize_json_text`` applies them
in a fixed order and repeats the chain until the text stops changing, so running
it on its own output is a no-op.
"""

import re
from typing import Callable, List, Sequence, Tuple

from mealbattle.app.services.ai_response.constants import NUMERIC_NUTRITION_FIELDS, UNIT_SUFFIXES

MAX_SANITIZE_PASSES = 5

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_LINE_BREAKS_RE = re.compile(r"[\r\n\t]+")
_REPEATED_WHITESPACE_RE = re.compile(r"\s{2,}")

# "calories": 450"  /  "calories": 450 "  /  "calories": 450""
_TRAILING_NUMBER_QUOTE_RE = re.compile(r'("\s*:\s*-?\d+(?:\.\d+)?)\s*"(?=\s*(?:[,}\]]|$))')

_QUOTED_NUMERIC_FIELD_RE = re.compile(
    r'"(' + "|".join(NUMERIC_NUTRITION_FIELDS) + r')"\s*:\s*"\s*(-?\d+(?:\.\d+)?)\s*"'
)

_UNIT_ALTERNATION = "|".join(sorted(UNIT_SUFFIXES, key=len, reverse=True))
_BARE_UNIT_VALUE_RE = re.compile(
    r'("\s*:\s*)(\d+(?:\.\d+)?\s?(?:' + _UNIT_ALTERNATION + r')\b)"?(?=\s*(?:[,}\]]|$))',
    re.IGNORECASE,
)

# "diet": "Vegetarian", "Gluten-Free", "next": ...
_SPLIT_DIET_RE = re.compile(r'"diet"\s*:\s*"([^"]*)"\s*,\s*"([^"]*)"(?=\s*[,}\]])')
# "diet": "Vegetarian, "Gluten-Free"
_BROKEN_DIET_RE = re.compile(r'"diet"\s*:\s*"([^",]*),\s*"([^"]*)"')

_DOUBLED_QUOTE_RE = re.compile(r'(?<=[^\\:\s,\[{"])""(?=\s*(?:[,}\]:]|$))')

# "Grilled chicken", with herbs and lemon, "next": ...
_UNQUOTED_CONTINUATION_RE = re.compile(
    r'("[^"]*)"\s*,\s*(?!(?:true|false|null)\b)([A-Za-z][^"{}\[\]:]*?)\s*(?=,\s*"|[}\]]|$)'
)

_PAIRS = {"}": "{", "]": "["}


def strip_control_characters(text: str) -> str:
    """Drop control characters and collapse whitespace into single spaces."""
    cleaned = _CONTROL_CHARS_RE.sub("", text)
    cleaned = _LINE_BREAKS_RE.sub(" ", cleaned)
    return _REPEATED_WHITESPACE_RE.sub(" ", cleaned)


def remove_trailing_number_quotes(text: str) -> str:
    """``"field": 6"`` -> ``"field": 6``."""
    previous = None
    cleaned = text
    while previous != cleaned:
        previous = cleaned
        cleaned = _TRAILING_NUMBER_QUOTE_RE.sub(r"\1", cleaned)
    return cleaned


def unquote_numeric_fields(text: str) -> str:
    """``"calories": "450"`` -> ``"calories": 450`` for nutrition fields."""
    return _QUOTED_NUMERIC_FIELD_RE.sub(r'"\1": \2', text)


def quote_unit_values(text: str) -> str:
    """``"protein": 40g`` -> ``"protein": "40g"``."""
    return _BARE_UNIT_VALUE_RE.sub(r'\1"\2"', text)


def repair_split_diet_field(text: str) -> str:
    """Rejoin a ``diet`` value that an unescaped comma split into two tokens."""
    cleaned = text
    while True:
        cleaned, split_count = _SPLIT_DIET_RE.subn(r'"diet": "\1, \2"', cleaned)
        cleaned, broken_count = _BROKEN_DIET_RE.subn(r'"diet": "\1, \2"', cleaned)
        if not split_count and not broken_count:
            return cleaned


def fix_doubled_quotes(text: str) -> str:
    """``"value""`` -> ``"value"``; empty strings are left alone."""
    return _DOUBLED_QUOTE_RE.sub('"', text)


def join_unquoted_continuations(text: str) -> str:
    """Pull unquoted text that follows a closed string back into that string."""
    return _UNQUOTED_CONTINUATION_RE.sub(r'\1, \2"', text)


def scan_brackets(text: str) -> Tuple[List[str], bool, bool]:
    """Return the unclosed openers, whether a string is open, and whether it ends mid-escape."""
    stack: List[str] = []
    in_string = False
    escaped = False
    for ch in text:
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
        elif ch in "{[":
            stack.append(ch)
        elif ch in "}]":
            if stack and stack[-1] == _PAIRS[ch]:
                stack.pop()
    return stack, in_string, escaped


def is_structurally_complete(text: str) -> bool:
    stack, in_string, _ = scan_brackets(text)
    return not stack and not in_string


def balance_brackets(text: str) -> str:
    """Close an unterminated string and append the missing ``]``/``}`` in nesting order."""
    stack, in_string, escaped = scan_brackets(text)
    if not stack and not in_string:
        return text
    repaired = text
    if in_string:
        if escaped:
            repaired = repaired[:-1]
        repaired += '"'
    repaired = repaired.rstrip()
    repaired = re.sub(r",\s*$", "", repaired)
    if re.search(r":\s*$", repaired):
        repaired += " null"
    closers = "".join("}" if opener == "{" else "]" for opener in reversed(stack))
    return repaired + closers


SANITIZE_RULES: Sequence[Callable[[str], str]] = (
    strip_control_characters,
    remove_trailing_number_quotes,
    unquote_numeric_fields,
    quote_unit_values,
    repair_split_diet_field,
    fix_doubled_quotes,
    join_unquoted_continuations,
    balance_brackets,
)


def apply_rules(text: str, rules: Sequence[Callable[[str], str]] = SANITIZE_RULES) -> str:
    for rule in rules:
        text = rule(text)
    return text


def sanitize_json_text(text: str) -> str:
    """Repair near-valid JSON text. Never raises."""
    if not isinstance(text, str):
        text = "" if text is None else str(text)
    current = text
    for _ in range(MAX_SANITIZE_PASSES):
        updated = apply_rules(current)
        if updated == current:
            break
        current = updated
    return current
