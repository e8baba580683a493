import json

import pytest

from mealbattle.app.services.ai_response.errors import AIResponseParseError
from mealbattle.app.services.ai_response.models import OperationKind
from mealbattle.app.services.ai_response.structural import (
    aggressive_cleanup,
    extract_structured,
    parse_json_object,
    repair_truncation,
    strip_markdown_fences,
)


def test_strip_markdown_fences():
    assert strip_markdown_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_markdown_fences('  {"a": 1}  ') == '{"a": 1}'
    assert strip_markdown_fences('```\n{"a": 1}   \n```  \n') == '{"a": 1}'


def test_strip_markdown_fences_keeps_text_before_long_whitespace():
    text = '{"title": "Soup"' + " " * 5000 + "x"
    assert strip_markdown_fences(text) == text


def test_repair_truncation_drops_dangling_key():
    assert repair_truncation('{"a": 1, "b":') == '{"a": 1'


def test_repair_truncation_drops_half_written_element():
    assert repair_truncation('{"items": ["one", "tw') == '{"items": ["one"'


def test_repair_truncation_leaves_complete_text():
    assert repair_truncation('{"a": 1}') == '{"a": 1}'


def test_parse_json_object_finds_object_inside_prose():
    assert parse_json_object('Here you go: {"a": 1} enjoy') == {"a": 1}


def test_parse_json_object_reports_last_strategy():
    with pytest.raises(AIResponseParseError) as exc_info:
        parse_json_object("no json here")
    assert exc_info.value.strategy == "brace_slice"

    with pytest.raises(AIResponseParseError) as exc_info:
        parse_json_object("   ")
    assert exc_info.value.strategy == "markdown_strip"


def test_aggressive_cleanup_handles_smart_quotes_and_trailing_commas():
    cleaned = aggressive_cleanup("{\u201ctitle\u201d: \u201cSoup\u201d,}")
    assert json.loads(cleaned) == {"title": "Soup"}


def test_aggressive_cleanup_separates_adjacent_objects():
    cleaned = aggressive_cleanup('{"meals": [{"a": 1} {"a": 2}]}')
    assert json.loads(cleaned) == {"meals": [{"a": 1}, {"a": 2}]}


def test_aggressive_cleanup_inserts_missing_key_comma():
    assert json.loads(aggressive_cleanup('{"a": 1 "b": 2}')) == {"a": 1, "b": 2}


def test_extract_structured_falls_back_to_partial_extraction():
    text = '{"foodItems": [{"name": "Apple", "estimatedWeight": "150g", "calories": 95 :: }]}'
    record = extract_structured(text, OperationKind.FOOD_ANALYSIS)
    assert record["confidence"] == "extracted"
    item = record["foodItems"][0]
    assert item["name"] == "Apple"
    assert item["estimatedWeight"] == "150g"
    assert item["nutritionalInfo"]["calories"] == 95
    assert record["totalNutrition"]["calories"] == 95


def test_extract_structured_raises_when_nothing_is_recoverable():
    with pytest.raises(AIResponseParseError) as exc_info:
        extract_structured("{ :: }")
    assert exc_info.value.strategy == "partial_extraction"
