import pytest

from mealbattle.app.services.ai_response.fallback import build_fallback_response


@pytest.mark.parametrize("error", ["timeout", "", None, ValueError("bad json")])
def test_meal_fallback_is_never_empty(error):
    record = build_fallback_response("meal_generation", error)
    assert record["ingredients"]
    assert record["instructions"]
    assert record["confidence"] == "low"
    assert record["nutritionalInfo"] == {"calories": 300, "protein": 15, "carbs": 30, "fat": 10}
    assert isinstance(record["error"], str) and record["error"]


def test_fridge_fallback():
    record = build_fallback_response("fridge_analysis", "no JSON")
    assert record == {
        "ingredients": [],
        "suggestedMeals": [],
        "confidence": "low",
        "error": True,
        "message": "no JSON",
    }


def test_food_fallback_alias():
    record = build_fallback_response("tasty_analysis", "no JSON")
    assert record["foodItems"] == []
    assert record["totalNutrition"]["calories"] == 0
    assert record["error"] is True


def test_unknown_kind_fallback():
    assert build_fallback_response("smoothie_analysis", "nope") == {"error": True, "message": "nope"}
