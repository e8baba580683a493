from mealbattle.app.services.ai_response.models import OperationKind
from mealbattle.app.services.ai_response.partial import (
    extract_food_items,
    extract_meal_fields,
    extract_meals,
    extract_partial_data,
    extract_suggested_meals,
    is_extraction_failure,
)


def test_empty_text_returns_failure_sentinel():
    record = extract_partial_data("", OperationKind.FOOD_ANALYSIS)
    assert is_extraction_failure(record)
    assert record["source"] is True


def test_food_items_are_capped():
    text = ", ".join(f'{{"name": "Item {i}", "calories": {i}}}' for i in range(12))
    items = extract_food_items(text)
    assert len(items) == 10
    assert items[0]["estimatedWeight"] == "100g"
    assert items[0]["confidence"] == "medium"
    assert items[3]["nutritionalInfo"]["calories"] == 3


def test_meals_get_default_type_and_derived_macros():
    text = (
        '{"meals": [{"title": "Oats", "mealType": "breakfast", "calories": 350}, '
        '{"title": "Salad", "calories": 420'
    )
    meals = extract_meals(text)
    assert meals[0]["mealType"] == "breakfast"
    assert meals[1] == {
        "title": "Salad",
        "mealType": "main",
        "calories": 420,
        "nutritionalInfo": {"calories": 420, "protein": 21, "carbs": 42, "fat": 14},
    }


def test_meals_are_capped():
    text = ", ".join(f'{{"title": "Meal {i}", "calories": {100 + i}}}' for i in range(12))
    meals = extract_meals(text)
    assert len(meals) == 10
    assert [meal["title"] for meal in meals] == [f"Meal {i}" for i in range(10)]
    assert meals[9]["calories"] == 109


def test_meal_types_are_zipped_by_position():
    text = (
        '{"meals": [{"title": "Oats", "type": "breakfast"}, '
        '{"title": "Soup"}, {"title": "Stew", "calories": 500}]}'
    )
    meals = extract_meals(text)
    assert [(meal["title"], meal["mealType"]) for meal in meals] == [
        ("Oats", "breakfast"),
        ("Soup", "main"),
        ("Stew", "main"),
    ]
    # Positional: the only calories value lands on the first meal.
    assert meals[0]["calories"] == 500
    assert meals[1]["calories"] == 300
    assert meals[1]["nutritionalInfo"] == {"calories": 300, "protein": 15, "carbs": 30, "fat": 10}


def test_meal_type_missing_on_first_meal_shifts_to_it():
    meals = extract_meals('[{"title": "Oats"}, {"title": "Soup", "mealType": "dinner"}]')
    assert [meal["mealType"] for meal in meals] == ["dinner", "main"]


def test_truncated_meal_json_keeps_ingredients_and_instructions():
    text = (
        '{"title": "Fried Rice", "ingredients": {"rice": "2 cups", "egg": "1"}, '
        '"instructions": ["Heat oil", "Fry rice"'
    )
    record = extract_partial_data(text, OperationKind.MEAL_GENERATION)
    assert record["title"] == "Fried Rice"
    assert record["ingredients"] == {"rice": "2 cups", "egg": "1"}
    assert record["instructions"] == ["Heat oil", "Fry rice"]
    assert record["confidence"] == "extracted"
    assert "meals" not in record


def test_suggested_meal_strings_become_stubs():
    text = '"suggestedMeals": ["Grilled Salmon with Asparagus", "cookingTime"'
    assert extract_suggested_meals(text) == [
        {"title": "Grilled Salmon with Asparagus"},
        {"title": "cookingTime"},
    ]


def test_raw_fields_from_plain_text_recipe():
    text = """Title: Garlic Pasta
Ingredients:
- 200g spaghetti
- 3 cloves garlic
- olive oil

Instructions:
1. Boil the pasta.
2. Fry the garlic.

Calories: 650
Serves 2
"""
    record = extract_meal_fields(text)
    assert record["title"] == "Garlic Pasta"
    assert record["ingredients"] == {"spaghetti": "200g", "garlic": "3 cloves", "olive oil": "as needed"}
    assert record["instructions"] == ["Boil the pasta.", "Fry the garlic."]
    assert record["calories"] == 650
    assert record["nutritionalInfo"]["calories"] == 650
    assert record["servings"] == 2
    assert record["confidence"] == "extracted"


def test_raw_fields_from_broken_json():
    text = '{"title": "Tofu Stir Fry", "difficulty": "easy", "categories": ["vegan", "quick"], "calories": "380 kcal'
    record = extract_meal_fields(text)
    assert record["title"] == "Tofu Stir Fry"
    assert record["difficulty"] == "easy"
    assert record["categories"] == ["vegan", "quick"]
    assert record["calories"] == 380


def test_raw_fields_nothing_found():
    assert extract_meal_fields("I cannot help with that request.") == {}
