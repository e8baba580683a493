"""Field names and limits used across the AI response pipeline."""

NUMERIC_NUTRITION_FIELDS = (
    "calories",
    "protein",
    "carbs",
    "fat",
    "fiber",
    "sugar",
    "sodium",
)

# Top-level numeric fields that are not nutrition values.
NUMERIC_SCALAR_FIELDS = ("healthScore", "servings")

NUTRITION_CONTAINERS = ("nutritionalInfo", "totalNutrition")

# Lists whose entries may carry their own nutrition block.
NESTED_RECORD_LISTS = ("foodItems", "ingredients", "meals", "suggestedMeals")

MAX_PARTIAL_ITEMS = 10

DEFAULT_ESTIMATED_WEIGHT = "100g"
DEFAULT_ITEM_CONFIDENCE = "medium"
DEFAULT_MEAL_TYPE = "main"
DEFAULT_MEAL_CALORIES = 300

# Share of energy per macro and kcal per gram.
MACRO_ENERGY_SPLIT = {"protein": 0.20, "carbs": 0.40, "fat": 0.30}
KCAL_PER_GRAM = {"protein": 4, "carbs": 4, "fat": 9}

UNIT_SUFFIXES = (
    "mg",
    "kg",
    "g",
    "ml",
    "kcal",
    "cal",
    "oz",
    "lbs",
    "lb",
    "cups",
    "cup",
    "tbsp",
    "tsp",
)

# Prefixes callers write into the text slot when generation itself failed.
ERROR_SENTINEL_PREFIXES = ("error:", "[error]", "error -", "failed:")

MIN_SUGGESTED_MEAL_TITLE_LENGTH = 5

# Keys the model uses inside suggested meals; a "title" equal to one of these
# is a key that regex extraction picked up by mistake.
SUGGESTED_MEAL_FIELD_NAMES = frozenset(
    {
        "title",
        "name",
        "description",
        "cookingtime",
        "cooktime",
        "preptime",
        "totaltime",
        "difficulty",
        "ingredients",
        "missingingredients",
        "instructions",
        "steps",
        "servings",
        "calories",
        "nutritionalinfo",
        "mealtype",
        "type",
        "cuisine",
        "categories",
        "tags",
        "suggestedmeals",
    }
)

DIFFICULTY_VALUES = frozenset(
    {"easy", "medium", "hard", "beginner", "intermediate", "advanced", "simple"}
)
