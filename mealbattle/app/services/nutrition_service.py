"""Per-day nutrition totals derived from a user's logged meals."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from mealbattle.app.services.ai_response import coerce_number
from mealbattle.app.services.document_store import DocumentStore

logger = logging.getLogger(__name__)

SUMMARY_FIELDS = ("calories", "protein", "carbs", "fat")


def meals_collection(user_id: str) -> str:
    return f"userMeals/{user_id}/meals"


def summary_collection(user_id: str) -> str:
    return f"users/{user_id}/daily_summary"


def _amount(item: Any, field: str) -> float:
    if not isinstance(item, dict):
        return 0
    return coerce_number(item.get(field)) or 0


def summarize_meals(meals: Any) -> Dict[str, Any]:
    """Total the macros over every meal-type list, with a calorie subtotal per meal type."""
    totals: Dict[str, Any] = {field: 0 for field in SUMMARY_FIELDS}
    meal_totals: Dict[str, Any] = {}
    if isinstance(meals, dict):
        for meal_type, items in meals.items():
            if not isinstance(items, list):
                continue
            meal_calories = 0
            for item in items:
                meal_calories += _amount(item, "calories")
                for field in SUMMARY_FIELDS:
                    totals[field] += _amount(item, field)
            meal_totals[meal_type] = meal_calories
    totals["mealTotals"] = meal_totals
    return totals


def recalculate_daily_summary(store: DocumentStore, user_id: str, date: str) -> Optional[Dict[str, Any]]:
    """Rebuild ``users/{uid}/daily_summary/{date}``; the summary is removed when the day's meals are gone."""
    day = store.get(meals_collection(user_id), date)
    if day is None:
        logger.info("Meals deleted for %s on %s; removing daily summary", user_id, date)
        store.delete(summary_collection(user_id), date)
        return None
    summary = summarize_meals(day.get("meals") or {})
    summary["lastUpdated"] = datetime.now(timezone.utc).isoformat()
    logger.info("Updating daily summary for %s on %s: %s kcal", user_id, date, summary["calories"])
    # Top-level merge: fields written by clients survive, stale meal subtotals do not.
    existing = store.get(summary_collection(user_id), date) or {}
    return store.set(summary_collection(user_id), date, {**existing, **summary})


def get_daily_summary(store: DocumentStore, user_id: str, date: str) -> Optional[Dict[str, Any]]:
    return store.get(summary_collection(user_id), date)
