from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class DailySummary(BaseModel):
    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    meal_totals: Dict[str, float] = Field(default_factory=dict, alias="mealTotals")
    last_updated: Optional[str] = Field(None, alias="lastUpdated")

    model_config = ConfigDict(populate_by_name=True)


class DailySummaryResponse(BaseModel):
    date: str
    deleted: bool = False
    summary: Optional[DailySummary] = None
