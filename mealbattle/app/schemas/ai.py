from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from mealbattle.app.services.ai_response.models import OperationKind, ResponseStatus


class ProcessResponseRequest(BaseModel):
    text: str
    operation_kind: str = Field(..., min_length=1)


class MealGenerationRequest(BaseModel):
    ingredients: List[str] = Field(default_factory=list)
    meal_type: Optional[str] = None
    cuisine: Optional[str] = None
    dietary_preferences: List[str] = Field(default_factory=list)
    calorie_target: Optional[int] = Field(None, gt=0)
    servings: int = Field(1, ge=1, le=20)


class FridgeAnalysisRequest(BaseModel):
    items_description: str = Field(..., min_length=1)
    dietary_preferences: List[str] = Field(default_factory=list)


class FoodAnalysisRequest(BaseModel):
    food_description: str = Field(..., min_length=1)
    portion_notes: Optional[str] = None


class AIResult(BaseModel):
    id: Optional[str] = None
    operation_kind: OperationKind
    status: ResponseStatus
    record: Dict[str, Any]
