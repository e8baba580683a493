"""Types shared by the AI response recovery pipeline."""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel


class OperationKind(str, Enum):
    MEAL_GENERATION = "meal_generation"
    FOOD_ANALYSIS = "food_analysis"
    FRIDGE_ANALYSIS = "fridge_analysis"


# Older clients send "tasty_analysis"; it shares the food analysis schema.
OPERATION_KIND_ALIASES = {
    "tasty_analysis": OperationKind.FOOD_ANALYSIS,
}


def resolve_operation_kind(value: Any) -> Optional[OperationKind]:
    """Map a raw operation name onto an OperationKind, or None if unknown."""
    if isinstance(value, OperationKind):
        return value
    if not isinstance(value, str):
        return None
    key = value.strip().lower()
    if key in OPERATION_KIND_ALIASES:
        return OPERATION_KIND_ALIASES[key]
    try:
        return OperationKind(key)
    except ValueError:
        return None


class ConfidenceTag(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    EXTRACTED = "extracted"


class ResponseStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILURE = "failure"


class StrategyStatus(str, Enum):
    OK = "ok"
    RETRY = "retry"
    FAIL = "fail"


class StrategyResult(BaseModel):
    """Outcome of a single recovery strategy."""

    status: StrategyStatus
    strategy: str
    record: Optional[Dict[str, Any]] = None
    reason: Optional[str] = None

    @classmethod
    def ok(cls, strategy: str, record: Dict[str, Any]) -> "StrategyResult":
        return cls(status=StrategyStatus.OK, strategy=strategy, record=record)

    @classmethod
    def retry(cls, strategy: str, reason: str, record: Optional[Dict[str, Any]] = None) -> "StrategyResult":
        return cls(status=StrategyStatus.RETRY, strategy=strategy, reason=reason, record=record)

    @classmethod
    def fail(cls, strategy: str, reason: str) -> "StrategyResult":
        return cls(status=StrategyStatus.FAIL, strategy=strategy, reason=reason)

    @property
    def is_ok(self) -> bool:
        return self.status == StrategyStatus.OK
