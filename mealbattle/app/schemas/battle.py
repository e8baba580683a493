from typing import List, Optional

from pydantic import BaseModel


class BattleIngredient(BaseModel):
    id: str
    name: str
    image: Optional[str] = None


class RankedParticipant(BaseModel):
    user_id: str
    votes: int
    position: int
    points_awarded: int


class BattleGenerateResult(BaseModel):
    battle_key: Optional[str] = None
    created: bool


class BattleEndResult(BaseModel):
    processed: bool
    winners: List[RankedParticipant] = []
