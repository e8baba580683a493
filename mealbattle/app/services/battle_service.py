"""Weekly cooking battle jobs: pick the ingredient pair, then score the finished week."""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence
from zoneinfo import ZoneInfo

from mealbattle.app.core.config import Settings, get_settings
from mealbattle.app.schemas.battle import BattleIngredient, RankedParticipant
from mealbattle.app.services.document_store import DocumentStore
from mealbattle.app.services.llm_client import TextGenerator, generate_or_error

logger = logging.getLogger(__name__)

BATTLES_COLLECTION = "battles"
BATTLES_DOC = "general"
GENERAL_COLLECTION = "general"
GENERAL_DOC = "data"
INGREDIENTS_COLLECTION = "ingredients"
POINTS_COLLECTION = "points"
WINNERS_COLLECTION = "winners"

INGREDIENT_PAIR_PROMPT = (
    "Give me two common cooking ingredients that can be paired together for a cooking challenge. "
    "They should be relatively easy to find. Return them as a simple comma-separated list, "
    "for example: 'Chicken Breast, Broccoli'. Do not add any other text, formatting, or quotation marks."
)


def battle_today(settings: Optional[Settings] = None) -> date:
    settings = settings or get_settings()
    return datetime.now(ZoneInfo(settings.battle_timezone)).date()


def battle_key(day: date) -> str:
    return day.strftime("%Y-%m-%d")


def parse_ingredient_names(text: str) -> List[str]:
    return [name.strip().strip("'\"").strip() for name in text.split(",") if name.strip().strip("'\"").strip()]


def find_ingredients(store: DocumentStore, names: Sequence[str]) -> List[BattleIngredient]:
    found: List[BattleIngredient] = []
    for name in names:
        matches = store.find(INGREDIENTS_COLLECTION, "name", name.lower(), limit=1, ignore_case=True)
        if not matches:
            logger.info("Ingredient %r not found in catalogue", name)
            continue
        doc_id, data = matches[0]
        found.append(BattleIngredient(id=doc_id, name=data.get("name", name), image=data.get("image")))
    return found


async def pick_ingredient_pair(
    store: DocumentStore, generator: TextGenerator, max_attempts: int
) -> Optional[List[BattleIngredient]]:
    for attempt in range(1, max_attempts + 1):
        logger.info("Attempt %s to generate and find battle ingredients", attempt)
        text = await generate_or_error(generator, INGREDIENT_PAIR_PROMPT)
        names = parse_ingredient_names(text)
        if len(names) < 2:
            logger.warning("Generator did not return two ingredients. Raw response: %r", text[:500])
            continue
        found = find_ingredients(store, names)
        if len(found) == 2:
            return found
    return None


def latest_battle_key(store: DocumentStore, before: Optional[str] = None) -> Optional[str]:
    battles = store.get(BATTLES_COLLECTION, BATTLES_DOC) or {}
    dates = battles.get("dates")
    if not isinstance(dates, dict):
        return None
    keys = sorted(k for k in dates if before is None or k < before)
    return keys[-1] if keys else None


async def generate_battle_ingredients(
    store: DocumentStore,
    generator: TextGenerator,
    today: Optional[date] = None,
    settings: Optional[Settings] = None,
) -> Optional[str]:
    """Open a new battle week keyed by ``today``; returns the key, or None when no pair was found."""
    settings = settings or get_settings()
    today = today or battle_today(settings)
    ingredients = await pick_ingredient_pair(store, generator, settings.battle_ingredient_max_attempts)
    if not ingredients:
        logger.error("Failed to find two valid ingredients after %s attempts", settings.battle_ingredient_max_attempts)
        return None

    key = battle_key(today)
    deadline = battle_key(today + timedelta(days=settings.battle_duration_days))
    prev_key = latest_battle_key(store, before=key)
    battle = {
        "ingredients": [ingredient.model_dump() for ingredient in ingredients],
        "participants": {},
        "voted": [],
        "status": "active",
        "createdAt": datetime.now(timezone.utc).isoformat(),
        "battleDeadline": deadline,
    }
    if store.exists(BATTLES_COLLECTION, BATTLES_DOC):
        # Replace the whole entry so a re-run on the same day starts with no participants.
        store.update(BATTLES_COLLECTION, BATTLES_DOC, {f"dates.{key}": battle})
    else:
        store.set(BATTLES_COLLECTION, BATTLES_DOC, {"dates": {key: battle}})
    store.set(
        GENERAL_COLLECTION,
        GENERAL_DOC,
        {"currentBattle": key, "prevBattle": prev_key, "battleDeadline": deadline},
        merge=True,
    )
    logger.info("Created battle %s with %s", key, ", ".join(i.name for i in ingredients))
    return key


def _vote_count(entry: Any) -> int:
    if not isinstance(entry, dict):
        return 0
    votes = entry.get("votes")
    if isinstance(votes, (list, tuple, dict)):
        return len(votes)
    if isinstance(votes, int) and not isinstance(votes, bool):
        return votes
    return 0


def rank_participants(participants: Dict[str, Any], points: Sequence[int]) -> List[RankedParticipant]:
    """Order participants by votes (ties keep insertion order) and attach the points for each podium place."""
    ordered = sorted(
        ((user_id, _vote_count(entry)) for user_id, entry in participants.items()),
        key=lambda pair: pair[1],
        reverse=True,
    )
    return [
        RankedParticipant(user_id=user_id, votes=votes, position=index + 1, points_awarded=points[index])
        for index, (user_id, votes) in enumerate(ordered[: len(points)])
    ]


def award_points(store: DocumentStore, user_id: str, points: int) -> int:
    def add(current: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        data = dict(current or {})
        data["points"] = (data.get("points") or 0) + points
        return data

    return store.transaction(POINTS_COLLECTION, user_id, add)["points"]


def process_battle_end(
    store: DocumentStore,
    today: Optional[date] = None,
    settings: Optional[Settings] = None,
) -> Optional[List[RankedParticipant]]:
    """Close the current battle and award points; returns the winners, or None when nothing was scored."""
    settings = settings or get_settings()
    today = today or battle_today(settings)
    general = store.get(GENERAL_COLLECTION, GENERAL_DOC) or {}
    key = general.get("currentBattle")
    if not key:
        logger.info("No current battle key found; nothing to process")
        return None

    battles = store.get(BATTLES_COLLECTION, BATTLES_DOC) or {}
    battle = (battles.get("dates") or {}).get(key)
    if not isinstance(battle, dict):
        logger.error("Data for battle %s not found", key)
        return None

    store.update(BATTLES_COLLECTION, BATTLES_DOC, {f"dates.{key}.status": "ended"})

    participants = battle.get("participants") or {}
    if len(participants) < 2:
        logger.info("Battle %s ended with fewer than two participants; no winners", key)
        return None

    winners = rank_participants(participants, settings.battle_winner_points)
    for winner in winners:
        total = award_points(store, winner.user_id, winner.points_awarded)
        logger.info("Awarded %s points to %s (now %s)", winner.points_awarded, winner.user_id, total)

    store.set(
        WINNERS_COLLECTION,
        f"week_{key}",
        {
            "date": key,
            "winners": {
                winner.user_id: {
                    "position": winner.position,
                    "votes": winner.votes,
                    "pointsAwarded": winner.points_awarded,
                }
                for winner in winners
            },
        },
    )
    store.set(GENERAL_COLLECTION, GENERAL_DOC, {"isAnnounceDate": battle_key(today)}, merge=True)
    logger.info("Processed battle %s; winners: %s", key, [w.user_id for w in winners])
    return winners
