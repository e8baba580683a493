from fastapi import APIRouter, Depends

from mealbattle.app.api.deps import get_document_store, get_text_generator, require_admin_secret
from mealbattle.app.schemas.battle import BattleEndResult, BattleGenerateResult
from mealbattle.app.services import battle_service
from mealbattle.app.services.document_store import DocumentStore
from mealbattle.app.services.llm_client import TextGenerator

router = APIRouter(prefix="/admin/battles", tags=["battles"], dependencies=[Depends(require_admin_secret)])


@router.post("/generate", response_model=BattleGenerateResult)
async def generate_battle(
    store: DocumentStore = Depends(get_document_store),
    generator: TextGenerator = Depends(get_text_generator),
):
    key = await battle_service.generate_battle_ingredients(store, generator)
    return BattleGenerateResult(battle_key=key, created=key is not None)


@router.post("/process-end", response_model=BattleEndResult)
def process_battle_end(store: DocumentStore = Depends(get_document_store)):
    winners = battle_service.process_battle_end(store)
    return BattleEndResult(processed=winners is not None, winners=winners or [])
