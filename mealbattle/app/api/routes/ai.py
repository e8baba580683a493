from fastapi import APIRouter, Depends, HTTPException, status

from mealbattle.app.api.deps import get_current_user, get_document_store, get_text_generator
from mealbattle.app.schemas.ai import (
    AIResult,
    FoodAnalysisRequest,
    FridgeAnalysisRequest,
    MealGenerationRequest,
    ProcessResponseRequest,
)
from mealbattle.app.schemas.auth import CurrentUser
from mealbattle.app.services import ai_content_service
from mealbattle.app.services.ai_response import classify_response, process_ai_response, resolve_operation_kind
from mealbattle.app.services.document_store import DocumentStore
from mealbattle.app.services.llm_client import TextGenerator

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/process", response_model=AIResult)
def process_response(
    payload: ProcessResponseRequest,
    current_user: CurrentUser = Depends(get_current_user),
):
    kind = resolve_operation_kind(payload.operation_kind)
    if kind is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown operation kind: {payload.operation_kind}",
        )
    record = process_ai_response(payload.text, kind)
    return AIResult(operation_kind=kind, status=classify_response(record, kind), record=record)


@router.post("/meals/generate", response_model=AIResult)
async def generate_meal(
    payload: MealGenerationRequest,
    store: DocumentStore = Depends(get_document_store),
    generator: TextGenerator = Depends(get_text_generator),
    current_user: CurrentUser = Depends(get_current_user),
):
    result = await ai_content_service.generate_meal(generator, payload)
    return ai_content_service.save_ai_result(store, current_user.id, result)


@router.post("/fridge/analyze", response_model=AIResult)
async def analyze_fridge(
    payload: FridgeAnalysisRequest,
    store: DocumentStore = Depends(get_document_store),
    generator: TextGenerator = Depends(get_text_generator),
    current_user: CurrentUser = Depends(get_current_user),
):
    result = await ai_content_service.analyze_fridge(generator, payload)
    return ai_content_service.save_ai_result(store, current_user.id, result)


@router.post("/food/analyze", response_model=AIResult)
async def analyze_food(
    payload: FoodAnalysisRequest,
    store: DocumentStore = Depends(get_document_store),
    generator: TextGenerator = Depends(get_text_generator),
    current_user: CurrentUser = Depends(get_current_user),
):
    result = await ai_content_service.analyze_food(generator, payload)
    return ai_content_service.save_ai_result(store, current_user.id, result)
