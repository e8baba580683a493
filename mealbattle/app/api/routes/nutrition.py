import re

from fastapi import APIRouter, Depends, HTTPException, status

from mealbattle.app.api.deps import get_current_user, get_document_store
from mealbattle.app.schemas.auth import CurrentUser
from mealbattle.app.schemas.nutrition import DailySummary, DailySummaryResponse
from mealbattle.app.services import nutrition_service
from mealbattle.app.services.document_store import DocumentStore

router = APIRouter(prefix="/nutrition", tags=["nutrition"])

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _check_date(date: str) -> None:
    if not _DATE_RE.match(date):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="date must be YYYY-MM-DD")


@router.post("/daily-summary/{date}", response_model=DailySummaryResponse)
def recalculate_daily_summary(
    date: str,
    store: DocumentStore = Depends(get_document_store),
    current_user: CurrentUser = Depends(get_current_user),
):
    _check_date(date)
    summary = nutrition_service.recalculate_daily_summary(store, current_user.id, date)
    if summary is None:
        return DailySummaryResponse(date=date, deleted=True)
    return DailySummaryResponse(date=date, summary=DailySummary.model_validate(summary))


@router.get("/daily-summary/{date}", response_model=DailySummaryResponse)
def get_daily_summary(
    date: str,
    store: DocumentStore = Depends(get_document_store),
    current_user: CurrentUser = Depends(get_current_user),
):
    _check_date(date)
    summary = nutrition_service.get_daily_summary(store, current_user.id, date)
    if summary is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Daily summary not found")
    return DailySummaryResponse(date=date, summary=DailySummary.model_validate(summary))
