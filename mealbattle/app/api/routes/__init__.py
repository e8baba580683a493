from fastapi import APIRouter

from mealbattle.app.api.routes import ai, battles, nutrition

api_router = APIRouter()
api_router.include_router(ai.router)
api_router.include_router(nutrition.router)
api_router.include_router(battles.router)
