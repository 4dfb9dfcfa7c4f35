from __future__ import annotations

from fastapi import APIRouter

from threadanswer.api.v1.answer import router as answer_router
from threadanswer.api.v1.health import router as health_router

api_v1_router = APIRouter(prefix="/api/v1")
api_v1_router.include_router(health_router, tags=["health"])
api_v1_router.include_router(answer_router)
