"""System endpoints — health and price estimates."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from penguin_studio.api.deps import get_app_settings
from penguin_studio.config import Settings
from penguin_studio.schemas.generation import EstimateResponse, parse_bool, parse_duration, parse_resolution
from penguin_studio.services.pricing import estimate_cost, pricing_table

router = APIRouter()


@router.get("/health")
async def health(settings: Settings = Depends(get_app_settings)):
    return {
        "status": "healthy",
        "message": f"🐧 {settings.APP_NAME} is running!",
        "apiKeyConfigured": settings.API_KEY_CONFIGURED,
        "region": settings.DASHSCOPE_REGION,
        "pricing": pricing_table(),
    }


@router.get("/estimate", response_model=EstimateResponse)
async def estimate(
    duration: str | None = Query(None),
    resolution: str | None = Query(None),
    audio: str | None = Query(None),
):
    """Price estimate for a prospective generation (display only)."""
    return estimate_cost(
        parse_duration(duration),
        parse_resolution(resolution),
        parse_bool(audio, "audio", True),
    )
