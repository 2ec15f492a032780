"""GET /v1/settings: review defaults and the choices the editor may offer."""

from fastapi import APIRouter

from ..config import prompts_config, settings
from ..schemas.request import DEFAULT_FOCUS_AREAS

router = APIRouter(prefix="/v1")


@router.get("/settings")
async def review_settings() -> dict:
    return {
        "default_model": settings.default_model,
        "default_focus_areas": list(DEFAULT_FOCUS_AREAS),
        "default_tone": prompts_config.default_tone,
        "available_models": settings.available_models,
        "available_focus_areas": [
            {"id": area, "description": text} for area, text in prompts_config.focus_area_definitions.items()
        ],
        "available_tones": [
            {"id": tone, "description": text} for tone, text in prompts_config.tone_definitions.items()
        ],
        "mock_mode": settings.mock_mode,
    }
