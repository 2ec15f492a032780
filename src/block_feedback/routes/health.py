"""
GET /health endpoint for liveness and readiness checks.
"""

from fastapi import APIRouter, Request

from ..config import settings

router = APIRouter()


@router.get("/health")
async def health(request: Request) -> dict:
    documents = getattr(request.app.state, "documents", None)
    invoker = getattr(request.app.state, "invoker", None)

    if settings.mock_mode:
        backend = "mock"
    else:
        backend = "connected" if invoker else "unavailable"

    return {
        "status": "ok",
        "documents_loaded": len(documents) if documents is not None else 0,
        "model_backend": backend,
    }
