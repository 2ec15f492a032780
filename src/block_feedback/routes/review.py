"""
POST /v1/review endpoint.

Accepts the editor's blocks and review options, enforces the per-user rate
limit (the quota left is sent back in X-RateLimit-Remaining), pulls feedback
history from the note store for continuation reviews, runs the review
pipeline and returns the ReviewResult. Requires bearer auth.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from ..auth import require_auth
from ..engine.pipeline import run_review
from ..errors import ReviewError
from ..logging import get_request_id, logger, request_id_ctx
from ..schemas.request import ReviewRequest
from ..schemas.response import ReviewResult

router = APIRouter(prefix="/v1")


def _http_error(error: ReviewError) -> HTTPException:
    return HTTPException(status_code=error.status, detail=error.to_error().model_dump(exclude_none=True))


@router.post("/review", response_model=ReviewResult)
async def review(
    request: Request,
    body: ReviewRequest,
    response: Response,
    user: str = Depends(require_auth),
) -> ReviewResult:
    rid = body.request_id or get_request_id()
    request_id_ctx.set(rid)
    logger.debug(f"Review request received for document {body.document_id} ({len(body.blocks)} blocks)")

    invoker = getattr(request.app.state, "invoker", None)
    if invoker is None:
        raise HTTPException(
            status_code=503,
            detail={"code": "MODEL_UNAVAILABLE", "message": "Model client not initialized"},
        )

    try:
        request.app.state.rate_limiter.check(user)
    except ReviewError as e:
        logger.debug(f"Rate limit exceeded for user {user}")
        raise _http_error(e) from e

    response.headers["X-RateLimit-Remaining"] = str(request.app.state.rate_limiter.remaining(user))

    note_store = request.app.state.note_store
    existing_feedback = body.existing_feedback
    if body.continuation and not existing_feedback:
        existing_feedback = await note_store.feedback_history(body.document_id)
        logger.debug(f"Loaded {len(existing_feedback)} feedback thread(s) for continuation")

    try:
        return await run_review(
            document_id=body.document_id,
            blocks=body.blocks,
            options=body.to_options(existing_feedback),
            documents=request.app.state.documents,
            note_store=note_store,
            invoker=invoker,
        )
    except ReviewError as e:
        logger.debug(f"Review failed: {e.code} {e.message}")
        raise _http_error(e) from e
