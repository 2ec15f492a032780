"""Note endpoints: listing, resolving, deleting and continuation history."""

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from ..auth import require_auth
from ..schemas.notes import LatestReview, Note, NoteCreate, NoteMeta
from ..schemas.request import FeedbackThread

router = APIRouter(prefix="/v1/notes", dependencies=[Depends(require_auth)])


class NoteList(BaseModel):
    notes: list[Note]
    total: int


class FeedbackHistory(BaseModel):
    threads: list[FeedbackThread]
    total: int
    has_history: bool


class ReplyBody(BaseModel):
    author: str
    body: str


async def _require_document(request: Request, document_id: int) -> None:
    if await request.app.state.documents.get_document(document_id) is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "document_not_found", "message": "Document not found."},
        )


async def _require_note(request: Request, note_id: int) -> Note:
    note = await request.app.state.note_store.get_note(note_id)
    if note is None:
        raise HTTPException(status_code=404, detail={"code": "invalid_note", "message": "Note not found."})
    return note


@router.get("/document/{document_id}", response_model=NoteList)
async def document_notes(request: Request, document_id: int, ai_only: bool = False) -> NoteList:
    await _require_document(request, document_id)
    notes = await request.app.state.note_store.list_notes(document_id, ai_only=ai_only)
    return NoteList(notes=notes, total=len(notes))


@router.get("/document/{document_id}/feedback-history", response_model=FeedbackHistory)
async def feedback_history(request: Request, document_id: int) -> FeedbackHistory:
    await _require_document(request, document_id)
    threads = await request.app.state.note_store.feedback_history(document_id)
    return FeedbackHistory(threads=threads, total=len(threads), has_history=bool(threads))


@router.get("/document/{document_id}/latest-review")
async def latest_review(request: Request, document_id: int) -> dict:
    await _require_document(request, document_id)
    review: LatestReview | None = await request.app.state.note_store.latest_review(document_id)
    return {"has_review": review is not None, "review": review.model_dump(mode="json") if review else None}


@router.get("/review/{review_id}", response_model=NoteList)
async def review_notes(request: Request, review_id: str) -> NoteList:
    notes = await request.app.state.note_store.list_notes_by_review(review_id)
    return NoteList(notes=notes, total=len(notes))


@router.delete("/review/{review_id}")
async def delete_review_notes(request: Request, review_id: str) -> dict:
    deleted = await request.app.state.note_store.delete_notes_by_review(review_id)
    return {"success": True, "review_id": review_id, "deleted": deleted}


@router.post("/{note_id}/resolve")
async def resolve_note(request: Request, note_id: int) -> dict:
    await _require_note(request, note_id)
    await request.app.state.note_store.set_resolved(note_id, True)
    return {"success": True, "note_id": note_id, "is_resolved": True}


@router.post("/{note_id}/unresolve")
async def unresolve_note(request: Request, note_id: int) -> dict:
    await _require_note(request, note_id)
    await request.app.state.note_store.set_resolved(note_id, False)
    return {"success": True, "note_id": note_id, "is_resolved": False}


@router.post("/{note_id}/replies", status_code=201)
async def reply_to_note(request: Request, note_id: int, body: ReplyBody) -> dict:
    parent = await _require_note(request, note_id)
    root_id = parent.parent_id or parent.id
    reply_id = await request.app.state.note_store.create_note(
        NoteCreate(
            document_id=parent.document_id,
            parent_id=root_id,
            body=body.body,
            author=body.author,
            meta=NoteMeta(ai_feedback=False, block_id=parent.meta.block_id),
        )
    )
    return {"success": True, "note_id": reply_id, "parent_id": root_id}
