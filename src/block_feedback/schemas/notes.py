"""Schemas for documents and the block notes written against them."""

from datetime import datetime

from pydantic import BaseModel, Field

AI_AUTHOR = "AI Feedback"


class Document(BaseModel):
    id: int
    title: str = ""
    status: str = "draft"


class NoteMeta(BaseModel):
    ai_feedback: bool = True
    category: str = ""
    severity: str = ""
    block_id: str | None = None
    block_type: str = ""
    block_index: int | None = None
    review_id: str | None = None
    model: str | None = None
    created_at: datetime | None = None
    resolved: bool = False


class NoteCreate(BaseModel):
    document_id: int
    parent_id: int = 0
    body: str
    author: str = AI_AUTHOR
    meta: NoteMeta = Field(default_factory=NoteMeta)


class Note(BaseModel):
    id: int
    document_id: int
    parent_id: int = 0
    body: str
    author: str = AI_AUTHOR
    meta: NoteMeta = Field(default_factory=NoteMeta)
    created_at: datetime

    @property
    def is_ai(self) -> bool:
        return self.meta.ai_feedback

    @property
    def is_resolved(self) -> bool:
        return self.meta.resolved


class LatestReview(BaseModel):
    review_id: str
    model: str | None = None
    created_at: datetime | None = None
    note_count: int = 0
    notes: list[Note] = Field(default_factory=list)
