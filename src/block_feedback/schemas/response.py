from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from .notes import Note

Category = Literal["content", "tone", "flow", "design"]
Severity = Literal["suggestion", "important", "critical"]

CATEGORIES: tuple[str, ...] = ("content", "tone", "flow", "design")
SEVERITIES: tuple[str, ...] = ("suggestion", "important", "critical")


class FeedbackItem(BaseModel):
    block_id: str | None = None
    category: Category
    severity: Severity
    title: str
    feedback: str
    suggestion: str | None = None
    block_type: str = ""
    block_index: int = 0


class FeedbackStats(BaseModel):
    total: int = 0
    by_category: dict[str, int] = Field(default_factory=lambda: {c: 0 for c in CATEGORIES})
    by_severity: dict[str, int] = Field(default_factory=lambda: {s: 0 for s in SEVERITIES})
    has_critical: bool = False


class ParsedFeedback(BaseModel):
    summary_text: str = ""
    items: list[FeedbackItem] = Field(default_factory=list)


class Error(BaseModel):
    code: str
    message: str
    details: Any | None = None


class ReviewResult(BaseModel):
    model_config = {"frozen": True}

    review_id: str
    document_id: int
    model: str
    summary_text: str = ""
    items: list[FeedbackItem] = Field(default_factory=list)
    notes: list[Note] = Field(default_factory=list)
    note_ids: list[int] = Field(default_factory=list)
    block_to_note_id: dict[str, int] = Field(default_factory=dict)
    stats: FeedbackStats = Field(default_factory=FeedbackStats)
    is_continuation: bool = False
    notes_error: str | None = None
    warnings: list[str] = Field(default_factory=list)
    created_at: datetime
