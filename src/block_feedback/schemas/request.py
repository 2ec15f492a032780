"""
Schemas for review requests: editor blocks, review options and the prior
feedback threads supplied for continuation reviews.
"""

from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator

FocusArea = Literal["content", "tone", "flow", "design"]
Tone = Literal["professional", "casual", "academic", "friendly"]

DEFAULT_FOCUS_AREAS: list[FocusArea] = ["content", "tone", "flow"]


class Block(BaseModel):
    """A unit of document content as sent by the editor.

    The editor's own field names (clientId/name/content) are accepted too.
    """

    model_config = {"frozen": True, "populate_by_name": True}

    id: str = Field(validation_alias=AliasChoices("id", "clientId", "client_id"))
    type: str = Field(default="unknown", validation_alias=AliasChoices("type", "name"))
    text: str = Field(default="", validation_alias=AliasChoices("text", "content"))
    position: int | None = Field(default=None, validation_alias=AliasChoices("position", "index"))


class ThreadReply(BaseModel):
    author: str = ""
    body: str = ""
    is_from_ai: bool = False


class FeedbackThread(BaseModel):
    top_level_note_id: int
    block_id: str = "unknown"
    category: str = "general"
    severity: str = "suggestion"
    body: str = ""
    replies: list[ThreadReply] = Field(default_factory=list)


class ReviewOptions(BaseModel):
    focus_areas: list[FocusArea] = Field(default_factory=lambda: list(DEFAULT_FOCUS_AREAS), min_length=1)
    target_tone: Tone = "professional"
    document_title: str = ""
    model: str = ""
    existing_feedback: list[FeedbackThread] = Field(default_factory=list)

    @field_validator("focus_areas")
    @classmethod
    def _dedupe_focus_areas(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))

    @property
    def is_continuation(self) -> bool:
        return bool(self.existing_feedback)


class ReviewRequest(BaseModel):
    request_id: str | None = None
    document_id: int
    blocks: list[Block] = Field(default_factory=list)
    focus_areas: list[FocusArea] = Field(default_factory=lambda: list(DEFAULT_FOCUS_AREAS), min_length=1)
    target_tone: Tone = "professional"
    document_title: str = ""
    model: str = ""
    continuation: bool = False
    existing_feedback: list[FeedbackThread] = Field(default_factory=list)

    def to_options(self, existing_feedback: list[FeedbackThread] | None = None) -> ReviewOptions:
        return ReviewOptions(
            focus_areas=self.focus_areas,
            target_tone=self.target_tone,
            document_title=self.document_title,
            model=self.model,
            existing_feedback=existing_feedback if existing_feedback is not None else self.existing_feedback,
        )
