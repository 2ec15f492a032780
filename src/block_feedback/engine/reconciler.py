"""Turn validated feedback items into threaded notes.

Items are grouped by block. In a fresh review the first note written for a
block becomes the thread root and the block's remaining items are replies to
it. In a continuation review each block first looks for its existing thread
(exact block id, then block type + position); when one is found every item
for that block is appended as a reply and the block keeps its old root id.

Individual write failures are collected as warnings. Only when every write
fails does reconcile() raise NoteCreationError.
"""

from collections.abc import Sequence
from datetime import datetime

from pydantic import BaseModel, Field

from ..errors import NoteCreationError
from ..logging import logger
from ..notes.formatting import build_note_body, build_note_meta
from ..notes.store import NoteStore
from ..schemas.notes import AI_AUTHOR, NoteCreate
from ..schemas.response import FeedbackItem

DOCUMENT_BUCKET = "__document__"


class ReconcileResult(BaseModel):
    note_ids: list[int] = Field(default_factory=list)
    block_to_note_id: dict[str, int] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)


def group_by_block(items: Sequence[FeedbackItem]) -> dict[str, list[FeedbackItem]]:
    groups: dict[str, list[FeedbackItem]] = {}
    for item in items:
        groups.setdefault(item.block_id or DOCUMENT_BUCKET, []).append(item)
    return groups


class NoteReconciler:
    def __init__(
        self,
        store: NoteStore,
        document_id: int,
        review_id: str,
        model: str,
        created_at: datetime,
    ):
        self.store = store
        self.document_id = document_id
        self.review_id = review_id
        self.model = model
        self.created_at = created_at

    async def _write(self, item: FeedbackItem, parent_id: int) -> int:
        return await self.store.create_note(
            NoteCreate(
                document_id=self.document_id,
                parent_id=parent_id,
                body=build_note_body(item),
                author=AI_AUTHOR,
                meta=build_note_meta(item, self.review_id, self.model, self.created_at),
            )
        )

    async def _existing_thread(self, block_id: str, sample: FeedbackItem) -> int | None:
        try:
            return await self.store.find_existing_thread(
                self.document_id, block_id, sample.block_type or None, sample.block_index
            )
        except Exception as e:
            logger.warning(f"Thread lookup failed for block {block_id}: {e}")
            return None

    async def reconcile(self, items: Sequence[FeedbackItem], is_continuation: bool) -> ReconcileResult:
        result = ReconcileResult()
        errors: list[str] = []

        for block_id, group in group_by_block(items).items():
            parent_id = 0
            if is_continuation and block_id != DOCUMENT_BUCKET:
                parent_id = await self._existing_thread(block_id, group[0]) or 0
                if parent_id:
                    logger.debug(f"Appending {len(group)} item(s) for block {block_id} to thread {parent_id}")

            for item in group:
                try:
                    note_id = await self._write(item, parent_id)
                except Exception as e:
                    message = f"{item.title or item.category} on block {block_id}: {e}"
                    logger.warning(f"Note creation failed: {message}")
                    errors.append(message)
                    continue

                result.note_ids.append(note_id)
                if not parent_id:
                    parent_id = note_id
                if block_id != DOCUMENT_BUCKET:
                    result.block_to_note_id.setdefault(block_id, parent_id)

        if errors and not result.note_ids:
            raise NoteCreationError(errors)

        result.warnings = errors
        return result
