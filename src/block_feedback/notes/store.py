"""Note store interface and the in-memory backend.

The review pipeline writes notes through NoteStore and never sees the host's
storage schema. A note is a row with an optional parent note; AI notes carry
their category, severity, block reference and review id in NoteMeta.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from itertools import count

from ..logging import logger
from ..schemas.notes import LatestReview, Note, NoteCreate
from ..schemas.request import FeedbackThread, ThreadReply


class NoteStore(ABC):
    """Pluggable persistence for block notes.

    create_note raises on failure; lookups return None or an empty list
    when nothing matches.
    """

    @abstractmethod
    async def create_note(self, note: NoteCreate) -> int:
        """Persist a note and return its id."""

    @abstractmethod
    async def get_note(self, note_id: int) -> Note | None: ...

    @abstractmethod
    async def list_notes(self, document_id: int, ai_only: bool = False) -> list[Note]: ...

    @abstractmethod
    async def list_notes_by_review(self, review_id: str) -> list[Note]: ...

    @abstractmethod
    async def set_resolved(self, note_id: int, resolved: bool) -> bool: ...

    @abstractmethod
    async def delete_notes_by_review(self, review_id: str) -> int: ...

    async def find_existing_thread(
        self,
        document_id: int,
        block_id: str,
        block_type: str | None = None,
        block_index: int | None = None,
    ) -> int | None:
        """Find the newest open top-level AI note for a block.

        Editor block ids do not survive a reload, so when no note carries
        ``block_id`` the match falls back to block type plus position. This
        is a heuristic and can pick the wrong thread after heavy edits.
        """
        roots = [n for n in await self.list_notes(document_id, ai_only=True) if n.parent_id == 0 and not n.is_resolved]
        roots.sort(key=lambda n: n.id, reverse=True)

        for note in roots:
            if note.meta.block_id == block_id:
                return note.id

        if block_type is None or block_index is None:
            return None
        for note in roots:
            if note.meta.block_type == block_type and note.meta.block_index == block_index:
                logger.debug(f"Matched block {block_id} to note {note.id} by type and position")
                return note.id
        return None

    async def feedback_history(self, document_id: int) -> list[FeedbackThread]:
        """Open AI threads with their replies, oldest first, for continuation prompts."""
        notes = await self.list_notes(document_id)
        replies_by_parent: dict[int, list[Note]] = {}
        for note in notes:
            if note.parent_id:
                replies_by_parent.setdefault(note.parent_id, []).append(note)

        threads = []
        for note in sorted(notes, key=lambda n: n.id):
            if note.parent_id or not note.is_ai or note.is_resolved:
                continue
            replies = sorted(replies_by_parent.get(note.id, []), key=lambda n: n.id)
            threads.append(
                FeedbackThread(
                    top_level_note_id=note.id,
                    block_id=note.meta.block_id or "unknown",
                    category=note.meta.category or "general",
                    severity=note.meta.severity or "suggestion",
                    body=note.body,
                    replies=[ThreadReply(author=r.author, body=r.body, is_from_ai=r.is_ai) for r in replies],
                )
            )
        return threads

    async def latest_review(self, document_id: int) -> LatestReview | None:
        notes = [n for n in await self.list_notes(document_id, ai_only=True) if n.meta.review_id]
        if not notes:
            return None
        newest = max(notes, key=lambda n: (n.created_at, n.id))
        review_notes = [n for n in notes if n.meta.review_id == newest.meta.review_id]
        return LatestReview(
            review_id=newest.meta.review_id,
            model=newest.meta.model,
            created_at=newest.meta.created_at or newest.created_at,
            note_count=len(review_notes),
            notes=sorted(review_notes, key=lambda n: n.id),
        )

    async def close(self) -> None:
        """Release backend resources. No-op by default."""


class InMemoryNoteStore(NoteStore):
    def __init__(self):
        self._notes: dict[int, Note] = {}
        self._ids = count(1)

    async def create_note(self, note: NoteCreate) -> int:
        if note.parent_id and note.parent_id not in self._notes:
            raise LookupError(f"Parent note {note.parent_id} does not exist")
        note_id = next(self._ids)
        self._notes[note_id] = Note(
            id=note_id,
            document_id=note.document_id,
            parent_id=note.parent_id,
            body=note.body,
            author=note.author,
            meta=note.meta.model_copy(),
            created_at=datetime.now(timezone.utc),
        )
        return note_id

    async def get_note(self, note_id: int) -> Note | None:
        return self._notes.get(note_id)

    async def list_notes(self, document_id: int, ai_only: bool = False) -> list[Note]:
        return [
            n for n in self._notes.values() if n.document_id == document_id and (n.is_ai or not ai_only)
        ]

    async def list_notes_by_review(self, review_id: str) -> list[Note]:
        return [n for n in self._notes.values() if n.meta.review_id == review_id]

    async def set_resolved(self, note_id: int, resolved: bool) -> bool:
        note = self._notes.get(note_id)
        if note is None:
            return False
        note.meta.resolved = resolved
        return True

    async def delete_notes_by_review(self, review_id: str) -> int:
        doomed = [note_id for note_id, n in self._notes.items() if n.meta.review_id == review_id]
        for note_id in doomed:
            del self._notes[note_id]
        return len(doomed)
