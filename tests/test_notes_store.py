from datetime import datetime, timezone

import pytest

from src.block_feedback.notes.formatting import build_badges, build_note_body, build_note_meta
from src.block_feedback.schemas.notes import NoteCreate, NoteMeta
from src.block_feedback.schemas.response import FeedbackItem


def ai_note(block_id="b1", review_id="rev-1", parent_id=0, block_type="paragraph", block_index=0, **meta):
    return NoteCreate(
        document_id=42,
        parent_id=parent_id,
        body=f"Note on {block_id}",
        meta=NoteMeta(
            block_id=block_id,
            block_type=block_type,
            block_index=block_index,
            review_id=review_id,
            category="content",
            severity="important",
            **meta,
        ),
    )


def user_reply(parent_id, body="Done.", author="Dana"):
    return NoteCreate(document_id=42, parent_id=parent_id, body=body, author=author, meta=NoteMeta(ai_feedback=False))


class TestInMemoryNoteStore:
    async def test_ids_are_sequential(self, note_store):
        assert await note_store.create_note(ai_note()) == 1
        assert await note_store.create_note(ai_note()) == 2

    async def test_get_note(self, note_store):
        note_id = await note_store.create_note(ai_note())
        note = await note_store.get_note(note_id)
        assert note.document_id == 42
        assert note.is_ai
        assert not note.is_resolved
        assert await note_store.get_note(999) is None

    async def test_missing_parent_rejected(self, note_store):
        with pytest.raises(LookupError):
            await note_store.create_note(ai_note(parent_id=77))

    async def test_list_notes_ai_only(self, note_store):
        root = await note_store.create_note(ai_note())
        await note_store.create_note(user_reply(root))
        assert len(await note_store.list_notes(42)) == 2
        assert len(await note_store.list_notes(42, ai_only=True)) == 1
        assert await note_store.list_notes(43) == []

    async def test_delete_by_review(self, note_store):
        await note_store.create_note(ai_note(review_id="rev-1"))
        await note_store.create_note(ai_note(review_id="rev-2"))
        assert await note_store.delete_notes_by_review("rev-1") == 1
        assert [n.meta.review_id for n in await note_store.list_notes(42)] == ["rev-2"]

    async def test_set_resolved(self, note_store):
        note_id = await note_store.create_note(ai_note())
        assert await note_store.set_resolved(note_id, True) is True
        assert (await note_store.get_note(note_id)).is_resolved
        assert await note_store.set_resolved(999, True) is False


class TestFindExistingThread:
    async def test_exact_block_id(self, note_store):
        root = await note_store.create_note(ai_note("b1"))
        await note_store.create_note(ai_note("b2", block_index=1))
        assert await note_store.find_existing_thread(42, "b1") == root

    async def test_newest_thread_wins(self, note_store):
        await note_store.create_note(ai_note("b1"))
        newer = await note_store.create_note(ai_note("b1", review_id="rev-2"))
        assert await note_store.find_existing_thread(42, "b1") == newer

    async def test_replies_are_not_threads(self, note_store):
        root = await note_store.create_note(ai_note("b1"))
        await note_store.create_note(ai_note("b1", parent_id=root))
        assert await note_store.find_existing_thread(42, "b1") == root

    async def test_type_and_position_fallback(self, note_store):
        root = await note_store.create_note(ai_note("old-id", block_type="list", block_index=4))
        assert await note_store.find_existing_thread(42, "new-id", "list", 4) == root
        assert await note_store.find_existing_thread(42, "new-id", "list", 5) is None
        assert await note_store.find_existing_thread(42, "new-id") is None

    async def test_resolved_and_user_notes_skipped(self, note_store):
        await note_store.create_note(ai_note("b1", resolved=True))
        await note_store.create_note(
            NoteCreate(document_id=42, body="mine", author="Dana", meta=NoteMeta(ai_feedback=False, block_id="b1"))
        )
        assert await note_store.find_existing_thread(42, "b1") is None

    async def test_other_document_ignored(self, note_store):
        await note_store.create_note(ai_note("b1"))
        assert await note_store.find_existing_thread(43, "b1") is None


class TestFeedbackHistory:
    async def test_threads_with_replies(self, note_store):
        root = await note_store.create_note(ai_note("b1"))
        await note_store.create_note(user_reply(root, "Fixed it."))
        await note_store.create_note(ai_note("b1", parent_id=root, review_id="rev-2"))

        threads = await note_store.feedback_history(42)
        assert len(threads) == 1
        thread = threads[0]
        assert thread.top_level_note_id == root
        assert thread.block_id == "b1"
        assert thread.category == "content"
        assert thread.severity == "important"
        assert [(r.author, r.is_from_ai) for r in thread.replies] == [("Dana", False), ("AI Feedback", True)]

    async def test_resolved_excluded(self, note_store):
        await note_store.create_note(ai_note("b1", resolved=True))
        await note_store.create_note(ai_note("b2"))
        assert [t.block_id for t in await note_store.feedback_history(42)] == ["b2"]

    async def test_empty(self, note_store):
        assert await note_store.feedback_history(42) == []


class TestLatestReview:
    async def test_latest(self, note_store):
        await note_store.create_note(ai_note(review_id="rev-1"))
        await note_store.create_note(ai_note(review_id="rev-2", model="gpt-4o"))
        await note_store.create_note(ai_note(review_id="rev-2", model="gpt-4o"))

        latest = await note_store.latest_review(42)
        assert latest.review_id == "rev-2"
        assert latest.model == "gpt-4o"
        assert latest.note_count == 2

    async def test_none(self, note_store):
        assert await note_store.latest_review(42) is None


class TestFormatting:
    def _item(self, **overrides):
        data = {
            "block_id": "b1",
            "category": "tone",
            "severity": "critical",
            "title": "Soften opener",
            "feedback": "Reads as <em>abrupt</em>.",
            "block_type": "paragraph",
            "block_index": 2,
        }
        data.update(overrides)
        return FeedbackItem(**data)

    def test_badges(self):
        badges = build_badges(self._item())
        assert 'class="ai-feedback-badge ai-feedback-category-tone">Tone</span>' in badges
        assert 'class="ai-feedback-badge ai-feedback-severity-critical">Critical</span>' in badges

    def test_body_without_suggestion(self):
        body = build_note_body(self._item())
        parts = body.split("\n\n")
        assert parts[0] == "<strong>Soften opener</strong>"
        assert parts[1] == "Reads as <em>abrupt</em>."
        assert "Suggestion" not in body
        assert len(parts) == 3

    def test_body_with_suggestion(self):
        body = build_note_body(self._item(suggestion="Start with the benefit."))
        assert "\n\n<em>Suggestion:</em> Start with the benefit.\n\n" in body

    def test_meta(self):
        created = datetime(2026, 1, 1, tzinfo=timezone.utc)
        meta = build_note_meta(self._item(), "rev-9", "gpt-4o", created)
        assert meta.ai_feedback is True
        assert meta.category == "tone"
        assert meta.severity == "critical"
        assert meta.block_id == "b1"
        assert meta.block_index == 2
        assert meta.review_id == "rev-9"
        assert meta.model == "gpt-4o"
        assert meta.created_at == created
        assert meta.resolved is False
