"""Review pipeline orchestration.

Coordinates the full review flow:
1. Validate the document and block list
2. Build the user prompt and system instruction
3. Call the model through the retrying invoker (or the canned mock response)
4. Parse and validate model output against the request's blocks
5. Write notes, threading replies under existing notes on continuation
6. Return an immutable ReviewResult with stats and note ids

Validation and AI failures raise ReviewError and produce no result. Once the
model has answered, parsing and note writing only degrade the result: an
unusable response yields zero items, and a total note-write failure is
reported in notes_error next to the unpersisted items.
"""

import time
import uuid
from collections.abc import Sequence
from datetime import datetime, timezone

from ..config import policy_config, settings
from ..documents.loader import DocumentLookup
from ..errors import InputError, NoteCreationError
from ..logging import logger, review_context
from ..notes.store import NoteStore
from ..schemas.request import Block, ReviewOptions
from ..schemas.response import ReviewResult
from .invoker import AIInvoker
from .mock import mock_response
from .parser import get_feedback_summary, parse_feedback
from .prompt import build_review_prompt, get_system_instruction
from .reconciler import NoteReconciler, ReconcileResult


async def _validate(document_id: int, blocks: Sequence[Block], documents: DocumentLookup):
    document = await documents.get_document(document_id)
    if document is None:
        logger.debug(f"Document {document_id} not found")
        raise InputError("document_not_found", "Document not found.", status=404)

    if not blocks:
        logger.debug("No blocks provided for review")
        raise InputError("no_blocks", "No content blocks provided for review.")

    max_blocks = policy_config.limits.max_blocks
    if len(blocks) > max_blocks:
        logger.debug(f"Too many blocks ({len(blocks)}, max {max_blocks})")
        raise InputError(
            "too_many_blocks",
            f"Document has too many blocks (max {max_blocks}). Please split it into smaller documents.",
        )
    return document


async def run_review(
    document_id: int,
    blocks: Sequence[Block],
    options: ReviewOptions,
    documents: DocumentLookup,
    note_store: NoteStore,
    invoker: AIInvoker,
    mock_mode: bool | None = None,
) -> ReviewResult:
    start_time = time.time()
    review_id = str(uuid.uuid4())

    with review_context(review_id):
        document = await _validate(document_id, blocks, documents)
        logger.debug(f"Processing {len(blocks)} blocks for document {document_id}")

        if not options.document_title:
            options = options.model_copy(update={"document_title": document.title})
        model = options.model or settings.default_model
        is_continuation = options.is_continuation

        if settings.mock_mode if mock_mode is None else mock_mode:
            logger.debug("Using mock response mode")
            raw_output = mock_response(blocks)
        else:
            prompt = build_review_prompt(blocks, options)
            system_instruction = get_system_instruction(is_continuation)
            logger.debug(f"Calling AI model: {model}")
            raw_output = await invoker.invoke(prompt, system_instruction, model)

        parsed = parse_feedback(raw_output, blocks)
        if not parsed.items:
            logger.debug("No feedback items parsed from AI response")

        created_at = datetime.now(timezone.utc)
        reconciled = ReconcileResult()
        notes_error = None
        if parsed.items:
            reconciler = NoteReconciler(note_store, document_id, review_id, model, created_at)
            try:
                reconciled = await reconciler.reconcile(parsed.items, is_continuation)
            except NoteCreationError as e:
                logger.error(f"Note creation failed: {e.message}")
                notes_error = e.message

        notes = []
        if reconciled.note_ids:
            try:
                notes = await note_store.list_notes_by_review(review_id)
            except Exception as e:
                logger.warning(f"Could not load notes for review {review_id}: {e}")

        latency_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Review complete: document={document_id} model={model} continuation={is_continuation} "
            f"items={len(parsed.items)} notes={len(reconciled.note_ids)} latency_ms={latency_ms}"
        )

        return ReviewResult(
            review_id=review_id,
            document_id=document_id,
            model=model,
            summary_text=parsed.summary_text,
            items=parsed.items,
            notes=notes,
            note_ids=reconciled.note_ids,
            block_to_note_id=reconciled.block_to_note_id,
            stats=get_feedback_summary(parsed.items),
            is_continuation=is_continuation,
            notes_error=notes_error,
            warnings=reconciled.warnings,
            created_at=created_at,
        )
