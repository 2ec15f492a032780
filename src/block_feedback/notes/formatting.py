"""Render feedback items as note bodies and note metadata."""

import html
from datetime import datetime

from ..schemas.notes import NoteMeta
from ..schemas.response import FeedbackItem

CATEGORY_LABELS = {
    "content": "Content",
    "tone": "Tone",
    "flow": "Flow",
    "design": "Design",
}
SEVERITY_LABELS = {
    "suggestion": "Suggestion",
    "important": "Important",
    "critical": "Critical",
}


def build_badges(item: FeedbackItem) -> str:
    category = html.escape(item.category)
    severity = html.escape(item.severity)
    return (
        f'<span class="ai-feedback-badge ai-feedback-category-{category}">'
        f"{CATEGORY_LABELS.get(item.category, category)}</span> "
        f'<span class="ai-feedback-badge ai-feedback-severity-{severity}">'
        f"{SEVERITY_LABELS.get(item.severity, severity)}</span>"
    )


def build_note_body(item: FeedbackItem) -> str:
    # title/feedback/suggestion are already sanitized HTML fragments
    parts = []
    if item.title:
        parts.append(f"<strong>{item.title}</strong>")
    if item.feedback:
        parts.append(item.feedback)
    if item.suggestion:
        parts.append(f"<em>Suggestion:</em> {item.suggestion}")
    parts.append(build_badges(item))
    return "\n\n".join(parts)


def build_note_meta(item: FeedbackItem, review_id: str, model: str, created_at: datetime) -> NoteMeta:
    return NoteMeta(
        ai_feedback=True,
        category=item.category,
        severity=item.severity,
        block_id=item.block_id,
        block_type=item.block_type,
        block_index=item.block_index,
        review_id=review_id,
        model=model,
        created_at=created_at,
    )
