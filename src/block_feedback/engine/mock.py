"""Canned model response used when FEEDBACK_MOCK_MODE is on."""

import json
from collections.abc import Sequence

from ..schemas.request import Block

_CATEGORIES = ("content", "tone", "flow")
_SEVERITIES = ("suggestion", "important")


def mock_response(blocks: Sequence[Block], limit: int = 3) -> str:
    feedback = []
    for i, block in enumerate(blocks[:limit]):
        feedback.append(
            {
                "block_id": block.id or f"unknown-{i}",
                "category": _CATEGORIES[i % len(_CATEGORIES)],
                "severity": _SEVERITIES[i % len(_SEVERITIES)],
                "title": f"Mock feedback item {i + 1}",
                "feedback": "This is mock feedback for testing purposes. The AI integration is working correctly.",
                "suggestion": "Consider this mock suggestion for improvement.",
            }
        )

    return json.dumps(
        {
            "summary": (
                f"This review generated {len(feedback)} notes of constructive feedback. Overall, the "
                "document has a professional tone with clear structure. Key areas for improvement "
                "include content clarity and flow between sections."
            ),
            "feedback": feedback,
        }
    )
