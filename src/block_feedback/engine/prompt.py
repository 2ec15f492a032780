"""Prompt construction for the review model.

Builds the user prompt (document blocks, focus areas, tone guidance, the
JSON output contract and, for continuation reviews, prior feedback with the
user's replies) and the paired system instruction. Pure string building.
"""

from collections.abc import Iterable, Sequence

from ..config import policy_config, prompts_config
from ..schemas.request import Block, FeedbackThread, ReviewOptions
from .sanitize import strip_tags

TRUNCATED_MARKER = "... [truncated]"
SEPARATOR = "\n\n---\n\n"

OUTPUT_FORMAT = """OUTPUT FORMAT:
Return your response as a JSON object with exactly two properties: "summary" and "feedback".

{
  "summary": "A one-paragraph overall assessment of the document (max 300 chars). Include the total number of notes, overall tone assessment, and key improvement areas.",
  "feedback": [
    {
      "block_id": "abc123-def456",
      "category": "content|tone|flow|design",
      "severity": "suggestion|important|critical",
      "title": "Brief title (max 50 chars)",
      "feedback": "Detailed explanation of the issue and why it matters (max 300 chars)",
      "suggestion": "Specific action to take (max 200 chars, optional)"
    }
  ]
}

IMPORTANT:
- The "block_id" must exactly match one of the block IDs provided in the document
- Return ONLY valid JSON, no additional text, markdown or explanation
- If no feedback is needed for a block, don't include it in the array"""

CONTINUATION_INSTRUCTIONS = """CONTINUATION REVIEW INSTRUCTIONS:
- This is a follow-up review. Previous feedback and user responses are provided below.
- Do NOT repeat feedback that has already been given unless the issue persists after the user addressed it.
- Focus on NEW issues or issues that weren't fully addressed in previous feedback.
- Consider user responses when determining if issues have been resolved.
- If a user has responded to feedback, check if their changes adequately address the concern."""


def _clip(text: str, limit: int, marker: str) -> str:
    if len(text) > limit:
        return text[:limit] + marker
    return text


def format_blocks(blocks: Iterable[Block]) -> str:
    limit = policy_config.limits.block_text_limit
    formatted = []
    for block in blocks:
        if not block.text.strip():
            continue
        text = _clip(block.text, limit, TRUNCATED_MARKER)
        formatted.append(f"Block {block.id} [{block.type}]\n{text}")

    if not formatted:
        return "(No blocks with content to review.)"
    return SEPARATOR.join(formatted)


def format_existing_feedback(threads: Sequence[FeedbackThread]) -> str:
    limits = policy_config.limits
    formatted = []
    for thread in threads:
        body = _clip(strip_tags(thread.body), limits.thread_body_limit, TRUNCATED_MARKER)
        entry = f"[Block: {thread.block_id}] [{thread.category}/{thread.severity}]\nAI Feedback: {body}"

        if thread.replies:
            entry += "\nUser Responses:"
            for reply in thread.replies:
                author = "AI" if reply.is_from_ai else (reply.author or "User")
                text = _clip(strip_tags(reply.body), limits.reply_body_limit, "...")
                entry += f"\n  - {author}: {text}"

        formatted.append(entry)

    return SEPARATOR.join(formatted)


def build_focus_instructions(focus_areas: Iterable[str]) -> str:
    definitions = prompts_config.focus_area_definitions
    return "\n".join(f"- {definitions[area]}" for area in focus_areas if area in definitions)


def build_tone_guidance(target_tone: str) -> str:
    definitions = prompts_config.tone_definitions
    fallback = definitions.get(prompts_config.default_tone, "")
    return definitions.get(target_tone, fallback)


def build_review_prompt(
    blocks: Sequence[Block],
    options: ReviewOptions,
    existing_feedback: Sequence[FeedbackThread] | None = None,
) -> str:
    if existing_feedback is None:
        existing_feedback = options.existing_feedback

    continuation = ""
    if existing_feedback:
        continuation = (
            f"\n{CONTINUATION_INSTRUCTIONS}\n\n"
            f"PREVIOUS FEEDBACK AND RESPONSES:\n{format_existing_feedback(existing_feedback)}\n"
        )

    return f"""Please review the following document and provide actionable editorial feedback.

DOCUMENT TITLE: {options.document_title}

DOCUMENT BLOCKS:
{format_blocks(blocks)}

FOCUS AREAS:
{build_focus_instructions(options.focus_areas)}

TARGET TONE:
{build_tone_guidance(options.target_tone)}
{continuation}
INSTRUCTIONS:
- Provide specific, actionable feedback for each issue you identify
- Reference blocks by their block_id (the identifier shown after "Block" for each block)
- Prioritize the most impactful suggestions
- Be encouraging but honest
- Each feedback item should explain WHY it matters and HOW to improve it
- Include an overall summary of the document quality

{OUTPUT_FORMAT}"""


def get_system_instruction(is_continuation: bool = False) -> str:
    instruction = prompts_config.system_instruction
    if is_continuation:
        instruction += "\n\n" + prompts_config.continuation_rules
    return instruction
