"""JSON extraction and feedback item validation.

The model may wrap its JSON in prose, so extraction tries, in order:
1. The outermost { ... } span, kept only if it decodes to a response envelope
   (a "feedback" array, or a "summary" without a "block_id")
2. The outermost [ ... ] span (legacy array-only responses)
3. The whole trimmed text, when it starts with { or [

Anything that cannot be extracted or decoded yields an empty result rather
than an error. Each feedback item is then validated on its own: items with
an unknown block_id, a missing required field or an out-of-range enum are
dropped, the rest are sanitized, length-capped and enriched with the type
and position of the block they point at.
"""

import json
import re
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ValidationError

from ..config import policy_config
from ..errors import ResponseSchemaError
from ..logging import logger
from ..schemas.request import Block
from ..schemas.response import (
    CATEGORIES,
    SEVERITIES,
    FeedbackItem,
    FeedbackStats,
    ParsedFeedback,
)
from .sanitize import sanitize_markup, sanitize_text

REQUIRED_FIELDS = ("block_id", "category", "severity", "title", "feedback")

_OBJECT_SPAN = re.compile(r"\{.*\}", re.DOTALL)
_ARRAY_SPAN = re.compile(r"\[.*\]", re.DOTALL)


class SchemaError(BaseModel):
    code: str
    message: str
    path: str


class FeedbackCandidate(BaseModel):
    """Loosely-typed view of one model-authored feedback item."""

    block_id: Any = None
    category: Any = None
    severity: Any = None
    title: Any = None
    feedback: Any = None
    suggestion: Any = None


def _is_envelope(candidate: dict) -> bool:
    # A lone feedback item also has a "feedback" key, but it is a string
    if isinstance(candidate.get("feedback"), list):
        return True
    return "summary" in candidate and "block_id" not in candidate


def extract_json(raw: str) -> str:
    text = raw.strip()

    match = _OBJECT_SPAN.search(text)
    if match:
        try:
            candidate = json.loads(match.group(0))
        except json.JSONDecodeError:
            candidate = None
        if isinstance(candidate, dict) and _is_envelope(candidate):
            return match.group(0)

    match = _ARRAY_SPAN.search(text)
    if match:
        return match.group(0)

    if text.startswith(("{", "[")):
        return text

    return ""


def decode_payload(raw: str) -> Any | None:
    span = extract_json(raw)
    if not span:
        return None
    try:
        return json.loads(span)
    except json.JSONDecodeError as e:
        logger.debug(f"Extracted span is not valid JSON: {e}")
        return None


def _candidate(item: dict) -> FeedbackCandidate:
    data = dict(item)
    if data.get("block_id") is None and "blockId" in data:
        data["block_id"] = data["blockId"]
    return FeedbackCandidate.model_validate(data)


def validate_feedback_item(item: Any, blocks_by_id: dict[str, tuple[Block, int]]) -> FeedbackItem | None:
    if not isinstance(item, dict):
        logger.debug("Feedback item is not an object, skipping")
        return None

    candidate = _candidate(item)

    if not isinstance(candidate.block_id, str) or not candidate.block_id:
        logger.debug("Feedback item has no block_id, skipping")
        return None
    if candidate.block_id not in blocks_by_id:
        logger.debug(f"Block ID {candidate.block_id} not found in request blocks, skipping")
        return None

    for field in REQUIRED_FIELDS[1:]:
        if getattr(candidate, field) is None:
            logger.debug(f"Feedback item missing required field: {field}")
            return None

    if candidate.category not in CATEGORIES:
        logger.debug(f"Invalid category: {candidate.category}")
        return None
    if candidate.severity not in SEVERITIES:
        logger.debug(f"Invalid severity: {candidate.severity}")
        return None
    if not isinstance(candidate.title, str) or not isinstance(candidate.feedback, str):
        logger.debug("Feedback item title/feedback must be strings")
        return None

    limits = policy_config.limits
    suggestion = None
    if isinstance(candidate.suggestion, str) and candidate.suggestion.strip():
        suggestion = sanitize_markup(candidate.suggestion, limits.suggestion_max) or None

    block, position = blocks_by_id[candidate.block_id]
    try:
        return FeedbackItem(
            block_id=candidate.block_id,
            category=candidate.category,
            severity=candidate.severity,
            title=sanitize_text(candidate.title, limits.title_max),
            feedback=sanitize_markup(candidate.feedback, limits.feedback_max),
            suggestion=suggestion,
            block_type=block.type,
            block_index=position,
        )
    except ValidationError as e:
        logger.debug(f"Feedback item validation failed: {e}")
        return None


def _index_blocks(blocks: Sequence[Block]) -> dict[str, tuple[Block, int]]:
    index: dict[str, tuple[Block, int]] = {}
    for i, block in enumerate(blocks):
        if block.id and block.id not in index:
            index[block.id] = (block, block.position if block.position is not None else i)
    return index


def parse_feedback(raw: str, blocks: Sequence[Block], strict: bool = False) -> ParsedFeedback:
    """Parse raw model output into sanitized feedback for ``blocks``.

    With ``strict`` set, an undecodable payload or one that fails
    validate_schema() raises ResponseSchemaError instead of yielding an
    empty result.
    """
    data = decode_payload(raw)
    if data is None:
        if strict:
            raise ResponseSchemaError("Response did not contain decodable JSON")
        logger.warning("Failed to extract JSON from model output")
        return ParsedFeedback()

    if isinstance(data, dict):
        schema_errors = validate_schema(data)
        if schema_errors:
            if strict:
                raise ResponseSchemaError(
                    f"Response failed schema validation:\n{format_validation_errors(schema_errors)}",
                    schema_errors,
                )
            logger.debug(f"Response schema issues:\n{format_validation_errors(schema_errors)}")
    elif strict:
        raise ResponseSchemaError("Response must be a JSON object")

    if isinstance(data, dict) and isinstance(data.get("feedback"), list):
        summary = data.get("summary") or ""
        raw_items = data["feedback"]
    elif isinstance(data, list):
        summary = ""
        raw_items = data
    else:
        return ParsedFeedback()

    blocks_by_id = _index_blocks(blocks)
    items = []
    for raw_item in raw_items:
        item = validate_feedback_item(raw_item, blocks_by_id)
        if item is not None:
            items.append(item)

    logger.debug(f"Parsed {len(items)} valid feedback items out of {len(raw_items)}")

    summary_text = ""
    if isinstance(summary, str):
        summary_text = sanitize_markup(summary, policy_config.limits.summary_max)

    return ParsedFeedback(summary_text=summary_text, items=items)


def get_feedback_summary(items: Sequence[FeedbackItem]) -> FeedbackStats:
    stats = FeedbackStats(total=len(items))
    for item in items:
        if item.category in stats.by_category:
            stats.by_category[item.category] += 1
        if item.severity in stats.by_severity:
            stats.by_severity[item.severity] += 1
        if item.severity == "critical":
            stats.has_critical = True
    return stats


def _validate_item_schema(item: Any, index: int) -> list[SchemaError]:
    path = f"$.feedback[{index}]"
    if not isinstance(item, dict):
        return [SchemaError(code="invalid_type", message=f"Feedback item {index} must be an object.", path=path)]

    errors = []
    for field in REQUIRED_FIELDS:
        if item.get(field) is None:
            errors.append(
                SchemaError(
                    code="missing_field",
                    message=f'Feedback item {index} is missing required field "{field}".',
                    path=f"{path}.{field}",
                )
            )
        elif not isinstance(item[field], str):
            errors.append(
                SchemaError(
                    code="invalid_type",
                    message=f'Field "{field}" in feedback item {index} must be a string.',
                    path=f"{path}.{field}",
                )
            )

    for field, allowed in (("category", CATEGORIES), ("severity", SEVERITIES)):
        value = item.get(field)
        if isinstance(value, str) and value not in allowed:
            errors.append(
                SchemaError(
                    code="invalid_enum",
                    message=f'Invalid {field} "{value}" in item {index}. Must be one of: {", ".join(allowed)}.',
                    path=f"{path}.{field}",
                )
            )

    if item.get("suggestion") is not None and not isinstance(item["suggestion"], str):
        errors.append(
            SchemaError(
                code="invalid_type",
                message=f'Field "suggestion" in feedback item {index} must be a string.',
                path=f"{path}.suggestion",
            )
        )
    return errors


def validate_schema(data: Any) -> list[SchemaError]:
    """Structural check of a decoded response; block ids are not cross-referenced."""
    if not isinstance(data, dict):
        return [SchemaError(code="invalid_type", message="Response must be a JSON object.", path="$")]

    errors: list[SchemaError] = []
    feedback = data.get("feedback")
    if feedback is None:
        errors.append(
            SchemaError(
                code="missing_field",
                message='Response must contain a "feedback" array.',
                path="$.feedback",
            )
        )
    elif not isinstance(feedback, list):
        errors.append(
            SchemaError(
                code="invalid_type",
                message='The "feedback" field must be an array.',
                path="$.feedback",
            )
        )
    else:
        for index, item in enumerate(feedback):
            errors.extend(_validate_item_schema(item, index))

    if data.get("summary") is not None and not isinstance(data["summary"], str):
        errors.append(
            SchemaError(
                code="invalid_type",
                message='The "summary" field must be a string.',
                path="$.summary",
            )
        )
    return errors


def format_validation_errors(errors: Sequence[SchemaError]) -> str:
    return "\n".join(f"[{e.code}] {e.message}" + (f" (at {e.path})" if e.path else "") for e in errors)
