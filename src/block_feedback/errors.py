"""Error taxonomy for the review pipeline.

Every failure that can end a review carries a stable machine code. Routes
translate a ReviewError into an HTTP error body via to_error().
"""

from typing import Any

from .schemas.response import Error

NON_RETRYABLE_ERRORS = ("rate_limit_exceeded", "invalid_api_key", "billing_error")


class ReviewError(Exception):
    status: int = 400

    def __init__(self, code: str, message: str, status: int | None = None, details: Any = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details
        if status is not None:
            self.status = status

    def to_error(self) -> Error:
        return Error(code=self.code, message=self.message, details=self.details)


class InputError(ReviewError):
    """Caller-correctable input problem (unknown document, bad block list)."""


class AIInvocationError(ReviewError):
    _STATUS_BY_CODE = {
        "rate_limit_exceeded": 429,
        "invalid_api_key": 401,
        "billing_error": 402,
        "ai_request_failed": 502,
    }

    def __init__(self, code: str, message: str):
        super().__init__(code, message, status=self._STATUS_BY_CODE.get(code, 502))

    @property
    def retryable(self) -> bool:
        return self.code not in NON_RETRYABLE_ERRORS


class NoteCreationError(ReviewError):
    def __init__(self, errors: list[str]):
        super().__init__(
            "note_creation_failed",
            f"Failed to create notes: {', '.join(errors)}",
            status=500,
            details=errors,
        )
        self.errors = errors


class ResponseSchemaError(ReviewError):
    def __init__(self, message: str, errors: list | None = None):
        super().__init__("invalid_response_schema", message, status=502, details=errors)
        self.errors = errors or []
