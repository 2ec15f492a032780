"""Retry wrapper around the AI client.

Each failure is classified by case-insensitive keyword matching on the
exception message and class name:

    rate_limit_exceeded  "rate limit", "too many requests", ...
    invalid_api_key      "invalid api key", "unauthorized", "authentication"
    billing_error        "billing", "payment", "quota exceeded", "insufficient"
    ai_request_failed    anything else

The first three are terminal and returned after a single attempt. Generic
failures are retried with exponential backoff (1s, 2s, 4s, ...), sleeping
only before a retry. Keyword matching is fragile; providers give us no
structured error codes to do better.
"""

import asyncio
from typing import Protocol

from ..config import policy_config
from ..errors import AIInvocationError
from ..logging import logger

RATE_LIMIT_KEYWORDS = ("rate limit", "rate_limit", "ratelimit", "too many requests")
INVALID_KEY_KEYWORDS = ("invalid api key", "invalid_api_key", "unauthorized", "authentication")
BILLING_KEYWORDS = ("billing", "payment", "quota exceeded", "insufficient")


class TextGenerator(Protocol):
    async def generate(
        self,
        prompt: str,
        system_instruction: str,
        model: str,
        temperature: float,
        max_tokens: int,
        timeout: float,
    ) -> str: ...


def classify_error(exc: BaseException) -> str:
    if isinstance(exc, AIInvocationError):
        return exc.code

    haystack = f"{type(exc).__name__} {exc}".lower()
    if any(keyword in haystack for keyword in RATE_LIMIT_KEYWORDS):
        return "rate_limit_exceeded"
    if any(keyword in haystack for keyword in INVALID_KEY_KEYWORDS):
        return "invalid_api_key"
    if any(keyword in haystack for keyword in BILLING_KEYWORDS):
        return "billing_error"
    return "ai_request_failed"


def to_invocation_error(exc: BaseException) -> AIInvocationError:
    if isinstance(exc, AIInvocationError):
        return exc
    return AIInvocationError(classify_error(exc), f"AI request failed: {exc}")


def backoff_delay(retry_number: int) -> float:
    """Seconds to wait before retry ``retry_number`` (1-based)."""
    return policy_config.invoker.backoff_base_ms * (2 ** (retry_number - 1)) / 1000


class AIInvoker:
    def __init__(self, client: TextGenerator):
        self.client = client

    async def _attempt(self, prompt: str, system_instruction: str, model: str) -> str:
        cfg = policy_config.invoker
        return await self.client.generate(
            prompt,
            system_instruction,
            model,
            temperature=cfg.temperature,
            max_tokens=cfg.max_tokens,
            timeout=cfg.timeout_seconds,
        )

    async def invoke(
        self,
        prompt: str,
        system_instruction: str,
        model: str,
        max_retries: int | None = None,
    ) -> str:
        """Return the raw model text, or raise the last AIInvocationError."""
        if max_retries is None:
            max_retries = policy_config.invoker.max_retries
        max_retries = max(0, max_retries)

        last_error: AIInvocationError | None = None
        for attempt in range(max_retries + 1):
            if attempt > 0:
                delay = backoff_delay(attempt)
                logger.warning(
                    f"Retrying AI request in {delay:.1f}s (retry {attempt}/{max_retries}) "
                    f"after {last_error.code}: {last_error.message}"
                )
                await asyncio.sleep(delay)

            try:
                response = await self._attempt(prompt, system_instruction, model)
            except Exception as e:
                last_error = to_invocation_error(e)
                if not last_error.retryable:
                    logger.error(f"Non-retryable AI error ({last_error.code}): {last_error.message}")
                    raise last_error from e
                logger.debug(f"AI attempt {attempt + 1} failed: {last_error.message}")
                continue

            if attempt > 0:
                logger.info(f"AI request succeeded on attempt {attempt + 1}")
            return response

        logger.error(f"AI request failed after {max_retries + 1} attempts: {last_error.message}")
        raise last_error
