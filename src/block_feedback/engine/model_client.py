"""
Async AI text-generation client using the OpenAI SDK.

Talks to any OpenAI-compatible chat completions endpoint (a provider gateway,
a local Ollama, OpenAI itself). One call is one attempt: retries, backoff and
error classification live in the invoker.
"""

from openai import AsyncOpenAI

from ..config import settings
from ..logging import logger


class ModelClient:
    def __init__(self):
        self.client = AsyncOpenAI(
            base_url=settings.ai_base_url,
            api_key=settings.ai_api_key,
            max_retries=0,
        )

    async def generate(
        self,
        prompt: str,
        system_instruction: str,
        model: str,
        temperature: float,
        max_tokens: int,
        timeout: float,
    ) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_instruction},
                    {"role": "user", "content": prompt},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
                timeout=timeout,
            )
            content = response.choices[0].message.content or ""
            if response.usage:
                logger.debug(
                    f"Model usage: input_tokens={response.usage.prompt_tokens} "
                    f"output_tokens={response.usage.completion_tokens}"
                )
            return content
        except Exception as e:
            logger.error(f"Model call failed: {e}")
            raise
