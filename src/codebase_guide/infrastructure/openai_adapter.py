"""OpenAI adapter — implements the LlmGateway port."""

from __future__ import annotations

import logging
from typing import AsyncIterator, Sequence

from openai import AsyncOpenAI, AuthenticationError, RateLimitError

from codebase_guide.domain.entities import ChatMessage
from codebase_guide.domain.exceptions import LlmError

logger = logging.getLogger(__name__)


class OpenAIAdapter:
    """Concrete ``LlmGateway`` backed by the OpenAI chat-completions API."""

    def __init__(self, api_key: str, model: str = "gpt-4o-mini") -> None:
        self._client = AsyncOpenAI(api_key=api_key, max_retries=5)
        self._model = model

    async def complete(
        self, system_prompt: str, user_prompt: str, *, json_mode: bool = True
    ) -> str:
        """Send a system + user prompt and return the completion text."""
        try:
            kwargs: dict[str, object] = {
                "model": self._model,
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                "temperature": 0.2,
            }
            if json_mode:
                kwargs["response_format"] = {"type": "json_object"}

            response = await self._client.chat.completions.create(**kwargs)  # type: ignore[arg-type]

            content = response.choices[0].message.content
            if not content:
                raise LlmError("LLM returned an empty response.")

            return content

        except LlmError:
            raise

        except Exception as exc:
            raise _translate(exc) from exc

    async def stream_chat(
        self, system_prompt: str, messages: Sequence[ChatMessage]
    ) -> AsyncIterator[str]:
        """Stream a chat reply, yielding each non-empty content delta."""
        payload = [{"role": "system", "content": system_prompt}]
        payload.extend({"role": m.role, "content": m.content} for m in messages)

        try:
            stream = await self._client.chat.completions.create(
                model=self._model,
                messages=payload,  # type: ignore[arg-type]
                temperature=0.4,
                stream=True,
            )
            async for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    yield delta

        except Exception as exc:
            raise _translate(exc) from exc

    async def close(self) -> None:
        """Release underlying HTTP resources."""
        await self._client.close()


def _translate(exc: Exception) -> LlmError:
    if isinstance(exc, AuthenticationError):
        return LlmError(
            "Invalid OpenAI API key. "
            "Set a valid key in the OPENAI_API_KEY environment variable."
        )
    if isinstance(exc, RateLimitError):
        logger.error("OpenAI RateLimitError: %s", exc)
        return LlmError(f"OpenAI rate limit / quota error: {exc}")
    return LlmError(f"LLM call failed: {exc}")
