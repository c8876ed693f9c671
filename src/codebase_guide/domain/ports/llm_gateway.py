"""Port: LLM gateway — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import AsyncIterator, Protocol, Sequence

from codebase_guide.domain.entities import ChatMessage


class LlmGateway(Protocol):
    """Abstract contract for interacting with a large-language model."""

    async def complete(
        self, system_prompt: str, user_prompt: str, *, json_mode: bool = True
    ) -> str:
        """Send a system + user prompt pair and return the raw completion text."""
        ...

    def stream_chat(
        self, system_prompt: str, messages: Sequence[ChatMessage]
    ) -> AsyncIterator[str]:
        """Stream the assistant's reply to *messages* as text fragments."""
        ...
