"""Chat relay — follow-up questions about an analysed repository.

A :class:`ChatSession` is created once per analysis and handed to whoever
owns that analysis; nothing about it is process-global.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator

from codebase_guide.domain.entities import ChatMessage
from codebase_guide.domain.ports.llm_gateway import LlmGateway

logger = logging.getLogger(__name__)

CHAT_ERROR_MESSAGE = "Error: I encountered an issue responding."
EMPTY_REPLY_MESSAGE = "I couldn't process that."


class ChatSession:
    """An append-only conversation grounded in one repository's analysis.

    Parameters
    ----------
    llm_gateway:
        Adapter that streams chat completions.
    system_prompt:
        Instructions plus the analysis and code context for every turn.
    """

    def __init__(self, llm_gateway: LlmGateway, system_prompt: str) -> None:
        self._llm = llm_gateway
        self._system_prompt = system_prompt
        self._messages: list[ChatMessage] = []
        self._turn_lock = asyncio.Lock()
        self._last_turn_failed = False

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages)

    @property
    def last_turn_failed(self) -> bool:
        return self._last_turn_failed

    async def send(self, message: str) -> AsyncIterator[str]:
        """Relay *message* and yield the reply's text fragments as they arrive.

        The user message and an empty assistant placeholder are appended
        before the first fragment is requested.  Each fragment replaces the
        placeholder with the accumulated reply.
        """
        async with self._turn_lock:
            self._messages.append(ChatMessage(role="user", content=message))
            history = tuple(self._messages)

            index = len(self._messages)
            self._messages.append(ChatMessage(role="assistant", content=""))
            self._last_turn_failed = False

            reply = ""
            try:
                async for fragment in self._llm.stream_chat(self._system_prompt, history):
                    reply += fragment
                    self._messages[index] = ChatMessage(role="assistant", content=reply)
                    yield fragment
            except Exception:
                logger.exception("Chat turn failed after %d characters", len(reply))
                self._messages[index] = ChatMessage(
                    role="assistant", content=CHAT_ERROR_MESSAGE
                )
                self._last_turn_failed = True

    async def ask(self, message: str) -> str:
        """Relay *message* and return the complete reply."""
        reply = "".join([fragment async for fragment in self.send(message)])
        if self._last_turn_failed:
            return CHAT_ERROR_MESSAGE
        return reply or EMPTY_REPLY_MESSAGE
