"""Per-session conversation history kept in the cache."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from insight.memory.cache_manager import CacheManager

logger = logging.getLogger(__name__)

PREFIX = "conversation:"
MAX_MESSAGES = 50
CONVERSATION_TTL_SECONDS = 3600


class ConversationMessage(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str
    timestamp: datetime = Field(default_factory=datetime.now)


class ConversationMemory:
    def __init__(self, cache: CacheManager) -> None:
        self.cache = cache

    def add_message(self, session_id: str, role: str, content: str) -> None:
        messages = self.get_messages(session_id)
        messages.append(ConversationMessage(role=role, content=content))
        # Oldest messages drop off first
        messages = messages[-MAX_MESSAGES:]
        self.cache.set(PREFIX + session_id, messages, CONVERSATION_TTL_SECONDS)
        logger.debug("Message added to conversation %s (role=%s)", session_id, role)

    def get_messages(self, session_id: str) -> list[ConversationMessage]:
        return list(self.cache.get(PREFIX + session_id) or [])

    def get_context(self, session_id: str, max_messages: int = 10) -> list[ConversationMessage]:
        """The last ``max_messages`` messages of the session."""
        return self.get_messages(session_id)[-max_messages:] if max_messages > 0 else []

    def clear(self, session_id: str) -> None:
        self.cache.delete(PREFIX + session_id)
        logger.info("Conversation memory cleared for session %s", session_id)
