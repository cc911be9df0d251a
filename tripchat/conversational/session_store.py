"""
SessionStore - Conversation State Management

Keeps one ConversationContext (travel session + bounded history) per
conversation id, in an in-memory map by default.

Author: TripChat Team
Date: 2024
"""

import asyncio
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import MutableMapping, Optional

from tripchat.models.chat_schemas import ConversationHistory
from tripchat.models.schemas import TravelSession

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_WINDOW = 10


@dataclass
class ConversationContext:
    """Everything the server remembers about one conversation"""
    conversation_id: str
    travel_session: TravelSession = field(default_factory=TravelSession)
    history: ConversationHistory = field(default_factory=ConversationHistory)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def touch(self):
        self.updated_at = datetime.now()


class SessionStore:
    """Conversation contexts keyed by conversation id"""

    def __init__(
        self,
        backend: Optional[MutableMapping[str, ConversationContext]] = None,
        history_window: Optional[int] = None
    ):
        self.contexts = backend if backend is not None else {}
        self.history_window = history_window or int(
            os.getenv("HISTORY_WINDOW", DEFAULT_HISTORY_WINDOW)
        )
        logger.info("SessionStore initialized")

    def get_or_create(self, conversation_id: str) -> ConversationContext:
        """Context for an id, created on first use"""

        context = self.contexts.get(conversation_id)
        if context is None:
            context = ConversationContext(
                conversation_id=conversation_id,
                history=ConversationHistory(max_entries=self.history_window),
            )
            self.contexts[conversation_id] = context
            logger.info(f"✨ Created conversation: {conversation_id}")

        return context

    def get(self, conversation_id: str) -> Optional[ConversationContext]:
        context = self.contexts.get(conversation_id)
        if not context:
            logger.warning(f"Conversation not found: {conversation_id}")
        return context

    def clear(self, conversation_id: str) -> bool:
        """Drop a conversation's working state; True if it existed"""

        if conversation_id in self.contexts:
            del self.contexts[conversation_id]
            logger.info(f"🗑️  Cleared conversation: {conversation_id}")
            return True

        logger.warning(f"Cannot clear - conversation not found: {conversation_id}")
        return False

    def get_active_count(self) -> int:
        return len(self.contexts)


# Singleton instance
_session_store = None

def get_session_store() -> SessionStore:
    """Get singleton SessionStore instance"""
    global _session_store
    if _session_store is None:
        _session_store = SessionStore()
    return _session_store
