"""
Conversational Trip Planning Module

Provides natural language interaction for trip planning with:
- Travel parameter extraction
- Response generation
- Session management

Author: TripChat Team
Date: 2024
"""

from .conversation_manager import ConversationManager, get_conversation_manager
from .intent_parser import IntentParser
from .response_generator import FallbackResponder, ResponseGenerator
from .session_store import ConversationContext, SessionStore, get_session_store

__all__ = [
    "ConversationManager",
    "ConversationContext",
    "FallbackResponder",
    "IntentParser",
    "ResponseGenerator",
    "SessionStore",
    "get_conversation_manager",
    "get_session_store",
]
