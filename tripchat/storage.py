"""
ChatStorage - Append-only persistence for chat messages and saved itineraries
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from tripchat.database import Database
from tripchat.models.chat_schemas import MessageOut, Role, SavedItineraryOut
from tripchat.models.database import Message, SavedItinerary

logger = logging.getLogger(__name__)

# Single placeholder identity until authentication exists
DEFAULT_USER_ID = 1


class ChatStorage:
    """Message log and itinerary store backed by SQLAlchemy"""

    def __init__(self, database: Optional[Database] = None):
        self.database = database or Database()
        logger.info("✅ ChatStorage initialized")

    def create_message(self, role: Role, content: str, user_id: int = DEFAULT_USER_ID) -> MessageOut:
        """Append a message to the log"""

        with self.database.get_db_context() as db:
            record = Message(user_id=user_id, role=Role(role).value, content=content)
            db.add(record)
            db.flush()
            db.refresh(record)
            return self._to_message(record)

    def get_messages_by_user_id(self, user_id: int = DEFAULT_USER_ID) -> List[MessageOut]:
        """All messages for a user, oldest first"""

        with self.database.get_db_context() as db:
            records = (
                db.query(Message)
                .filter(Message.user_id == user_id)
                .order_by(Message.id)
                .all()
            )
            return [self._to_message(r) for r in records]

    def create_itinerary(
        self,
        title: str,
        destination: str,
        content: Dict[str, Any],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        user_id: int = DEFAULT_USER_ID,
    ) -> SavedItineraryOut:
        """Persist an itinerary"""

        with self.database.get_db_context() as db:
            record = SavedItinerary(
                user_id=user_id,
                title=title,
                destination=destination,
                start_date=start_date,
                end_date=end_date,
                content=content,
            )
            db.add(record)
            db.flush()
            db.refresh(record)

            logger.info(f"💾 Saved itinerary {record.id}: {title}")
            return self._to_itinerary(record)

    def get_itinerary(self, itinerary_id: int) -> Optional[SavedItineraryOut]:
        with self.database.get_db_context() as db:
            record = db.get(SavedItinerary, itinerary_id)
            return self._to_itinerary(record) if record else None

    def get_itineraries_by_user_id(self, user_id: int = DEFAULT_USER_ID) -> List[SavedItineraryOut]:
        with self.database.get_db_context() as db:
            records = (
                db.query(SavedItinerary)
                .filter(SavedItinerary.user_id == user_id)
                .order_by(SavedItinerary.id)
                .all()
            )
            return [self._to_itinerary(r) for r in records]

    @staticmethod
    def _to_message(record: Message) -> MessageOut:
        return MessageOut(
            id=record.id,
            role=Role(record.role),
            content=record.content,
            timestamp=record.timestamp,
        )

    @staticmethod
    def _to_itinerary(record: SavedItinerary) -> SavedItineraryOut:
        return SavedItineraryOut(
            id=record.id,
            user_id=record.user_id,
            title=record.title,
            destination=record.destination,
            start_date=record.start_date,
            end_date=record.end_date,
            content=record.content or {},
            created=record.created,
        )


# Singleton instance
_chat_storage = None

def get_chat_storage() -> ChatStorage:
    """Get singleton ChatStorage instance"""
    global _chat_storage
    if _chat_storage is None:
        _chat_storage = ChatStorage()
    return _chat_storage
