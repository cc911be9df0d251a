"""
SQLAlchemy database models for TripChat
Append-only message log and saved itineraries
"""

from sqlalchemy import Column, Date, DateTime, Integer, JSON, String, Text
from sqlalchemy.orm import declarative_base
from datetime import datetime

Base = declarative_base()


class Message(Base):
    """Chat message log entry (never updated or deleted)"""
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    role = Column(String(20), nullable=False)  # user, assistant
    content = Column(Text, nullable=False)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Message {self.id} - {self.role}>"


class SavedItinerary(Base):
    """Itinerary the user explicitly saved"""
    __tablename__ = "itineraries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    title = Column(String(200), nullable=False)
    destination = Column(String(200), nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    # Day-by-day plan as produced by the itinerary extractor
    content = Column(JSON, nullable=False, default=dict)

    created = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<SavedItinerary {self.id} - {self.destination}>"
