"""
Database connection and initialization
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from contextlib import contextmanager
from typing import Optional
import logging
import os

from tripchat.models.database import Base

logger = logging.getLogger(__name__)

# In-memory SQLite unless configured otherwise
DEFAULT_DATABASE_URL = "sqlite://"


def create_db_engine(database_url: Optional[str] = None) -> Engine:
    """Build an engine; in-memory SQLite shares one connection across threads"""
    url = database_url or os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
    echo = os.getenv("DEBUG", "false").lower() == "true"

    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=echo, **kwargs)

    return create_engine(url, echo=echo)


def init_db(engine: Engine):
    """Initialize database - create all tables"""
    logger.info("🔧 Initializing database...")
    Base.metadata.create_all(bind=engine)
    logger.info("✅ Database initialized successfully!")


class Database:
    """Engine plus session factory"""

    def __init__(self, database_url: Optional[str] = None):
        self.engine = create_db_engine(database_url)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        init_db(self.engine)

    @contextmanager
    def get_db_context(self):
        """Context manager for database sessions"""
        db = self.SessionLocal()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
