# =======================================================================================
# gatepass/database.py - Database Management
# =======================================================================================
import logging
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.pool import QueuePool

from .config import config
from .models.tables import metadata

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Manages database connections and transactions."""

    def __init__(self, url: Optional[str] = None):
        self.url = url or config.DB_URL
        self.engine: Engine = create_engine(self.url, **self._engine_options(self.url))

    @staticmethod
    def _engine_options(url: str) -> dict:
        if url.startswith("sqlite"):
            # SQLite has no READ COMMITTED level and shares one file between threads
            return {"connect_args": {"check_same_thread": False}, "future": True}
        return {
            "poolclass": QueuePool,
            "pool_size": config.DB_POOL_SIZE,
            "max_overflow": config.DB_MAX_OVERFLOW,
            "pool_pre_ping": True,
            "isolation_level": "READ COMMITTED",
            "future": True,
        }

    @contextmanager
    def get_connection(self):
        """Get a database connection inside a transaction; commits on success."""
        with self.engine.begin() as conn:
            yield conn

    def create_schema(self) -> None:
        """Create any missing tables."""
        metadata.create_all(self.engine)
        logger.info("Database schema ready on %s", self.engine.url.render_as_string(hide_password=True))

    def ping(self) -> None:
        with self.get_connection() as conn:
            conn.execute(text("SELECT 1"))

    def dispose(self) -> None:
        self.engine.dispose()


def fetch_one(conn: Connection, statement):
    """Fetch a single mapping row."""
    return conn.execute(statement).mappings().first()


def fetch_all(conn: Connection, statement):
    """Fetch all mapping rows."""
    return conn.execute(statement).mappings().all()
