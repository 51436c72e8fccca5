# admin_agent/db.py
import os
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base, Session

from admin_agent import monitoring

# Default dev DB; on Vercel api/index.py sets DATABASE_URL to /tmp before import
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./admin_agent.db")

Base = declarative_base()


def _make_engine(url: str):
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    engine = create_engine(url, connect_args=connect_args)
    if url.startswith("sqlite"):
        # SQLite leaves foreign keys unenforced unless asked, per connection
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    return engine


class Store:
    """
    Handle on the backing relational store.

    Built explicitly and passed to the dispatcher and every handler, so tests
    can point it at a throwaway SQLite file.
    """

    def __init__(self, url: str = DATABASE_URL):
        self.url = url
        self.engine = _make_engine(url)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False,
                                         expire_on_commit=False, bind=self.engine)

    def init_db(self):
        # Create tables if they don't exist
        try:
            import admin_agent.models as models  # noqa: F401
            Base.metadata.create_all(bind=self.engine)
        except Exception:
            # Surface in logs; don't crash the app at import time
            monitoring.logger.exception("DB init failed", extra={"db_url": self._safe_url()})

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Session that commits on success and rolls back on any exception."""
        session: Session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self):
        self.engine.dispose()

    def _safe_url(self) -> str:
        return self.engine.url.render_as_string(hide_password=True)
