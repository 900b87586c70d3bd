"""Database engine and session handling.

A single ``Database`` is built when the process starts, hung on
``app.state.database`` and handed to request handlers through ``get_db``.
Nothing in this module holds a global engine.
"""

from collections.abc import Generator
from datetime import datetime, timezone
from typing import Any

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    # Columns are naive UTC timestamps.
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Database:
    def __init__(self, url: str, **engine_kwargs: Any):
        if url.startswith("sqlite"):
            engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
        else:
            engine_kwargs.setdefault("pool_pre_ping", True)
            engine_kwargs.setdefault("pool_recycle", 3600)
        self.url = url
        self.engine = create_engine(url, **engine_kwargs)
        self.session_factory = sessionmaker(bind=self.engine, autoflush=False, autocommit=False)

    def create_all(self) -> None:
        # Import for side effects: every table must be registered on Base.metadata.
        from agency_admin import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def session(self) -> Session:
        return self.session_factory()

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Generator[Session, None, None]:
    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
