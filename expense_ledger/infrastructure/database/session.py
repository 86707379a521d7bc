"""Engine and per-request sessions for the ledger database"""

from typing import Generator
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from expense_ledger.config import settings


def build_engine(database_url: str) -> Engine:
    """
    Pooled engine for PostgreSQL; SQLite (local runs) gets a thread-shareable connection instead.

    Catch-up commits once per charge, so connections are checked before reuse
    and recycled hourly.
    """
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=10,
        pool_recycle=3600,
    )


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session; use cases commit or roll back themselves"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
