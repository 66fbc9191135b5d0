"""
Database engine, session management, and base model.

Every model inherits from Base. Every request gets a session
from get_db(), and every posting runs inside that one session,
so a journal header, its lines and the source status change
commit together or not at all.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from auto_journal.config import get_settings

settings = get_settings()

# --- Engine ---
# pool_pre_ping=True tests connections before using them,
# which handles a database restart or a stale connection.
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    echo=settings.DATABASE_ECHO,
)

# --- Session Factory ---
# autocommit=False: the API layer decides when a posting is
# committed. autoflush=False: SQL is only sent on an explicit
# flush or commit.
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    pass


# --- Dependency for FastAPI ---
def get_db():
    """
    Provide a database session for a single request.

    The try/finally pattern ensures the session is always
    closed, preventing connection leaks.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
