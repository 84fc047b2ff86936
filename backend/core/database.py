"""
Database configuration and connection management.

This module provides:
- SQLAlchemy engine and session management
- Connection pooling with sane defaults (SQLite uses its own pool)
- Test database support
- Table definitions for the tracker records
"""
from typing import Optional
from contextlib import contextmanager
from sqlalchemy import create_engine, MetaData, Table, Column, Integer, String, DateTime, Boolean, Text, Index, UniqueConstraint
from sqlalchemy.pool import QueuePool
from sqlalchemy.orm import sessionmaker
import os

from backend.core.config import settings


# SQLAlchemy metadata for table definitions
metadata = MetaData()

# Connection pooling configuration
POOL_SIZE = 10
MAX_OVERFLOW = 20
POOL_TIMEOUT = 30
POOL_RECYCLE = 3600  # Recycle connections after 1 hour

# Global engine and session factory
_engine = None
_SessionLocal = None


def get_database_url() -> Optional[str]:
    """
    Get the database URL from settings or environment.

    For testing, use TEST_DATABASE_URL if available.
    """
    test_url = os.getenv("TEST_DATABASE_URL")
    if test_url:
        return test_url

    return settings.DATABASE_URL


def init_engine(database_url: Optional[str] = None):
    """
    Initialize the SQLAlchemy engine.

    Args:
        database_url: Optional override for DATABASE_URL
    """
    global _engine, _SessionLocal

    url = database_url or get_database_url()

    if not url:
        raise ValueError(
            "DATABASE_URL is not configured. "
            "Set DATABASE_URL in environment or .env file."
        )

    if url.startswith("sqlite"):
        _engine = create_engine(url, connect_args={"check_same_thread": False}, echo=False)
    else:
        _engine = create_engine(
            url,
            poolclass=QueuePool,
            pool_size=POOL_SIZE,
            max_overflow=MAX_OVERFLOW,
            pool_timeout=POOL_TIMEOUT,
            pool_recycle=POOL_RECYCLE,
            echo=False,  # Set to True for SQL query logging
        )

    # Create session factory
    _SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=_engine
    )

    return _engine


def dispose_engine() -> None:
    """Drop the cached engine (tests switch databases between cases)."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


def get_engine():
    """Get the current SQLAlchemy engine."""
    global _engine
    if _engine is None:
        init_engine()
    return _engine


def get_session_factory():
    """Get the session factory."""
    global _SessionLocal
    if _SessionLocal is None:
        init_engine()
    return _SessionLocal


@contextmanager
def get_db_session():
    """
    Context manager for database sessions.

    Usage:
        with get_db_session() as session:
            session.execute(...)
    """
    SessionLocal = get_session_factory()
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_all_tables():
    """
    Create all tables defined in metadata.

    This is idempotent - tables that already exist will not be recreated.
    """
    engine = get_engine()
    metadata.create_all(bind=engine)


# Daily identity votes: one row per user per day
votes = Table(
    'votes',
    metadata,
    Column('user_id', String(100), nullable=False),
    Column('date', String(10), nullable=False),
    Column('vote', String(3), nullable=False),
    Column('note', Text, nullable=True),
    Column('timestamp', DateTime(timezone=True), nullable=False),
    UniqueConstraint('user_id', 'date', name='uq_votes_user_date'),
)

# Daily entries: scores are nullable ("not measured")
daily_entries = Table(
    'daily_entries',
    metadata,
    Column('user_id', String(100), nullable=False),
    Column('date', String(10), nullable=False),
    Column('presence_score', Integer, nullable=True),
    Column('productivity_score', Integer, nullable=True),
    Column('deep_work_sets', Integer, nullable=True),
    Column('time_waster_minutes', Integer, nullable=True),
    Column('timestamp', DateTime(timezone=True), nullable=False),
    UniqueConstraint('user_id', 'date', name='uq_daily_entries_user_date'),
)

# Goals: `date` is a day, ISO week or month key depending on `type`
goals = Table(
    'goals',
    metadata,
    Column('id', String(36), primary_key=True),
    Column('user_id', String(100), nullable=False),
    Column('type', String(10), nullable=False),
    Column('title', Text, nullable=False),
    Column('date', String(10), nullable=False),
    Column('completed', Boolean, nullable=False, default=False),
    Column('created_at', DateTime(timezone=True), nullable=False),
    Index('idx_goals_user_type_date', 'user_id', 'type', 'date'),
)

# 5 second rule actions: append-only
five_second_actions = Table(
    'five_second_actions',
    metadata,
    Column('id', String(36), primary_key=True),
    Column('user_id', String(100), nullable=False),
    Column('date', String(10), nullable=False),
    Column('category', String(20), nullable=False),
    Column('note', Text, nullable=True),
    Column('timestamp', DateTime(timezone=True), nullable=False),
    Index('idx_five_second_actions_user_date', 'user_id', 'date'),
)

habits = Table(
    'habits',
    metadata,
    Column('id', String(36), primary_key=True),
    Column('user_id', String(100), nullable=False),
    Column('name', Text, nullable=False),
    Column('category', String(100), nullable=True),
    Column('archived', Boolean, nullable=False, default=False),
    Column('created_at', DateTime(timezone=True), nullable=False),
    Index('idx_habits_user', 'user_id'),
)

# One row per habit per day (toggle)
habit_completions = Table(
    'habit_completions',
    metadata,
    Column('user_id', String(100), nullable=False),
    Column('habit_id', String(36), nullable=False),
    Column('date', String(10), nullable=False),
    Column('completed', Boolean, nullable=False),
    Column('timestamp', DateTime(timezone=True), nullable=False),
    UniqueConstraint('user_id', 'habit_id', 'date', name='uq_habit_completions_habit_date'),
)

# Levels game state: singleton per user
level_states = Table(
    'level_states',
    metadata,
    Column('user_id', String(100), primary_key=True),
    Column('presence_level', Integer, nullable=False),
    Column('presence_level_start_date', String(10), nullable=False),
    Column('productivity_level', Integer, nullable=False),
    Column('productivity_level_start_date', String(10), nullable=False),
)

user_settings = Table(
    'user_settings',
    metadata,
    Column('user_id', String(100), primary_key=True),
    Column('identity', Text, nullable=False),
    Column('notifications_enabled', Boolean, nullable=False),
    Column('morning_reminder_time', String(5), nullable=False),
    Column('midday_reminder_time', String(5), nullable=False),
    Column('evening_reminder_time', String(5), nullable=False),
    Column('hourly_notifications_enabled', Boolean, nullable=False),
    Column('hourly_notification_start_time', String(5), nullable=False),
    Column('hourly_notification_end_time', String(5), nullable=False),
    Column('hourly_notification_message', Text, nullable=False),
)
