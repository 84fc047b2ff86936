# backend/conftest.py
import sys
import pytest
from pathlib import Path

# Add backend root to PYTHONPATH
BACKEND_ROOT = Path(__file__).resolve().parent
if str(BACKEND_ROOT.parent) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT.parent))

from backend.features.tracker.service import set_tracker_store  # noqa: E402
from backend.features.tracker.store import InMemoryTrackerStore  # noqa: E402

TODAY = "2024-03-14"


@pytest.fixture
def today():
    """Fixed calendar day (a Thursday, ISO week 2024-W11)."""
    return TODAY


@pytest.fixture(autouse=True)
def store():
    """
    Fresh in-memory store per test, installed as the process-wide store so
    API routes see the same records the test writes.
    """
    memory = InMemoryTrackerStore()
    set_tracker_store(memory)
    yield memory
    set_tracker_store(None)


@pytest.fixture
def sql_store(tmp_path):
    """
    SQLite-backed store in a throwaway file.

    Runs the same code paths as PostgreSQL (SQLAlchemy Core, select-then-write
    upserts) without needing a server.
    """
    from backend.core.database import create_all_tables, dispose_engine, init_engine
    from backend.features.tracker.persistence import SqlTrackerStore

    init_engine(f"sqlite:///{tmp_path / 'tracker.db'}")
    create_all_tables()
    sql = SqlTrackerStore()
    set_tracker_store(sql)
    yield sql
    set_tracker_store(None)
    dispose_engine()
