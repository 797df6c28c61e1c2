# tests/conftest.py
import pytest

from categorizer.suggester import CategorySuggester
from storage.category_store import MemoryCategoryStore
from storage.sqlite_store import SQLiteStore


@pytest.fixture
def memory_store():
    return MemoryCategoryStore()


@pytest.fixture
def suggester(memory_store):
    sug = CategorySuggester(memory_store)
    sug.initialize()
    return sug


@pytest.fixture
def resolved_events(suggester):
    """Collects every `category resolved` event the suggester emits."""
    events = []
    suggester.on_resolved(events.append)
    return events


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "expenses.sqlite")


@pytest.fixture
def store(db_path):
    """SQLiteStore with the current schema."""
    with SQLiteStore(db_path) as s:
        s.ensure_schema()
        yield s
