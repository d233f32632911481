"""
Tests for slot repositories.
"""

import os
import tempfile

import pytest

from energiekuchen_store.repository import (
    MemorySlotRepository,
    QuotaExceeded,
    SQLiteSlotRepository,
)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        yield f.name
    os.unlink(f.name)


@pytest.fixture
def repo(temp_db):
    """Create repository with temp database."""
    return SQLiteSlotRepository(db_path=temp_db)


class TestSQLiteSlots:
    """Test the SQLite backend."""

    def test_get_empty_slot(self, repo):
        assert repo.get("energiekuchen-data") is None

    def test_set_and_get(self, repo):
        repo.set("key", '{"version": "1.0"}')
        assert repo.get("key") == '{"version": "1.0"}'

    def test_set_overwrites(self, repo):
        """Test that every write replaces the whole value."""
        repo.set("key", "first")
        repo.set("key", "second")
        assert repo.get("key") == "second"

        with repo._connection() as conn:
            count = conn.execute("SELECT COUNT(*) FROM slots").fetchone()[0]
        assert count == 1

    def test_remove(self, repo):
        repo.set("key", "value")
        repo.remove("key")
        assert repo.get("key") is None

    def test_remove_missing_is_fine(self, repo):
        repo.remove("never-written")

    def test_keys_are_independent(self, repo):
        repo.set("a", "1")
        repo.set("b", "2")
        repo.remove("a")
        assert repo.get("b") == "2"

    def test_survives_reopen(self, temp_db):
        """Test that data persists across repository instances."""
        SQLiteSlotRepository(db_path=temp_db).set("key", "kept")
        assert SQLiteSlotRepository(db_path=temp_db).get("key") == "kept"

    def test_unicode_values(self, repo):
        repo.set("key", '{"name": "Café"}')
        assert repo.get("key") == '{"name": "Café"}'


class TestMemorySlots:
    """Test the in-memory backend."""

    def test_set_get_remove(self):
        repo = MemorySlotRepository()
        repo.set("key", "value")
        assert repo.get("key") == "value"
        assert "key" in repo

        repo.remove("key")
        assert repo.get("key") is None
        repo.remove("key")

    def test_quota_exceeded(self):
        """Test that a write beyond the quota is refused and nothing changes."""
        repo = MemorySlotRepository(quota_bytes=10)
        repo.set("key", "12345")

        with pytest.raises(QuotaExceeded):
            repo.set("key", "12345678901")

        assert repo.get("key") == "12345"

    def test_overwrite_does_not_count_old_value(self):
        repo = MemorySlotRepository(quota_bytes=10)
        repo.set("key", "1234567890")
        repo.set("key", "0987654321")
        assert repo.get("key") == "0987654321"

    def test_quota_exceeded_is_os_error(self):
        assert issubclass(QuotaExceeded, OSError)
