from datetime import datetime, timezone

import pytest


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_notemap.db")
    return db_path


@pytest.fixture
def fixed_now():
    """A fixed UTC clock reading for deterministic scheduling."""
    return datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)
