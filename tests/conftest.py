import pytest

from fintrack.db import get_connection, init_db
from fintrack.store import create_user


@pytest.fixture
def db(tmp_path):
    """Provide an initialized temp DB connection."""
    db_path = tmp_path / "test.db"
    conn = get_connection(db_path)
    init_db(conn)
    yield conn
    conn.close()


@pytest.fixture
def user_id(db):
    return create_user(db, "alice", "USD")
