from fintrack.db import init_db, get_connection


def test_init_db_creates_tables(tmp_path):
    conn = get_connection(tmp_path / "test.db")
    init_db(conn)

    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table' ORDER BY name")
    tables = [row[0] for row in cursor.fetchall()]
    for name in ("users", "categories", "transactions", "budgets", "imports"):
        assert name in tables
    conn.close()


def test_init_db_is_idempotent(tmp_path):
    conn = get_connection(tmp_path / "test.db")
    init_db(conn)
    init_db(conn)  # Should not raise

    count = conn.execute("SELECT count(*) FROM categories WHERE user_id IS NULL").fetchone()[0]
    assert count == 15
    conn.close()


def test_init_db_seeds_shared_income_and_expense_categories(db):
    income = db.execute(
        "SELECT count(*) FROM categories WHERE category_type = 'income' AND user_id IS NULL"
    ).fetchone()[0]
    expense = db.execute(
        "SELECT count(*) FROM categories WHERE category_type = 'expense' AND user_id IS NULL"
    ).fetchone()[0]
    assert income == 4
    assert expense == 11

    names = [r[0] for r in db.execute("SELECT name FROM categories").fetchall()]
    for name in ("Food", "Shopping", "Salary", "Housing", "Utilities", "Transport", "Entertainment"):
        assert name in names
