"""Read/write helpers over the SQLite schema used by the import pipeline and the CLI."""

import math
import sqlite3
from decimal import Decimal

from fintrack.models import Category, ImportRecord, Transaction, User


def _row_to_transaction(row: sqlite3.Row) -> Transaction:
    keys = row.keys()
    return Transaction(
        id=row["id"],
        user_id=row["user_id"],
        date=row["date"],
        description=row["description"],
        amount=row["amount"],
        type=row["type"],
        currency=row["currency"],
        category_id=row["category_id"],
        category_name=row["category_name"] if "category_name" in keys else None,
        is_anomaly_dismissed=bool(row["is_anomaly_dismissed"]),
        import_id=row["import_id"],
    )


# --- Users ---


def create_user(conn: sqlite3.Connection, name: str, currency: str = "USD") -> int:
    cursor = conn.execute(
        "INSERT INTO users (name, currency) VALUES (?, ?)", (name, currency.upper())
    )
    conn.commit()
    return cursor.lastrowid


def get_user(conn: sqlite3.Connection, user_id: int) -> User | None:
    row = conn.execute("SELECT id, name, currency FROM users WHERE id = ?", (user_id,)).fetchone()
    return User(id=row["id"], name=row["name"], currency=row["currency"]) if row else None


def get_user_by_name(conn: sqlite3.Connection, name: str) -> User | None:
    row = conn.execute("SELECT id, name, currency FROM users WHERE name = ?", (name,)).fetchone()
    return User(id=row["id"], name=row["name"], currency=row["currency"]) if row else None


def list_users(conn: sqlite3.Connection) -> list[User]:
    rows = conn.execute("SELECT id, name, currency FROM users ORDER BY name").fetchall()
    return [User(id=r["id"], name=r["name"], currency=r["currency"]) for r in rows]


def update_user_currency(conn: sqlite3.Connection, user_id: int, currency: str) -> bool:
    """Change the preferred currency. Returns False when the user does not exist."""
    code = currency.strip().upper()
    if not code.isalpha():
        raise ValueError(f"Not a currency code: {currency}")
    cursor = conn.execute("UPDATE users SET currency = ? WHERE id = ?", (code, user_id))
    conn.commit()
    return cursor.rowcount > 0


# --- Categories ---


def find_categories_for_user(conn: sqlite3.Connection, user_id: int) -> list[Category]:
    """The user's own categories plus the shared defaults, in id order."""
    rows = conn.execute(
        "SELECT id, name, category_type, user_id FROM categories "
        "WHERE user_id = ? OR user_id IS NULL ORDER BY id",
        (user_id,),
    ).fetchall()
    return [
        Category(id=r["id"], name=r["name"], category_type=r["category_type"], user_id=r["user_id"])
        for r in rows
    ]


def find_category_by_name(conn: sqlite3.Connection, user_id: int, name: str) -> Category | None:
    for cat in find_categories_for_user(conn, user_id):
        if cat.name.lower() == name.strip().lower():
            return cat
    return None


def create_category(conn: sqlite3.Connection, user_id: int, name: str, category_type: str) -> int:
    if category_type not in ("income", "expense"):
        raise ValueError(f"Unknown category type: {category_type}")
    cursor = conn.execute(
        "INSERT INTO categories (name, category_type, user_id) VALUES (?, ?, ?)",
        (name.strip(), category_type, user_id),
    )
    conn.commit()
    return cursor.lastrowid


# --- Transactions ---


def find_duplicate(
    conn: sqlite3.Connection,
    user_id: int,
    date: str,
    amount: Decimal | float,
    description: str,
) -> Transaction | None:
    """Return a stored transaction with the same date, 2dp amount and description (any case)."""
    wanted = description.strip().casefold()
    rows = conn.execute(
        "SELECT * FROM transactions WHERE user_id = ? AND date = ? AND ROUND(amount, 2) = ? ORDER BY id",
        (user_id, date, round(float(amount), 2)),
    ).fetchall()
    # SQLite's lower() only folds ASCII
    for row in rows:
        if row["description"].strip().casefold() == wanted:
            return _row_to_transaction(row)
    return None


def create_transaction(
    conn: sqlite3.Connection,
    user_id: int,
    date: str,
    description: str,
    amount: Decimal | float,
    type: str,
    currency: str = "USD",
    category_id: int | None = None,
    import_id: int | None = None,
    commit: bool = True,
) -> int:
    if type not in ("income", "expense"):
        raise ValueError(f"Unknown transaction type: {type}")
    value = round(abs(float(amount)), 2)
    if not math.isfinite(value):
        raise ValueError(f"Amount out of range: {amount}")
    cursor = conn.execute(
        "INSERT INTO transactions (user_id, date, description, amount, type, currency, category_id, import_id) "
        "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
        (user_id, date, description, value, type, currency.upper(), category_id, import_id),
    )
    if commit:
        conn.commit()
    return cursor.lastrowid


def list_imports(conn: sqlite3.Connection, user_id: int) -> list[ImportRecord]:
    rows = conn.execute(
        "SELECT * FROM imports WHERE user_id = ? ORDER BY import_date DESC, id DESC", (user_id,)
    ).fetchall()
    return [
        ImportRecord(
            id=r["id"], user_id=r["user_id"], filename=r["filename"], import_date=r["import_date"],
            record_count=r["record_count"], date_range_start=r["date_range_start"],
            date_range_end=r["date_range_end"], checksum=r["checksum"],
        )
        for r in rows
    ]


def list_transactions(
    conn: sqlite3.Connection, user_id: int, type: str | None = None
) -> list[Transaction]:
    """All of a user's transactions, newest first, with category names joined in."""
    sql = (
        "SELECT t.*, c.name as category_name FROM transactions t "
        "LEFT JOIN categories c ON t.category_id = c.id WHERE t.user_id = ?"
    )
    params: list = [user_id]
    if type:
        sql += " AND t.type = ?"
        params.append(type)
    sql += " ORDER BY t.date DESC, t.id DESC"
    return [_row_to_transaction(r) for r in conn.execute(sql, params).fetchall()]


def get_transaction(conn: sqlite3.Connection, user_id: int, txn_id: int) -> Transaction | None:
    row = conn.execute(
        "SELECT t.*, c.name as category_name FROM transactions t "
        "LEFT JOIN categories c ON t.category_id = c.id WHERE t.user_id = ? AND t.id = ?",
        (user_id, txn_id),
    ).fetchone()
    return _row_to_transaction(row) if row else None


_EDITABLE = ("date", "description", "amount", "type", "currency", "category_id")


def update_transaction(conn: sqlite3.Connection, user_id: int, txn_id: int, **changes) -> bool:
    """Change some fields of one of the user's transactions. Returns False if it does not exist.

    Only date, description, amount, type, currency and category_id can change.
    """
    unknown = set(changes) - set(_EDITABLE)
    if unknown:
        raise ValueError(f"Cannot edit: {', '.join(sorted(unknown))}")
    if "type" in changes and changes["type"] not in ("income", "expense"):
        raise ValueError(f"Unknown transaction type: {changes['type']}")
    if "amount" in changes:
        value = round(abs(float(changes["amount"])), 2)
        if not math.isfinite(value):
            raise ValueError(f"Amount out of range: {changes['amount']}")
        changes["amount"] = value
    if "currency" in changes:
        changes["currency"] = changes["currency"].upper()
    if not changes:
        return get_transaction(conn, user_id, txn_id) is not None

    fields = [f for f in _EDITABLE if f in changes]
    cursor = conn.execute(
        f"UPDATE transactions SET {', '.join(f'{f} = ?' for f in fields)} WHERE user_id = ? AND id = ?",
        [changes[f] for f in fields] + [user_id, txn_id],
    )
    conn.commit()
    return cursor.rowcount > 0


def delete_transaction(conn: sqlite3.Connection, user_id: int, txn_id: int) -> bool:
    cursor = conn.execute("DELETE FROM transactions WHERE user_id = ? AND id = ?", (user_id, txn_id))
    conn.commit()
    return cursor.rowcount > 0
