import calendar
import sqlite3
from datetime import date

from fintrack.currency import RateCache
from fintrack.logging_setup import get_logger
from fintrack.models import Budget, BudgetStatus

logger = get_logger("fintrack.budgets")


def set_budget(
    conn: sqlite3.Connection,
    user_id: int,
    category_id: int,
    amount: float,
    description: str | None = None,
) -> int:
    """Create or replace the user's monthly budget (in USD) for a category."""
    existing = conn.execute(
        "SELECT id FROM budgets WHERE user_id = ? AND category_id = ?", (user_id, category_id)
    ).fetchone()
    if existing:
        conn.execute(
            "UPDATE budgets SET amount = ?, description = ? WHERE id = ?",
            (amount, description, existing["id"]),
        )
        conn.commit()
        return existing["id"]
    cursor = conn.execute(
        "INSERT INTO budgets (user_id, category_id, amount, description) VALUES (?, ?, ?, ?)",
        (user_id, category_id, amount, description),
    )
    conn.commit()
    return cursor.lastrowid


def list_budgets(conn: sqlite3.Connection, user_id: int) -> list[Budget]:
    rows = conn.execute(
        "SELECT id, user_id, category_id, amount, description FROM budgets WHERE user_id = ? ORDER BY id",
        (user_id,),
    ).fetchall()
    return [
        Budget(id=r["id"], user_id=r["user_id"], category_id=r["category_id"],
               amount=r["amount"], description=r["description"])
        for r in rows
    ]



def delete_budget(conn: sqlite3.Connection, user_id: int, category_id: int) -> bool:
    cursor = conn.execute(
        "DELETE FROM budgets WHERE user_id = ? AND category_id = ?", (user_id, category_id)
    )
    conn.commit()
    return cursor.rowcount > 0

def month_bounds(on_date: date) -> tuple[str, str]:
    last_day = calendar.monthrange(on_date.year, on_date.month)[1]
    return (
        on_date.replace(day=1).isoformat(),
        on_date.replace(day=last_day).isoformat(),
    )


def check_budget(
    conn: sqlite3.Connection,
    user_id: int,
    category_id: int,
    on_date: date,
    rates: RateCache,
) -> BudgetStatus | None:
    """Month-to-date spending in a category, in USD, against its budget. None if no budget is set."""
    budget = conn.execute(
        "SELECT amount FROM budgets WHERE user_id = ? AND category_id = ?", (user_id, category_id)
    ).fetchone()
    if budget is None:
        return None

    start, end = month_bounds(on_date)
    expenses = conn.execute(
        "SELECT amount, currency FROM transactions "
        "WHERE user_id = ? AND category_id = ? AND type = 'expense' AND date BETWEEN ? AND ?",
        (user_id, category_id, start, end),
    ).fetchall()

    spent = sum(float(rates.convert(r["amount"], r["currency"] or "USD", "USD")) for r in expenses)
    limit = float(budget["amount"])
    status = BudgetStatus(category_id=category_id, limit=limit, spent=round(spent, 2), exceeded=spent > limit)
    if status.exceeded:
        logger.info("Budget exceeded for category %s: limit %.2f, spent %.2f", category_id, limit, spent)
    return status
