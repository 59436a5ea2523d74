"""Savings sources (accounts, deposits, shares) and monthly saving goals.

One source per user can be marked primary. When a user's recorded expenses
exceed their income, the shortfall is taken out of the primary source in the
savings overview. Stored amounts are never changed by this.
"""

import math
import sqlite3
from datetime import datetime

from fintrack.currency import RateCache
from fintrack.logging_setup import get_logger
from fintrack.models import Saving, SavingPlan, SavingsOverview

logger = get_logger("fintrack.savings")


def _amount(value) -> float:
    try:
        amount = round(float(value), 2)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid amount: {value}") from None
    if not math.isfinite(amount):
        raise ValueError(f"Invalid amount: {value}")
    return amount


def _row_to_saving(row: sqlite3.Row) -> Saving:
    return Saving(
        id=row["id"], user_id=row["user_id"], source=row["source"], amount=row["amount"],
        description=row["description"], is_primary=bool(row["is_primary"]),
    )


def _row_to_plan(row: sqlite3.Row) -> SavingPlan:
    return SavingPlan(
        id=row["id"], user_id=row["user_id"], goal_name=row["goal_name"],
        target_amount=row["target_amount"], month=row["month"], is_completed=bool(row["is_completed"]),
    )


# --- Sources ---


def add_saving(
    conn: sqlite3.Connection,
    user_id: int,
    source: str,
    amount,
    description: str | None = None,
    is_primary: bool = False,
) -> int:
    """Add a savings source. Marking it primary unmarks the user's other sources."""
    value = _amount(amount)
    if is_primary:
        conn.execute("UPDATE savings SET is_primary = 0 WHERE user_id = ?", (user_id,))
    cursor = conn.execute(
        "INSERT INTO savings (user_id, source, amount, description, is_primary) VALUES (?, ?, ?, ?, ?)",
        (user_id, source.strip(), value, description, int(is_primary)),
    )
    conn.commit()
    return cursor.lastrowid


def update_saving(
    conn: sqlite3.Connection,
    user_id: int,
    saving_id: int,
    source: str,
    amount,
    description: str | None = None,
    is_primary: bool = False,
) -> bool:
    value = _amount(amount)
    exists = conn.execute(
        "SELECT 1 FROM savings WHERE id = ? AND user_id = ?", (saving_id, user_id)
    ).fetchone()
    if exists is None:
        return False
    if is_primary:
        conn.execute("UPDATE savings SET is_primary = 0 WHERE user_id = ?", (user_id,))
    conn.execute(
        "UPDATE savings SET source = ?, amount = ?, description = ?, is_primary = ? WHERE id = ? AND user_id = ?",
        (source.strip(), value, description, int(is_primary), saving_id, user_id),
    )
    conn.commit()
    return True


def set_primary(conn: sqlite3.Connection, user_id: int, saving_id: int) -> bool:
    exists = conn.execute(
        "SELECT 1 FROM savings WHERE id = ? AND user_id = ?", (saving_id, user_id)
    ).fetchone()
    if exists is None:
        return False
    conn.execute("UPDATE savings SET is_primary = 0 WHERE user_id = ?", (user_id,))
    conn.execute("UPDATE savings SET is_primary = 1 WHERE id = ?", (saving_id,))
    conn.commit()
    return True


def delete_saving(conn: sqlite3.Connection, user_id: int, saving_id: int) -> bool:
    cursor = conn.execute("DELETE FROM savings WHERE id = ? AND user_id = ?", (saving_id, user_id))
    conn.commit()
    return cursor.rowcount > 0


def list_savings(conn: sqlite3.Connection, user_id: int) -> list[Saving]:
    rows = conn.execute("SELECT * FROM savings WHERE user_id = ? ORDER BY id", (user_id,)).fetchall()
    return [_row_to_saving(r) for r in rows]


# --- Plans ---


def add_plan(
    conn: sqlite3.Connection,
    user_id: int,
    goal_name: str,
    target_amount,
    month: str | None = None,
) -> int:
    """Add a saving goal. ``month`` is YYYY-MM when given."""
    value = _amount(target_amount)
    if month:
        try:
            datetime.strptime(month, "%Y-%m")
        except ValueError:
            raise ValueError(f"Month must be YYYY-MM: {month}") from None
    cursor = conn.execute(
        "INSERT INTO saving_plans (user_id, goal_name, target_amount, month) VALUES (?, ?, ?, ?)",
        (user_id, goal_name.strip(), value, month or None),
    )
    conn.commit()
    return cursor.lastrowid


def toggle_plan(conn: sqlite3.Connection, user_id: int, plan_id: int) -> bool | None:
    """Flip a plan between open and completed. Returns the new state, None if there is no such plan."""
    row = conn.execute(
        "SELECT is_completed FROM saving_plans WHERE id = ? AND user_id = ?", (plan_id, user_id)
    ).fetchone()
    if row is None:
        return None
    completed = not row["is_completed"]
    conn.execute("UPDATE saving_plans SET is_completed = ? WHERE id = ?", (int(completed), plan_id))
    conn.commit()
    return completed


def delete_plan(conn: sqlite3.Connection, user_id: int, plan_id: int) -> bool:
    cursor = conn.execute("DELETE FROM saving_plans WHERE id = ? AND user_id = ?", (plan_id, user_id))
    conn.commit()
    return cursor.rowcount > 0


def list_plans(conn: sqlite3.Connection, user_id: int) -> list[SavingPlan]:
    rows = conn.execute(
        "SELECT * FROM saving_plans WHERE user_id = ? ORDER BY month IS NULL, month, id", (user_id,)
    ).fetchall()
    return [_row_to_plan(r) for r in rows]


# --- Overview ---


def get_deficit(
    conn: sqlite3.Connection,
    user_id: int,
    rates: RateCache | None = None,
    currency: str = "USD",
) -> float:
    """How far recorded expenses exceed income, 0 when they don't.

    With ``rates`` every transaction is converted into ``currency`` first,
    otherwise stored amounts are added as they are.
    """
    rows = conn.execute(
        "SELECT amount, type, currency FROM transactions WHERE user_id = ?", (user_id,)
    ).fetchall()
    income = expense = 0.0
    for r in rows:
        amount = float(rates.convert(r["amount"], r["currency"], currency)) if rates else r["amount"]
        if r["type"] == "income":
            income += amount
        else:
            expense += amount
    return round(expense - income, 2) if expense > income else 0.0


def get_overview(
    conn: sqlite3.Connection,
    user_id: int,
    rates: RateCache | None = None,
    currency: str = "USD",
) -> SavingsOverview:
    """Sources with the deficit cut from the primary one (never below 0), plus the plans."""
    deficit = get_deficit(conn, user_id, rates, currency)
    stored = list_savings(conn, user_id)

    adjusted = []
    for s in stored:
        amount = s.amount
        if s.is_primary and deficit > 0:
            amount = max(0.0, round(amount - deficit, 2))
        adjusted.append(Saving(
            id=s.id, user_id=s.user_id, source=s.source, amount=amount,
            description=s.description, is_primary=s.is_primary,
        ))
    if deficit > 0:
        logger.info("Deducting deficit %.2f from primary savings for user %s", deficit, user_id)

    return SavingsOverview(
        savings=adjusted,
        plans=list_plans(conn, user_id),
        total=round(sum(s.amount for s in adjusted), 2),
        raw_total=round(sum(s.amount for s in stored), 2),
        deficit=deficit,
    )
