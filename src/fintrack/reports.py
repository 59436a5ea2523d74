import sqlite3
from datetime import date


def get_summary(conn: sqlite3.Connection, user_id: int, year: int | None = None) -> dict:
    """Income and expense totals for a year, broken down by category."""
    year = year or date.today().year
    rows = conn.execute(
        "SELECT t.type, COALESCE(c.name, 'Uncategorized') as name, SUM(t.amount) as total, COUNT(*) as count "
        "FROM transactions t LEFT JOIN categories c ON t.category_id = c.id "
        "WHERE t.user_id = ? AND t.date BETWEEN ? AND ? "
        "GROUP BY t.type, COALESCE(c.name, 'Uncategorized') ORDER BY total DESC",
        (user_id, f"{year}-01-01", f"{year}-12-31"),
    ).fetchall()

    income = [{"name": r["name"], "total": r["total"], "count": r["count"]} for r in rows if r["type"] == "income"]
    expenses = [{"name": r["name"], "total": r["total"], "count": r["count"]} for r in rows if r["type"] == "expense"]
    total_income = sum(r["total"] for r in income)
    total_expense = sum(r["total"] for r in expenses)

    return {
        "year": year,
        "income": income,
        "expenses": expenses,
        "total_income": total_income,
        "total_expense": total_expense,
        "net": total_income - total_expense,
    }


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def get_monthly_trend(
    conn: sqlite3.Connection, user_id: int, months: int = 6, today: date | None = None
) -> list[dict]:
    """Income and expense per month for the trailing ``months``, oldest first, current month included."""
    today = today or date.today()
    keys = []
    for back in range(months - 1, -1, -1):
        y, m = _shift_month(today.year, today.month, -back)
        keys.append(f"{y}-{m:02d}")

    rows = conn.execute(
        "SELECT substr(date, 1, 7) as month, "
        "SUM(CASE WHEN type = 'income' THEN amount ELSE 0 END) as income, "
        "SUM(CASE WHEN type = 'expense' THEN amount ELSE 0 END) as expense "
        "FROM transactions WHERE user_id = ? AND date >= ? "
        "GROUP BY substr(date, 1, 7)",
        (user_id, f"{keys[0]}-01"),
    ).fetchall()
    by_month = {r["month"]: r for r in rows}

    trend = []
    for key in keys:
        r = by_month.get(key)
        income = r["income"] if r else 0.0
        expense = r["expense"] if r else 0.0
        trend.append({
            "month": key,
            "label": date(int(key[:4]), int(key[5:]), 1).strftime("%b"),
            "income": income,
            "expense": expense,
            "net": income - expense,
        })
    return trend
