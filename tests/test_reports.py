from datetime import date

from fintrack.reports import get_monthly_trend, get_summary
from fintrack.store import create_transaction, create_user


def _cat(db, name):
    return db.execute("SELECT id FROM categories WHERE name = ?", (name,)).fetchone()["id"]


def test_summary_by_category(db, user_id):
    food, salary = _cat(db, "Food"), _cat(db, "Salary")
    create_transaction(db, user_id, date="2024-01-05", description="Lunch", amount=20, type="expense", category_id=food)
    create_transaction(db, user_id, date="2024-02-05", description="Dinner", amount=30, type="expense", category_id=food)
    create_transaction(db, user_id, date="2024-02-06", description="Mystery", amount=75, type="expense")
    create_transaction(db, user_id, date="2024-01-31", description="Pay", amount=3000, type="income", category_id=salary)
    create_transaction(db, user_id, date="2023-12-31", description="Old", amount=999, type="expense", category_id=food)

    summary = get_summary(db, user_id, 2024)

    assert summary["year"] == 2024
    assert summary["income"] == [{"name": "Salary", "total": 3000, "count": 1}]
    assert summary["expenses"] == [
        {"name": "Uncategorized", "total": 75, "count": 1},
        {"name": "Food", "total": 50, "count": 2},
    ]
    assert summary["total_income"] == 3000
    assert summary["total_expense"] == 125
    assert summary["net"] == 2875


def test_summary_is_per_user(db, user_id):
    bob = create_user(db, "bob")
    create_transaction(db, bob, date="2024-01-05", description="Lunch", amount=20, type="expense")

    summary = get_summary(db, user_id, 2024)
    assert summary["expenses"] == []
    assert summary["net"] == 0


def test_monthly_trend_fills_empty_months(db, user_id):
    create_transaction(db, user_id, date="2023-12-15", description="Too old", amount=10, type="expense")
    create_transaction(db, user_id, date="2024-01-15", description="Pay", amount=1000, type="income")
    create_transaction(db, user_id, date="2024-01-20", description="Rent", amount=600, type="expense")
    create_transaction(db, user_id, date="2024-03-02", description="Lunch", amount=12.5, type="expense")

    trend = get_monthly_trend(db, user_id, months=3, today=date(2024, 3, 15))

    assert [m["month"] for m in trend] == ["2024-01", "2024-02", "2024-03"]
    assert [m["label"] for m in trend] == ["Jan", "Feb", "Mar"]
    assert trend[0]["net"] == 400
    assert trend[1] == {"month": "2024-02", "label": "Feb", "income": 0.0, "expense": 0.0, "net": 0.0}
    assert trend[2]["expense"] == 12.5


def test_monthly_trend_crosses_year_boundary(db, user_id):
    trend = get_monthly_trend(db, user_id, months=4, today=date(2024, 2, 1))
    assert [m["month"] for m in trend] == ["2023-11", "2023-12", "2024-01", "2024-02"]
