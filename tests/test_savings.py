import pytest

from fintrack.currency import RateCache
from fintrack.savings import (
    add_plan, add_saving, delete_plan, delete_saving, get_deficit, get_overview, list_plans,
    list_savings, set_primary, toggle_plan, update_saving,
)
from fintrack.store import create_transaction, create_user


def _spend(db, user_id, income, expense, currency="USD"):
    create_transaction(db, user_id, date="2024-01-01", description="Pay", amount=income,
                       type="income", currency=currency)
    create_transaction(db, user_id, date="2024-01-02", description="Bills", amount=expense,
                       type="expense", currency=currency)


def test_add_and_list_savings(db, user_id):
    add_saving(db, user_id, " HDFC FD ", "5000", "5 year deposit")
    savings = list_savings(db, user_id)
    assert len(savings) == 1
    assert savings[0].source == "HDFC FD"
    assert savings[0].amount == 5000
    assert savings[0].is_primary is False


def test_invalid_amount_rejected(db, user_id):
    with pytest.raises(ValueError, match="Invalid amount"):
        add_saving(db, user_id, "Wallet", "lots")
    with pytest.raises(ValueError):
        add_plan(db, user_id, "Car", "nan")
    assert list_savings(db, user_id) == []


def test_only_one_primary_source(db, user_id):
    first = add_saving(db, user_id, "Checking", 1000, is_primary=True)
    second = add_saving(db, user_id, "Shares", 2000, is_primary=True)
    assert [s.id for s in list_savings(db, user_id) if s.is_primary] == [second]

    assert set_primary(db, user_id, first) is True
    assert [s.id for s in list_savings(db, user_id) if s.is_primary] == [first]


def test_set_primary_ignores_other_users_sources(db, user_id):
    mine = add_saving(db, user_id, "Checking", 1000, is_primary=True)
    bob = create_user(db, "bob")
    theirs = add_saving(db, bob, "Checking", 50)

    assert set_primary(db, user_id, theirs) is False
    assert [s.id for s in list_savings(db, user_id) if s.is_primary] == [mine]


def test_update_and_delete_saving(db, user_id):
    saving_id = add_saving(db, user_id, "Checking", 1000)
    assert update_saving(db, user_id, saving_id, "Checking", "1250.50", "after payday", is_primary=True)
    saving = list_savings(db, user_id)[0]
    assert (saving.amount, saving.description, saving.is_primary) == (1250.5, "after payday", True)

    assert update_saving(db, user_id, 999, "Nope", 1) is False
    assert delete_saving(db, user_id, saving_id) is True
    assert delete_saving(db, user_id, saving_id) is False
    assert list_savings(db, user_id) == []


def test_plans_toggle_and_delete(db, user_id):
    later = add_plan(db, user_id, "Holiday", 800, "2024-07")
    sooner = add_plan(db, user_id, "Laptop", 1500, "2024-03")
    add_plan(db, user_id, "Someday", 100)

    assert [p.goal_name for p in list_plans(db, user_id)] == ["Laptop", "Holiday", "Someday"]

    assert toggle_plan(db, user_id, sooner) is True
    assert toggle_plan(db, user_id, sooner) is False
    assert toggle_plan(db, user_id, 999) is None

    assert delete_plan(db, user_id, later) is True
    assert [p.goal_name for p in list_plans(db, user_id)] == ["Laptop", "Someday"]


def test_plan_month_must_be_year_month(db, user_id):
    with pytest.raises(ValueError, match="YYYY-MM"):
        add_plan(db, user_id, "Car", 100, "March")


def test_no_deficit_when_income_covers_spending(db, user_id):
    _spend(db, user_id, income=3000, expense=2500)
    assert get_deficit(db, user_id) == 0


def test_deficit_cut_from_primary_source(db, user_id):
    _spend(db, user_id, income=1000, expense=1300)
    add_saving(db, user_id, "Checking", 1000, is_primary=True)
    add_saving(db, user_id, "Shares", 2000)

    overview = get_overview(db, user_id)

    assert overview.deficit == 300
    assert [s.amount for s in overview.savings] == [700, 2000]
    assert overview.total == 2700
    assert overview.raw_total == 3000
    # stored balances are untouched
    assert list_savings(db, user_id)[0].amount == 1000


def test_primary_source_never_goes_negative(db, user_id):
    _spend(db, user_id, income=0, expense=500)
    add_saving(db, user_id, "Checking", 200, is_primary=True)
    overview = get_overview(db, user_id)
    assert overview.savings[0].amount == 0
    assert overview.total == 0


def test_deficit_without_primary_source_changes_nothing(db, user_id):
    _spend(db, user_id, income=0, expense=500)
    add_saving(db, user_id, "Shares", 2000)
    overview = get_overview(db, user_id)
    assert overview.deficit == 500
    assert overview.total == overview.raw_total == 2000


def test_deficit_converted_into_user_currency(db, user_id):
    rates = RateCache(fetch=lambda: {"usd": 1.0, "eur": 0.5}, clock=lambda: 0.0)
    create_transaction(db, user_id, date="2024-01-01", description="Pay", amount=100, type="income")
    create_transaction(db, user_id, date="2024-01-02", description="Hotel", amount=100,
                       type="expense", currency="EUR")

    assert get_deficit(db, user_id, rates, "USD") == 100
    assert get_deficit(db, user_id, rates, "EUR") == 50
