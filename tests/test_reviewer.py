from decimal import Decimal

from fintrack import reviewer
from fintrack.models import Category, ImportPreview, StagedTransaction
from fintrack.reviewer import apply_exclusions, parse_row_numbers, run_import_review, set_row_category

CATEGORIES = [
    Category(id=5, name="Food", category_type="expense"),
    Category(id=7, name="Shopping", category_type="expense"),
]


def _rows(n=3):
    return [
        StagedTransaction(date=f"2024-01-0{i + 1}", description=f"Row {i + 1}", amount=Decimal("1.00"), type="expense")
        for i in range(n)
    ]


def _answers(monkeypatch, prompts, confirms):
    prompts, confirms = iter(prompts), iter(confirms)
    monkeypatch.setattr(reviewer.Prompt, "ask", lambda *a, **kw: next(prompts))
    monkeypatch.setattr(reviewer.Confirm, "ask", lambda *a, **kw: next(confirms))


def test_parse_row_numbers():
    assert parse_row_numbers("1,3,5-7", 10) == {0, 2, 4, 5, 6}
    assert parse_row_numbers(" 2 , 4 ", 10) == {1, 3}
    assert parse_row_numbers("", 10) == set()


def test_parse_row_numbers_ignores_out_of_range_and_garbage():
    assert parse_row_numbers("0,2,9,abc,3-x", 5) == {1}
    assert parse_row_numbers("4-8", 5) == {3, 4}


def test_apply_exclusions():
    rows = _rows()
    apply_exclusions(rows, {1})
    assert [r.active for r in rows] == [True, False, True]
    apply_exclusions(rows, set())
    assert all(r.active for r in rows)


def test_set_row_category():
    rows = _rows()
    set_row_category(rows, 0, CATEGORIES[1])
    assert rows[0].category_id == 7
    set_row_category(rows, 0, None)
    assert rows[0].category_id is None


def test_review_with_nothing_new_returns_false():
    preview = ImportPreview(unique=[], duplicates=_rows(1), filename="s.csv", checksum="abc")
    assert run_import_review(preview, CATEGORIES) is False


def test_review_excludes_rows_and_recategorizes(monkeypatch):
    rows = _rows()
    preview = ImportPreview(unique=rows, duplicates=[], filename="s.csv", checksum="abc")
    # exclude row 2, then set row 1 to category #2 (Shopping)
    _answers(monkeypatch, prompts=["2", "1", "2"], confirms=[True, False, True])

    assert run_import_review(preview, CATEGORIES) is True
    assert [r.active for r in rows] == [True, False, True]
    assert rows[0].category_id == 7


def test_review_cancelled(monkeypatch):
    rows = _rows()
    preview = ImportPreview(unique=rows, duplicates=[], filename="s.csv", checksum="abc")
    _answers(monkeypatch, prompts=[""], confirms=[False, False])

    assert run_import_review(preview, CATEGORIES) is False
    assert all(r.active for r in rows)
